import pytest

from core.benchmarks.parsers import (
    extract_first_number,
    latency_to_microseconds,
    normalize_throughput,
    parse_events_per_second,
    parse_fio_bandwidth,
    parse_ioping_latency,
    parse_memory_bandwidth,
)
from core.exceptions import MetricParseError

from conftest import (
    IOPING_OUTPUT,
    SYSBENCH_CPU_SINGLE_OUTPUT,
    SYSBENCH_MEMORY_OUTPUT,
    fio_output,
)


@pytest.mark.parametrize(
    "value, unit, expected",
    [
        ("512", "KB/s", 0.5),
        ("512", "KiB/s", 0.5),
        ("100", "MB/s", 100.0),
        ("2", "GB/s", 2048.0),
        ("1.5", "GiB/s", 1536.0),
    ],
)
def test_normalize_throughput_converts_to_megabytes(value, unit, expected):
    assert normalize_throughput(value, unit) == pytest.approx(expected)


def test_normalize_throughput_rejects_unknown_unit():
    with pytest.raises(MetricParseError):
        normalize_throughput("100", "B/s")


def test_parse_fio_bandwidth_uses_first_bw_token():
    assert parse_fio_bandwidth(fio_output("1.5GiB/s")) == pytest.approx(1536.0)


def test_parse_fio_bandwidth_without_bw_token_fails():
    """Missing figures are errors, never a silent zero."""
    with pytest.raises(MetricParseError):
        parse_fio_bandwidth("fio: engine libaio not loadable\n")


def test_sysbench_parsers_read_expected_lines():
    assert parse_events_per_second(SYSBENCH_CPU_SINGLE_OUTPUT) == pytest.approx(512.34)
    assert parse_memory_bandwidth(SYSBENCH_MEMORY_OUTPUT) == pytest.approx(10939.52)


def test_sysbench_parsers_reject_empty_output():
    with pytest.raises(MetricParseError):
        parse_events_per_second("")
    with pytest.raises(MetricParseError):
        parse_memory_bandwidth("FATAL: invalid option")


def test_millisecond_latency_is_truncated_not_rounded():
    assert latency_to_microseconds("1.2349", "ms") == 1234
    assert latency_to_microseconds("0.9999", "ms") == 999


@pytest.mark.parametrize("unit", ["us", "µs", "μs"])
def test_microsecond_latency_spellings_are_truncated(unit):
    assert latency_to_microseconds("269.9", unit) == 269


def test_unknown_latency_unit_is_unparsable():
    with pytest.raises(MetricParseError):
        latency_to_microseconds("1.2", "s")


def test_parse_ioping_latency_reads_average():
    assert parse_ioping_latency(IOPING_OUTPUT) == 269


def test_parse_ioping_latency_in_milliseconds():
    output = "min/avg/max/mdev = 1.01 ms / 1.2349 ms / 2.50 ms / 0.30 ms\n"
    assert parse_ioping_latency(output) == 1234


def test_parse_ioping_latency_without_summary_fails():
    with pytest.raises(MetricParseError):
        parse_ioping_latency("ioping: request failed: Permission denied\n")


def test_extract_first_number_skips_labeled_lines_without_numbers():
    output = "Download: waiting...\nDownload:   93.4 Mbit/s\n"
    assert extract_first_number(output, r"^Download:") == pytest.approx(93.4)


def test_extract_first_number_ignores_tokens_with_trailing_units():
    assert extract_first_number("Ping: 12ms\n", r"^Ping:") is None
    assert extract_first_number("Upload: n/a\n", r"^Upload:") is None
