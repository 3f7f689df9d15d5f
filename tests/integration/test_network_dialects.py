import pytest

from core.benchmarks.network import DetailedDialect, SimpleDialect, select_network_dialect
from core.models.metrics import MetricKey

from conftest import OOKLA_OUTPUT, SPEEDTEST_CLI_OUTPUT


def test_detailed_dialect_reads_idle_latency_and_throughput():
    values = DetailedDialect().parse(OOKLA_OUTPUT)

    assert values[MetricKey.NETWORK_DOWNLOAD] == pytest.approx(941.27)
    assert values[MetricKey.NETWORK_UPLOAD] == pytest.approx(512.80)
    assert values[MetricKey.NETWORK_PING] == pytest.approx(11.52)


def test_detailed_dialect_falls_back_to_plain_latency_label():
    output = "     Latency:    20.10 ms   (0.50 ms jitter)\n    Download:   100.00 Mbps\n"
    values = DetailedDialect().parse(output)

    assert values[MetricKey.NETWORK_PING] == pytest.approx(20.10)
    assert values[MetricKey.NETWORK_UPLOAD] is None


def test_simple_dialect_reads_three_lines():
    values = SimpleDialect().parse(SPEEDTEST_CLI_OUTPUT)

    assert values == {
        MetricKey.NETWORK_DOWNLOAD: pytest.approx(93.42),
        MetricKey.NETWORK_UPLOAD: pytest.approx(41.07),
        MetricKey.NETWORK_PING: pytest.approx(18.734),
    }


def test_partial_report_keeps_values_printed_before_cutoff():
    partial = "Ping: 18.734 ms\nDownload: 93.42 Mbit/s\n"
    values = SimpleDialect().parse(partial)

    assert values[MetricKey.NETWORK_DOWNLOAD] == pytest.approx(93.42)
    assert values[MetricKey.NETWORK_UPLOAD] is None


def test_commands_pin_server_only_when_configured():
    assert DetailedDialect().build_command() == ["speedtest", "--accept-license", "--accept-gdpr"]
    assert DetailedDialect().build_command("4242")[-1] == "--server-id=4242"
    assert SimpleDialect().build_command() == ["speedtest-cli", "--simple"]
    assert SimpleDialect().build_command("4242") == ["speedtest-cli", "--simple", "--server", "4242"]


def test_select_network_dialect_prefers_detailed_tool(fake_runner_factory):
    assert isinstance(select_network_dialect(fake_runner_factory({"speedtest", "speedtest-cli"})), DetailedDialect)
    assert isinstance(select_network_dialect(fake_runner_factory({"speedtest-cli"})), SimpleDialect)
    assert select_network_dialect(fake_runner_factory()) is None
