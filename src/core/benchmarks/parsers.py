#!/usr/bin/env python3
"""
Parsers for measurement tool output.

Turn the text printed by sysbench, fio and ioping into numbers. A parser
either returns a real number or raises MetricParseError; it never returns
zero or a placeholder for a value it could not read.
"""

import re
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Pattern, Union

from ..exceptions import MetricParseError

logger = logging.getLogger(__name__)

NUMBER_TOKEN = re.compile(r'^[0-9]+(\.[0-9]+)?$')

EVENTS_PER_SECOND = re.compile(r'events per second:\s*([0-9]+(?:\.[0-9]+)?)')
MEMORY_TRANSFERRED = re.compile(r'transferred\s*\(\s*([0-9]+(?:\.[0-9]+)?)')
FIO_BANDWIDTH = re.compile(r'bw=([0-9]+(?:\.[0-9]+)?)([A-Za-z]*B/s)')

# Canonical unit is MB/s. fio prints binary prefixes (KiB/s) in newer
# releases and decimal-looking ones (KB/s) in older ones; both use 1024.
THROUGHPUT_FACTORS = {
    'KB/s': Decimal(1) / Decimal(1024),
    'KiB/s': Decimal(1) / Decimal(1024),
    'MB/s': Decimal(1),
    'MiB/s': Decimal(1),
    'GB/s': Decimal(1024),
    'GiB/s': Decimal(1024),
}

MICROSECOND_UNITS = ('us', 'µs', 'μs')


def _to_decimal(token: str, metric_name: str) -> Decimal:
    try:
        value = Decimal(token)
    except (InvalidOperation, TypeError):
        raise MetricParseError(metric_name, f"not a number: {token!r}")
    if not value.is_finite() or value < 0:
        raise MetricParseError(metric_name, f"not a valid measurement: {token!r}")
    return value


def normalize_throughput(value: str, unit: str) -> float:
    """
    Convert a throughput reading to MB/s.

    Args:
        value: Numeric token as printed by the tool (e.g. "512")
        unit: Unit suffix (KB/s, MB/s, GB/s or the KiB/MiB/GiB spellings)

    Returns:
        Throughput in MB/s

    Raises:
        MetricParseError: On an unrecognized unit or unparsable number
    """
    factor = THROUGHPUT_FACTORS.get(unit)
    if factor is None:
        raise MetricParseError("throughput", f"unrecognized unit {unit!r}")
    return float(_to_decimal(value, "throughput") * factor)


def parse_fio_bandwidth(output: str) -> float:
    """Read the first ``bw=<value><unit>`` token of a fio report, in MB/s."""
    match = FIO_BANDWIDTH.search(output or "")
    if not match:
        raise MetricParseError("disk bandwidth", "no bw= figure in fio output")
    return normalize_throughput(match.group(1), match.group(2))


def parse_events_per_second(output: str) -> float:
    """Read ``events per second:`` from ``sysbench cpu`` output."""
    match = EVENTS_PER_SECOND.search(output or "")
    if not match:
        raise MetricParseError("cpu events/sec", "no 'events per second' line")
    return float(match.group(1))


def parse_memory_bandwidth(output: str) -> float:
    """Read the MiB/sec figure from the ``transferred`` line of ``sysbench memory``."""
    match = MEMORY_TRANSFERRED.search(output or "")
    if not match:
        raise MetricParseError("memory bandwidth", "no 'transferred' line")
    return float(match.group(1))


def latency_to_microseconds(value: str, unit: str) -> int:
    """
    Convert an ioping latency reading to whole microseconds.

    Milliseconds are multiplied by 1000 and truncated, not rounded
    (1.2349 ms -> 1234 us). Existing history was recorded this way.
    """
    number = _to_decimal(value, "disk latency")
    if unit == 'ms':
        return int(number * 1000)
    if unit in MICROSECOND_UNITS:
        return int(number)
    raise MetricParseError("disk latency", f"unrecognized unit {unit!r}")


def parse_ioping_latency(output: str) -> int:
    """Read the average latency from the ``min/avg/max`` summary of ioping."""
    for line in (output or "").splitlines():
        if 'min/avg/max' not in line:
            continue
        # min/avg/max/mdev = 180.4 us / 269.4 us / 412.3 us / 53.1 us
        tokens = line.split()
        if len(tokens) < 7:
            raise MetricParseError("disk latency", f"truncated summary line: {line.strip()!r}")
        return latency_to_microseconds(tokens[5], tokens[6])
    raise MetricParseError("disk latency", "no min/avg/max summary in ioping output")


def extract_first_number(output: str, label: Union[str, Pattern]) -> Optional[float]:
    """
    First whole numeric token on a line matching ``label``.

    Lines matching the label but carrying no numeric token are skipped and
    the search continues with the next matching line.

    Returns:
        The number, or None if no matching line carries one
    """
    pattern = re.compile(label) if isinstance(label, str) else label
    for line in (output or "").splitlines():
        if not pattern.search(line):
            continue
        for token in line.split():
            if NUMBER_TOKEN.match(token):
                return float(token)
    return None
