#!/usr/bin/env python3
"""
Benchmark metric data models.

Contains the fixed metric catalogue, the MetricSet produced by one benchmark
execution, and the persisted Run record.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional


SCHEMA_VERSION = "0.2.0"


class Polarity(Enum):
    """Whether a rising value is good or bad news."""
    HIGHER_IS_BETTER = "higher_is_better"
    LOWER_IS_BETTER = "lower_is_better"


class MetricKey(Enum):
    """Fixed metric keys. Values double as historical store column names."""
    CPU_SINGLE = "cpu_single"
    CPU_MULTI = "cpu_multi"
    MEMORY_BANDWIDTH = "memory_bandwidth"
    DISK_WRITE_BUFFERED = "disk_write_buffered"
    DISK_WRITE_DIRECT = "disk_write_direct"
    DISK_READ = "disk_read"
    DISK_LATENCY = "disk_latency"
    NETWORK_DOWNLOAD = "network_download"
    NETWORK_UPLOAD = "network_upload"
    NETWORK_PING = "network_ping"


@dataclass(frozen=True)
class MetricDefinition:
    """Static description of a metric: display label, unit, grouping and polarity."""
    key: MetricKey
    label: str
    unit: str
    category: str
    json_key: str
    polarity: Polarity = Polarity.HIGHER_IS_BETTER
    integer: bool = False


METRIC_DEFINITIONS: Dict[MetricKey, MetricDefinition] = {
    definition.key: definition for definition in [
        MetricDefinition(MetricKey.CPU_SINGLE, "Single-Thread", "events/sec", "cpu", "single_thread_events_per_sec"),
        MetricDefinition(MetricKey.CPU_MULTI, "Multi-Thread", "events/sec", "cpu", "multi_thread_events_per_sec"),
        MetricDefinition(MetricKey.MEMORY_BANDWIDTH, "Bandwidth", "MiB/s", "memory", "bandwidth_mib_per_sec"),
        MetricDefinition(MetricKey.DISK_WRITE_BUFFERED, "Write (Buffered)", "MB/s", "disk", "write_buffered_mbs"),
        MetricDefinition(MetricKey.DISK_WRITE_DIRECT, "Write (Direct)", "MB/s", "disk", "write_direct_mbs"),
        MetricDefinition(MetricKey.DISK_READ, "Read (Direct)", "MB/s", "disk", "read_mbs"),
        MetricDefinition(MetricKey.DISK_LATENCY, "Latency", "μs", "disk", "latency_us",
                         polarity=Polarity.LOWER_IS_BETTER, integer=True),
        MetricDefinition(MetricKey.NETWORK_DOWNLOAD, "Download", "Mbps", "network", "download_mbps"),
        MetricDefinition(MetricKey.NETWORK_UPLOAD, "Upload", "Mbps", "network", "upload_mbps"),
        MetricDefinition(MetricKey.NETWORK_PING, "Latency", "ms", "network", "latency_ms",
                         polarity=Polarity.LOWER_IS_BETTER),
    ]
}

CATEGORIES = ("cpu", "memory", "disk", "network")


def definitions_for(category: str) -> List[MetricDefinition]:
    """Metric definitions belonging to one category, in catalogue order."""
    return [d for d in METRIC_DEFINITIONS.values() if d.category == category]


def _coerce_value(value: Any) -> Optional[float]:
    # bool is an int subclass but never a measurement
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


@dataclass(frozen=True)
class Metric:
    """A single named, unit-tagged measurement. ``value is None`` means unavailable."""
    key: MetricKey
    value: Optional[float]
    unit: str
    polarity: Polarity

    @property
    def available(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class MetricSet:
    """
    Complete measurement from one benchmark execution.

    Always carries a value slot for every MetricKey; slots the collector could
    not fill hold None. Values are exposed as a read-only mapping.
    """
    timestamp: str
    hostname: str
    version: str = SCHEMA_VERSION
    values: Mapping[MetricKey, Optional[float]] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        """Fill missing keys and normalize values to float or None."""
        normalized = {key: _coerce_value(self.values.get(key)) for key in MetricKey}
        object.__setattr__(self, 'values', MappingProxyType(normalized))

    def value(self, key: MetricKey) -> Optional[float]:
        return self.values[key]

    def is_available(self, key: MetricKey) -> bool:
        return self.values[key] is not None

    def metric(self, key: MetricKey) -> Metric:
        definition = METRIC_DEFINITIONS[key]
        return Metric(key=key, value=self.values[key], unit=definition.unit, polarity=definition.polarity)

    def metrics(self) -> List[Metric]:
        return [self.metric(key) for key in MetricKey]

    def available_count(self) -> int:
        return sum(1 for value in self.values.values() if value is not None)

    def to_row(self) -> Dict[str, Any]:
        """Flatten into a column -> value mapping for the historical store."""
        row = {
            'timestamp': self.timestamp,
            'hostname': self.hostname,
            'version': self.version,
        }
        for key in MetricKey:
            row[key.value] = self.values[key]
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'MetricSet':
        """Create MetricSet from a historical store row."""
        return cls(
            timestamp=row['timestamp'],
            hostname=row['hostname'],
            version=row.get('version') or '1.0.0',
            values={key: row.get(key.value) for key in MetricKey}
        )


@dataclass(frozen=True)
class Run:
    """Persisted, immutable record of a MetricSet."""
    run_id: int
    metric_set: MetricSet

    @property
    def timestamp(self) -> str:
        return self.metric_set.timestamp

    @property
    def hostname(self) -> str:
        return self.metric_set.hostname
