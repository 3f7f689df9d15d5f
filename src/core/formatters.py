#!/usr/bin/env python3
"""
Formatting utilities for benchmark results.

Renders a MetricSet (optionally with its comparison against the previous
run) as a human-readable summary and as the fixed-schema JSON document.
"""

import os
import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .benchmarks.system_info import SystemInfo
from .comparison import ComparisonEngine
from .models.comparison import ComparisonResult, Trend
from .models.metrics import (
    CATEGORIES, METRIC_DEFINITIONS, MetricKey, MetricSet, definitions_for
)

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
HEADER_WIDTH = 60

CATEGORY_TITLES = {
    "cpu": "CPU Performance (sysbench)",
    "memory": "Memory Performance",
    "disk": "Disk Performance (FIO)",
    "network": "Network Performance (speedtest)",
}

TREND_SYMBOLS = {
    Trend.IMPROVEMENT: "▲",
    Trend.REGRESSION: "▼",
    Trend.NEUTRAL: "≈",
}


def format_value(key: MetricKey, value: Optional[float]) -> str:
    """Display form of a metric value; ``N/A`` when unavailable."""
    if value is None:
        return NOT_AVAILABLE
    if METRIC_DEFINITIONS[key].integer or float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip('0').rstrip('.')


def _header(title: str) -> List[str]:
    return ["", "=" * HEADER_WIDTH, f"  {title}", "=" * HEADER_WIDTH]


class ReportFormatter:
    """Builds text and JSON renderings of a benchmark run."""

    def render(self, metric_set: MetricSet,
               comparisons: Optional[List[ComparisonResult]] = None,
               is_docker: bool = False,
               previous: Optional[MetricSet] = None) -> Tuple[str, Dict[str, Any]]:
        """
        Render a run.

        Args:
            metric_set: Run to render
            comparisons: Per-metric comparison with the previous run, if any
            is_docker: Whether the run happened inside a container
            previous: Previous run, used for the comparison header only

        Returns:
            Tuple of (text summary, JSON-serializable document)
        """
        lines = self._summary_lines(metric_set, is_docker)
        if comparisons is not None:
            lines.extend(self._comparison_lines(comparisons, previous))
        return "\n".join(lines), self.build_document(metric_set, is_docker)

    def build_document(self, metric_set: MetricSet, is_docker: bool = False) -> Dict[str, Any]:
        """
        Build the fixed-schema JSON document.

        Every metric key is always present; unavailable values are None.
        """
        metrics: Dict[str, Dict[str, Any]] = {}
        for category in CATEGORIES:
            section = {}
            for definition in definitions_for(category):
                value = metric_set.value(definition.key)
                if value is not None and definition.integer:
                    value = int(value)
                section[definition.json_key] = value
            metrics[category] = section

        return {
            "version": metric_set.version,
            "timestamp": metric_set.timestamp,
            "hostname": metric_set.hostname,
            "is_docker": bool(is_docker),
            "metrics": metrics,
        }

    def _summary_lines(self, metric_set: MetricSet, is_docker: bool) -> List[str]:
        lines = _header("FINAL RESULTS SUMMARY")
        lines.extend([
            "",
            "Execution Details:",
            f"  {'Version':<20}: {metric_set.version}",
            f"  {'Hostname':<20}: {metric_set.hostname}",
            f"  {'Timestamp':<20}: {metric_set.timestamp}",
            f"  {'Environment':<20}: {'Docker container' if is_docker else 'Host'}",
            f"  {'Status':<20}: Completed ({metric_set.available_count()}/{len(MetricKey)} metrics)",
        ])

        for category in CATEGORIES:
            lines.extend(["", f"{CATEGORY_TITLES[category]}:"])
            for definition in definitions_for(category):
                value = metric_set.value(definition.key)
                indicator = "✓" if value is not None else "✗"
                shown = format_value(definition.key, value)
                unit = f" {definition.unit}" if value is not None else ""
                lines.append(f"  {definition.label:<20} [{indicator}]: {shown}{unit}")

        return lines

    def _comparison_lines(self, comparisons: List[ComparisonResult],
                          previous: Optional[MetricSet]) -> List[str]:
        lines = _header("COMPARISON WITH PREVIOUS RUN")
        if previous is not None:
            lines.append(f"Previous Run: {previous.timestamp} (v{previous.version})")

        by_category: Dict[str, List[ComparisonResult]] = {category: [] for category in CATEGORIES}
        for result in comparisons:
            by_category[METRIC_DEFINITIONS[result.metric].category].append(result)

        for category in CATEGORIES:
            if not by_category[category]:
                continue
            lines.extend(["", f"{CATEGORY_TITLES[category].split(' (')[0]}:"])
            lines.extend(self.format_comparison(result) for result in by_category[category])

        counts = ComparisonEngine.summarize(comparisons)
        lines.extend([
            "",
            f"Overall: {counts[Trend.IMPROVEMENT]} improved, {counts[Trend.REGRESSION]} regressed, "
            f"{counts[Trend.NEUTRAL]} unchanged, {counts[Trend.NEW]} new, "
            f"{counts[Trend.UNAVAILABLE]} unavailable",
        ])
        return lines

    def format_comparison(self, result: ComparisonResult) -> str:
        """One comparison line, e.g. ``Latency (μs): 250 → 240 (▲4.0%)``."""
        definition = METRIC_DEFINITIONS[result.metric]
        name = f"{definition.label} ({definition.unit})"
        current = format_value(result.metric, result.current)

        if result.trend is Trend.NEW:
            return f"  {name:<25}: {NOT_AVAILABLE} → {current} (new)"
        if result.delta_percent is None:
            return f"  {name:<25}: {NOT_AVAILABLE}"

        previous = format_value(result.metric, result.previous)
        symbol = TREND_SYMBOLS[result.trend]
        return f"  {name:<25}: {previous} → {current} ({symbol}{abs(result.delta_percent):.1f}%)"

    def format_system_info(self, info: SystemInfo) -> str:
        """Host description shown before the benchmarks start."""
        lines = _header(f"Host Benchmark v{info.version}")
        lines.extend([
            "",
            "System Info:",
            f"  {'Script Version':<20}: {info.version}",
            f"  {'Hostname':<20}: {info.hostname}",
            f"  {'Uptime':<20}: {info.uptime or NOT_AVAILABLE}",
            "",
            "CPU Info:",
        ])
        if info.cpu:
            lines.extend(f"  {name:<20}: {value}" for name, value in info.cpu.items())
        else:
            lines.append(f"  {NOT_AVAILABLE}")

        for title, block in (("Memory", info.memory), ("Disk", info.block_devices)):
            lines.extend(["", f"{title}:"])
            lines.extend(f"  {line}" for line in (block or NOT_AVAILABLE).splitlines())
        return "\n".join(lines)

    def summary_line(self, metric_set: MetricSet) -> str:
        """One-line run summary used as the notification body."""
        def show(key: MetricKey) -> str:
            return format_value(key, metric_set.value(key))

        return (
            f"{metric_set.hostname}: CPU {show(MetricKey.CPU_MULTI)}ev/s | "
            f"Disk {show(MetricKey.DISK_WRITE_BUFFERED)}MB/s | "
            f"Net {show(MetricKey.NETWORK_DOWNLOAD)}↓/{show(MetricKey.NETWORK_UPLOAD)}↑ Mbps"
        )

    def format_run_list(self, rows: List[Dict[str, Any]]) -> str:
        """Tabular listing of stored runs (as returned by RunStore.list_recent)."""
        if not rows:
            return "No benchmark runs found"

        header = f"{'id':<6}{'run_time':<22}{'hostname':<24}{'version':<10}{'cpu_s':>10}{'cpu_m':>10}{'disk_w':>8}{'net_dl':>8}"
        lines = ["Saved Benchmark Runs", "", header, "-" * len(header)]
        for row in rows:
            lines.append(
                f"{row['id']:<6}{str(row['timestamp']):<22}{str(row['hostname'])[:23]:<24}"
                f"{str(row['version']):<10}{row['cpu_s']:>10.1f}{row['cpu_m']:>10.1f}"
                f"{int(row['disk_w']):>8d}{int(row['net_dl']):>8d}"
            )
        return "\n".join(lines)

    def export_json(self, document: Dict[str, Any], path: Union[str, Path]) -> Path:
        """
        Write the document atomically (temp file in the same directory, then replace).

        Returns:
            Path of the written file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(temp_name, path)
        except BaseException:
            if os.path.exists(temp_name):
                os.unlink(temp_name)
            raise

        logger.info(f"JSON results exported to {path}")
        return path
