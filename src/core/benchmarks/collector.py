#!/usr/bin/env python3
"""
Metric collection for host benchmarking.

Runs the measurement tools one after another and assembles their parsed
output into a MetricSet. A failing tool only costs its own metrics; the
collector always returns a complete MetricSet unless a fatal condition
(disk full) is hit.
"""

import os
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..config import BenchmarkSettings
from ..environment import get_hostname, utc_timestamp
from ..exceptions import MeasurementError, ToolExecutionError
from ..models.metrics import METRIC_DEFINITIONS, SCHEMA_VERSION, MetricKey, MetricSet
from .disk import FIO_JOBS, FioJob, check_space, scratch_file, select_io_engine
from .network import NETWORK_METRICS, NetworkDialect
from .parsers import (
    parse_events_per_second, parse_fio_bandwidth, parse_ioping_latency, parse_memory_bandwidth
)
from .runner import ToolResult, ToolRunner

logger = logging.getLogger(__name__)

CPU_MAX_PRIME = 20000
IOPING_REQUESTS = 20


def available_cpus() -> int:
    """Number of CPUs this process may run on (what ``nproc`` reports)."""
    try:
        return len(os.sched_getaffinity(0))
    except AttributeError:
        return os.cpu_count() or 1


def _display(value: Optional[float]) -> str:
    return "N/A" if value is None else f"{value:g}"


class MetricCollector:
    """
    Invokes external measurement tools and parses their output.

    The network dialect is chosen once by the caller (see
    ``select_network_dialect``) and injected here.
    """

    def __init__(self, runner: ToolRunner, work_dir: Path,
                 network_dialect: Optional[NetworkDialect] = None,
                 cpu_count: Optional[int] = None,
                 hostname: Optional[str] = None,
                 clock: Callable[[], str] = utc_timestamp):
        """
        Initialize metric collector.

        Args:
            runner: Tool runner used for every sub-test
            work_dir: Directory for the fio scratch file and ioping target
            network_dialect: Speed test dialect, None if no tool is installed
            cpu_count: Threads for the multi-thread CPU test (default: nproc)
            hostname: Host identity recorded in the MetricSet
            clock: Source of the UTC run timestamp
        """
        self._runner = runner
        self._work_dir = Path(work_dir)
        self._network_dialect = network_dialect
        self._cpu_count = cpu_count or available_cpus()
        self._hostname = hostname
        self._clock = clock

    def collect(self, settings: BenchmarkSettings) -> MetricSet:
        """
        Run every sub-test sequentially and build the MetricSet.

        Raises:
            DiskSpaceExhaustedError: If fio reports the device is full
        """
        values: Dict[MetricKey, Optional[float]] = {}

        values[MetricKey.CPU_SINGLE] = self._measure(
            MetricKey.CPU_SINGLE, lambda: self._cpu_events(settings, threads=1))
        values[MetricKey.CPU_MULTI] = self._measure(
            MetricKey.CPU_MULTI, lambda: self._cpu_events(settings, threads=self._cpu_count))
        logger.info(f"CPU Single: {_display(values[MetricKey.CPU_SINGLE])} ev/s, "
                    f"Multi: {_display(values[MetricKey.CPU_MULTI])} ev/s")

        values[MetricKey.MEMORY_BANDWIDTH] = self._measure(
            MetricKey.MEMORY_BANDWIDTH, lambda: self._memory_bandwidth(settings))
        logger.info(f"Memory bandwidth: {_display(values[MetricKey.MEMORY_BANDWIDTH])} MiB/s")

        values.update(self._collect_disk(settings))

        values[MetricKey.DISK_LATENCY] = self._measure(MetricKey.DISK_LATENCY, self._disk_latency)
        logger.info(f"Disk latency: {_display(values[MetricKey.DISK_LATENCY])} μs")

        values.update(self._collect_network(settings))

        metric_set = MetricSet(
            timestamp=self._clock(),
            hostname=self._hostname or get_hostname(),
            version=SCHEMA_VERSION,
            values=values
        )
        logger.info(f"Collected {metric_set.available_count()}/{len(MetricKey)} metrics")
        return metric_set

    def _measure(self, key: MetricKey, probe: Callable[[], float]) -> Optional[float]:
        """Run one probe; a measurement failure becomes an unavailable metric."""
        try:
            return probe()
        except MeasurementError as e:
            label = METRIC_DEFINITIONS[key].label
            logger.warning(f"{key.value} ({label}) unavailable: {e}")
            return None

    def _run_checked(self, args: List[str], timeout: Optional[float] = None) -> ToolResult:
        result = self._runner.run(args, timeout=timeout)
        if result.timed_out:
            raise ToolExecutionError(args[0], f"timed out after {timeout}s")
        if result.exit_code != 0:
            raise ToolExecutionError(args[0], f"exited with code {result.exit_code}", result.exit_code)
        return result

    # CPU / memory

    def _cpu_events(self, settings: BenchmarkSettings, threads: int) -> float:
        logger.info(f"CPU Benchmark: {threads} thread(s), {settings.cpu_test_time}s, max-prime={CPU_MAX_PRIME}")
        result = self._run_checked([
            "sysbench", "cpu",
            f"--time={settings.cpu_test_time}",
            f"--threads={threads}",
            f"--cpu-max-prime={CPU_MAX_PRIME}",
            "run",
        ])
        return parse_events_per_second(result.output)

    def _memory_bandwidth(self, settings: BenchmarkSettings) -> float:
        logger.info(f"Memory Benchmark: {settings.cpu_test_time}s, 1M blocks")
        result = self._run_checked([
            "sysbench", "memory",
            "--memory-block-size=1M",
            "--memory-total-size=10G",
            f"--time={settings.cpu_test_time}",
            "run",
        ])
        return parse_memory_bandwidth(result.output)

    # Disk

    def _collect_disk(self, settings: BenchmarkSettings) -> Dict[MetricKey, Optional[float]]:
        values: Dict[MetricKey, Optional[float]] = {job.metric: None for job in FIO_JOBS}

        if not self._runner.is_available("fio"):
            logger.warning("fio not found, disk throughput will be unavailable")
            return values

        # One engine for every job so the three figures are comparable
        io_engine = select_io_engine(self._runner)

        with scratch_file(self._work_dir) as test_file:
            for job in FIO_JOBS:
                values[job.metric] = self._measure(
                    job.metric,
                    lambda job=job: self._fio_job(job, test_file, io_engine, settings.disk_test_size)
                )

        logger.info(
            f"Disk (FIO) - Write Dir: {_display(values[MetricKey.DISK_WRITE_DIRECT])} MB/s, "
            f"Read Dir: {_display(values[MetricKey.DISK_READ])} MB/s, "
            f"Write Buf: {_display(values[MetricKey.DISK_WRITE_BUFFERED])} MB/s"
        )
        return values

    def _fio_job(self, job: FioJob, test_file: Path, io_engine: str, size: str) -> float:
        mode = "Direct" if job.direct else "Buffered"
        logger.info(f"Disk {job.rw.title()} (FIO, {size}, Seq, {mode}, {io_engine})")

        result = self._runner.run(job.build_command(test_file, io_engine, size))
        check_space(result.output, size, job.name)
        if result.exit_code != 0:
            raise ToolExecutionError("fio", f"{job.name} exited with code {result.exit_code}", result.exit_code)
        return parse_fio_bandwidth(result.output)

    def _disk_latency(self) -> float:
        if not self._runner.is_available("ioping"):
            raise ToolExecutionError("ioping", "not installed")

        logger.info(f"Disk Latency (ioping, {IOPING_REQUESTS} requests)")
        result = self._run_checked(["ioping", "-c", str(IOPING_REQUESTS), str(self._work_dir)])
        return float(parse_ioping_latency(result.output))

    # Network

    def _collect_network(self, settings: BenchmarkSettings) -> Dict[MetricKey, Optional[float]]:
        values: Dict[MetricKey, Optional[float]] = {key: None for key in NETWORK_METRICS}

        if settings.skip_network:
            logger.info("Network Speed Test (skipped by config)")
            return values

        dialect = self._network_dialect
        if dialect is None:
            logger.error("No speedtest tool available")
            return values

        if settings.speedtest_server_id:
            logger.info(f"Forcing Speedtest server: {settings.speedtest_server_id}")

        logger.info(f"Network Speed Test ({dialect.name})")
        try:
            result = self._runner.run(
                dialect.build_command(settings.speedtest_server_id),
                timeout=settings.network_timeout
            )
        except ToolExecutionError as e:
            logger.warning(f"Network test failed: {e}")
            return values

        if result.timed_out:
            logger.warning(f"{dialect.binary} timed out after {settings.network_timeout}s (keeping partial results)")
        elif result.exit_code != 0:
            logger.warning(f"{dialect.binary} exited with code {result.exit_code} (partial results may still be valid)")

        values.update(dialect.parse(result.output))

        missing = [key.value for key, value in values.items() if value is None]
        if missing:
            logger.warning(f"Network metrics unavailable: {', '.join(missing)}")

        logger.info(
            f"Network - Down: {_display(values[MetricKey.NETWORK_DOWNLOAD])} Mbps, "
            f"Up: {_display(values[MetricKey.NETWORK_UPLOAD])} Mbps, "
            f"Ping: {_display(values[MetricKey.NETWORK_PING])} ms"
        )
        return values
