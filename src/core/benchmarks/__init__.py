#!/usr/bin/env python3
"""
Benchmark measurement package.

Runs the external measurement tools (sysbench, fio, ioping, speedtest)
and turns their output into MetricSets.
"""

from .runner import ToolRunner, ToolResult
from .tools import ToolInventory, REQUIRED_TOOLS, OPTIONAL_TOOLS
from .network import NetworkDialect, DetailedDialect, SimpleDialect, select_network_dialect
from .disk import FIO_JOBS, FioJob, select_io_engine, scratch_file
from .collector import MetricCollector
from .system_info import SystemInfo, SystemInfoReader

__all__ = [
    'ToolRunner',
    'ToolResult',
    'ToolInventory',
    'REQUIRED_TOOLS',
    'OPTIONAL_TOOLS',
    'NetworkDialect',
    'DetailedDialect',
    'SimpleDialect',
    'select_network_dialect',
    'FIO_JOBS',
    'FioJob',
    'select_io_engine',
    'scratch_file',
    'MetricCollector',
    'SystemInfo',
    'SystemInfoReader'
]
