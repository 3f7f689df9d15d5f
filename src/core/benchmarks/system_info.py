#!/usr/bin/env python3
"""
Host description printed before benchmarking: uptime, CPU topology,
memory and block devices as reported by the standard Linux tools.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..environment import get_hostname
from ..exceptions import ToolExecutionError
from ..models.metrics import SCHEMA_VERSION
from .runner import ToolRunner

logger = logging.getLogger(__name__)

SYSTEM_TOOL_TIMEOUT = 10
LSCPU_FIELDS = ('Model name', 'CPU(s)', 'Thread(s) per core', 'Core(s) per socket')


@dataclass(frozen=True)
class SystemInfo:
    """Snapshot of the host; None marks a section whose tool was unavailable."""
    version: str
    hostname: str
    uptime: Optional[str] = None
    cpu: Dict[str, str] = field(default_factory=dict)
    memory: Optional[str] = None
    block_devices: Optional[str] = None


def parse_lscpu(output: str) -> Dict[str, str]:
    """Pick the model, CPU count and topology lines out of ``lscpu`` output."""
    found: Dict[str, str] = {}
    for line in output.splitlines():
        name, sep, value = line.strip().partition(':')
        if sep and name in LSCPU_FIELDS and name not in found:
            found[name] = value.strip()
    return {name: found[name] for name in LSCPU_FIELDS if name in found}


class SystemInfoReader:
    """Collects the host description with ``uptime``, ``lscpu``, ``free`` and ``lsblk``."""

    def __init__(self, runner: ToolRunner, hostname: Optional[str] = None):
        self._runner = runner
        self._hostname = hostname

    def gather(self) -> SystemInfo:
        lscpu_output = self._capture(['lscpu'])
        return SystemInfo(
            version=SCHEMA_VERSION,
            hostname=self._hostname or get_hostname(),
            uptime=self._capture(['uptime', '-p']),
            cpu=parse_lscpu(lscpu_output) if lscpu_output else {},
            memory=self._capture(['free', '-h']),
            block_devices=self._capture(['lsblk', '-o', 'NAME,SIZE,TYPE,MOUNTPOINT'])
        )

    def _capture(self, args: List[str]) -> Optional[str]:
        """Output of one informational tool, or None if it is missing or fails."""
        if not self._runner.is_available(args[0]):
            logger.debug(f"{args[0]} not installed, skipping")
            return None

        try:
            result = self._runner.run(args, timeout=SYSTEM_TOOL_TIMEOUT)
        except ToolExecutionError as e:
            logger.warning(f"System info unavailable: {e.message}")
            return None

        if not result.succeeded:
            logger.warning(f"{args[0]} failed (exit {result.exit_code}), skipping")
            return None
        return result.output.strip()
