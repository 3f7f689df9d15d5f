#!/usr/bin/env python3
"""
Network speed test dialects.

Exactly one of two speed test tools is expected on a host, each printing a
different report format. The dialect is chosen once from the installed
binary and injected into the collector; output is never sniffed.
"""

import re
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Pattern, Tuple

from ..models.metrics import MetricKey
from .parsers import extract_first_number
from .runner import ToolRunner

logger = logging.getLogger(__name__)

NETWORK_METRICS = (MetricKey.NETWORK_DOWNLOAD, MetricKey.NETWORK_UPLOAD, MetricKey.NETWORK_PING)


class NetworkDialect(ABC):
    """Command line and report layout of one speed test tool."""

    name: str = ""
    binary: str = ""

    @abstractmethod
    def build_command(self, server_id: Optional[str] = None) -> List[str]:
        """
        Build the speed test command line.

        Args:
            server_id: Pinned test server, None to let the tool choose
        """
        pass

    @abstractmethod
    def label_patterns(self) -> Dict[MetricKey, Tuple[Pattern, ...]]:
        """Labels to look for per metric, tried in order."""
        pass

    def parse(self, output: str) -> Dict[MetricKey, Optional[float]]:
        """
        Extract download, upload and latency from a (possibly partial) report.

        Each value is the first numeric token on/after its labeled line;
        metrics whose label never shows up are None.
        """
        values: Dict[MetricKey, Optional[float]] = {}
        for key, patterns in self.label_patterns().items():
            value = None
            for pattern in patterns:
                value = extract_first_number(output, pattern)
                if value is not None:
                    break
            values[key] = value
        return values

    def __repr__(self):
        return f"{self.__class__.__name__}(binary='{self.binary}')"


class DetailedDialect(NetworkDialect):
    """Ookla ``speedtest``: multi-section report with idle/loaded latency."""

    name = "ookla"
    binary = "speedtest"

    def build_command(self, server_id: Optional[str] = None) -> List[str]:
        command = [self.binary, "--accept-license", "--accept-gdpr"]
        if server_id:
            command.append(f"--server-id={server_id}")
        return command

    def label_patterns(self) -> Dict[MetricKey, Tuple[Pattern, ...]]:
        return {
            MetricKey.NETWORK_DOWNLOAD: (re.compile(r'^\s*Download:'),),
            MetricKey.NETWORK_UPLOAD: (re.compile(r'^\s*Upload:'),),
            MetricKey.NETWORK_PING: (re.compile(r'Idle Latency:'), re.compile(r'^\s*Latency:')),
        }


class SimpleDialect(NetworkDialect):
    """Python ``speedtest-cli --simple``: three single-line readings."""

    name = "python"
    binary = "speedtest-cli"

    def build_command(self, server_id: Optional[str] = None) -> List[str]:
        command = [self.binary, "--simple"]
        if server_id:
            command.extend(["--server", server_id])
        return command

    def label_patterns(self) -> Dict[MetricKey, Tuple[Pattern, ...]]:
        return {
            MetricKey.NETWORK_DOWNLOAD: (re.compile(r'^Download:'),),
            MetricKey.NETWORK_UPLOAD: (re.compile(r'^Upload:'),),
            MetricKey.NETWORK_PING: (re.compile(r'^Ping:'),),
        }


# Preference order when both happen to be installed
DIALECTS = (DetailedDialect, SimpleDialect)


def select_network_dialect(runner: ToolRunner) -> Optional[NetworkDialect]:
    """
    Pick the dialect matching the installed speed test binary.

    Returns:
        Dialect instance, or None if no speed test tool is installed
    """
    for dialect_class in DIALECTS:
        if runner.is_available(dialect_class.binary):
            dialect = dialect_class()
            logger.info(f"Using {dialect.binary} for network speed test")
            return dialect

    logger.warning("No speedtest tool available; network metrics will be unavailable")
    return None
