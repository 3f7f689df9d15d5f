#!/usr/bin/env python3
"""
Tool presence checks.

Installing tools is left to the host's package manager; this module only
verifies what is there and fails fast when a required tool is missing.
"""

import shutil
import logging
from typing import Callable, Dict, Optional

from ..exceptions import MissingToolError

logger = logging.getLogger(__name__)

# Without these the core of the benchmark cannot run at all
REQUIRED_TOOLS: Dict[str, str] = {
    'sysbench': 'apt-get install sysbench | dnf install sysbench',
    'fio': 'apt-get install fio | dnf install fio',
}

# Missing optional tools only degrade the matching metrics
OPTIONAL_TOOLS: Dict[str, str] = {
    'ioping': 'apt-get install ioping | dnf install ioping',
    'speedtest': 'https://www.speedtest.net/apps/cli',
    'speedtest-cli': 'pip install speedtest-cli',
}


class ToolInventory:
    """Reports which measurement tools are installed."""

    def __init__(self, which: Callable[[str], Optional[str]] = shutil.which):
        self._which = which

    def is_installed(self, tool_name: str) -> bool:
        return self._which(tool_name) is not None

    def ensure_required(self) -> None:
        """
        Verify every required tool is on PATH.

        Raises:
            MissingToolError: For the first required tool that is missing
        """
        for tool_name, install_hint in REQUIRED_TOOLS.items():
            if not self.is_installed(tool_name):
                raise MissingToolError(tool_name, install_hint)
        logger.info("All required tools present")

    def optional_status(self) -> Dict[str, bool]:
        """Availability of optional tools, logging any that are missing."""
        status = {name: self.is_installed(name) for name in OPTIONAL_TOOLS}

        if not status['ioping']:
            logger.info("ioping not available, disk latency will be skipped")
        if not (status['speedtest'] or status['speedtest-cli']):
            logger.warning(
                f"No speedtest tool installed (install {OPTIONAL_TOOLS['speedtest']} "
                f"or {OPTIONAL_TOOLS['speedtest-cli']})"
            )
        return status
