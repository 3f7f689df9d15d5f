#!/usr/bin/env python3
"""
Blocking subprocess wrapper for external measurement tools.

Every sub-test runs to completion before the next one starts.
"""

import os
import shutil
import subprocess
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from ..exceptions import ToolExecutionError

logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    """Outcome of one tool invocation. stdout and stderr are merged."""
    args: List[str]
    exit_code: Optional[int]
    output: str
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.timed_out and self.exit_code == 0


def _decode(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode('utf-8', errors='replace')
    return data


class ToolRunner:
    """Runs measurement tools and captures their combined output."""

    def __init__(self, which: Callable[[str], Optional[str]] = shutil.which):
        self._which = which

    def is_available(self, tool_name: str) -> bool:
        """Check whether a tool binary is on PATH."""
        return self._which(tool_name) is not None

    def run(self, args: Sequence[str], timeout: Optional[float] = None) -> ToolResult:
        """
        Run a tool to completion.

        A timeout is not an error: the process is killed and whatever it
        printed so far is returned with ``timed_out`` set.

        Args:
            args: Command and arguments (no shell)
            timeout: Absolute wall-clock limit in seconds

        Returns:
            ToolResult with merged stdout/stderr

        Raises:
            ToolExecutionError: If the binary cannot be started
        """
        args = [str(arg) for arg in args]
        logger.debug(f"Running: {' '.join(args)}")

        try:
            completed = subprocess.run(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                timeout=timeout,
                check=False,
                env=dict(os.environ, LC_ALL="C", LANG="C"),
                text=True,
                errors='replace'
            )
        except subprocess.TimeoutExpired as e:
            logger.warning(f"{args[0]} timed out after {timeout}s")
            return ToolResult(args=args, exit_code=None, output=_decode(e.output), timed_out=True)
        except OSError as e:
            raise ToolExecutionError(args[0], f"could not start: {e}")

        return ToolResult(args=args, exit_code=completed.returncode, output=completed.stdout or "")
