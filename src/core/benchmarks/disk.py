#!/usr/bin/env python3
"""
Disk benchmark helpers: fio I/O engine selection, job command lines and
scratch file lifecycle.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List

from ..exceptions import DiskSpaceExhaustedError, ToolExecutionError
from ..models.metrics import MetricKey
from .runner import ToolRunner

logger = logging.getLogger(__name__)

PRIMARY_IO_ENGINE = "libaio"
FALLBACK_IO_ENGINE = "sync"

SCRATCH_FILE_NAME = "benchmark_test.fio"
SPACE_EXHAUSTED_MARKER = "No space left on device"


@dataclass(frozen=True)
class FioJob:
    """One sequential fio sub-test."""
    name: str
    metric: MetricKey
    rw: str
    direct: bool

    def build_command(self, filename: Path, io_engine: str, size: str) -> List[str]:
        return [
            "fio",
            f"--name={self.name}",
            f"--filename={filename}",
            f"--ioengine={io_engine}",
            f"--rw={self.rw}",
            "--bs=1M",
            f"--size={size}",
            "--numjobs=1",
            f"--direct={1 if self.direct else 0}",
            "--group_reporting",
        ]


# Order matters: the read job reads the file the direct write job laid out.
FIO_JOBS = (
    FioJob("seqwrite_direct", MetricKey.DISK_WRITE_DIRECT, "write", True),
    FioJob("seqread_direct", MetricKey.DISK_READ, "read", True),
    FioJob("seqwrite_buf", MetricKey.DISK_WRITE_BUFFERED, "write", False),
)


def select_io_engine(runner: ToolRunner) -> str:
    """
    Probe fio for libaio support once per run.

    Returns:
        "libaio" if the probe succeeds, "sync" otherwise
    """
    try:
        probe = runner.run(["fio", f"--ioengine={PRIMARY_IO_ENGINE}", "--parse-only"])
    except ToolExecutionError as e:
        logger.warning(f"fio engine probe failed ({e}); falling back to {FALLBACK_IO_ENGINE} engine")
        return FALLBACK_IO_ENGINE

    if probe.succeeded:
        engine = PRIMARY_IO_ENGINE
    else:
        logger.warning(f"{PRIMARY_IO_ENGINE} not supported by fio, falling back to {FALLBACK_IO_ENGINE} engine")
        engine = FALLBACK_IO_ENGINE

    logger.info(f"Using FIO engine: {engine}")
    return engine


def check_space(output: str, size: str, job_name: str) -> None:
    """Escalate a device-full report from fio."""
    if SPACE_EXHAUSTED_MARKER in (output or ""):
        raise DiskSpaceExhaustedError(size, job_name)


def remove_scratch_files(work_dir: Path) -> int:
    """Delete the scratch file and any fio siblings (benchmark_test.fio*)."""
    removed = 0
    for path in Path(work_dir).glob(f"{SCRATCH_FILE_NAME}*"):
        try:
            path.unlink()
            removed += 1
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning(f"Could not remove scratch file {path}: {e}")
    if removed:
        logger.debug(f"Removed {removed} scratch file(s) from {work_dir}")
    return removed


@contextmanager
def scratch_file(work_dir: Path) -> Iterator[Path]:
    """
    Provide the fio scratch file path and guarantee its removal.

    Cleanup runs on success, on any exception (including fatal errors and
    KeyboardInterrupt) and on SystemExit raised by the SIGTERM handler.
    """
    work_dir = Path(work_dir)
    remove_scratch_files(work_dir)
    try:
        yield work_dir / SCRATCH_FILE_NAME
    finally:
        remove_scratch_files(work_dir)
