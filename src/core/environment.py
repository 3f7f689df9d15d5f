#!/usr/bin/env python3
"""
Host environment helpers: identity, container detection, timestamps and
file ownership when running under sudo.
"""

import os
import socket
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import pytz

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%SZ'


def get_hostname() -> str:
    """Hostname used to key historical runs."""
    return socket.gethostname()


def is_docker(dockerenv: Path = Path('/.dockerenv'), cgroup_file: Path = Path('/proc/1/cgroup')) -> bool:
    """Detect whether the benchmark is running inside a Docker container."""
    if dockerenv.exists():
        return True
    try:
        return 'docker' in cgroup_file.read_text(encoding='utf-8', errors='replace')
    except OSError:
        return False


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """UTC ISO-8601 timestamp with second precision (2024-01-31T12:00:00Z)."""
    if now is None:
        now = datetime.now(pytz.utc)
    elif now.tzinfo is None:
        # Assume UTC if no timezone info
        now = pytz.utc.localize(now)
    return now.astimezone(pytz.utc).strftime(TIMESTAMP_FORMAT)


def hand_over_to_sudo_user(path: Union[str, Path]) -> None:
    """
    Give a file created by a sudo run back to the invoking user.

    No-op unless SUDO_USER is set and the file exists.
    """
    sudo_user = os.environ.get('SUDO_USER')
    path = Path(path)
    if not sudo_user or not path.exists():
        return

    try:
        import pwd
        entry = pwd.getpwnam(sudo_user)
        os.chown(path, entry.pw_uid, entry.pw_gid)
        logger.debug(f"Changed ownership of {path} to {sudo_user}")
    except (ImportError, KeyError, OSError) as e:
        logger.warning(f"Could not hand {path} over to {sudo_user}: {e}")
