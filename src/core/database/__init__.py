#!/usr/bin/env python3
"""
Database package for the host benchmark tracker.

Provides the SQLite connection manager and the run store service.
"""

from .connection_manager import ConnectionManager
from .run_store import RunStore, TABLE_NAME
from ..exceptions import DatabaseError

__all__ = [
    'ConnectionManager',
    'DatabaseError',
    'RunStore',
    'TABLE_NAME'
]
