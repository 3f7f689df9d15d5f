#!/usr/bin/env python3
"""
Database Connection Manager

Handles the SQLite connection to the local results file with lifecycle
management and error translation.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Dict, Any, Union

from ..exceptions import DatabaseError

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages the SQLite connection for the historical store."""

    def __init__(self, db_path: Union[str, Path], timeout: float = 30.0):
        """
        Initialize connection manager.

        Args:
            db_path: Path to the SQLite file (created if missing), or ":memory:"
            timeout: Seconds to wait on a locked database
        """
        self.db_path = str(db_path)
        self.timeout = timeout
        self.connection: Optional[sqlite3.Connection] = None
        self._connect()

    def _connect(self) -> None:
        """Open the database file."""
        try:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            # isolation_level=None: autocommit, explicit BEGIN in transaction()
            self.connection = sqlite3.connect(self.db_path, timeout=self.timeout, isolation_level=None)
            self.connection.row_factory = sqlite3.Row
            logger.debug(f"Database connection established: {self.db_path}")

        except (sqlite3.Error, OSError) as e:
            raise DatabaseError(f"Failed to open database {self.db_path}: {e}")

    def ensure_connection(self) -> None:
        """Reopen the connection if it was closed."""
        if self.connection is None:
            self._connect()

    def get_connection(self) -> sqlite3.Connection:
        """
        Get active database connection.

        Raises:
            DatabaseError: If connection cannot be established
        """
        self.ensure_connection()
        return self.connection

    @contextmanager
    def get_cursor(self):
        """
        Get database cursor as context manager.

        Yields:
            Database cursor (autocommit)
        """
        cursor = self.get_connection().cursor()
        try:
            yield cursor
        finally:
            cursor.close()

    @contextmanager
    def transaction(self):
        """
        Execute operations in a database transaction.

        Yields:
            Database cursor within transaction
        """
        connection = self.get_connection()
        cursor = connection.cursor()
        cursor.execute("BEGIN")
        try:
            yield cursor
            cursor.execute("COMMIT")
        except BaseException:
            cursor.execute("ROLLBACK")
            raise
        finally:
            cursor.close()

    def close(self) -> None:
        """Close database connection."""
        if self.connection is not None:
            self.connection.close()
            self.connection = None
            logger.debug("Database connection closed")

    def health_check(self) -> Dict[str, Any]:
        """
        Perform health check on database connection.

        Returns:
            Health status information
        """
        try:
            with self.get_cursor() as cursor:
                cursor.execute("SELECT 1 AS test")
                result = cursor.fetchone()

                cursor.execute("SELECT sqlite_version() AS version")
                version_info = cursor.fetchone()

                return {
                    'connected': True,
                    'test_query': result['test'] == 1,
                    'version': version_info['version'],
                    'path': self.db_path
                }

        except (sqlite3.Error, DatabaseError) as e:
            logger.error(f"Database health check failed: {e}")
            return {
                'connected': False,
                'error': str(e)
            }

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
