#!/usr/bin/env python3
"""
Run Store Service

Handles all database operations on persisted benchmark runs.
"""

import logging
import sqlite3
from typing import List, Dict, Any, Optional

from ..exceptions import DatabaseOperationError
from ..models.metrics import MetricKey, MetricSet, Run

logger = logging.getLogger(__name__)

TABLE_NAME = "benchmarks"

_METRIC_COLUMNS = [key.value for key in MetricKey]

SCHEMA_STATEMENTS = [
    f"""
    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp TEXT NOT NULL,
        hostname TEXT NOT NULL,
        version TEXT DEFAULT '1.0.0',
        {', '.join(f'{column} REAL' for column in _METRIC_COLUMNS)}
    )
    """,
    f"CREATE INDEX IF NOT EXISTS idx_timestamp ON {TABLE_NAME}(timestamp)",
    f"CREATE INDEX IF NOT EXISTS idx_hostname ON {TABLE_NAME}(hostname)",
    f"CREATE INDEX IF NOT EXISTS idx_version ON {TABLE_NAME}(version)",
]

_SELECT_RUN = f"SELECT id, timestamp, hostname, version, {', '.join(_METRIC_COLUMNS)} FROM {TABLE_NAME}"


class RunStore:
    """Service for benchmark run persistence."""

    def __init__(self, connection_manager):
        """
        Initialize run store and make sure the schema exists.

        Args:
            connection_manager: Database connection manager instance
        """
        self.connection_manager = connection_manager
        self.initialize_schema()

    def initialize_schema(self) -> None:
        """Create the benchmarks table and its indexes if missing."""
        try:
            with self.connection_manager.transaction() as cursor:
                for statement in SCHEMA_STATEMENTS:
                    cursor.execute(statement)
            logger.debug(f"Schema ready for table {TABLE_NAME}")

        except sqlite3.Error as e:
            logger.error(f"Failed to initialize schema: {e}")
            raise DatabaseOperationError("schema initialization", TABLE_NAME, e)

    def save(self, metric_set: MetricSet) -> int:
        """
        Persist one MetricSet.

        Args:
            metric_set: Measurement to store; unavailable metrics become NULL

        Returns:
            ID of the new row
        """
        row = metric_set.to_row()
        columns = list(row.keys())
        placeholders = ', '.join('?' for _ in columns)

        try:
            with self.connection_manager.transaction() as cursor:
                cursor.execute(
                    f"INSERT INTO {TABLE_NAME} ({', '.join(columns)}) VALUES ({placeholders})",
                    [row[column] for column in columns]
                )
                run_id = cursor.lastrowid

            logger.info(f"Results saved to database (run {run_id})")
            return run_id

        except sqlite3.Error as e:
            logger.error(f"Failed to save benchmark run: {e}")
            raise DatabaseOperationError("insert", TABLE_NAME, e)

    def previous(self, hostname: str) -> Optional[MetricSet]:
        """
        Get the run before the most recent one for a host.

        The current run must already be saved: the newest row is skipped.

        Args:
            hostname: Host to look up

        Returns:
            Previous MetricSet or None if the host has fewer than two runs
        """
        try:
            with self.connection_manager.get_cursor() as cursor:
                cursor.execute(f"""
                    {_SELECT_RUN}
                    WHERE hostname = ?
                    ORDER BY timestamp DESC, id DESC
                    LIMIT 1 OFFSET 1
                """, (hostname,))

                result = cursor.fetchone()
                return MetricSet.from_row(dict(result)) if result else None

        except sqlite3.Error as e:
            logger.error(f"Failed to get previous run for {hostname}: {e}")
            raise DatabaseOperationError("select previous", TABLE_NAME, e)

    def get_run(self, run_id: int) -> Optional[Run]:
        """
        Get a persisted run by ID.

        Args:
            run_id: Row identifier

        Returns:
            Run or None if not found
        """
        try:
            with self.connection_manager.get_cursor() as cursor:
                cursor.execute(f"{_SELECT_RUN} WHERE id = ?", (run_id,))

                result = cursor.fetchone()
                if not result:
                    return None
                row = dict(result)
                return Run(run_id=row['id'], metric_set=MetricSet.from_row(row))

        except sqlite3.Error as e:
            logger.error(f"Failed to get run {run_id}: {e}")
            raise DatabaseOperationError("select", TABLE_NAME, e)

    def list_recent(self, limit: int = 20) -> List[Dict[str, Any]]:
        """
        Get the most recent runs across all hosts for display.

        Args:
            limit: Maximum number of runs to return

        Returns:
            List of row dictionaries with short display columns
        """
        try:
            with self.connection_manager.get_cursor() as cursor:
                cursor.execute(f"""
                    SELECT
                        id,
                        timestamp,
                        hostname,
                        COALESCE(version, '1.0.0') AS version,
                        COALESCE(cpu_single, 0) AS cpu_s,
                        COALESCE(cpu_multi, 0) AS cpu_m,
                        COALESCE(disk_write_buffered, 0) AS disk_w,
                        COALESCE(network_download, 0) AS net_dl
                    FROM {TABLE_NAME}
                    ORDER BY timestamp DESC, id DESC
                    LIMIT ?
                """, (limit,))

                return [dict(row) for row in cursor.fetchall()]

        except sqlite3.Error as e:
            logger.error(f"Failed to list recent runs: {e}")
            raise DatabaseOperationError("select recent", TABLE_NAME, e)

    def count_runs(self, hostname: Optional[str] = None) -> int:
        """
        Count stored runs, optionally for one host.

        Returns:
            Number of runs
        """
        try:
            with self.connection_manager.get_cursor() as cursor:
                if hostname:
                    cursor.execute(f"SELECT COUNT(*) AS total FROM {TABLE_NAME} WHERE hostname = ?", (hostname,))
                else:
                    cursor.execute(f"SELECT COUNT(*) AS total FROM {TABLE_NAME}")

                return cursor.fetchone()['total']

        except sqlite3.Error as e:
            logger.error(f"Failed to count runs: {e}")
            raise DatabaseOperationError("count", TABLE_NAME, e)
