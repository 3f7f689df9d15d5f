#!/usr/bin/env python3
"""
History command endpoints for browsing stored benchmark runs.
"""

import logging
from argparse import Namespace

from .base import BaseCommand, EXIT_OK

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 20


class HistoryCommand(BaseCommand):
    """Show stored benchmark runs."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute history subcommand."""
        try:
            if subcommand == "list":
                return self.list(args)
            available = ", ".join(self.get_available_subcommands())
            self.logger.error(f"Unknown subcommand '{subcommand}'. Available: {available}")
            return 1

        except Exception as e:
            return self.handle_error(e, f"history {subcommand}")

    def list(self, args: Namespace) -> int:
        """List the most recent runs across all hosts."""
        db_file = self.config.storage.db_file
        if not db_file.exists():
            print("No benchmark database found")
            return EXIT_OK

        limit = getattr(args, 'limit', None) or DEFAULT_LIST_LIMIT
        rows = self.run_store.list_recent(limit=limit)
        print(self.formatter.format_run_list(rows))

        total = self.run_store.count_runs()
        if total > len(rows):
            print(f"\nShowing {len(rows)} of {total} runs")
        return EXIT_OK
