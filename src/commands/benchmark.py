#!/usr/bin/env python3
"""
Benchmark command: measure, report, persist, compare and notify.
"""

import logging
from argparse import Namespace
from pathlib import Path
from typing import List

from .base import BaseCommand, EXIT_OK
from core.environment import hand_over_to_sudo_user, is_docker
from core.models.metrics import SCHEMA_VERSION

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "VPS Benchmark Complete"


class BenchmarkCommand(BaseCommand):
    """Run the benchmark pipeline."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute benchmark subcommand."""
        try:
            if subcommand == "run":
                return self.run(args)
            available = ", ".join(self.get_available_subcommands())
            self.logger.error(f"Unknown subcommand '{subcommand}'. Available: {available}")
            return 1

        except Exception as e:
            return self.handle_error(e, f"benchmark {subcommand}")

    def run(self, args: Namespace) -> int:
        """
        Run every benchmark once.

        Order: system info, tools check, measurement, save, previous lookup, comparison,
        rendering, JSON export, notification. The current run is saved before
        the previous one is looked up.
        """
        config = self.config
        if getattr(args, 'quick', False):
            config = config.with_quick_mode()
            logger.info(f"Quick mode: CPU {config.benchmark.cpu_test_time}s, disk {config.benchmark.disk_test_size}")

        save = bool(getattr(args, 'save', False) or getattr(args, 'compare', False))
        compare = bool(getattr(args, 'compare', False))
        export_json = bool(getattr(args, 'json', False) or save)

        logger.info(f"Host Benchmark v{SCHEMA_VERSION}")
        print(self.formatter.format_system_info(self.system_info_reader.gather()))

        self.tool_inventory.ensure_required()
        self.tool_inventory.optional_status()

        metric_set = self.collector.collect(config.benchmark)
        in_docker = is_docker()

        created: List[Path] = [config.storage.log_file]

        if save:
            run_id = self.run_store.save(metric_set)
            print(f"\n✓ Results saved to database (ID: {run_id})")
            hand_over_to_sudo_user(config.storage.db_file)
            created.append(config.storage.db_file)

        previous = None
        comparisons = None
        if compare:
            previous = self.run_store.previous(metric_set.hostname)
            if previous is None:
                print("\nNo previous benchmark found for comparison")
            else:
                comparisons = self.comparison_engine.compare(metric_set, previous)

        text, document = self.formatter.render(metric_set, comparisons, in_docker, previous)
        print(text)

        if export_json:
            self.formatter.export_json(document, config.storage.json_file)
            hand_over_to_sudo_user(config.storage.json_file)
            created.append(config.storage.json_file)

        self.notifier.notify(NOTIFICATION_TITLE, self.formatter.summary_line(metric_set))

        print("\nFiles created:")
        for path in created:
            print(f"  - {path}")

        logger.info("Benchmark complete")
        return EXIT_OK
