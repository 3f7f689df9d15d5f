#!/usr/bin/env python3
"""
CLI Router for the Host Benchmark Tracker.

Parses the option flags and dispatches to the benchmark or history command.
"""

import argparse
import logging
import signal
import sys
from typing import Optional, List

# Load environment variables first
import core.env_loader  # Auto-loads .env file

from commands import get_command, COMMANDS
from commands.base import EXIT_FATAL, EXIT_INTERRUPTED, EXIT_TERMINATED
from core.config import get_config_manager
from core.exceptions import ConfigurationError
from core.models.metrics import SCHEMA_VERSION

logger = logging.getLogger(__name__)


class CLIRouter:
    """
    CLI router for benchmark commands.

    Command structure:
    - python run.py                 # Run benchmarks, print results
    - python run.py --compare       # Run, save and compare with previous
    - python run.py --list          # Show stored runs
    """

    def __init__(self, container=None, config_manager=None):
        """
        Initialize CLI router.

        Args:
            container: Optional container passed on to commands
            config_manager: Optional config manager used to set up logging
        """
        self._container = container
        self._config_manager = config_manager
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog="host-bench",
            description=f"Host Benchmark Tracker v{SCHEMA_VERSION}: CPU, memory, disk and network benchmarks with history",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=self._get_examples_text()
        )

        parser.add_argument('-s', '--save', action='store_true', help='Save results to the database')
        parser.add_argument('-c', '--compare', action='store_true', help='Save and compare with the previous run (implies --save)')
        parser.add_argument('-l', '--list', action='store_true', help='List saved benchmark runs and exit')
        parser.add_argument('-q', '--quick', action='store_true', help='Quick mode: shorter CPU test, smaller disk test')
        parser.add_argument('-j', '--json', action='store_true', help='Export results to the latest-results JSON file')
        parser.add_argument('-v', '--verbose', action='store_true', help='Verbose (debug) logging')

        return parser

    def _get_examples_text(self) -> str:
        """Get examples text for help."""
        return """
Examples:
  python run.py                # Run benchmarks
  python run.py --save         # Run and save to database
  python run.py --compare      # Run, save and compare with previous run
  python run.py --quick --json # Fast run, export JSON
  python run.py --list         # Show saved runs

Configuration: environment variables or .benchmark_config in the data
directory ($BENCHMARK_HOME, defaults to the project root).
"""

    def route_command(self, args: Optional[List[str]] = None) -> int:
        """
        Route command to appropriate handler.

        Args:
            args: Command line arguments (uses sys.argv if None)

        Returns:
            Exit code
        """
        try:
            if args is None:
                args = sys.argv[1:]

            parsed_args = self.parser.parse_args(args)
            self._configure_logging(parsed_args)
            return self._handle_command(parsed_args)

        except SystemExit as e:
            # argparse exits on usage errors and --help; the SIGTERM handler exits with 143
            return e.code if isinstance(e.code, int) else EXIT_FATAL
        except KeyboardInterrupt:
            logger.warning("Interrupted by user")
            return EXIT_INTERRUPTED
        except ConfigurationError as e:
            logger.error(str(e))
            return EXIT_FATAL

    def _configure_logging(self, args: argparse.Namespace) -> None:
        """Apply configured log level and attach the benchmark log file."""
        manager = self._config_manager or get_config_manager()
        manager.update_logging(verbose=args.verbose)

    def _handle_command(self, args: argparse.Namespace) -> int:
        """Map flags to a command and subcommand."""
        if args.list:
            command_name, subcommand = 'history', 'list'
        else:
            command_name, subcommand = 'benchmark', 'run'

        logger.debug(f"Handling command: {command_name} {subcommand}")
        if command_name not in COMMANDS:
            logger.error(f"Unknown command '{command_name}'")
            return EXIT_FATAL

        command = get_command(command_name, self._container)
        return command.execute(subcommand, args)


def _handle_sigterm(signum, frame):
    """Turn SIGTERM into SystemExit so cleanup in finally blocks runs."""
    logger.warning("Terminated, cleaning up")
    raise SystemExit(EXIT_TERMINATED)


def main(args: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code
    """
    # Set up logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    signal.signal(signal.SIGTERM, _handle_sigterm)

    router = CLIRouter()
    return router.route_command(args)


if __name__ == '__main__':
    exit_code = main()
    sys.exit(exit_code)
