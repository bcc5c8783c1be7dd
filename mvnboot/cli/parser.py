"""
mvnboot CLI argument parser.

This module implements the command-line interface for mvnboot using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from mvnboot import __version__
from mvnboot.core.exceptions import BootstrapError

logger = logging.getLogger(__name__)


class CLI:
    """mvnboot command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="mvnboot",
            description="mvnboot - reproducible Apache Maven bootstrap",
            epilog='Use "mvnboot COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"mvnboot {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./mvnboot.yaml)",
        )
        parser.add_argument(
            "--project-root",
            type=Path,
            metavar="PATH",
            default=Path.cwd(),
            help="Project root directory (default: current directory)",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_install_command(subparsers)
        self._add_version_command(subparsers)

        return parser

    def _add_install_command(self, subparsers):
        """Add 'install' subcommand."""
        parser = subparsers.add_parser(
            "install",
            help="Make the project's Maven available and print its path",
            description=(
                "Resolve the Maven version from pom.xml, download and verify it "
                "if needed, and print the path of the mvn binary"
            ),
        )
        parser.add_argument(
            "--force",
            action="store_true",
            default=None,
            help="Ignore a matching mvn found on PATH",
        )
        parser.add_argument(
            "--install-root",
            type=Path,
            metavar="PATH",
            help="Directory to install into (default: <project-root>/build)",
        )
        parser.add_argument(
            "--mirror",
            metavar="URL",
            help="Primary mirror override (default: $APACHE_MIRROR or Apache CDN)",
        )
        parser.add_argument(
            "--transport",
            dest="transports",
            action="append",
            choices=["requests", "curl", "wget"],
            help="Transport to use, in preference order (repeatable)",
        )
        parser.add_argument(
            "--require-checksum",
            action="store_true",
            default=None,
            help="Fail if the checksum descriptor cannot be downloaded",
        )

    def _add_version_command(self, subparsers):
        """Add 'version' subcommand."""
        parser = subparsers.add_parser(
            "version",
            help="Show the Maven version the project requires",
            description="Print the required Maven version and its normalized code",
        )
        parser.add_argument(
            "--normalized",
            action="store_true",
            help="Print only the normalized version code",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except BootstrapError as e:
            logger.error(f"Error: {e.describe()}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return e.exit_code
        except Exception as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            stream=sys.stderr,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to the command module's run() function.

        Args:
            args: Parsed arguments

        Returns:
            Exit code from command handler
        """
        command_map = {
            "install": "mvnboot.cli.commands.install",
            "version": "mvnboot.cli.commands.version",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
