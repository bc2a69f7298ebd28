"""
reprotokit CLI argument parser.

This module implements the command-line interface for reprotokit using argparse.
"""

import argparse
import importlib
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import List, Optional

from reprotokit.core.exceptions import ProcessFailedError, ReprotoKitError

try:
    __version__ = version("reprotokit")
except PackageNotFoundError:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)

COMMAND_MODULES = {
    "compile": "reprotokit.cli.commands.compile",
    "resolve": "reprotokit.cli.commands.resolve",
    "cleanup": "reprotokit.cli.commands.cleanup",
}


class CLI:
    """reprotokit command-line interface."""

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
            prog="reprotokit",
            description="reprotokit - provision and run the reproto compiler",
            epilog='Use "reprotokit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"reprotokit {__version__}"
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
            help="Path to configuration file (default: ./reprotokit.yaml)",
        )
        parser.add_argument(
            "--project-root",
            type=Path,
            metavar="PATH",
            default=Path.cwd(),
            help="Project root directory (default: current directory)",
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_compile_command(subparsers)
        self._add_resolve_command(subparsers)
        self._add_cleanup_command(subparsers)

        return parser

    def _add_provisioning_options(self, parser):
        """Options shared by commands that provision the compiler."""
        parser.add_argument(
            "--executable",
            type=Path,
            metavar="PATH",
            help="Use this reproto executable instead of downloading one",
        )
        parser.add_argument(
            "--artifact",
            metavar="COORDINATE",
            help="Pinned artifact (groupId:artifactId:version[:type[:classifier]])",
        )
        parser.add_argument(
            "--version-constraint",
            metavar="VERSION",
            help="Version prefix the downloaded release must match (default: 0.3)",
        )
        parser.add_argument(
            "--backend",
            choices=["gcs", "github"],
            help="Release backend to discover versions from (default: gcs)",
        )
        parser.add_argument(
            "--download-url",
            metavar="URL",
            help="Base URL to download release archives from",
        )

    def _add_compile_command(self, subparsers):
        """Add 'compile' subcommand."""
        parser = subparsers.add_parser(
            "compile",
            help="Provision and run the reproto compiler",
            description="Provision the reproto compiler and compile the configured targets",
        )
        self._add_provisioning_options(parser)
        parser.add_argument(
            "--target",
            action="append",
            dest="targets",
            metavar="PACKAGE",
            help="Package to compile (can be used multiple times)",
        )
        parser.add_argument(
            "--module",
            action="append",
            dest="modules",
            metavar="NAME",
            help="Compiler module to enable (can be used multiple times)",
        )
        parser.add_argument(
            "--path",
            action="append",
            dest="paths",
            metavar="DIR",
            help="Source root (can be used multiple times)",
        )
        parser.add_argument(
            "--out", metavar="DIR", help="Output directory for generated sources"
        )
        parser.add_argument(
            "--package-prefix", metavar="PREFIX", help="Prefix for generated packages"
        )
        parser.add_argument(
            "--debug",
            action="store_true",
            default=None,
            help="Run the compiler with --debug",
        )
        parser.add_argument(
            "--timeout",
            type=float,
            metavar="SECONDS",
            help="Kill the compiler after this many seconds",
        )

    def _add_resolve_command(self, subparsers):
        """Add 'resolve' subcommand."""
        parser = subparsers.add_parser(
            "resolve",
            help="Provision the compiler and print its path",
            description="Provision the reproto compiler without running it",
        )
        self._add_provisioning_options(parser)

    def _add_cleanup_command(self, subparsers):
        """Add 'cleanup' subcommand."""
        parser = subparsers.add_parser(
            "cleanup",
            help="Remove cached releases",
            description="Remove cached version files, release archives and stale locks",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be removed without removing",
        )
        parser.add_argument(
            "--cache-dir",
            type=Path,
            metavar="DIR",
            help="Cache directory to clean (default: per-user cache)",
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
            Exit code: 0 for success, the compiler's own status when it
            fails, 130 when interrupted, 1 for any other error
        """
        parsed_args = self.parse_args(args)

        # Configure logging
        self._configure_logging(parsed_args)

        # Check if command specified
        if not parsed_args.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except ProcessFailedError as e:
            logger.error(f"Error: {e}")
            return e.exit_code if e.exit_code > 0 else 1
        except ReprotoKitError as e:
            logger.error(f"Error: {e}")
            return 1
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
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        module_name = COMMAND_MODULES.get(args.command)
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
