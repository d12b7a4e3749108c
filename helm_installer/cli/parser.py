"""
helm-installer CLI argument parser.

This module implements the command-line interface using argparse. Inputs may
also arrive through the environment the way a CI runner passes them
(``INPUT_VERSION``, ``INPUT_TOKEN``).
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from helm_installer.cli.actions import ActionsLogFormatter, is_running_in_actions

# Get version from package
try:
    from importlib.metadata import version

    __version__ = version("helm-installer")
except Exception:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)


class CLI:
    """helm-installer command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="setup-helm",
            description="Install a Helm release into the tool cache and put it on PATH",
            epilog=(
                "VERSION may be 'latest', '3.*', '2.*' or a release such as 3.5.3. "
                "Inputs default to INPUT_VERSION and INPUT_TOKEN."
            ),
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument(
            "--version", action="version", version=f"helm-installer {__version__}"
        )
        parser.add_argument(
            "--helm-version",
            dest="helm_version",
            metavar="VERSION",
            help="Helm version to install (default: $INPUT_VERSION)",
        )
        parser.add_argument(
            "--token",
            metavar="TOKEN",
            help="Token for the GitHub release query (default: $INPUT_TOKEN)",
        )
        parser.add_argument(
            "--legacy-versioning",
            action="store_true",
            default=None,
            help="Use legacy version rules (default: $HELM_INSTALLER_LEGACY_VERSIONING)",
        )
        parser.add_argument(
            "--cache-dir",
            type=Path,
            metavar="PATH",
            help="Tool cache directory (default: $RUNNER_TOOL_CACHE)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to YAML configuration file",
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

        return parser

    def parse_args(self, args: Optional[List[str]] = None) -> argparse.Namespace:
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

        from helm_installer.cli.commands import install

        return install.run(parsed_args)

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

        handler = logging.StreamHandler(sys.stdout)
        if is_running_in_actions():
            # ::debug:: lines are hidden by the runner unless step debugging is on
            if not args.quiet:
                level = logging.DEBUG
            handler.setFormatter(ActionsLogFormatter("%(message)s"))
        else:
            handler.setFormatter(logging.Formatter(format_str))

        logging.basicConfig(
            level=level,
            handlers=[handler],
            force=True,  # Reconfigure if already configured
        )


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
