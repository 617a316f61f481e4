"""
sdkenv CLI argument parser.

This module implements the command-line interface for sdkenv using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from sdkenv.cli.utils import print_error
from sdkenv.core.exceptions import DispatchRefusedError, SdkenvError
from sdkenv.shim.dispatcher import REFUSED_EXIT_CODE

# Get version from package
try:
    from importlib.metadata import version

    __version__ = version("sdkenv")
except Exception:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)


class CLI:
    """sdkenv command-line interface."""

    # Command name -> module under sdkenv.cli.commands
    COMMAND_MODULES = {
        "install": "install",
        "uninstall": "uninstall",
        "versions": "versions",
        "list-remote": "list_remote",
        "latest": "latest",
        "global": "global_version",
        "local": "local",
        "version": "version",
        "version-name": "version_name",
        "version-file": "version_file",
        "prefix": "prefix",
        "which": "which",
        "exec": "exec_tool",
        "rehash": "rehash",
        "workspace": "workspace",
    }

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
            prog="sdkenv",
            description="sdkenv - Flutter sdk version manager",
            epilog='Use "sdkenv COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"sdkenv {__version__}"
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
            "--root",
            type=Path,
            metavar="PATH",
            help="Manager root directory (default: $SDKENV_ROOT or ~/.sdkenv)",
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_install_command(subparsers)
        self._add_uninstall_command(subparsers)
        self._add_versions_command(subparsers)
        self._add_list_remote_command(subparsers)
        self._add_latest_command(subparsers)
        self._add_global_command(subparsers)
        self._add_local_command(subparsers)
        self._add_resolution_commands(subparsers)
        self._add_prefix_command(subparsers)
        self._add_which_command(subparsers)
        self._add_exec_command(subparsers)
        self._add_rehash_command(subparsers)
        self._add_workspace_command(subparsers)

        return parser

    def _add_install_command(self, subparsers):
        """Add 'install' subcommand."""
        parser = subparsers.add_parser(
            "install",
            help="Install sdk versions",
            description=(
                "Install the newest release matching each version specifier. "
                "Without a specifier, installs the version selected for the "
                "current directory."
            ),
        )
        parser.add_argument(
            "specs",
            nargs="*",
            metavar="VERSION",
            help="Version specifier (e.g., 3.7.12, 3.7, stable)",
        )
        parser.add_argument(
            "--list",
            "-l",
            action="store_true",
            help="List installable versions instead of installing",
        )
        parser.add_argument(
            "--force",
            "-f",
            action="store_true",
            help="Reinstall if already installed",
        )

    def _add_uninstall_command(self, subparsers):
        """Add 'uninstall' subcommand."""
        parser = subparsers.add_parser(
            "uninstall",
            help="Remove installed sdk versions",
            description="Remove the newest installed version matching each specifier",
        )
        parser.add_argument(
            "specs", nargs="+", metavar="VERSION", help="Version specifier"
        )

    def _add_versions_command(self, subparsers):
        """Add 'versions' subcommand."""
        parser = subparsers.add_parser(
            "versions",
            help="List installed versions",
            description="List installed versions; the selected one is marked with '*'",
        )
        parser.add_argument(
            "--bare", action="store_true", help="Print identifiers only"
        )

    def _add_list_remote_command(self, subparsers):
        """Add 'list-remote' subcommand."""
        parser = subparsers.add_parser(
            "list-remote",
            help="List installable versions",
            description="Refresh the release catalog and list installable versions",
        )
        parser.add_argument(
            "--bare", action="store_true", help="Print versions only"
        )
        parser.add_argument(
            "--channel",
            metavar="NAME",
            help="Only list releases of this channel (stable|beta|dev|master)",
        )

    def _add_latest_command(self, subparsers):
        """Add 'latest' subcommand."""
        parser = subparsers.add_parser(
            "latest",
            help="Print the newest version matching a specifier",
            description="Print the newest installed (or published) version matching a specifier",
        )
        parser.add_argument("spec", metavar="VERSION", help="Version specifier")
        parser.add_argument(
            "--remote",
            action="store_true",
            help="Search the release catalog instead of installed versions",
        )

    def _add_global_command(self, subparsers):
        """Add 'global' subcommand."""
        parser = subparsers.add_parser(
            "global",
            help="Show or set the global version",
            description="Show or set the version used when no version file applies",
        )
        parser.add_argument(
            "spec", nargs="?", metavar="VERSION", help="Version specifier to set"
        )
        parser.add_argument(
            "--unset", action="store_true", help="Remove the global version"
        )

    def _add_local_command(self, subparsers):
        """Add 'local' subcommand."""
        parser = subparsers.add_parser(
            "local",
            help="Show or set the version for the current directory",
            description="Show or write the version file in the current directory",
        )
        parser.add_argument(
            "spec", nargs="?", metavar="VERSION", help="Version specifier to set"
        )
        parser.add_argument(
            "--unset", action="store_true", help="Remove the local version file"
        )

    def _add_resolution_commands(self, subparsers):
        """Add 'version', 'version-name' and 'version-file' subcommands."""
        subparsers.add_parser(
            "version",
            help="Show the selected version and where it is set",
        )
        subparsers.add_parser(
            "version-name",
            help="Show the selected installed version",
        )
        subparsers.add_parser(
            "version-file",
            help="Show the file that selects the version",
        )

    def _add_prefix_command(self, subparsers):
        """Add 'prefix' subcommand."""
        parser = subparsers.add_parser(
            "prefix",
            help="Show the install directory of a version",
            description="Show the install directory of the selected (or given) version",
        )
        parser.add_argument(
            "spec", nargs="?", metavar="VERSION", help="Version specifier"
        )

    def _add_which_command(self, subparsers):
        """Add 'which' subcommand."""
        parser = subparsers.add_parser(
            "which",
            help="Show the full path of a tool",
            description="Show the full path of a tool in the selected version",
        )
        parser.add_argument("tool", metavar="TOOL", help="Tool name (e.g., flutter, dart)")

    def _add_exec_command(self, subparsers):
        """Add 'exec' subcommand."""
        parser = subparsers.add_parser(
            "exec",
            help="Run a tool from the selected version",
            description="Run a tool from the selected version, as a shim would",
        )
        parser.add_argument("tool", metavar="TOOL", help="Tool name (e.g., flutter, dart)")
        parser.add_argument(
            "tool_args",
            nargs=argparse.REMAINDER,
            metavar="ARGS",
            help="Arguments passed to the tool",
        )

    def _add_rehash_command(self, subparsers):
        """Add 'rehash' subcommand."""
        subparsers.add_parser(
            "rehash",
            help="Regenerate shim scripts",
            description="Write shim scripts for the managed tools into <root>/shims",
        )

    def _add_workspace_command(self, subparsers):
        """Add 'workspace' subcommand."""
        parser = subparsers.add_parser(
            "workspace",
            help="Point a Flutter project at a version",
            description=(
                "Generate .dart_tool/package_config.json (and .idea/libraries/Dart_SDK.xml "
                "when the project has .idea) for the selected version"
            ),
        )
        parser.add_argument(
            "workspace",
            nargs="?",
            metavar="WORKSPACE",
            help="Project directory containing pubspec.yaml (default: current directory)",
        )
        parser.add_argument(
            "spec",
            nargs="?",
            metavar="VERSION",
            help="Version specifier (default: the version selected for WORKSPACE)",
        )
        parser.add_argument(
            "--pub-get",
            "-g",
            action="store_true",
            help="Run `dart pub get` instead of writing a minimal package_config.json",
        )
        parser.add_argument(
            "--force",
            "-f",
            action="store_true",
            help="Regenerate files even if they already use the version",
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
            Exit code (0 for success, 125 when the manager refused to run a
            tool, other non-zero values for errors)
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
        except DispatchRefusedError as e:
            print_error(str(e))
            return REFUSED_EXIT_CODE
        except SdkenvError as e:
            print_error(str(e))
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
        module_name = self.COMMAND_MODULES.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(f"sdkenv.cli.commands.{module_name}")
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
