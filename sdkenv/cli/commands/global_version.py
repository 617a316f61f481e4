"""
Global command implementation.

Shows or sets the version used when no version file applies.
"""

import logging

from sdkenv.cli.utils import load_context, print_warning, require_installed
from sdkenv.versions.spec import parse_version_spec
from sdkenv.versions.version_file import (
    read_version_file,
    remove_version_file,
    write_version_file,
)

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the global command.

    Setting records the installed identifier the specifier matches, so
    ``sdkenv global 3.7`` writes ``3.7.12``.

    Returns:
        Exit code (0 for success, 1 when showing and nothing is set)
    """
    context = load_context(args)
    path = context.directories.global_version_file

    if args.unset:
        if remove_version_file(path):
            logger.info(f"Removed {path}")
        return 0

    if args.spec is None:
        text = read_version_file(path)
        if not text:
            print_warning("No global version is set")
            return 1
        print(text)
        return 0

    installed = require_installed(context, parse_version_spec(args.spec))
    write_version_file(path, installed.identifier)
    logger.info(f"Global version set to {installed.identifier}")
    return 0
