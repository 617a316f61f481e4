"""
Uninstall command implementation.

Removes installed sdk versions.
"""

import logging

from sdkenv.cli.utils import load_context, require_installed
from sdkenv.versions.spec import parse_version_spec

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the uninstall command.

    Every specifier is checked before anything is removed.

    Returns:
        Exit code (0 for success)
    """
    context = load_context(args)
    targets = [require_installed(context, parse_version_spec(text)) for text in args.specs]

    for installed in targets:
        context.installer.uninstall(installed)
        print(f"Uninstalled {installed.identifier}")

    return 0
