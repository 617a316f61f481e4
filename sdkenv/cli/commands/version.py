"""
Version command implementation.

Shows the selected version and where it is set.
"""

import logging

from sdkenv.cli.utils import load_context, resolve_current

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the version command.

    Output:
        3.7.12 (set by /work/app/.flutter-version)

    Returns:
        Exit code (0 for success)
    """
    context = load_context(args)
    result = resolve_current(context)
    installed = result.require_installed(context.config.version_file)
    print(f"{installed.identifier} (set by {result.source_description})")
    return 0
