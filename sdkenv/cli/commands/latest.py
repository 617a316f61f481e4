"""
Latest command implementation.

Prints the newest version matching a specifier.
"""

import logging

from sdkenv.cli.utils import load_context, require_installed
from sdkenv.core.exceptions import NoMatchError
from sdkenv.versions.matcher import select_best
from sdkenv.versions.spec import parse_version_spec

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the latest command.

    Args:
        args: Parsed command-line arguments with:
            - spec: Version specifier
            - remote: Search the release catalog

    Returns:
        Exit code (0 for success)
    """
    spec = parse_version_spec(args.spec)
    context = load_context(args)

    if args.remote:
        entry = select_best(spec, context.catalog.get().entries)
        if entry is None:
            raise NoMatchError(str(spec), remote=True)
        print(entry.identifier)
    else:
        print(require_installed(context, spec).identifier)

    return 0
