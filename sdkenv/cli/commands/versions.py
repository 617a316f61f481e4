"""
Versions command implementation.

Lists installed sdk versions, marking the selected one.
"""

import logging
from typing import Optional

from sdkenv.cli.utils import load_context, print_warning, resolve_current
from sdkenv.core.exceptions import VersionSpecParseError
from sdkenv.toolchain.resolver import ResolutionResult

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the versions command.

    Output:
        * 3.7.12 (set by /work/app/.flutter-version)
          3.7.0
          stable (polluted: checked out master instead of stable)

    Returns:
        Exit code (0 for success)
    """
    context = load_context(args)
    repository = context.repository
    installed = repository.list_installed()

    if args.bare:
        for version in installed:
            print(version.identifier)
        return 0

    if not installed:
        print_warning("No sdk versions installed; do `sdkenv install <version>`")
        return 0

    result = _current(context)
    current = result.matched_installed if result else None

    for version in installed:
        line = f"{'*' if version == current else ' '} {version.identifier}"
        if version == current:
            line += f" (set by {result.source_description})"
        report = repository.detect_pollution(version)
        if report.is_polluted:
            line += f" (polluted: {report.reason})"
        print(line)

    return 0


def _current(context) -> Optional[ResolutionResult]:
    # A broken version file must not hide the list
    try:
        return resolve_current(context)
    except VersionSpecParseError as e:
        print_warning(str(e))
        return None
