"""
Version-file command implementation.
"""

from sdkenv.cli.utils import load_context, resolve_current
from sdkenv.core.exceptions import NoVersionSelectedError


def run(args) -> int:
    """
    Print where the selected version comes from.

    A version file prints as its path; the override variable prints as
    its description.
    """
    context = load_context(args)
    result = resolve_current(context)
    if not result.is_resolved:
        raise NoVersionSelectedError(context.config.version_file)
    print(result.source_path or result.source_description)
    return 0
