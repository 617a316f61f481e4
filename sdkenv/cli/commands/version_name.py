"""
Version-name command implementation.
"""

from sdkenv.cli.utils import load_context, resolve_current


def run(args) -> int:
    """Print the identifier of the selected installed version."""
    context = load_context(args)
    result = resolve_current(context)
    print(result.require_installed(context.config.version_file).identifier)
    return 0
