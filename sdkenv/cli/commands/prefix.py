"""
Prefix command implementation.

Shows the install directory of the selected (or given) version.
"""

import logging

from sdkenv.cli.utils import load_context, require_installed, resolve_current
from sdkenv.versions.spec import parse_version_spec

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the prefix command.

    Returns:
        Exit code (0 for success)
    """
    context = load_context(args)
    if args.spec:
        installed = require_installed(context, parse_version_spec(args.spec))
    else:
        installed = resolve_current(context).require_installed(context.config.version_file)
    print(installed.install_path)
    return 0
