"""
Rehash command implementation.

Regenerates the shim scripts in <root>/shims.
"""

import logging
import os

from sdkenv.cli.utils import load_context, print_warning
from sdkenv.shim.scripts import ShimScriptGenerator

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the rehash command.

    Returns:
        Exit code (0 for success)
    """
    context = load_context(args)
    directories = context.directories

    generator = ShimScriptGenerator(directories.shims_dir, root=directories.root)
    for path in generator.generate_all(context.config.shim_tools):
        print(f"Wrote {path}")

    path_entries = os.environ.get("PATH", "").split(os.pathsep)
    if str(directories.shims_dir) not in path_entries:
        print_warning(f"Add {directories.shims_dir} to PATH to use the shims")

    return 0
