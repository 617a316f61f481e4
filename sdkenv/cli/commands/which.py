"""
Which command implementation.

Shows the full path of a tool in the selected version.
"""

import logging

from sdkenv.cli.utils import load_context, resolve_current
from sdkenv.core.exceptions import ExecutableNotFoundError
from sdkenv.shim.dispatcher import find_tool_executable

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the which command.

    Returns:
        Exit code (0 for success)
    """
    context = load_context(args)
    installed = resolve_current(context).require_installed(context.config.version_file)

    executable = find_tool_executable(installed, args.tool)
    if executable is None:
        raise ExecutableNotFoundError(args.tool, installed.identifier)

    print(executable)
    return 0
