"""
Exec command implementation.

Runs a tool from the selected version exactly as a shim would.
"""

import logging
import os

from sdkenv.cli.utils import load_context, working_dir
from sdkenv.shim.dispatcher import ShimDispatcher

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the exec command.

    Refusals propagate as DispatchRefusedError and are turned into the
    refusal exit code by the CLI.

    Returns:
        The tool's exit code
    """
    context = load_context(args)
    dispatcher = ShimDispatcher(context.resolver)
    return dispatcher.dispatch(args.tool, args.tool_args, working_dir(), os.environ)
