"""
Shim front-end.

Entry point of every shim. The tool to run is taken from the name the
program was started as (a ``flutter`` symlink to ``sdkenv-shim``) or, when
started under its own name, from the first argument:

    flutter build apk                       (symlink)
    sdkenv-shim flutter build apk
    python -m sdkenv.shim.frontend flutter build apk

Manager messages are kept at WARNING so they do not mix with the tool's
output; ``SDKENV_DEBUG=1`` turns on debug logging.
"""

import logging
import os
import sys
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

from sdkenv.core.directory import get_working_dir
from sdkenv.core.exceptions import SdkenvError
from sdkenv.shim.dispatcher import ShimDispatcher
from sdkenv.toolchain.context import SdkContext

logger = logging.getLogger(__name__)

DEBUG_ENV_VAR = "SDKENV_DEBUG"
FRONTEND_NAMES = ("sdkenv-shim", "frontend")


def split_invocation(argv: List[str]) -> Tuple[Optional[str], List[str]]:
    """
    Split a command line into (tool, tool arguments).

    Example:
        >>> split_invocation(["/home/me/.sdkenv/shims/dart", "--version"])
        ('dart', ['--version'])
        >>> split_invocation(["sdkenv-shim", "flutter", "doctor"])
        ('flutter', ['doctor'])
    """
    if not argv:
        return None, []
    name = Path(argv[0]).stem
    if name in FRONTEND_NAMES:
        if len(argv) < 2:
            return None, []
        return argv[1], list(argv[2:])
    return name, list(argv[1:])


def configure_logging(environ: Mapping[str, str]) -> None:
    if environ.get(DEBUG_ENV_VAR) == "1":
        level, format_str = logging.DEBUG, "%(levelname)s [%(name)s] %(message)s"
    else:
        level, format_str = logging.WARNING, "%(message)s"
    logging.basicConfig(level=level, format=format_str, force=True)


def run(argv: List[str], environ: Mapping[str, str]) -> int:
    """
    Dispatch one shim invocation.

    Returns:
        The tool's exit code, REFUSED_EXIT_CODE when the manager refused to
        run it, or 1 for other manager errors
    """
    tool, tool_args = split_invocation(argv)
    if not tool:
        logger.error("usage: sdkenv-shim TOOL [ARGS...]")
        return 1

    try:
        context = SdkContext.load(environ=environ)
    except SdkenvError as e:
        logger.error(f"sdkenv: {e}")
        return 1

    dispatcher = ShimDispatcher(context.resolver)
    try:
        return dispatcher.run(tool, tool_args, get_working_dir(environ), environ)
    except OSError as e:
        logger.error(f"sdkenv: failed to start {tool}: {e}")
        return 1


def main():
    """Main entry point for shims."""
    configure_logging(os.environ)
    try:
        sys.exit(run(sys.argv, os.environ))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
