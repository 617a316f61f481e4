"""
Local command implementation.

Shows or writes the version file of the current directory.
"""

import logging

from sdkenv.cli.utils import load_context, print_warning, require_installed, working_dir
from sdkenv.versions.spec import parse_version_spec
from sdkenv.versions.version_file import (
    find_version_file,
    read_version_file,
    remove_version_file,
    write_version_file,
)

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the local command.

    Without a specifier, prints the content of the nearest version file.
    With one, writes the matching installed identifier into the version
    file of the working directory.

    Returns:
        Exit code (0 for success, 1 when showing and no file exists)
    """
    context = load_context(args)
    file_name = context.config.version_file
    cwd = working_dir()

    if args.unset:
        path = cwd / file_name
        if remove_version_file(path):
            logger.info(f"Removed {path}")
        return 0

    if args.spec is None:
        path = find_version_file(cwd, file_name)
        text = read_version_file(path) if path else None
        if not text:
            print_warning(f"No {file_name} found in {cwd} or its parents")
            return 1
        print(text)
        return 0

    installed = require_installed(context, parse_version_spec(args.spec))
    path = cwd / file_name
    write_version_file(path, installed.identifier)
    logger.info(f"Wrote {installed.identifier} to {path}")
    return 0
