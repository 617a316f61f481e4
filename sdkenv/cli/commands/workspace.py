"""
Workspace command implementation.

Points a Flutter project's package config (and IntelliJ Dart SDK library)
at an installed sdk.
"""

import logging
import os
from pathlib import Path

from sdkenv.cli.utils import load_context, require_installed, working_dir
from sdkenv.core.exceptions import WorkspaceError
from sdkenv.core.filesystem import FilesystemError
from sdkenv.toolchain.workspace import (
    ensure_workspace,
    run_pub_get,
    write_dart_sdk_xml,
    write_package_config,
)
from sdkenv.versions.spec import parse_version_spec

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the workspace command.

    Without a specifier the version is resolved from the workspace
    directory, exactly as a shim started there would resolve it.

    Returns:
        Exit code (0 for success)
    """
    context = load_context(args)
    workspace = ensure_workspace(Path(args.workspace) if args.workspace else working_dir())

    if args.spec:
        installed = require_installed(context, parse_version_spec(args.spec))
    else:
        result = context.resolver.resolve(workspace, os.environ)
        installed = result.require_installed(context.resolver.version_file_name)

    try:
        if args.pub_get:
            run_pub_get(workspace, installed, os.environ)
        else:
            write_package_config(workspace, installed, force=args.force)
        write_dart_sdk_xml(workspace, installed, force=args.force)
    except (FilesystemError, OSError) as e:
        raise WorkspaceError(f"Failed to update {workspace}: {e}") from e

    return 0
