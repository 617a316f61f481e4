"""
Install command implementation.

Installs sdk versions from the release catalog.
"""

import logging
from typing import List

from sdkenv.cli.commands.list_remote import print_catalog
from sdkenv.cli.utils import load_context, print_warning, resolve_current
from sdkenv.core.exceptions import AlreadyInstalledError, NoVersionSelectedError
from sdkenv.toolchain.context import SdkContext
from sdkenv.versions.spec import VersionSpec, parse_version_spec

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the install command.

    Args:
        args: Parsed command-line arguments with:
            - specs: Version specifiers (default: the selected version)
            - list: List installable versions instead
            - force: Reinstall existing installs

    Returns:
        Exit code (0 for success)
    """
    context = load_context(args)

    if args.list:
        print_catalog(context, context.catalog.get())
        return 0

    specs = [parse_version_spec(text) for text in args.specs] or [_selected_spec(context)]
    return _install_all(context, specs, force=args.force)


def _selected_spec(context: SdkContext) -> VersionSpec:
    result = resolve_current(context)
    if result.effective_spec is None:
        raise NoVersionSelectedError(context.config.version_file)
    logger.debug(f"Installing {result.effective_spec} (set by {result.source_description})")
    return result.effective_spec


def _install_all(context: SdkContext, specs: List[VersionSpec], force: bool) -> int:
    for spec in specs:
        try:
            installed = context.installer.install(spec, force=force)
        except AlreadyInstalledError as e:
            print_warning(str(e))
            continue

        print(f"Installed {installed.identifier}: {installed.install_path}")
    return 0
