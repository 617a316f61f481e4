"""
List-remote command implementation.

Refreshes the release catalog and lists installable versions.
"""

import logging
from typing import Iterable, Optional, Set

from sdkenv.cli.utils import load_context
from sdkenv.core.exceptions import VersionSpecParseError
from sdkenv.toolchain.catalog import CatalogEntry, CatalogSnapshot
from sdkenv.toolchain.context import SdkContext
from sdkenv.versions.spec import parse_version_spec

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the list-remote command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    channel = parse_channel(args.channel) if args.channel else None
    context = load_context(args)
    snapshot = context.catalog.get(force_refresh=True)
    print_catalog(context, snapshot, bare=args.bare, channel=channel)
    return 0


def parse_channel(text: str) -> str:
    """
    Expand a channel name or abbreviation ('s' -> 'stable').

    Raises:
        VersionSpecParseError: If text is not a channel
    """
    spec = parse_version_spec(text, source="--channel")
    if not spec.is_channel:
        raise VersionSpecParseError(text, source="--channel")
    return spec.channel


def print_catalog(
    context: SdkContext,
    snapshot: CatalogSnapshot,
    bare: bool = False,
    channel: Optional[str] = None,
) -> None:
    """Print catalog entries, oldest first so the newest ends up on screen."""
    entries = snapshot.for_channel(channel) if channel else list(snapshot.entries)
    installed = {v.identifier for v in context.repository.list_installed()}

    for line in format_entries(reversed(entries), installed, bare):
        print(line)

    if snapshot.stale and not bare:
        print(f"(release list fetched at {snapshot.fetched_at:%Y-%m-%d %H:%M} UTC)")


def format_entries(
    entries: Iterable[CatalogEntry], installed: Set[str], bare: bool = False
):
    for entry in entries:
        if bare:
            yield entry.identifier
            continue
        marker = "*" if entry.identifier in installed else " "
        published = f"{entry.published_at:%Y-%m-%d}" if entry.published_at else ""
        yield f"{marker} {entry.identifier:<24} {entry.channel or '':<8} {published}".rstrip()
