"""
Matching version specifiers against candidate versions.

A candidate is anything carrying a concrete version and an optional channel
tag: a ``CatalogEntry`` from the remote catalog, an ``InstalledVersion`` from
the local repository, or a bare ``VersionSpec``.

Selection is deterministic: the greatest ``(major, minor, patch)`` wins for
numeric specs and the most recently published candidate wins for channel
specs. Ties keep the candidate that comes first in the input sequence.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence, Tuple, TypeVar

from sdkenv.versions.spec import SpecKind, VersionSpec

C = TypeVar("C")


def candidate_parts(candidate) -> Tuple[VersionSpec, Optional[str]]:
    """Return (version, channel tag) of a candidate."""
    if isinstance(candidate, VersionSpec):
        return candidate, candidate.channel
    return candidate.version, getattr(candidate, "channel", None)


def matches(spec: VersionSpec, candidate) -> bool:
    """
    Check whether a candidate satisfies a specifier.

    - Exact: equal (major, minor, patch); the suffix must also be equal when
      the spec names one
    - Prefix: the candidate's leading components equal the spec's
    - Channel: the candidate is tagged with that channel

    Example:
        >>> matches(parse_version_spec("3.7"), parse_version_spec("3.7.12"))
        True
    """
    version, channel = candidate_parts(candidate)

    if spec.kind is SpecKind.CHANNEL:
        return channel == spec.channel

    if not version.is_numeric or version.kind is not SpecKind.EXACT:
        return False

    if spec.kind is SpecKind.EXACT:
        if version.components != spec.components:
            return False
        return not spec.suffix or version.suffix == spec.suffix

    return version.components[: len(spec.components)] == spec.components


def filter_matches(spec: VersionSpec, candidates: Iterable[C]) -> list:
    """All candidates satisfying spec, in input order."""
    return [c for c in candidates if matches(spec, c)]


def select_best(spec: VersionSpec, candidates: Sequence[C]) -> Optional[C]:
    """
    Select the best candidate for a specifier.

    Args:
        spec: Parsed specifier
        candidates: Candidates in priority order (earlier wins ties)

    Returns:
        The selected candidate, or None when nothing matches
    """
    matching = filter_matches(spec, candidates)
    if not matching:
        return None

    if spec.is_channel:
        key = _published_key
    else:
        key = _numeric_key

    # max() keeps the first of several equal keys
    return max(matching, key=key)


def _numeric_key(candidate) -> Tuple[int, ...]:
    version, _ = candidate_parts(candidate)
    return version.numeric_key


def _published_key(candidate) -> Tuple[int, datetime]:
    published_at = getattr(candidate, "published_at", None)
    if published_at is None:
        return (0, datetime.min)
    if published_at.tzinfo is not None:
        published_at = published_at.astimezone(timezone.utc).replace(tzinfo=None)
    return (1, published_at)
