"""
Version specifier parsing.

A specifier names a version the user wants, in one of three shapes:

- Exact:   ``3.7.12``, ``v1.12.13+hotfix.9``, ``3.10.0-1.2.pre``
- Prefix:  ``3``, ``3.7`` (any release whose leading components match)
- Channel: ``stable``, ``beta``, ``dev``, ``master`` (or an unambiguous
  abbreviation such as ``s`` or ``m``)

Only ``(major, minor, patch)`` takes part in ordering; a non-numeric suffix
such as ``+hotfix.9`` is kept for display and identity but never ordered.

Example:
    >>> spec = parse_version_spec("3.7")
    >>> spec.kind
    <SpecKind.PREFIX: 'prefix'>
    >>> parse_version_spec("s").channel
    'stable'
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from sdkenv.core.exceptions import VersionSpecParseError

# Display order of channel groups in listings and the catalog.
CHANNELS: Tuple[str, ...] = ("stable", "beta", "dev", "master")

_EXACT_RE = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)([-+.][0-9A-Za-z.+-]*)?$")
_PREFIX_RE = re.compile(r"^v?(\d+)(?:\.(\d+))?$")


class SpecKind(Enum):
    """The three shapes a version specifier can take."""

    EXACT = "exact"
    PREFIX = "prefix"
    CHANNEL = "channel"


@dataclass(frozen=True)
class VersionSpec:
    """
    Immutable, parsed version specifier.

    Attributes:
        kind: Exact, prefix or channel
        components: Numeric components (three for exact, one or two for prefix,
            empty for channels)
        suffix: Non-numeric tail of an exact version ('+hotfix.9'), '' otherwise
        channel: Channel name for channel specs, None otherwise
    """

    kind: SpecKind
    components: Tuple[int, ...] = ()
    suffix: str = ""
    channel: Optional[str] = None

    @classmethod
    def exact(cls, major: int, minor: int, patch: int, suffix: str = "") -> "VersionSpec":
        return cls(SpecKind.EXACT, (major, minor, patch), suffix)

    @classmethod
    def prefix(cls, *components: int) -> "VersionSpec":
        if not 1 <= len(components) <= 2:
            raise ValueError("A prefix has one or two components")
        return cls(SpecKind.PREFIX, tuple(components))

    @classmethod
    def for_channel(cls, name: str) -> "VersionSpec":
        if name not in CHANNELS:
            raise ValueError(f"Unknown channel: {name}")
        return cls(SpecKind.CHANNEL, channel=name)

    @property
    def is_channel(self) -> bool:
        return self.kind is SpecKind.CHANNEL

    @property
    def is_numeric(self) -> bool:
        return self.kind is not SpecKind.CHANNEL

    @property
    def numeric_key(self) -> Tuple[int, ...]:
        """Components padded to (major, minor, patch) for ordering."""
        return self.components + (0,) * (3 - len(self.components))

    def __str__(self) -> str:
        if self.is_channel:
            return self.channel
        return ".".join(str(c) for c in self.components) + self.suffix

    def _check_comparable(self, other) -> None:
        if not isinstance(other, VersionSpec):
            raise TypeError(f"Cannot compare VersionSpec with {type(other).__name__}")
        if not (self.is_numeric and other.is_numeric):
            raise TypeError(f"Channel specs are unordered: {self} vs {other}")

    def __lt__(self, other: "VersionSpec") -> bool:
        self._check_comparable(other)
        return self.numeric_key < other.numeric_key

    def __le__(self, other: "VersionSpec") -> bool:
        self._check_comparable(other)
        return self.numeric_key <= other.numeric_key

    def __gt__(self, other: "VersionSpec") -> bool:
        self._check_comparable(other)
        return self.numeric_key > other.numeric_key

    def __ge__(self, other: "VersionSpec") -> bool:
        self._check_comparable(other)
        return self.numeric_key >= other.numeric_key


def parse_version_spec(text: str, source: Optional[str] = None) -> VersionSpec:
    """
    Parse a version specifier.

    Args:
        text: Specifier text; surrounding whitespace is ignored
        source: Where the text came from, for error messages

    Returns:
        Parsed VersionSpec

    Raises:
        VersionSpecParseError: If the text is empty or malformed
    """
    if text is None:
        raise VersionSpecParseError("", source)

    stripped = text.strip()
    if not stripped:
        raise VersionSpecParseError(text, source)

    match = _EXACT_RE.match(stripped)
    if match:
        major, minor, patch, suffix = match.groups()
        return VersionSpec.exact(int(major), int(minor), int(patch), suffix or "")

    match = _PREFIX_RE.match(stripped)
    if match:
        parts = [int(p) for p in match.groups() if p is not None]
        return VersionSpec.prefix(*parts)

    channel = _expand_channel(stripped.lower())
    if channel:
        return VersionSpec.for_channel(channel)

    raise VersionSpecParseError(text, source)


def _expand_channel(text: str) -> Optional[str]:
    """Return the one channel whose name starts with text, if exactly one does."""
    candidates = [name for name in CHANNELS if name.startswith(text)]
    if len(candidates) == 1:
        return candidates[0]
    return None


def is_channel_name(text: str) -> bool:
    """True for a full channel name (directory identifiers never abbreviate)."""
    return text in CHANNELS
