"""
Remote release catalog cache.

Fetching the list of installable releases is slow and the list changes
rarely, so a snapshot is kept at ``<root>/cache/catalog.json``:

    {
      "schema_version": 1,
      "fetched_at": "2024-05-01T10:00:00+00:00",
      "source": "https://.../releases_linux.json",
      "entries": [
        {"version": "3.19.6", "channel": "stable",
         "published_at": "2024-04-17T19:13:08+00:00",
         "archive": "https://.../flutter_linux_3.19.6-stable.tar.xz",
         "sha256": "...", "commit": "..."},
        ...
      ]
    }

Entries are grouped by channel and newest first inside each group. A
snapshot younger than the TTL is served without network access; an older one
triggers a fetch. A failed fetch falls back to the stale snapshot with a
warning. Snapshots are replaced as a whole, never merged.
"""

import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Protocol, Tuple

from sdkenv.core.exceptions import CatalogFetchError, VersionSpecParseError
from sdkenv.core.filesystem import atomic_write
from sdkenv.versions.spec import CHANNELS, SpecKind, VersionSpec, parse_version_spec

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
DEFAULT_TTL = timedelta(hours=24)


def parse_timestamp(text: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Raises:
        ValueError: If text is not a string or not ISO-8601
    """
    if not text:
        return None
    if not isinstance(text, str):
        raise ValueError(f"timestamp must be a string, got {text!r}")
    value = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class CatalogEntry:
    """One installable release."""

    version: VersionSpec
    channel: Optional[str]
    published_at: Optional[datetime] = None
    archive: str = ""
    sha256: str = ""
    commit: str = ""

    @property
    def identifier(self) -> str:
        return str(self.version)

    def to_dict(self) -> dict:
        return {
            "version": self.identifier,
            "channel": self.channel,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "archive": self.archive,
            "sha256": self.sha256,
            "commit": self.commit,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CatalogEntry":
        """
        Raises:
            ValueError: If the entry is malformed
        """
        try:
            version = parse_version_spec(data["version"])
        except (KeyError, TypeError, VersionSpecParseError) as e:
            raise ValueError(f"invalid catalog entry: {data!r}") from e
        if version.kind is not SpecKind.EXACT:
            raise ValueError(f"catalog entry is not an exact version: {data['version']}")

        return cls(
            version=version,
            channel=data.get("channel"),
            published_at=parse_timestamp(data.get("published_at")),
            archive=data.get("archive") or "",
            sha256=data.get("sha256") or "",
            commit=data.get("commit") or "",
        )


def _channel_rank(channel: Optional[str]) -> int:
    if channel in CHANNELS:
        return CHANNELS.index(channel)
    return len(CHANNELS)


def sort_entries(entries: Iterable[CatalogEntry]) -> Tuple[CatalogEntry, ...]:
    """Group by channel, newest first within each group (stable sort)."""
    oldest = datetime.min.replace(tzinfo=timezone.utc)
    by_recency = sorted(
        entries,
        key=lambda e: e.published_at or oldest,
        reverse=True,
    )
    return tuple(sorted(by_recency, key=lambda e: _channel_rank(e.channel)))


@dataclass(frozen=True)
class CatalogSnapshot:
    """A fetched copy of the remote catalog."""

    entries: Tuple[CatalogEntry, ...]
    fetched_at: datetime
    source: str = ""
    stale: bool = field(default=False, compare=False)

    def for_channel(self, channel: str) -> List[CatalogEntry]:
        return [e for e in self.entries if e.channel == channel]

    def latest(self, channel: str) -> Optional[CatalogEntry]:
        """Newest release of a channel."""
        releases = self.for_channel(channel)
        return releases[0] if releases else None

    def to_dict(self) -> dict:
        return {
            "schema_version": SCHEMA_VERSION,
            "fetched_at": self.fetched_at.isoformat(),
            "source": self.source,
            "entries": [e.to_dict() for e in self.entries],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CatalogSnapshot":
        """
        Raises:
            ValueError: If the snapshot is malformed or of another schema
        """
        if not isinstance(data, dict):
            raise ValueError("catalog snapshot must be a JSON object")
        if data.get("schema_version") != SCHEMA_VERSION:
            raise ValueError(f"unsupported schema version: {data.get('schema_version')}")

        fetched_at = parse_timestamp(data.get("fetched_at"))
        if fetched_at is None:
            raise ValueError("catalog snapshot has no fetched_at")

        entries = data.get("entries")
        if not isinstance(entries, list):
            raise ValueError("catalog snapshot has no entries list")

        return cls(
            entries=sort_entries(CatalogEntry.from_dict(e) for e in entries),
            fetched_at=fetched_at,
            source=data.get("source") or "",
        )


class CatalogFetcher(Protocol):
    """Anything that can download the current list of releases."""

    source: str

    def fetch(self) -> List[CatalogEntry]:
        """
        Raises:
            CatalogFetchError: On network or parse failure
        """
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RemoteCatalogCache:
    """
    TTL cache in front of a CatalogFetcher.

    Example:
        >>> cache = RemoteCatalogCache(dirs.catalog_file, FlutterReleaseFetcher())
        >>> snapshot = cache.get()
        >>> snapshot.latest("stable").identifier
        '3.19.6'
    """

    def __init__(
        self,
        cache_file: Path,
        fetcher: CatalogFetcher,
        ttl: timedelta = DEFAULT_TTL,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.cache_file = Path(cache_file)
        self.fetcher = fetcher
        self.ttl = ttl
        self._clock = clock or _utcnow

    def is_fresh(self, snapshot: CatalogSnapshot, now: Optional[datetime] = None) -> bool:
        """A snapshot is fresh while younger than the TTL."""
        now = now or self._clock()
        age = now - snapshot.fetched_at
        return timedelta(0) <= age < self.ttl

    def load(self) -> Optional[CatalogSnapshot]:
        """Read the persisted snapshot; None if missing or corrupt."""
        try:
            with open(self.cache_file, "r", encoding="utf-8") as f:
                return CatalogSnapshot.from_dict(json.load(f))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable catalog cache {self.cache_file}: {e}")
            return None

    def get(self, force_refresh: bool = False) -> CatalogSnapshot:
        """
        Return the catalog, fetching it when the snapshot is stale or missing.

        Args:
            force_refresh: Fetch even if the snapshot is still fresh

        Returns:
            The current snapshot; ``stale`` is True when a failed fetch fell
            back to an expired snapshot

        Raises:
            CatalogFetchError: If the fetch fails and no snapshot exists
        """
        snapshot = self.load()
        now = self._clock()

        if snapshot is not None and not force_refresh and self.is_fresh(snapshot, now):
            logger.debug(f"Using cached catalog from {snapshot.fetched_at.isoformat()}")
            return snapshot

        try:
            entries = self.fetcher.fetch()
        except CatalogFetchError as e:
            if snapshot is None:
                raise
            logger.warning(
                f"Could not refresh the release catalog ({e}); "
                f"using the list fetched at {snapshot.fetched_at.isoformat()}"
            )
            return replace(snapshot, stale=True)

        fresh = CatalogSnapshot(
            entries=sort_entries(entries),
            fetched_at=now,
            source=getattr(self.fetcher, "source", ""),
        )
        self._save(fresh)
        logger.debug(f"Fetched {len(fresh.entries)} catalog entries")
        return fresh

    def _save(self, snapshot: CatalogSnapshot) -> None:
        try:
            atomic_write(self.cache_file, json.dumps(snapshot.to_dict(), indent=2) + "\n")
        except OSError as e:
            logger.warning(f"Could not write catalog cache {self.cache_file}: {e}")
