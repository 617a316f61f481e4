"""
Version specifiers, matching, and version files.

This package is pure apart from version file reads and writes.
"""

from sdkenv.versions.spec import (
    CHANNELS,
    SpecKind,
    VersionSpec,
    parse_version_spec,
    is_channel_name,
)
from sdkenv.versions.matcher import matches, filter_matches, select_best
from sdkenv.versions.version_file import (
    DEFAULT_VERSION_FILE_NAME,
    read_version_file,
    write_version_file,
    remove_version_file,
    find_version_file,
)

__all__ = [
    "CHANNELS",
    "SpecKind",
    "VersionSpec",
    "parse_version_spec",
    "is_channel_name",
    "matches",
    "filter_matches",
    "select_best",
    "DEFAULT_VERSION_FILE_NAME",
    "read_version_file",
    "write_version_file",
    "remove_version_file",
    "find_version_file",
]
