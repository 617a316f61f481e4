"""
Tests for version file reading, writing and lookup.
"""

import pytest

from sdkenv.core.exceptions import VersionSpecParseError
from sdkenv.versions.version_file import (
    find_version_file,
    iter_ancestors,
    read_version_file,
    remove_version_file,
    write_version_file,
)


class TestReadVersionFile:
    """Test read_version_file function."""

    def test_missing_file(self, temp_dir):
        """Test missing file returns None."""
        assert read_version_file(temp_dir / ".flutter-version") is None

    def test_trailing_whitespace_ignored(self, temp_dir):
        """Test trailing whitespace and newline are stripped."""
        path = temp_dir / ".flutter-version"
        path.write_text("3.7.12  \r\n", encoding="utf-8")

        assert read_version_file(path) == "3.7.12"

    def test_only_first_line(self, temp_dir):
        """Test lines after the first are ignored."""
        path = temp_dir / ".flutter-version"
        path.write_text("stable\n3.7.12\n", encoding="utf-8")

        assert read_version_file(path) == "stable"

    def test_empty_file(self, temp_dir):
        """Test empty file returns an empty string."""
        path = temp_dir / ".flutter-version"
        path.write_text("", encoding="utf-8")

        assert read_version_file(path) == ""

    def test_directory_is_ignored(self, temp_dir):
        """Test a directory with the file name reads as absent."""
        (temp_dir / ".flutter-version").mkdir()

        assert read_version_file(temp_dir / ".flutter-version") is None

    def test_invalid_utf8(self, temp_dir):
        """Test undecodable bytes are a parse error naming the file."""
        path = temp_dir / ".flutter-version"
        path.write_bytes(b"3.7\xff\n")

        with pytest.raises(VersionSpecParseError) as exc_info:
            read_version_file(path)

        assert exc_info.value.source == str(path)
        assert "3.7" in exc_info.value.text


class TestWriteVersionFile:
    """Test write_version_file and remove_version_file."""

    def test_write_single_line(self, temp_dir):
        """Test one line with a trailing newline is written."""
        path = temp_dir / ".flutter-version"

        write_version_file(path, " 3.7.12 ")

        assert path.read_text(encoding="utf-8") == "3.7.12\n"
        assert read_version_file(path) == "3.7.12"

    def test_remove(self, temp_dir):
        """Test removal reports whether a file existed."""
        path = temp_dir / ".flutter-version"
        write_version_file(path, "stable")

        assert remove_version_file(path) is True
        assert remove_version_file(path) is False
        assert not path.exists()


class TestFindVersionFile:
    """Test find_version_file function."""

    def test_file_in_start_directory(self, project_dir):
        """Test the start directory itself is searched."""
        (project_dir / ".flutter-version").write_text("3.7.12\n")

        assert find_version_file(project_dir) == project_dir / ".flutter-version"

    def test_nearest_ancestor_wins(self, project_dir):
        """Test the closest file walking upward wins."""
        app = project_dir.parent
        work = app.parent
        (work / ".flutter-version").write_text("stable\n")
        (app / ".flutter-version").write_text("3.7.12\n")

        assert find_version_file(project_dir) == app / ".flutter-version"

    def test_not_found(self, project_dir):
        """Test None when no ancestor has a file."""
        assert find_version_file(project_dir, ".unlikely-version-file-name") is None

    def test_custom_file_name(self, project_dir):
        """Test the file name is configurable."""
        (project_dir.parent / ".fvm-version").write_text("beta\n")

        assert find_version_file(project_dir, ".fvm-version") == project_dir.parent / ".fvm-version"

    def test_iter_ancestors_starts_with_start(self, project_dir):
        """Test ancestors begin with the start directory and end at the root."""
        ancestors = list(iter_ancestors(project_dir))

        assert ancestors[0] == project_dir
        assert ancestors[1] == project_dir.parent
        assert ancestors[-1] == ancestors[-1].parent
