"""
Tests for the Flutter release index fetcher.
"""

import pytest
import responses

from sdkenv.core.exceptions import CatalogFetchError
from sdkenv.toolchain.releases import (
    FlutterReleaseFetcher,
    parse_release_index,
)

BASE_URL = "https://storage.example.com/flutter_infra_release/releases"
INDEX_URL = f"{BASE_URL}/releases_linux.json"

RELEASE_INDEX = {
    "base_url": BASE_URL,
    "current_release": {"stable": "1" * 40, "beta": "2" * 40},
    "releases": [
        {
            "hash": "1" * 40,
            "channel": "stable",
            "version": "3.7.12",
            "dart_sdk_version": "2.19.6",
            "dart_sdk_arch": "x64",
            "release_date": "2023-04-19T18:44:09.000Z",
            "archive": "stable/linux/flutter_linux_3.7.12-stable.tar.xz",
            "sha256": "a" * 64,
        },
        {
            "hash": "1" * 40,
            "channel": "stable",
            "version": "3.7.12",
            "dart_sdk_arch": "arm64",
            "release_date": "2023-04-19T18:44:09.000Z",
            "archive": "stable/linux/flutter_linux_arm64_3.7.12-stable.tar.xz",
            "sha256": "b" * 64,
        },
        {
            "hash": "2" * 40,
            "channel": "beta",
            "version": "3.8.0-10.1.pre",
            "release_date": "2023-04-12T17:00:00.000Z",
            "archive": "beta/linux/flutter_linux_3.8.0-10.1.pre-beta.tar.xz",
            "sha256": "c" * 64,
        },
        {
            "hash": "3" * 40,
            "channel": "stable",
            "version": "v1.12.13+hotfix.9",
            "release_date": "2020-04-01T00:00:00.000Z",
            "archive": "stable/linux/flutter_linux_v1.12.13+hotfix.9-stable.tar.xz",
            "sha256": "d" * 64,
        },
        {
            "hash": "4" * 40,
            "channel": "dev",
            "version": "not-a-version",
            "archive": "dev/linux/broken.tar.xz",
        },
        {
            "hash": "1" * 40,
            "channel": "stable",
            "version": "3.7.12",
            "dart_sdk_arch": "x64",
            "archive": "stable/linux/duplicate.tar.xz",
        },
    ],
}


class TestParseReleaseIndex:
    """Test parse_release_index function."""

    def test_filters_architecture(self):
        """Test releases for another architecture are dropped."""
        entries = parse_release_index(RELEASE_INDEX, arch="x64")

        stable = [e for e in entries if e.identifier == "3.7.12"]
        assert len(stable) == 1
        assert stable[0].sha256 == "a" * 64

    def test_arm64(self):
        """Test the arm64 archive is picked on arm64 hosts."""
        entries = parse_release_index(RELEASE_INDEX, arch="arm64")

        stable = [e for e in entries if e.identifier == "3.7.12"]
        assert stable[0].archive.endswith("flutter_linux_arm64_3.7.12-stable.tar.xz")

    def test_fields(self):
        """Test entry fields and absolute archive URLs."""
        entries = {e.identifier: e for e in parse_release_index(RELEASE_INDEX, arch="x64")}

        beta = entries["3.8.0-10.1.pre"]
        assert beta.channel == "beta"
        assert beta.archive == f"{BASE_URL}/beta/linux/flutter_linux_3.8.0-10.1.pre-beta.tar.xz"
        assert beta.commit == "2" * 40
        assert beta.published_at.year == 2023

    def test_skips_unparsable_and_duplicates(self):
        """Test broken versions are skipped and the first duplicate wins."""
        entries = parse_release_index(RELEASE_INDEX, arch="x64")

        identifiers = [e.identifier for e in entries]
        assert identifiers == ["3.7.12", "3.8.0-10.1.pre", "1.12.13+hotfix.9"]
        assert not any(e.archive.endswith("duplicate.tar.xz") for e in entries)

    def test_missing_releases(self):
        """Test a document without a releases list is rejected."""
        with pytest.raises(CatalogFetchError):
            parse_release_index({"base_url": BASE_URL})


class TestFlutterReleaseFetcher:
    """Test FlutterReleaseFetcher class."""

    def test_source(self):
        """Test the index URL for a platform."""
        fetcher = FlutterReleaseFetcher(BASE_URL + "/", platform_name="macos", arch="arm64")

        assert fetcher.source == f"{BASE_URL}/releases_macos.json"

    @responses.activate
    def test_fetch(self):
        """Test the index is downloaded and parsed."""
        responses.add(responses.GET, INDEX_URL, json=RELEASE_INDEX, status=200)
        fetcher = FlutterReleaseFetcher(BASE_URL, platform_name="linux", arch="x64")

        entries = fetcher.fetch()

        assert [e.identifier for e in entries][0] == "3.7.12"

    @responses.activate
    def test_http_error(self):
        """Test HTTP errors become CatalogFetchError."""
        responses.add(responses.GET, INDEX_URL, status=503)
        fetcher = FlutterReleaseFetcher(BASE_URL, platform_name="linux", arch="x64")

        with pytest.raises(CatalogFetchError, match="503"):
            fetcher.fetch()

    @responses.activate
    def test_invalid_json(self):
        """Test malformed JSON becomes CatalogFetchError."""
        responses.add(responses.GET, INDEX_URL, body="<html>", status=200)
        fetcher = FlutterReleaseFetcher(BASE_URL, platform_name="linux", arch="x64")

        with pytest.raises(CatalogFetchError):
            fetcher.fetch()

    @responses.activate
    def test_connection_error(self):
        """Test network failures become CatalogFetchError."""
        import requests

        responses.add(responses.GET, INDEX_URL, body=requests.ConnectionError("unreachable"))
        fetcher = FlutterReleaseFetcher(BASE_URL, platform_name="linux", arch="x64")

        with pytest.raises(CatalogFetchError, match="unreachable"):
            fetcher.fetch()


@pytest.mark.integration
class TestLiveReleaseIndex:
    """Tests against the published release index (network)."""

    def test_fetch_live_index(self):
        """Test the real index parses into stable releases."""
        entries = FlutterReleaseFetcher().fetch()

        assert any(e.channel == "stable" for e in entries)
