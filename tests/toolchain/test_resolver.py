"""
Tests for version resolution.

Tests cover:
- Precedence: environment > nearest local file > global file > none
- Walk-up lookup of local files
- Resolved but not installed
- Malformed specifiers naming their source
"""

import pytest

from sdkenv.config.parser import SdkenvConfig
from sdkenv.core.exceptions import (
    NoMatchError,
    NoVersionSelectedError,
    VersionSpecParseError,
)
from sdkenv.toolchain.resolver import (
    EnvironmentStrategy,
    GlobalFileStrategy,
    LocalFileStrategy,
    Provenance,
    VersionResolver,
)


@pytest.fixture
def resolver(sdk_root, repository):
    return VersionResolver.from_config(sdk_root, SdkenvConfig(), repository)


@pytest.fixture
def installed(make_install):
    for identifier in ("3.7.0", "3.7.12", "3.10.0", "stable"):
        make_install(identifier)


def write_global(sdk_root, text):
    sdk_root.global_version_file.write_text(f"{text}\n")


def write_local(directory, text):
    (directory / ".flutter-version").write_text(f"{text}\n")


class TestStrategies:
    """Test the individual resolution tiers."""

    def test_environment_unset(self, temp_dir):
        """Test an unset variable supplies nothing."""
        assert EnvironmentStrategy().find(temp_dir, {}) is None

    def test_environment_empty(self, temp_dir):
        """Test an empty variable is treated as unset."""
        assert EnvironmentStrategy().find(temp_dir, {"SDKENV_VERSION": ""}) is None

    def test_environment_custom_name(self, temp_dir):
        """Test the variable name is configurable."""
        source = EnvironmentStrategy("FVM_VERSION").find(temp_dir, {"FVM_VERSION": "beta"})

        assert source.spec.channel == "beta"
        assert source.describe() == "FVM_VERSION environment variable"

    def test_local_file_walks_up(self, temp_dir, project_dir):
        """Test the nearest file above the working directory is found."""
        write_local(temp_dir / "work", "3.10")

        source = LocalFileStrategy().find(project_dir, {})

        assert source.provenance is Provenance.LOCAL_FILE
        assert source.path == temp_dir / "work" / ".flutter-version"

    def test_local_file_nearest_wins(self, temp_dir, project_dir):
        """Test a closer file shadows one further up."""
        write_local(temp_dir / "work", "3.10")
        write_local(temp_dir / "work" / "app", "3.7")

        source = LocalFileStrategy().find(project_dir, {})

        assert str(source.spec) == "3.7"

    def test_local_file_in_cwd(self, project_dir):
        """Test the starting directory itself is included."""
        write_local(project_dir, "stable")

        assert LocalFileStrategy().find(project_dir, {}).path.parent == project_dir

    def test_global_file_missing(self, sdk_root, temp_dir):
        """Test a missing global file supplies nothing."""
        assert GlobalFileStrategy(sdk_root.global_version_file).find(temp_dir, {}) is None


class TestPrecedence:
    """Test VersionResolver precedence."""

    def test_none(self, resolver, project_dir, installed):
        """Test nothing configured resolves to NONE."""
        result = resolver.resolve(project_dir, {})

        assert result.provenance is Provenance.NONE
        assert result.effective_spec is None
        assert not result.is_resolved
        assert not result.is_installed

    def test_global_only(self, resolver, sdk_root, project_dir, installed):
        """Test the global file is used when nothing else is set."""
        write_global(sdk_root, "3.7")

        result = resolver.resolve(project_dir, {})

        assert result.provenance is Provenance.GLOBAL_FILE
        assert result.source_path == sdk_root.global_version_file
        assert result.matched_installed.identifier == "3.7.12"

    def test_local_beats_global(self, resolver, sdk_root, temp_dir, project_dir, installed):
        """Test a local file above cwd overrides the global file."""
        write_global(sdk_root, "3.7")
        write_local(temp_dir / "work" / "app", "3.10")

        result = resolver.resolve(project_dir, {})

        assert result.provenance is Provenance.LOCAL_FILE
        assert result.matched_installed.identifier == "3.10.0"

    def test_environment_beats_local(self, resolver, sdk_root, project_dir, installed):
        """Test the environment variable overrides every file."""
        write_global(sdk_root, "3.7")
        write_local(project_dir, "3.10")

        result = resolver.resolve(project_dir, {"SDKENV_VERSION": "stable"})

        assert result.provenance is Provenance.ENV
        assert result.source_path is None
        assert result.matched_installed.identifier == "stable"
        assert result.source_description == "SDKENV_VERSION environment variable"

    def test_empty_environment_falls_through(self, resolver, project_dir, installed):
        """Test an empty variable does not shadow the local file."""
        write_local(project_dir, "3.7.0")

        result = resolver.resolve(project_dir, {"SDKENV_VERSION": ""})

        assert result.provenance is Provenance.LOCAL_FILE
        assert result.matched_installed.identifier == "3.7.0"

    def test_idempotent(self, resolver, sdk_root, project_dir, installed):
        """Test resolving twice with unchanged inputs gives equal results."""
        write_global(sdk_root, "3")

        assert resolver.resolve(project_dir, {}) == resolver.resolve(project_dir, {})

    def test_not_cached_between_calls(self, resolver, project_dir, installed):
        """Test a version file written between calls is picked up."""
        assert resolver.resolve(project_dir, {}).provenance is Provenance.NONE

        write_local(project_dir, "3.7")

        assert resolver.resolve(project_dir, {}).provenance is Provenance.LOCAL_FILE


class TestNotInstalled:
    """Test resolved-but-not-installed results."""

    def test_does_not_fall_through(self, resolver, sdk_root, project_dir, installed):
        """Test an uninstalled local spec does not fall back to the global file."""
        write_global(sdk_root, "3.7")
        write_local(project_dir, "2.0")

        result = resolver.resolve(project_dir, {})

        assert result.is_resolved
        assert not result.is_installed
        assert result.provenance is Provenance.LOCAL_FILE
        assert str(result.effective_spec) == "2.0"

    def test_require_installed_not_installed(self, resolver, project_dir, installed):
        """Test require_installed names the spec and its source."""
        write_local(project_dir, "2.0")

        with pytest.raises(NoMatchError) as exc_info:
            resolver.resolve(project_dir, {}).require_installed()

        assert exc_info.value.spec == "2.0"
        assert str(project_dir / ".flutter-version") in str(exc_info.value)

    def test_require_installed_none(self, resolver, project_dir):
        """Test require_installed without any selection."""
        with pytest.raises(NoVersionSelectedError, match=".flutter-version"):
            resolver.resolve(project_dir, {}).require_installed()

    def test_require_installed_ok(self, resolver, project_dir, installed):
        """Test require_installed returns the match."""
        write_local(project_dir, "3.7.0")

        assert resolver.resolve(project_dir, {}).require_installed().identifier == "3.7.0"


class TestMalformed:
    """Test malformed specifiers."""

    def test_malformed_local_file(self, resolver, project_dir):
        """Test the error names the file."""
        write_local(project_dir, "latest-and-greatest")

        with pytest.raises(VersionSpecParseError) as exc_info:
            resolver.resolve(project_dir, {})

        assert exc_info.value.source == str(project_dir / ".flutter-version")

    def test_malformed_environment(self, resolver, project_dir):
        """Test the error names the variable."""
        with pytest.raises(VersionSpecParseError, match="SDKENV_VERSION"):
            resolver.resolve(project_dir, {"SDKENV_VERSION": "3.x"})

    def test_empty_local_file(self, resolver, project_dir):
        """Test an empty local file is malformed rather than skipped."""
        (project_dir / ".flutter-version").write_text("")

        with pytest.raises(VersionSpecParseError):
            resolver.resolve(project_dir, {})

    def test_malformed_lower_tier_ignored(self, resolver, sdk_root, project_dir, installed):
        """Test a broken global file does not matter when a higher tier wins."""
        write_global(sdk_root, "???")
        write_local(project_dir, "3.7")

        assert resolver.resolve(project_dir, {}).matched_installed.identifier == "3.7.12"


class TestCustomConfig:
    """Test resolver built from a non-default configuration."""

    def test_custom_file_and_variable(self, sdk_root, repository, project_dir, make_install):
        """Test configured version file name and environment variable."""
        make_install("3.7.12")
        config = SdkenvConfig(version_file=".fvmrc-version", version_env="MY_SDK")
        resolver = VersionResolver.from_config(sdk_root, config, repository)
        (project_dir / ".fvmrc-version").write_text("3.7.12\n")
        write_local(project_dir, "3.10")

        result = resolver.resolve(project_dir, {"SDKENV_VERSION": "stable"})

        assert result.provenance is Provenance.LOCAL_FILE
        assert result.source_path.name == ".fvmrc-version"
