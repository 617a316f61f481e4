"""
Pytest configuration and shared fixtures for sdkenv tests.
"""

import os
import pytest
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Generator, Iterable, Optional

from sdkenv.core.directory import SdkDirectories
from sdkenv.toolchain.repository import (
    InstalledVersion,
    InstallManifest,
    LocalRepository,
)
from sdkenv.versions.spec import CHANNELS

SDKENV_ENV_VARS = ("SDKENV_ROOT", "SDKENV_DIR", "SDKENV_VERSION", "SDKENV_DEBUG")


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_sdkenv_environment(monkeypatch):
    """Keep the developer's own sdkenv settings out of every test."""
    for name in SDKENV_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        # Resolved so comparisons with walked-up paths hold on macOS (/private/var)
        yield Path(tmpdir).resolve()


@pytest.fixture
def isolated_home(temp_dir: Path, monkeypatch) -> Path:
    """Create isolated home directory for tests."""
    fake_home = temp_dir / "home"
    fake_home.mkdir()

    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setenv("USERPROFILE", str(fake_home))

    return fake_home


@pytest.fixture
def sdk_root(temp_dir: Path) -> SdkDirectories:
    """Manager root with its directory structure created."""
    return SdkDirectories(temp_dir / "sdkenv").ensure()


@pytest.fixture
def repository(sdk_root: SdkDirectories) -> LocalRepository:
    return LocalRepository(sdk_root.versions_dir)


@pytest.fixture
def project_dir(temp_dir: Path) -> Path:
    """Nested project directory: <temp>/work/app/lib."""
    path = temp_dir / "work" / "app" / "lib"
    path.mkdir(parents=True)
    return path


def _write_tool(bin_dir: Path, tool: str) -> None:
    script = bin_dir / tool
    script.write_text(f'#!/bin/sh\necho "{tool} $*"\n', encoding="utf-8")
    script.chmod(0o755)
    if os.name == "nt":
        (bin_dir / f"{tool}.bat").write_text(f"@echo {tool} %*\r\n", encoding="utf-8")


def _write_git(install_path: Path, branch: Optional[str], commit: Optional[str]) -> None:
    git_dir = install_path / ".git"
    git_dir.mkdir()
    if branch:
        (git_dir / "HEAD").write_text(f"ref: refs/heads/{branch}\n", encoding="utf-8")
        if commit:
            ref_file = git_dir / "refs" / "heads" / branch
            ref_file.parent.mkdir(parents=True)
            ref_file.write_text(f"{commit}\n", encoding="utf-8")
    else:
        (git_dir / "HEAD").write_text(f"{commit}\n", encoding="utf-8")


@pytest.fixture
def make_install(sdk_root: SdkDirectories) -> Callable[..., InstalledVersion]:
    """
    Factory creating a fake install below the versions root.

    Example:
        install = make_install("3.7.12")
        install = make_install("stable", branch="stable", commit="abc123")
        install = make_install("3.7.0", manifest=False)   # polluted
    """
    repo = LocalRepository(sdk_root.versions_dir)

    def factory(
        identifier: str,
        manifest: bool = True,
        branch: Optional[str] = None,
        commit: Optional[str] = None,
        tools: Iterable[str] = ("flutter", "dart"),
    ) -> InstalledVersion:
        install_path = sdk_root.versions_dir / identifier
        bin_dir = install_path / "bin"
        bin_dir.mkdir(parents=True)
        for tool in tools:
            _write_tool(bin_dir, tool)

        if branch or commit:
            _write_git(install_path, branch, commit)

        channel = identifier if identifier in CHANNELS else None
        if manifest:
            repo.write_manifest(
                install_path,
                InstallManifest(
                    identifier=identifier,
                    channel=channel,
                    installed_at=datetime.now(timezone.utc).isoformat(),
                    branch=branch,
                    commit=commit,
                ),
            )

        return InstalledVersion(identifier, install_path, channel)

    return factory
