"""
Centralized exception hierarchy for sdkenv.

This module defines all custom exceptions used across the codebase so that
the CLI and the shim front-end can map them to exit codes in one place.
"""

from typing import Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class SdkenvError(Exception):
    """Base exception for all sdkenv errors."""

    pass


class DispatchRefusedError(SdkenvError):
    """
    Base exception for conditions where the manager refuses to run a tool.

    Scripts can distinguish these from tool failures: they always map to
    the fixed refusal exit code.
    """

    pass


# ============================================================================
# Version Specifier Exceptions
# ============================================================================


class VersionSpecParseError(DispatchRefusedError):
    """Raised when a version specifier is malformed."""

    def __init__(self, text: str, source: Optional[str] = None):
        self.text = text
        self.source = source
        msg = f"Invalid version specifier: `{text}`"
        if source:
            msg += f" (set by `{source}`)"
        super().__init__(msg)


# ============================================================================
# Resolution Exceptions
# ============================================================================


class ResolutionError(DispatchRefusedError):
    """Base exception for version resolution failures."""

    pass


class NoVersionSelectedError(ResolutionError):
    """Raised when no environment variable or version file selects a version."""

    def __init__(self, version_file_name: str = ".flutter-version"):
        self.version_file_name = version_file_name
        super().__init__(
            f"Could not find any version file ({version_file_name}) "
            "and no global version is set: do `sdkenv global <version>`"
        )


class NoMatchError(ResolutionError):
    """
    Raised when a specifier resolved but no candidate satisfies it.

    Used both for "resolved but not installed" and for catalog lookups
    that find nothing.
    """

    def __init__(self, spec: str, source: Optional[str] = None, remote: bool = False):
        self.spec = spec
        self.source = source
        self.remote = remote
        if remote:
            msg = f"Not found any matched sdk version in the remote catalog: `{spec}`"
        elif source:
            msg = (
                f"The specified version `{spec}` is not installed "
                f"(set by `{source}`): do `sdkenv install`"
            )
        else:
            msg = f"Not found any matched installed sdk version: `{spec}`"
        super().__init__(msg)


# ============================================================================
# Installation State Exceptions
# ============================================================================


class PollutedInstallError(DispatchRefusedError):
    """Raised when an installation was modified outside of the manager."""

    def __init__(self, identifier: str, reason: str):
        self.identifier = identifier
        self.reason = reason
        super().__init__(
            f"Installation `{identifier}` is polluted ({reason}). "
            f"Reinstall it with `sdkenv install --force {identifier}`"
        )


class PolicyViolationError(DispatchRefusedError):
    """Raised when a subcommand is not allowed for the selected install kind."""

    def __init__(self, subcommand: str, identifier: str, kind: str, alternative: str):
        self.subcommand = subcommand
        self.identifier = identifier
        self.kind = kind
        self.alternative = alternative
        super().__init__(
            f"`{subcommand}` is not allowed on {kind} version `{identifier}`: "
            f"{alternative}"
        )


class ExecutableNotFoundError(DispatchRefusedError):
    """Raised when the requested tool does not exist in the selected install."""

    def __init__(self, tool: str, identifier: str):
        self.tool = tool
        self.identifier = identifier
        super().__init__(f"`{tool}` is not provided by sdk version `{identifier}`")


# ============================================================================
# Catalog Exceptions
# ============================================================================


class CatalogError(SdkenvError):
    """Base exception for remote catalog errors."""

    pass


class CatalogFetchError(CatalogError):
    """Raised when the remote release catalog cannot be fetched or parsed."""

    pass


# ============================================================================
# Installer Exceptions
# ============================================================================


class InstallError(SdkenvError):
    """
    Raised by the installer when an install or uninstall fails.

    Attributes:
        kind: One of "network", "extract", "disk"
    """

    NETWORK = "network"
    EXTRACT = "extract"
    DISK = "disk"

    def __init__(self, message: str, kind: str = DISK):
        self.kind = kind
        super().__init__(message)


class AlreadyInstalledError(InstallError):
    """Raised when installing a version that is already installed."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(
            f"`{identifier}` is already installed "
            "(use --force to reinstall it)",
            kind=InstallError.DISK,
        )


# ============================================================================
# Workspace Exceptions
# ============================================================================


class WorkspaceError(SdkenvError):
    """Raised when a project cannot be pointed at an sdk."""

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigError(SdkenvError):
    """Configuration parsing or validation error."""

    pass

