"""
Shared utilities for CLI commands.

Provides common functionality used across multiple CLI commands to
eliminate duplication and ensure consistent behavior.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from sdkenv.core.directory import get_working_dir
from sdkenv.core.download import DownloadProgress
from sdkenv.core.exceptions import NoMatchError
from sdkenv.toolchain.context import SdkContext
from sdkenv.toolchain.repository import InstalledVersion
from sdkenv.toolchain.resolver import ResolutionResult
from sdkenv.versions.spec import VersionSpec

logger = logging.getLogger(__name__)


# ============================================================================
# Context
# ============================================================================


def load_context(args) -> SdkContext:
    """
    Build the manager context for a parsed command line.

    Args:
        args: Parsed arguments (``root`` overrides ``SDKENV_ROOT``)

    Raises:
        ConfigError: If ``config.yaml`` is invalid
    """
    context = SdkContext.load(root=getattr(args, "root", None))
    if not getattr(args, "quiet", False):
        context.progress_callback = show_download_progress
    return context


def working_dir() -> Path:
    return get_working_dir(os.environ)


def resolve_current(context: SdkContext) -> ResolutionResult:
    """Resolve the effective version for the working directory."""
    return context.resolver.resolve(working_dir(), os.environ)


def require_installed(context: SdkContext, spec: VersionSpec) -> InstalledVersion:
    """
    Best installed match for spec.

    Raises:
        NoMatchError: If nothing installed matches
    """
    installed = context.repository.is_installed(spec)
    if installed is None:
        raise NoMatchError(str(spec))
    return installed


# ============================================================================
# User Interface / Output Formatting
# ============================================================================


def show_download_progress(progress: DownloadProgress) -> None:
    """Single-line progress bar on stderr."""
    if not progress.total_bytes:
        return
    bar_length = 40
    filled = int(bar_length * progress.percentage / 100)
    bar = "=" * filled + "-" * (bar_length - filled)
    end = "\n" if progress.bytes_downloaded >= progress.total_bytes else ""
    print(
        f"\r  Downloading: [{bar}] {progress.percentage:.1f}%",
        end=end,
        file=sys.stderr,
        flush=True,
    )


def print_error(message: str, details: Optional[str] = None):
    """
    Print error message to stderr in consistent format.

    Args:
        message: Main error message
        details: Optional additional details
    """
    print(f"ERROR: {message}", file=sys.stderr)
    if details:
        print(f"  {details}", file=sys.stderr)


def print_warning(message: str):
    """Print warning message to stderr."""
    print(f"WARNING: {message}", file=sys.stderr)
