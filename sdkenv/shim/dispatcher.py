"""
Shim dispatch.

Every ``flutter``/``dart`` invocation made through a shim goes through
``ShimDispatcher``:

    resolve version → installed? → polluted? → subcommand allowed? → run

Nothing is spawned unless every step succeeded. Which subcommands are
allowed depends on the kind of install:

    ========  ================================
    Kind      Refused subcommands
    ========  ================================
    pinned    upgrade, downgrade, channel
    channel   channel
    ========  ================================

A pinned release must stay what its directory name says; a channel install
may move along its branch but must not change branch, or its recorded
channel would no longer match.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, FrozenSet, List, Mapping, Optional, Sequence

from sdkenv.core.exceptions import (
    DispatchRefusedError,
    ExecutableNotFoundError,
    PolicyViolationError,
    PollutedInstallError,
)
from sdkenv.shim.process import prepend_path, run_forwarding_signals
from sdkenv.toolchain.repository import InstalledVersion, LocalRepository
from sdkenv.toolchain.resolver import VersionResolver

logger = logging.getLogger(__name__)

# Fixed exit code for "the manager refused to run the tool"
REFUSED_EXIT_CODE = 125

Runner = Callable[[List[str], Mapping[str, str]], int]


class InstallKind(Enum):
    """Policy state of the selected install."""

    PINNED = "pinned"
    CHANNEL = "channel"

    @classmethod
    def of(cls, installed: InstalledVersion) -> "InstallKind":
        return cls.PINNED if installed.is_pinned else cls.CHANNEL


DISALLOWED_SUBCOMMANDS: Dict[InstallKind, FrozenSet[str]] = {
    InstallKind.PINNED: frozenset({"upgrade", "downgrade", "channel"}),
    InstallKind.CHANNEL: frozenset({"channel"}),
}


def find_subcommand(argv: Sequence[str]) -> Optional[str]:
    """First argument that is not an option, e.g. 'upgrade' in '-v upgrade'."""
    for arg in argv:
        if arg == "--":
            return None
        if not arg.startswith("-"):
            return arg
    return None


def check_policy(installed: InstalledVersion, subcommand: Optional[str]) -> None:
    """
    Refuse subcommands that would change the install in place.

    Raises:
        PolicyViolationError: If subcommand is not allowed for the install kind
    """
    kind = InstallKind.of(installed)
    if subcommand is None or subcommand not in DISALLOWED_SUBCOMMANDS[kind]:
        return

    if kind is InstallKind.PINNED:
        alternative = (
            "install the version you want with `sdkenv install <version>` and "
            "select it with `sdkenv local` or `sdkenv global`; remove this one "
            f"with `sdkenv uninstall {installed.identifier}`"
        )
    else:
        alternative = (
            "install the other channel with `sdkenv install <channel>` and "
            "select it with `sdkenv local` or `sdkenv global`"
        )
    raise PolicyViolationError(subcommand, installed.identifier, kind.value, alternative)


def find_tool_executable(installed: InstalledVersion, tool: str) -> Optional[Path]:
    """Path of tool inside the install's bin directory."""
    candidates = [installed.bin_dir / tool]
    if os.name == "nt":
        candidates = [installed.bin_dir / f"{tool}{ext}" for ext in (".bat", ".exe", ".cmd")]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


class ShimDispatcher:
    """
    Routes a tool invocation to the resolved install.

    Example:
        >>> dispatcher = ShimDispatcher(resolver)
        >>> dispatcher.run("flutter", ["build", "apk"], Path.cwd(), os.environ)
        0
    """

    def __init__(
        self,
        resolver: VersionResolver,
        repository: Optional[LocalRepository] = None,
        runner: Runner = run_forwarding_signals,
    ):
        self.resolver = resolver
        self.repository = repository or resolver.repository
        self.runner = runner

    def prepare(
        self, tool: str, argv: Sequence[str], cwd: Path, environ: Mapping[str, str]
    ) -> List[str]:
        """
        Resolve and validate; return the command line to run.

        Raises:
            DispatchRefusedError: For any reason the tool must not run
        """
        result = self.resolver.resolve(cwd, environ)
        installed = result.require_installed(self.resolver.version_file_name)

        report = self.repository.detect_pollution(installed)
        if report.is_polluted:
            raise PollutedInstallError(installed.identifier, report.reason)

        check_policy(installed, find_subcommand(argv))

        executable = find_tool_executable(installed, tool)
        if executable is None:
            raise ExecutableNotFoundError(tool, installed.identifier)

        logger.debug(
            f"Dispatching {tool} to {installed.identifier} "
            f"(set by {result.source_description})"
        )
        return [str(executable), *argv]

    def dispatch(
        self, tool: str, argv: Sequence[str], cwd: Path, environ: Mapping[str, str]
    ) -> int:
        """
        Run tool from the resolved install and return its exit code.

        Raises:
            DispatchRefusedError: If the manager refuses to run the tool
        """
        command = self.prepare(tool, argv, cwd, environ)
        env = prepend_path(environ, Path(command[0]).parent)
        # The child runs in the caller's working directory, not the resolution one
        return self.runner(command, env)

    def run(
        self, tool: str, argv: Sequence[str], cwd: Path, environ: Mapping[str, str]
    ) -> int:
        """Like dispatch(), reporting refusals as REFUSED_EXIT_CODE."""
        try:
            return self.dispatch(tool, argv, cwd, environ)
        except DispatchRefusedError as e:
            logger.error(f"sdkenv: {e}")
            return REFUSED_EXIT_CODE
