"""
Version resolution.

Which sdk version applies is decided by an ordered list of strategies; the
first one that yields a specifier wins:

1. Environment: ``SDKENV_VERSION`` when set and non-empty
2. Local file: the nearest ``.flutter-version`` from the working directory
   upward (inclusive)
3. Global file: ``<root>/version``

If none yields a specifier the result has provenance NONE, which is a state
of its own and not an error. Once a specifier is found it is matched against
the installed versions; "resolved but not installed" never falls through to
a lower tier.

Resolution is a pure function of (working directory, environment, files on
disk). Nothing is cached between calls.

Example:
    >>> resolver = VersionResolver.from_config(dirs, config)
    >>> result = resolver.resolve(Path.cwd(), os.environ)
    >>> result.provenance, str(result.effective_spec)
    (<Provenance.LOCAL_FILE: 'local_file'>, '3.7')
    >>> result.require_installed().identifier
    '3.7.12'
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Mapping, Optional, Protocol, Sequence

from sdkenv.config.parser import SdkenvConfig
from sdkenv.core.directory import SdkDirectories
from sdkenv.core.exceptions import NoMatchError, NoVersionSelectedError
from sdkenv.toolchain.repository import InstalledVersion, LocalRepository
from sdkenv.versions.spec import VersionSpec, parse_version_spec
from sdkenv.versions.version_file import (
    DEFAULT_VERSION_FILE_NAME,
    find_version_file,
    read_version_file,
)

logger = logging.getLogger(__name__)


class Provenance(Enum):
    """Where the effective specifier came from."""

    ENV = "env"
    LOCAL_FILE = "local_file"
    GLOBAL_FILE = "global_file"
    NONE = "none"


@dataclass(frozen=True)
class SpecSource:
    """A specifier together with the place it was read from."""

    spec: VersionSpec
    provenance: Provenance
    path: Optional[Path] = None
    env_var: Optional[str] = None

    def describe(self) -> str:
        if self.provenance is Provenance.ENV:
            return f"{self.env_var} environment variable"
        return str(self.path)


class ProvenanceStrategy(Protocol):
    """One tier of the resolution chain."""

    def find(self, cwd: Path, environ: Mapping[str, str]) -> Optional[SpecSource]:
        ...


class EnvironmentStrategy:
    """Override variable, read verbatim; unset or empty means not provided."""

    def __init__(self, var_name: str = "SDKENV_VERSION"):
        self.var_name = var_name

    def find(self, cwd: Path, environ: Mapping[str, str]) -> Optional[SpecSource]:
        value = environ.get(self.var_name)
        if not value:
            return None
        spec = parse_version_spec(value, source=f"{self.var_name} environment variable")
        return SpecSource(spec, Provenance.ENV, env_var=self.var_name)


class LocalFileStrategy:
    """Nearest version file walking up from the working directory."""

    def __init__(self, file_name: str = DEFAULT_VERSION_FILE_NAME):
        self.file_name = file_name

    def find(self, cwd: Path, environ: Mapping[str, str]) -> Optional[SpecSource]:
        path = find_version_file(cwd, self.file_name)
        if path is None:
            return None
        text = read_version_file(path)
        if text is None:
            # Deleted between lookup and read
            return None
        spec = parse_version_spec(text, source=str(path))
        return SpecSource(spec, Provenance.LOCAL_FILE, path=path)


class GlobalFileStrategy:
    """Fallback file at the manager root."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def find(self, cwd: Path, environ: Mapping[str, str]) -> Optional[SpecSource]:
        text = read_version_file(self.path)
        if text is None:
            return None
        spec = parse_version_spec(text, source=str(self.path))
        return SpecSource(spec, Provenance.GLOBAL_FILE, path=self.path)


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of one resolution; never persisted."""

    effective_spec: Optional[VersionSpec]
    provenance: Provenance
    source_path: Optional[Path] = None
    matched_installed: Optional[InstalledVersion] = None
    source_description: str = ""

    @property
    def is_resolved(self) -> bool:
        return self.effective_spec is not None

    @property
    def is_installed(self) -> bool:
        return self.matched_installed is not None

    def require_installed(
        self, version_file_name: str = DEFAULT_VERSION_FILE_NAME
    ) -> InstalledVersion:
        """
        The matched install, or the reason there is none.

        Raises:
            NoVersionSelectedError: If no tier supplied a specifier
            NoMatchError: If the specifier is not installed
        """
        if self.effective_spec is None:
            raise NoVersionSelectedError(version_file_name)
        if self.matched_installed is None:
            raise NoMatchError(str(self.effective_spec), source=self.source_description)
        return self.matched_installed


class VersionResolver:
    """Runs the strategy chain and matches the result against installs."""

    def __init__(
        self,
        repository: LocalRepository,
        strategies: Sequence[ProvenanceStrategy],
        version_file_name: str = DEFAULT_VERSION_FILE_NAME,
    ):
        self.repository = repository
        self.strategies: List[ProvenanceStrategy] = list(strategies)
        self.version_file_name = version_file_name

    @classmethod
    def from_config(
        cls,
        directories: SdkDirectories,
        config: SdkenvConfig,
        repository: Optional[LocalRepository] = None,
    ) -> "VersionResolver":
        """Standard chain: environment, local file, global file."""
        repository = repository or LocalRepository(directories.versions_dir)
        return cls(
            repository,
            [
                EnvironmentStrategy(config.version_env),
                LocalFileStrategy(config.version_file),
                GlobalFileStrategy(directories.global_version_file),
            ],
            version_file_name=config.version_file,
        )

    def find_spec(self, cwd: Path, environ: Mapping[str, str]) -> Optional[SpecSource]:
        """
        First specifier supplied by the chain.

        Raises:
            VersionSpecParseError: If the winning tier holds a malformed specifier
        """
        for strategy in self.strategies:
            source = strategy.find(cwd, environ)
            if source is not None:
                logger.debug(f"Version {source.spec} set by {source.describe()}")
                return source
        return None

    def resolve(self, cwd: Path, environ: Mapping[str, str]) -> ResolutionResult:
        """
        Resolve the effective version for a working directory.

        Raises:
            VersionSpecParseError: If the winning tier holds a malformed specifier
        """
        source = self.find_spec(cwd, environ)
        if source is None:
            logger.debug("No version selected")
            return ResolutionResult(effective_spec=None, provenance=Provenance.NONE)

        installed = self.repository.is_installed(source.spec)
        if installed is None:
            logger.debug(f"Version {source.spec} is not installed")

        return ResolutionResult(
            effective_spec=source.spec,
            provenance=source.provenance,
            source_path=source.path,
            matched_installed=installed,
            source_description=source.describe(),
        )
