"""
Point a Flutter project at an installed sdk.

IDEs and analyzers find the Flutter framework through files inside the
project rather than through ``PATH``, so switching versions with a version
file alone leaves them on the old sdk. This module rewrites those files:

    <workspace>/.dart_tool/package_config.json    the ``flutter`` package root
    <workspace>/.idea/libraries/Dart_SDK.xml      IntelliJ Dart SDK library

The generated ``package_config.json`` is the minimal one naming only the
``flutter`` package; ``dart pub get`` (see ``run_pub_get``) produces the
complete file.
"""

import json
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable, List, Mapping, Optional

from sdkenv.core.exceptions import WorkspaceError
from sdkenv.core.filesystem import atomic_write, safe_rmtree
from sdkenv.shim.process import prepend_path, run_forwarding_signals
from sdkenv.toolchain.repository import InstalledVersion

logger = logging.getLogger(__name__)

PUBSPEC_FILE_NAME = "pubspec.yaml"
DART_TOOL_DIR_NAME = ".dart_tool"
PACKAGE_CONFIG_FILE_NAME = "package_config.json"
IDEA_DIR_NAME = ".idea"
DART_SDK_XML_PATH = Path(IDEA_DIR_NAME) / "libraries" / "Dart_SDK.xml"
PACKAGE_CONFIG_VERSION = 2


def ensure_workspace(workspace: Path) -> Path:
    """
    Check that workspace is a Dart/Flutter project.

    Raises:
        WorkspaceError: If there is no pubspec.yaml
    """
    workspace = Path(workspace).resolve()
    if not (workspace / PUBSPEC_FILE_NAME).is_file():
        raise WorkspaceError(
            f"{workspace} has no {PUBSPEC_FILE_NAME}: "
            "specify the root directory of a Flutter project"
        )
    return workspace


def flutter_package_uri(installed: InstalledVersion) -> str:
    return (installed.install_path / "packages" / "flutter").resolve().as_uri()


def package_config_path(workspace: Path) -> Path:
    return workspace / DART_TOOL_DIR_NAME / PACKAGE_CONFIG_FILE_NAME


def read_flutter_root_uri(path: Path) -> Optional[str]:
    """rootUri of the ``flutter`` package in a package_config.json, if any."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.debug(f"Ignoring unreadable {path}: {e}")
        return None

    packages = data.get("packages") if isinstance(data, dict) else None
    if not isinstance(packages, list):
        return None
    for package in packages:
        if isinstance(package, dict) and package.get("name") == "flutter":
            root_uri = package.get("rootUri")
            return root_uri if isinstance(root_uri, str) else None
    return None


def write_package_config(workspace: Path, installed: InstalledVersion, force: bool = False) -> bool:
    """
    Write a minimal package_config.json naming the sdk's flutter package.

    An existing ``.dart_tool`` directory is removed first.

    Returns:
        False if the file already pointed at this sdk (and force is False)
    """
    path = package_config_path(workspace)
    root_uri = flutter_package_uri(installed)

    if not force and read_flutter_root_uri(path) == root_uri:
        logger.info(f"No need to re-generate {path}, it already uses {installed.identifier}")
        return False

    dart_tool_dir = path.parent
    if dart_tool_dir.is_dir():
        logger.info(f"Removing {dart_tool_dir}")
        safe_rmtree(dart_tool_dir, require_prefix=workspace)

    config = {
        "configVersion": PACKAGE_CONFIG_VERSION,
        "packages": [{"name": "flutter", "rootUri": root_uri, "packageUri": "lib/"}],
    }
    atomic_write(path, json.dumps(config, indent=2) + "\n")
    logger.info(f"Generated {path} for {installed.identifier}")
    return True


# ============================================================================
# IntelliJ / Android Studio
# ============================================================================


def dart_sdk_library_urls(installed: InstalledVersion) -> List[str]:
    """
    URLs of the Dart core libraries bundled with the sdk.

    Private libraries (``_internal``) are left out. The list is empty until
    the sdk has downloaded its Dart sdk (``bin/cache/dart-sdk``).
    """
    lib_dir = installed.install_path / "bin" / "cache" / "dart-sdk" / "lib"
    if not lib_dir.is_dir():
        return []
    return [
        p.resolve().as_uri()
        for p in sorted(lib_dir.iterdir())
        if p.is_dir() and not p.name.startswith("_")
    ]


def read_dart_sdk_roots(path: Path) -> List[str]:
    """Root URLs listed in an existing Dart_SDK.xml (empty if unreadable)."""
    try:
        tree = ET.parse(path)
    except FileNotFoundError:
        return []
    except (OSError, ET.ParseError) as e:
        logger.debug(f"Ignoring unreadable {path}: {e}")
        return []
    return [root.get("url", "") for root in tree.iter("root")]


def render_dart_sdk_xml(library_urls: List[str], template_dir: Optional[Path] = None) -> str:
    from jinja2 import Environment, FileSystemLoader

    template_dir = template_dir or Path(__file__).parent / "templates"
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    return env.get_template("Dart_SDK.xml.j2").render(library_urls=library_urls)


def write_dart_sdk_xml(workspace: Path, installed: InstalledVersion, force: bool = False) -> bool:
    """
    Write ``.idea/libraries/Dart_SDK.xml`` for the sdk.

    Only projects that already have an ``.idea`` directory get one.

    Returns:
        True if the file was written
    """
    if not (workspace / IDEA_DIR_NAME).is_dir():
        logger.debug(f"No {IDEA_DIR_NAME} directory in {workspace}")
        return False

    library_urls = dart_sdk_library_urls(installed)
    if not library_urls:
        logger.warning(
            f"{installed.identifier} has no Dart sdk yet; "
            f"run `flutter --version` once and retry to update {DART_SDK_XML_PATH}"
        )
        return False

    path = workspace / DART_SDK_XML_PATH
    if not force and read_dart_sdk_roots(path) == library_urls:
        logger.debug(f"{path} already uses {installed.identifier}")
        return False

    atomic_write(path, render_dart_sdk_xml(library_urls))
    logger.info(f"Generated {path} for {installed.identifier}")
    return True


# ============================================================================
# pub get
# ============================================================================


def run_pub_get(
    workspace: Path,
    installed: InstalledVersion,
    environ: Mapping[str, str],
    runner: Callable[..., int] = run_forwarding_signals,
) -> None:
    """
    Run ``dart pub get`` of the sdk in workspace.

    Raises:
        WorkspaceError: If dart is missing or pub get fails
    """
    dart = installed.bin_dir / "dart"
    if not dart.exists() and (installed.bin_dir / "dart.bat").exists():
        dart = installed.bin_dir / "dart.bat"
    if not dart.exists():
        raise WorkspaceError(
            f"{installed.identifier} has no dart executable in {installed.bin_dir}"
        )

    logger.info(f"Running `dart pub get` in {workspace}")
    exit_code = runner(
        [str(dart), "pub", "get"], prepend_path(environ, installed.bin_dir), cwd=workspace
    )
    if exit_code != 0:
        raise WorkspaceError(f"`dart pub get` failed in {workspace} (exit code {exit_code})")
