"""
Shim script generator.

Writes one small launcher per managed tool into ``<root>/shims/``. With that
directory on ``PATH``, running ``flutter`` starts the shim front-end, which
picks the version for the current directory and runs the real binary:

    <root>/shims/flutter        POSIX shell launcher
    <root>/shims/flutter.cmd    Windows launcher

Scripts are rendered from the Jinja2 templates in ``templates/`` and written
atomically, so a shell that runs a shim while ``rehash`` is in progress sees
either the old or the new script.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from sdkenv.core.exceptions import SdkenvError
from sdkenv.core.filesystem import atomic_write, make_executable

logger = logging.getLogger(__name__)


class ShimScriptError(SdkenvError):
    """Raised when shim scripts cannot be rendered or written."""

    pass


class ShimScriptGenerator:
    """
    Generate launcher scripts for managed tools.

    Example:
        >>> generator = ShimScriptGenerator(dirs.shims_dir, root=dirs.root)
        >>> generator.generate_all(["flutter", "dart"])
        [PosixPath('/home/me/.sdkenv/shims/flutter'), ...]
    """

    def __init__(
        self,
        shims_dir: Path,
        root: Optional[Path] = None,
        python: Optional[str] = None,
        windows: Optional[bool] = None,
        template_dir: Optional[Path] = None,
    ):
        """
        Initialize the generator.

        Args:
            shims_dir: Directory receiving the scripts
            root: Manager root baked into the scripts as the default
                ``SDKENV_ROOT`` (None leaves it to the environment)
            python: Interpreter that runs the front-end (default: current one)
            windows: Also write ``.cmd`` launchers (default: on Windows only)
            template_dir: Alternative template directory
        """
        self.shims_dir = Path(shims_dir)
        self.root = Path(root) if root else None
        self.python = python or sys.executable
        self.windows = (os.name == "nt") if windows is None else windows
        self.template_dir = Path(template_dir) if template_dir else Path(__file__).parent / "templates"
        self._jinja_env = self._init_jinja2()

    def _init_jinja2(self):
        from jinja2 import Environment, FileSystemLoader

        if not self.template_dir.exists():
            raise ShimScriptError(f"Template directory not found: {self.template_dir}")

        return Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def render(self, template_name: str, tool: str) -> str:
        """
        Render one launcher.

        Raises:
            ShimScriptError: If the template is missing or fails to render
        """
        from jinja2 import TemplateError

        context: Dict[str, object] = {
            "tool": tool,
            "python": self.python,
            "root": str(self.root) if self.root else "",
        }
        try:
            return self._jinja_env.get_template(template_name).render(**context)
        except TemplateError as e:
            raise ShimScriptError(f"Failed to render template {template_name}: {e}") from e

    def generate(self, tool: str) -> List[Path]:
        """
        Write the launcher(s) for one tool.

        Returns:
            Paths of the written scripts
        """
        written = []
        script_path = self.shims_dir / tool
        try:
            atomic_write(script_path, self.render("shim.sh.j2", tool))
            make_executable(script_path)
            written.append(script_path)

            if self.windows:
                cmd_path = self.shims_dir / f"{tool}.cmd"
                content = self.render("shim.cmd.j2", tool).replace("\n", "\r\n")
                atomic_write(cmd_path, content.encode("utf-8"))
                written.append(cmd_path)
        except OSError as e:
            raise ShimScriptError(f"Failed to write shim for {tool}: {e}") from e

        for path in written:
            logger.debug(f"Wrote shim: {path}")
        return written

    def generate_all(self, tools: Iterable[str]) -> List[Path]:
        """Write launchers for every tool and remove ones no longer managed."""
        tools = list(tools)
        written = []
        for tool in tools:
            written.extend(self.generate(tool))
        self._remove_stale(tools)
        return written

    def _remove_stale(self, tools: List[str]) -> None:
        if not self.shims_dir.is_dir():
            return
        keep = set(tools) | {f"{tool}.cmd" for tool in tools}
        for entry in self.shims_dir.iterdir():
            if entry.name in keep or entry.name.startswith(".") or not entry.is_file():
                continue
            if _is_generated(entry):
                logger.info(f"Removing stale shim: {entry}")
                entry.unlink()


def _is_generated(path: Path) -> bool:
    try:
        head = path.read_text(encoding="utf-8", errors="replace")[:200]
    except OSError:
        return False
    return "generated by sdkenv rehash" in head
