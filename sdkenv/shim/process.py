"""
Running the real tool binary.

The child inherits stdin/stdout/stderr, so nothing is buffered by the shim.
While it runs, termination signals sent to the shim are passed on to the
child instead of leaving it orphaned. SIGINT is ignored by the shim: the
terminal already delivers it to the whole foreground process group, child
included, and forwarding it would deliver it twice.
"""

import logging
import os
import signal
import subprocess
from pathlib import Path
from typing import Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

FORWARDED_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGHUP", "SIGQUIT") if hasattr(signal, name)
)


def exit_code_from_returncode(returncode: int) -> int:
    """Map a Popen return code to a shell-style exit code (128 + N for signals)."""
    if returncode < 0:
        return 128 + (-returncode)
    return returncode


def _ignore(signum, frame):
    pass


def run_forwarding_signals(
    command: List[str],
    env: Mapping[str, str],
    cwd: Optional[Path] = None,
) -> int:
    """
    Run command to completion, forwarding termination signals to it.

    Handlers are in place before the child is spawned; a signal that arrives
    before the child exists is delivered to it right after the spawn.
    SIGINT gets a no-op handler rather than SIG_IGN, which the child would
    inherit.

    Args:
        command: Executable and arguments
        env: Complete environment for the child
        cwd: Working directory for the child (default: inherited)

    Returns:
        The child's exit code
    """
    process: Optional[subprocess.Popen] = None
    pending: List[int] = []

    def forward(signum, frame):
        if process is None:
            pending.append(signum)
            return
        logger.debug(f"Forwarding signal {signum} to pid {process.pid}")
        try:
            process.send_signal(signum)
        except ProcessLookupError:
            pass

    previous: Dict[int, object] = {}
    try:
        for signum in FORWARDED_SIGNALS:
            previous[signum] = signal.signal(signum, forward)
        previous[signal.SIGINT] = signal.signal(signal.SIGINT, _ignore)
    except ValueError:
        # Not the main thread; signal handlers cannot be installed here
        logger.debug("Signal forwarding unavailable outside the main thread")

    try:
        logger.debug(f"Running: {command}")
        process = subprocess.Popen(command, env=dict(env), cwd=cwd)
        for signum in pending:
            forward(signum, None)
        returncode = process.wait()
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    return exit_code_from_returncode(returncode)


def prepend_path(env: Mapping[str, str], directory: Path) -> Dict[str, str]:
    """Copy of env with directory first on PATH."""
    result = dict(env)
    current = result.get("PATH", "")
    result["PATH"] = str(directory) + (os.pathsep + current if current else "")
    return result
