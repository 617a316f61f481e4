"""
Shims: dispatching tool invocations to the selected sdk install.
"""

from sdkenv.shim.dispatcher import (
    DISALLOWED_SUBCOMMANDS,
    REFUSED_EXIT_CODE,
    InstallKind,
    ShimDispatcher,
    find_subcommand,
)
from sdkenv.shim.process import prepend_path, run_forwarding_signals
from sdkenv.shim.scripts import ShimScriptError, ShimScriptGenerator

__all__ = [
    "DISALLOWED_SUBCOMMANDS",
    "REFUSED_EXIT_CODE",
    "InstallKind",
    "ShimDispatcher",
    "find_subcommand",
    "prepend_path",
    "run_forwarding_signals",
    "ShimScriptError",
    "ShimScriptGenerator",
]
