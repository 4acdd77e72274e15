from __future__ import annotations

import logging
import os as _os
from typing import Optional

DEBUG_ENV = "EMBER_DEBUG"
PY_TRACE_ENV = "EMBER_PY_TRACE"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool:
    raw = _os.environ.get(name)
    if raw is None:
        return False
    return raw.strip().lower() in _TRUTHY


def debug_enabled() -> bool:
    """EMBER_DEBUG turns on DEBUG logging for the CLI and REPL."""
    return _env_flag(DEBUG_ENV)


def debug_py_trace_enabled() -> bool:
    return _env_flag(PY_TRACE_ENV)


def set_py_trace(enabled: Optional[bool]) -> bool:
    """Set the traceback flag; None toggles it. Returns the new state."""
    if enabled is None:
        enabled = not debug_py_trace_enabled()

    if enabled:
        _os.environ[PY_TRACE_ENV] = "1"
    else:
        _os.environ.pop(PY_TRACE_ENV, None)
    return enabled


def configure_logging(debug: bool = False) -> None:
    """Root logging setup for the command line entry points only."""
    level = logging.DEBUG if debug or debug_enabled() else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
    )
