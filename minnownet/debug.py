"""Debug output that goes to a replaceable handler (stderr by default)."""

from __future__ import annotations

import sys
from typing import Any, Callable

DebugHandler = Callable[[str], None]


def _default_debug_handler(message: str) -> None:
    print(f"DEBUG: {message}", file=sys.stderr)


_state: dict[str, DebugHandler] = {"handler": _default_debug_handler}


def debug_str(message: str) -> None:
    """Pass a message to the current debug handler."""
    _state["handler"](message)


def debug(fmt: str, *args: Any) -> None:
    """Format a message with ``str.format`` and send it, unless optimisation is on."""
    if __debug__:
        debug_str(fmt.format(*args))


def set_debug_handler(handler: DebugHandler) -> None:
    """Route debug messages to ``handler``."""
    _state["handler"] = handler


def reset_debug_handler() -> None:
    """Send debug messages to stderr again."""
    _state["handler"] = _default_debug_handler