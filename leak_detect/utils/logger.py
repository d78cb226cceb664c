"""
Structured console logger with timing support.

Every module creates its own logger with ``create_logger("Context")``
and logs a message plus an optional dict of data, which is rendered
as coloured ``key=value`` pairs on stderr.

Timers are kept in a ``contextvars.ContextVar`` so that reports
generated concurrently in separate tasks keep separate timings.
"""

from __future__ import annotations

import contextvars
import os
import sys
import time
from datetime import UTC, datetime

_timers_var: contextvars.ContextVar[dict[str, float]] = contextvars.ContextVar("_timers_var")

_debug_enabled = os.environ.get("LEAK_DETECT_DEBUG", "").lower() == "true"


def _get_timers() -> dict[str, float]:
    """Return the per-context timer dict, creating it on first access."""
    try:
        return _timers_var.get()
    except LookupError:
        timers: dict[str, float] = {}
        _timers_var.set(timers)
        return timers


# ============================================================================
# ANSI Colours
# ============================================================================

_colours = {
    "reset": "\033[0m",
    "bright": "\033[1m",
    "dim": "\033[2m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "magenta": "\033[35m",
    "gray": "\033[90m",
}

_level_style = {
    "info": (_colours["cyan"], "ℹ"),
    "success": (_colours["green"], "✓"),
    "warn": (_colours["yellow"], "⚠"),
    "error": (_colours["red"], "✗"),
    "debug": (_colours["gray"], "•"),
    "timing": (_colours["magenta"], "⏱"),
}


def _get_timestamp() -> str:
    """Return the current UTC time as HH:MM:SS.mmm."""
    now = datetime.now(UTC)
    return now.strftime("%H:%M:%S.") + f"{now.microsecond // 1000:03d}"


def format_duration(ms: float) -> str:
    """Format a duration in milliseconds for display."""
    if ms < 1000:
        return f"{int(ms)}ms"
    if ms < 60000:
        return f"{ms / 1000:.2f}s"
    minutes = int(ms // 60000)
    seconds = (ms % 60000) / 1000
    return f"{minutes}m {seconds:.1f}s"


def _format_value(value: object) -> str:
    c = _colours
    if value is None:
        return f"{c['dim']}None{c['reset']}"
    if isinstance(value, bool):
        return f"{c['green']}True{c['reset']}" if value else f"{c['red']}False{c['reset']}"
    if isinstance(value, (int, float)):
        return f"{c['yellow']}{value}{c['reset']}"
    if isinstance(value, str):
        display = value[:197] + "..." if len(value) > 200 else value
        return f'{c["green"]}"{display}"{c["reset"]}'
    if isinstance(value, (list, tuple)):
        return f"{c['cyan']}[{len(value)} items]{c['reset']}"
    if isinstance(value, dict):
        return f"{c['cyan']}{{{len(value)} keys}}{c['reset']}"
    return str(value)


# ============================================================================
# Logger Class
# ============================================================================


class Logger:
    """Structured logger with context prefix and timing support."""

    def __init__(self, context: str) -> None:
        self._context = context

    def _log(self, level: str, message: str, data: dict[str, object] | None = None) -> None:
        if level == "debug" and not _debug_enabled:
            return
        colour, symbol = _level_style[level]
        c = _colours
        line = (
            f"{c['gray']}[{_get_timestamp()}]{c['reset']} {colour}{symbol}{c['reset']}"
            f" {c['bright']}[{self._context}]{c['reset']} {message}"
        )
        if data:
            line += " " + " ".join(f"{c['dim']}{k}={c['reset']}{_format_value(v)}" for k, v in data.items())
        print(line, file=sys.stderr)

    def info(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log an informational message."""
        self._log("info", message, data)

    def success(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log a success message."""
        self._log("success", message, data)

    def warn(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log a warning message."""
        self._log("warn", message, data)

    def error(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log an error message."""
        self._log("error", message, data)

    def debug(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log a debug message; only shown when ``LEAK_DETECT_DEBUG=true``."""
        self._log("debug", message, data)

    def start_timer(self, label: str) -> None:
        """Start a named timer for performance measurement."""
        _get_timers()[f"{self._context}:{label}"] = time.monotonic() * 1000

    def end_timer(self, label: str, message: str | None = None) -> float:
        """Stop a named timer and log the elapsed time."""
        start_ms = _get_timers().pop(f"{self._context}:{label}", None)
        if start_ms is None:
            self.warn(f'Timer "{label}" was not started')
            return 0.0

        duration = time.monotonic() * 1000 - start_ms
        self._log("timing", f"{message or f'Completed: {label}'} took {format_duration(duration)}")
        return duration


def create_logger(context: str) -> Logger:
    """Create a logger for a specific module."""
    return Logger(context)
