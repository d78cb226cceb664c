"""
Exception types and error classification helpers.
"""

from __future__ import annotations

import re


class LeakDetectError(Exception):
    """Base class for errors raised by leak_detect."""


class MalformedFindEntryError(LeakDetectError, ValueError):
    """A find entry points at a location that does not exist."""


class CyclicObjectGraphError(LeakDetectError, RecursionError):
    """A remote object graph refers back to an object being unwrapped."""


class StreamTimeoutError(LeakDetectError, TimeoutError):
    """Reading a protocol stream did not finish before its deadline."""


# Messages raised when the page navigates away or its frame/target goes away
# while a protocol call is in flight.
_NAVIGATION_ERROR_RE = re.compile(
    r"^Protocol error\b.*\b(?:Session closed|Target closed)"
    r"|^Execution context was destroyed\b"
    r"|^Execution context is not available in detached frame\b"
    r"|\bTarget page, context or browser has been closed\b",
    re.I,
)


def get_error_message(error: BaseException | object) -> str:
    """
    Safely extract an error message from an unknown error type.
    """
    if isinstance(error, Exception):
        return str(error) or type(error).__name__
    return "Unknown error"


def is_navigation_error(error: BaseException | object) -> bool:
    """Check whether *error* was caused by navigation rather than a bug.

    Such errors happen when a page navigates, a frame detaches, or the
    target closes during introspection; callers usually retry or ignore
    them instead of propagating.
    """
    return isinstance(error, Exception) and bool(_NAVIGATION_ERROR_RE.search(str(error)))
