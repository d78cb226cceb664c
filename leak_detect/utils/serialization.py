"""Shared serialization helpers for camelCase crawl output.

The crawl collectors write their JSON with camelCase keys; the
models in ``leak_detect.models`` expose snake_case attributes and
use ``CAMEL_CASE_CONFIG`` to accept both spellings.
"""

from __future__ import annotations

import pydantic


def snake_to_camel(name: str) -> str:
    """Convert a snake_case string to camelCase.

    Args:
        name: A snake_case identifier such as
            ``"request_headers"``.

    Returns:
        The camelCase equivalent, e.g. ``"requestHeaders"``.
    """
    parts = name.split("_")
    return parts[0] + "".join(w.capitalize() for w in parts[1:])


CAMEL_CASE_CONFIG = pydantic.ConfigDict(
    alias_generator=snake_to_camel,
    populate_by_name=True,
)
