"""
Frame stack compression for readable call stacks.

Instrumented pages repeat the same bundle across dozens of frames.
Only the first frame of a run from one file keeps the file name
(prefixed with its third-party/tracker classification); the others
show ``REPEAT_MARKER`` in its place.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from leak_detect.models import crawl_data

REPEAT_MARKER = "↓"

# File part of a V8 stack frame, without the trailing line and column:
# "at fn (https://a.example/x.js:12:34)" or "https://a.example/x.js:12:34".
STACK_FRAME_FILE_RE = re.compile(r"[^\s()]+?(?=(?::\d+){1,2}\)?$)")


def third_party_info_str(info: crawl_data.ThirdPartyInfo | None) -> str:
    """Render a classification as a prefix such as ``"third party 🕵 tracker "``."""
    if info is None:
        return ""
    return f"{'third party ' if info.third_party is True else ''}{'🕵 tracker ' if info.tracker is True else ''}"


def compress_frame_stack(
    stack: Sequence[str],
    stack_info: Sequence[crawl_data.ThirdPartyInfo | None],
    frame_file_re: re.Pattern[str] = STACK_FRAME_FILE_RE,
) -> list[str]:
    """Return one display line per frame, in the order of *stack*.

    Frames are walked from the end of *stack* towards its start; a
    frame whose file equals the file of the frame walked just before
    it has the file replaced by ``REPEAT_MARKER``. Frames without a
    recognisable file are kept as they are.
    """
    display_frames: list[str] = []
    prev_file: str | None = None

    infos = list(stack_info) + [None] * (len(stack) - len(stack_info))
    for frame, frame_info in reversed(list(zip(stack, infos))):
        match = frame_file_re.search(frame)
        if match is None:
            display_frames.append(frame)
            continue
        file = match.group(0)
        label = REPEAT_MARKER if file == prev_file else f"{third_party_info_str(frame_info)}{file}"
        prev_file = file
        display_frames.append(frame[:match.start()] + label + frame[match.end():])

    display_frames.reverse()
    return display_frames
