"""Frame helpers used when attributing in-page events to frames."""

from __future__ import annotations

from playwright import async_api


def get_frame_stack(frame: async_api.Frame) -> list[async_api.Frame]:
    """Return *frame* followed by its ancestors, up to the main frame."""
    frames = [frame]
    current = frame.parent_frame
    while current is not None:
        frames.append(current)
        current = current.parent_frame
    return frames


async def wait_for_load(frame: async_api.Frame) -> None:
    """Wait until the frame's document has fired its ``load`` event."""
    await frame.evaluate(
        """() => new Promise(resolve => {
            function loadHandler() {
                removeEventListener('load', loadHandler);
                resolve();
            }
            addEventListener('load', loadHandler);
            if (document.readyState === 'complete') loadHandler();
        })"""
    )
