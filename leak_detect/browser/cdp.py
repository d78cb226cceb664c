"""
Chrome DevTools Protocol helpers: stream reading and DOM attributes.

The CDP session is owned by the crawl driver; these helpers only
borrow it and never detach it.
"""

from __future__ import annotations

import asyncio
import base64
import contextlib
from collections.abc import AsyncIterator
from typing import Any

from playwright import async_api

from leak_detect import config
from leak_detect.utils import errors, logger

log = logger.create_logger("CDP")


async def read_cdp_stream(
    cdp: async_api.CDPSession,
    handle: str,
    timeout_ms: int | None = None,
) -> AsyncIterator[bytes]:
    """Yield the chunks of an ``IO.StreamHandle`` until end of stream.

    The stream is closed with ``IO.close`` however iteration ends:
    end of stream, an error, a timeout, or the consumer closing the
    generator early (use ``contextlib.aclosing`` so that happens
    promptly).

    Raises:
        StreamTimeoutError: The whole stream was not read within
            *timeout_ms*.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_ms / 1000 if timeout_ms is not None else None
    try:
        eof = False
        while not eof:
            if deadline is None:
                response = await cdp.send("IO.read", {"handle": handle})
            else:
                try:
                    response = await asyncio.wait_for(
                        cdp.send("IO.read", {"handle": handle}),
                        max(deadline - loop.time(), 0),
                    )
                except TimeoutError as exc:
                    raise errors.StreamTimeoutError(
                        f"Reading stream {handle} timed out after {timeout_ms}ms"
                    ) from exc
            data: str = response.get("data", "")
            yield base64.b64decode(data) if response.get("base64Encoded") else data.encode("utf-8")
            eof = bool(response.get("eof"))
    finally:
        try:
            await cdp.send("IO.close", {"handle": handle})
        except Exception as exc:
            log.warn("Stream close error (non-fatal)", {"handle": handle, "error": errors.get_error_message(exc)})


async def read_cdp_stream_bytes(
    cdp: async_api.CDPSession,
    handle: str,
    settings: config.StreamSettings | None = None,
) -> bytes:
    """Read a whole CDP stream into memory."""
    settings = settings or config.StreamSettings()
    chunks: list[bytes] = []
    async with contextlib.aclosing(read_cdp_stream(cdp, handle, settings.timeout_ms)) as stream:
        async for chunk in stream:
            chunks.append(chunk)
    return b"".join(chunks)


def attribute_pairs(attributes_response: dict[str, Any]) -> list[dict[str, str]]:
    """Turn a ``DOM.getAttributes`` response (a flat name/value list) into pairs."""
    attributes: list[str] = attributes_response["attributes"]
    return [
        {"name": attributes[i], "value": attributes[i + 1]}
        for i in range(0, len(attributes) - 1, 2)
    ]
