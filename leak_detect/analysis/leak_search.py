"""
Leak correlation: search captured requests and navigations for
tracked secrets, verbatim or encoded.

The search itself is delegated to a ``ValueSearcher`` per secret.
All searches are fired together and the findings are reassembled in
a fixed order (request by request, url then headers then body, then
visited targets) so that reports are reproducible.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from typing import Protocol

from leak_detect.models import crawl_data, leaks
from leak_detect.utils import errors, logger

log = logger.create_logger("Leak-Search")


class ValueSearcher(Protocol):
    """Finds one tracked secret inside a byte buffer."""

    async def find_value_in(self, data: bytes) -> Sequence[object] | None | bool:
        """Return the encodings (outermost first) that turn the secret
        into something contained in *data*, or ``None`` when it is absent.
        An empty sequence means the secret appears verbatim."""
        ...


def searchers_for(
    secrets: Iterable[leaks.TrackedSecret],
    factory: Callable[[str], ValueSearcher],
) -> dict[str, ValueSearcher]:
    """Create one searcher per tracked secret, keyed by the secret's type."""
    return {secret.type: factory(secret.value) for secret in secrets}


async def _search(
    searcher: ValueSearcher,
    data: str,
    **entry: object,
) -> leaks.FindEntry | None:
    """Run one search; a failure counts as no finding for this location."""
    try:
        encoders = await searcher.find_value_in(data.encode("utf-8"))
    except Exception as exc:
        log.debug("Value search failed", {
            "type": entry.get("type"),
            "part": entry.get("part"),
            "error": errors.get_error_message(exc),
        })
        return None
    # An empty chain means the secret appears verbatim
    if encoders is None or encoders is False:
        return None
    return leaks.FindEntry(encodings=[str(e) for e in encoders], **entry)  # type: ignore[arg-type]


async def find_leaks(
    searchers: Mapping[str, ValueSearcher],
    requests: Sequence[crawl_data.RequestRecord],
    visited_targets: Iterable[crawl_data.VisitedTarget] = (),
) -> list[leaks.FindEntry]:
    """Search every request part and navigation URL for each secret.

    Args:
        searchers: One searcher per tracked secret, keyed by the
            secret's type (e.g. ``"password"``).
        requests: All captured requests.
        visited_targets: All navigation targets. Those whose URL was
            also requested are skipped, since the request already
            covers them.

    Returns:
        Every finding, each pointing back into *requests* or
        *visited_targets* by index.
    """
    searches: list[Awaitable[leaks.FindEntry | None]] = []
    request_urls = {request.url for request in requests}

    for request_index, request in enumerate(requests):
        for secret_type, searcher in searchers.items():
            searches.append(_search(
                searcher, request.url,
                type=secret_type, request_index=request_index, part="url",
            ))
        for name, value in request.request_headers.items():
            for secret_type, searcher in searchers.items():
                searches.append(_search(
                    searcher, value,
                    type=secret_type, request_index=request_index, part="header", header=name,
                ))
        if request.post_data:
            for secret_type, searcher in searchers.items():
                searches.append(_search(
                    searcher, request.post_data,
                    type=secret_type, request_index=request_index, part="body",
                ))

    for visited_target_index, target in enumerate(visited_targets):
        if target.url in request_urls:
            continue
        for secret_type, searcher in searchers.items():
            searches.append(_search(
                searcher, target.url,
                type=secret_type, visited_target_index=visited_target_index, part="url",
            ))

    results = await asyncio.gather(*searches)
    found = [entry for entry in results if entry is not None]

    log.info("Leak search complete", {
        "secrets": len(searchers),
        "searches": len(searches),
        "findings": len(found),
    })
    return found


async def find_leaks_for_crawl(
    searchers: Mapping[str, ValueSearcher],
    crawl_result: crawl_data.CrawlResult,
) -> list[leaks.FindEntry] | None:
    """Search a whole crawl result.

    Returns:
        The findings, or ``None`` when the request collector produced
        no data and nothing could be searched.
    """
    data = crawl_result.data
    if data.requests is None:
        log.warn("No request collector data, skipping leak search")
        return None
    visited_targets = data.fields.visited_targets if data.fields else []
    return await find_leaks(searchers, data.requests, visited_targets)
