"""Pydantic models for leak findings and grouped field reads."""

from __future__ import annotations

from typing import Literal

import pydantic

from leak_detect.models import crawl_data
from leak_detect.utils.serialization import CAMEL_CASE_CONFIG

# Encoding transform names, outermost first.
EncodingChain = list[str]

LeakPart = Literal["url", "header", "body"]

# (selector chain, field type, value, stack)
CallGroupKey = tuple[tuple[str, ...] | None, str, str, tuple[str, ...]]


class TrackedSecret(pydantic.BaseModel):
    """A value typed into the page whose reappearance is searched for."""

    model_config = pydantic.ConfigDict(frozen=True)

    type: str
    value: str


class FindEntry(pydantic.BaseModel):
    """One place where a tracked secret was found in outgoing data.

    Exactly one of ``request_index`` and ``visited_target_index`` is
    set, and ``header`` is set only for header findings.
    """

    model_config = CAMEL_CASE_CONFIG

    type: str
    request_index: int | None = None
    visited_target_index: int | None = None
    part: LeakPart
    header: str | None = None
    encodings: EncodingChain = pydantic.Field(default_factory=list)

    @pydantic.model_validator(mode="after")
    def _check_location(self) -> FindEntry:
        if (self.request_index is None) == (self.visited_target_index is None):
            raise ValueError("exactly one of requestIndex and visitedTargetIndex must be set")
        if (self.part == "header") != (self.header is not None):
            raise ValueError("header name must be given for header findings only")
        return self


class AnnotatedLeak(pydantic.BaseModel):
    """A find entry joined with the request or target it refers to."""

    entry: FindEntry
    request: crawl_data.RequestRecord | None = None
    visited_target: crawl_data.VisitedTarget | None = None

    @property
    def source(self) -> crawl_data.ThirdPartyInfo:
        """The request or visited target carrying the classification."""
        return self.request if self.request is not None else self.visited_target  # type: ignore[return-value]

    @property
    def time(self) -> float | None:
        if self.visited_target is not None:
            return self.visited_target.time
        return self.request.wall_time if self.request is not None else None


class CallGroup(pydantic.BaseModel):
    """Repeated reads of the same field by the same stack."""

    call: crawl_data.SavedCall
    times: list[float]

    @property
    def key(self) -> CallGroupKey:
        return call_group_key(self.call)


def call_group_key(call: crawl_data.SavedCall) -> CallGroupKey:
    """Return the structural key that identical field reads share."""
    chain = call.custom.selector_chain
    return (
        tuple(chain) if chain is not None else None,
        call.custom.type,
        call.custom.value,
        tuple(call.stack),
    )


def selector_str(chain: crawl_data.SelectorChain) -> str:
    """Render a selector chain, one hop per frame or shadow root."""
    return " >>> ".join(chain)


class OutputFile(pydantic.BaseModel):
    """A crawl result together with the leaks found in it."""

    model_config = CAMEL_CASE_CONFIG

    crawl_result: crawl_data.CrawlResult
    leaked_values: list[FindEntry] | None = None
