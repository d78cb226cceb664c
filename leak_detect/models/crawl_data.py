"""Pydantic models for the data collected during a crawl.

These mirror the JSON written by the crawl collectors, so every
model accepts camelCase keys as well as snake_case field names.
Timestamps are milliseconds since the epoch.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

import pydantic

from leak_detect.utils.serialization import CAMEL_CASE_CONFIG

# One CSS selector per frame or shadow root hop, outermost first.
SelectorChain = list[str]


class ThirdPartyInfo(pydantic.BaseModel):
    """Third-party/tracker classification of a request, target, or script."""

    model_config = CAMEL_CASE_CONFIG

    third_party: bool | None = None
    tracker: bool | None = None


class RequestRecord(ThirdPartyInfo):
    """A network request captured by the request collector."""

    url: str
    request_headers: dict[str, str] = pydantic.Field(default_factory=dict)
    post_data: str | None = None
    wall_time: float | None = None
    stack: list[str] = pydantic.Field(default_factory=list)


class VisitedTarget(ThirdPartyInfo):
    """A navigation attempt (redirect hop, frame navigation, popup)."""

    url: str
    time: float | None = None


# ============================================================================
# In-page API calls
# ============================================================================


class SavedCallCustom(pydantic.BaseModel):
    """Field details attached to a recorded property access."""

    model_config = CAMEL_CASE_CONFIG

    selector_chain: SelectorChain | None = None
    type: str
    value: str
    time: float


class SavedCall(pydantic.BaseModel):
    """One recorded in-page access, with the stack that made it.

    ``stack`` and ``stack_info`` are aligned, one entry per frame.
    """

    model_config = CAMEL_CASE_CONFIG

    description: str
    custom: SavedCallCustom
    stack: list[str] = pydantic.Field(default_factory=list)
    stack_info: list[ThirdPartyInfo | None] = pydantic.Field(default_factory=list)


class ApiCallData(pydantic.BaseModel):
    """Output of the API call collector."""

    model_config = CAMEL_CASE_CONFIG

    saved_calls: list[SavedCall] = pydantic.Field(default_factory=list)


# ============================================================================
# Fields collector
# ============================================================================


class FillEvent(pydantic.BaseModel):
    """A field was filled with a tracked value."""

    model_config = CAMEL_CASE_CONFIG

    type: Literal["fill"] = "fill"
    time: float
    field: SelectorChain | None = None


class SubmitEvent(pydantic.BaseModel):
    """A filled field was submitted."""

    model_config = CAMEL_CASE_CONFIG

    type: Literal["submit"] = "submit"
    time: float
    field: SelectorChain | None = None


class ClickLinkEvent(pydantic.BaseModel):
    """A link was clicked to reach another page."""

    model_config = CAMEL_CASE_CONFIG

    type: Literal["link-click"] = "link-click"
    time: float
    link: SelectorChain | None = None


FieldsCollectorEvent = Annotated[
    FillEvent | SubmitEvent | ClickLinkEvent,
    pydantic.Field(discriminator="type"),
]


class DomPasswordLeak(pydantic.BaseModel):
    """The password was written into a DOM attribute."""

    model_config = CAMEL_CASE_CONFIG

    time: float
    attribute: str
    selector: SelectorChain
    frame_stack: list[str] = pydantic.Field(default_factory=list)


class CollectorError(pydantic.BaseModel):
    """An entry in the fields collector error log."""

    level: Literal["warning", "error"]
    context: list[Any] = pydantic.Field(default_factory=list)
    error: str


class FieldsCollectorData(pydantic.BaseModel):
    """Output of the field discovery, fill, and submit collector."""

    model_config = CAMEL_CASE_CONFIG

    fields: list[dict[str, Any]] = pydantic.Field(default_factory=list)
    links: list[dict[str, Any]] | None = None
    events: list[FieldsCollectorEvent] = pydantic.Field(default_factory=list)
    visited_targets: list[VisitedTarget] = pydantic.Field(default_factory=list)
    password_leaks: list[DomPasswordLeak] = pydantic.Field(default_factory=list)
    errors: list[CollectorError] = pydantic.Field(default_factory=list)


# ============================================================================
# Crawl result
# ============================================================================


class CollectorData(pydantic.BaseModel):
    """Per-collector output; ``None`` means that collector crashed."""

    model_config = CAMEL_CASE_CONFIG

    requests: list[RequestRecord] | None = None
    fields: FieldsCollectorData | None = None
    apis: ApiCallData | None = None


class CrawlResult(pydantic.BaseModel):
    """Everything recorded during the crawl of one site."""

    model_config = CAMEL_CASE_CONFIG

    initial_url: str
    final_url: str
    test_started: float
    test_finished: float
    data: CollectorData = pydantic.Field(default_factory=CollectorData)
