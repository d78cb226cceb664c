"""Tests for leak_detect.models — validation and camelCase parsing."""

from __future__ import annotations

import pydantic
import pytest

from leak_detect.models import crawl_data, leaks, remote


class TestFindEntry:
    def test_requires_one_location(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            leaks.FindEntry(type="password", part="url")

    def test_rejects_both_locations(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            leaks.FindEntry(type="password", part="url", request_index=0, visited_target_index=0)

    def test_header_required_for_header_part(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            leaks.FindEntry(type="password", part="header", request_index=0)

    def test_header_rejected_for_other_parts(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            leaks.FindEntry(type="password", part="body", header="x", request_index=0)

    def test_camel_case_round_trip(self) -> None:
        entry = leaks.FindEntry.model_validate(
            {"type": "email", "visitedTargetIndex": 2, "part": "url", "encodings": ["uri"]}
        )
        assert entry.visited_target_index == 2
        dumped = entry.model_dump(by_alias=True, exclude_none=True)
        assert dumped == {"type": "email", "visitedTargetIndex": 2, "part": "url", "encodings": ["uri"]}


class TestCrawlData:
    def test_request_record_from_collector_json(self) -> None:
        request = crawl_data.RequestRecord.model_validate({
            "url": "https://a.example/",
            "requestHeaders": {"cookie": "a=b"},
            "postData": "x=1",
            "wallTime": 12.5,
            "stack": ["at f (https://a.example/a.js:1:1)"],
            "thirdParty": False,
            "tracker": False,
        })
        assert request.request_headers == {"cookie": "a=b"}
        assert request.post_data == "x=1"
        assert request.third_party is False

    def test_saved_call_stack_info(self) -> None:
        call = crawl_data.SavedCall.model_validate({
            "description": "HTMLInputElement.prototype.value",
            "custom": {"selectorChain": ["#pw"], "type": "password", "value": "v", "time": 1},
            "stack": ["a", "b"],
            "stackInfo": [{"thirdParty": True}, None],
        })
        assert call.custom.selector_chain == ["#pw"]
        assert call.stack_info[0].third_party is True
        assert call.stack_info[1] is None

    def test_events_discriminated(self) -> None:
        fields = crawl_data.FieldsCollectorData.model_validate({
            "events": [
                {"type": "fill", "time": 1},
                {"type": "submit", "time": 2},
                {"type": "link-click", "time": 3},
            ],
        })
        assert [type(e) for e in fields.events] == [
            crawl_data.FillEvent,
            crawl_data.SubmitEvent,
            crawl_data.ClickLinkEvent,
        ]

    def test_collector_data_defaults_to_missing(self) -> None:
        data = crawl_data.CollectorData()
        assert data.requests is None
        assert data.fields is None
        assert data.apis is None


class TestRemoteObject:
    def test_ignores_unknown_keys(self) -> None:
        obj = remote.RemoteObject.model_validate({
            "type": "object",
            "subtype": "array",
            "className": "Array",
            "description": "Array(3)",
            "objectId": "123.1",
            "preview": {"overflow": False},
        })
        assert obj.class_name == "Array"
        assert obj.object_id == "123.1"
