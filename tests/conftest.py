"""Shared fixtures for the test suite."""

from __future__ import annotations

import pytest

from leak_detect import config
from leak_detect.models import crawl_data
from tests.factories import SECRET, make_request


@pytest.fixture()
def fill() -> config.FillValues:
    """Fill values with a short, recognisable password."""
    return config.FillValues(email="user@example.com", password=SECRET)


@pytest.fixture()
def first_party_request() -> crawl_data.RequestRecord:
    """A first-party request carrying the secret in its URL."""
    return make_request("https://a.example/x?pw=s3cr3t", third_party=False, tracker=False)


@pytest.fixture()
def tracker_request() -> crawl_data.RequestRecord:
    """A tracker beacon carrying the secret in its URL."""
    return make_request(
        "https://tracker.example/beacon?v=s3cr3t",
        third_party=True,
        tracker=True,
        stack=["at send (https://tracker.example/t.js:3:7)"],
    )


@pytest.fixture()
def crawl_result(first_party_request, tracker_request) -> crawl_data.CrawlResult:
    """A crawl with both requests and a fully populated fields collector."""
    return crawl_data.CrawlResult(
        initial_url="https://a.example/",
        final_url="https://a.example/login",
        test_started=1000,
        test_finished=9500,
        data=crawl_data.CollectorData(
            requests=[first_party_request, tracker_request],
            fields=crawl_data.FieldsCollectorData(
                fields=[{"type": "password"}, {"type": "email"}],
                links=[{"href": "/about"}],
                events=[
                    crawl_data.FillEvent(time=1100),
                    crawl_data.FillEvent(time=1200),
                    crawl_data.SubmitEvent(time=1300),
                    crawl_data.ClickLinkEvent(time=1400),
                ],
            ),
            apis=crawl_data.ApiCallData(),
        ),
    )
