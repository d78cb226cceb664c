"""Tests for leak_detect.config and searcher construction."""

from __future__ import annotations

import pytest

from leak_detect import config
from leak_detect.analysis.leak_search import searchers_for
from tests.factories import FakeSearcher


class TestFillValues:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("LEAK_DETECT_FILL_EMAIL", raising=False)
        monkeypatch.delenv("LEAK_DETECT_FILL_PASSWORD", raising=False)
        fill = config.FillValues()
        assert fill.email == config.DEFAULT_FILL_EMAIL
        assert fill.password == config.DEFAULT_FILL_PASSWORD
        assert fill.validate_config() is None

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LEAK_DETECT_FILL_PASSWORD", "hunter2")
        assert config.FillValues().password == "hunter2"

    def test_identical_values_rejected(self) -> None:
        assert config.FillValues(email="same", password="same").validate_config() is not None

    def test_empty_value_rejected(self) -> None:
        assert config.FillValues(email="", password="x").validate_config() is not None

    def test_secrets_password_first(self) -> None:
        fill = config.FillValues(email="e@example.com", password="pw")
        assert [(s.type, s.value) for s in fill.secrets()] == [("password", "pw"), ("email", "e@example.com")]


class TestStreamSettings:
    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LEAK_DETECT_STREAM_TIMEOUT_MS", "500")
        assert config.StreamSettings().timeout_ms == 500

    def test_rejects_non_positive(self) -> None:
        with pytest.raises(ValueError):
            config.StreamSettings(timeout_ms=0)


class TestSearchersFor:
    def test_one_per_secret(self) -> None:
        fill = config.FillValues(email="e@example.com", password="pw")
        searchers = searchers_for(fill.secrets(), FakeSearcher)
        assert list(searchers) == ["password", "email"]
        assert searchers["email"].value == "e@example.com"
