from __future__ import annotations

import pytest
import requests

from scorecard_api import gemini_client
from scorecard_api.gemini_client import GenerationError, filter_model_ids


class FakeResponse:
    def __init__(self, status_code=200, data=None, text=""):
        self.status_code = status_code
        self._data = data
        self.text = text

    def json(self):
        if self._data is None:
            raise ValueError("no json")
        return self._data


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(gemini_client, "GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(gemini_client, "GEMINI_BASE_URL", "https://example.test/v1")


def test_filter_model_ids():
    names = [
        "models/gemini-1.0-pro",
        "models/gemini-1.5-flash",
        "models/gemini-1.5-flash-lite",
        "models/text-embedding-004",
        "models/gemini-pro-deprecated",
        "models/gemini-2.0-flash",
        "",
    ]
    assert filter_model_ids(names) == ["gemini-2.0-flash", "gemini-1.5-flash", "gemini-1.0-pro"]


def test_list_models_is_cached(api_key, monkeypatch):
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append((url, params))
        return FakeResponse(data={"models": [{"name": "models/gemini-1.5-pro"}, {"name": "models/gemini-2.0-flash"}]})

    monkeypatch.setattr(gemini_client.requests, "get", fake_get)

    assert gemini_client.list_models() == ["gemini-2.0-flash", "gemini-1.5-pro"]
    assert gemini_client.list_models() == ["gemini-2.0-flash", "gemini-1.5-pro"]
    assert len(calls) == 1
    assert calls[0] == ("https://example.test/v1/models", {"key": "test-key"})


def test_list_models_empty_listing(api_key, monkeypatch):
    monkeypatch.setattr(
        gemini_client.requests, "get",
        lambda url, params=None, timeout=None: FakeResponse(data={"models": [{"name": "models/embed-1"}]}),
    )
    with pytest.raises(GenerationError):
        gemini_client.list_models()


def test_generate_posts_prompt_and_joins_parts(api_key, monkeypatch):
    seen = {}

    def fake_post(url, params=None, json=None, timeout=None):
        seen.update(url=url, json=json, timeout=timeout)
        return FakeResponse(data={"candidates": [{"content": {"parts": [{"text": "{\"a\""}, {"text": ": 1}"}]}}]})

    monkeypatch.setattr(gemini_client.requests, "post", fake_post)

    out = gemini_client.generate("gemini-2.0-flash", "hello")

    assert out == '{"a": 1}'
    assert seen["url"] == "https://example.test/v1/models/gemini-2.0-flash:generateContent"
    assert seen["json"]["contents"][0]["parts"][0]["text"] == "hello"
    assert seen["timeout"] == gemini_client.GENERATION_TIMEOUT_SECONDS


def test_generate_timeout_is_flagged(api_key, monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(gemini_client.requests, "post", fake_post)

    with pytest.raises(GenerationError) as info:
        gemini_client.generate("m1", "hello")
    assert info.value.timeout is True


def test_generate_http_error_carries_status(api_key, monkeypatch):
    monkeypatch.setattr(
        gemini_client.requests, "post",
        lambda *a, **k: FakeResponse(503, data={"error": {"message": "The model is overloaded."}}),
    )
    with pytest.raises(GenerationError) as info:
        gemini_client.generate("m1", "hello")
    assert info.value.status_code == 503
    assert "overloaded" in str(info.value)


def test_generate_without_candidates(api_key, monkeypatch):
    monkeypatch.setattr(
        gemini_client.requests, "post",
        lambda *a, **k: FakeResponse(data={"candidates": [], "promptFeedback": {"blockReason": "OTHER"}}),
    )
    with pytest.raises(GenerationError):
        gemini_client.generate("m1", "hello")


def test_missing_api_key(monkeypatch):
    monkeypatch.setattr(gemini_client, "GEMINI_API_KEY", "")
    with pytest.raises(GenerationError):
        gemini_client.generate("m1", "hello")
