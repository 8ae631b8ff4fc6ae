# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
import requests
from pydantic import ValidationError

from formatguard.ai import OpenAiFormatAdvisor, OpenAiRecommender, RecommendationCache, RecommendationPayload
from formatguard.ai.openai import extract_output_text, strip_markdown_fences
from formatguard.ai.prompts import build_user_prompt
from formatguard.config import OpenAiSettings
from formatguard.models import InstallStrategy

SETTINGS = OpenAiSettings(api_key="sk-test", base_url="https://api.example.test/")

VALID_PAYLOAD = {
    "formatter_id": "black",
    "version": "24.8.0",
    "install_strategy": "PIP",
    "run_args": ["--quiet"],
    "confidence": 85,
    "rationale": "Black is the Python default.",
    "unexpected": "ignored",
}


class _FakeResponse:
    def __init__(self, body: object, status: int = 200) -> None:
        self._body = body
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> object:
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


@dataclass
class FakePost:
    responses: list[_FakeResponse]
    calls: list[dict[str, Any]] = field(default_factory=list)

    def __call__(self, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append({"url": url, **kwargs})
        return self.responses.pop(0)


def _text_response(text: str) -> _FakeResponse:
    return _FakeResponse({"output_text": text})


def test_payload_normalises_strategy_and_percent_confidence() -> None:
    payload = RecommendationPayload.model_validate(VALID_PAYLOAD)

    recommendation = payload.to_recommendation()

    assert recommendation.install_strategy is InstallStrategy.PIP
    assert recommendation.confidence == pytest.approx(0.85)
    assert recommendation.run_args == ("--quiet",)


def test_payload_normalises_formatter_id_casing() -> None:
    payload = RecommendationPayload.model_validate({**VALID_PAYLOAD, "formatter_id": "  Prettier "})

    assert payload.to_recommendation().formatter_id == "prettier"


@pytest.mark.parametrize(
    "override",
    [
        {"install_strategy": "cargo"},
        {"install_strategy": 3},
        {"confidence": 150},
        {"confidence": "0.5"},
        {"run_args": "--quiet"},
        {"formatter_id": ""},
        {"formatter_id": "   "},
    ],
)
def test_payload_rejects_malformed_fields(override: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        RecommendationPayload.model_validate({**VALID_PAYLOAD, **override})


def test_extract_output_text_joins_content_parts() -> None:
    body = {
        "output": [
            {"type": "message", "content": [{"type": "output_text", "text": "first"}]},
            {"type": "reasoning"},
            {"content": [{"text": "second"}, {"text": "  "}]},
        ],
    }

    assert extract_output_text(body) == "first\nsecond"
    assert extract_output_text({"output": []}) is None
    assert extract_output_text({"output_text": "direct"}) == "direct"


def test_strip_markdown_fences() -> None:
    assert strip_markdown_fences("```python\nx = 1\n```") == "x = 1"
    assert strip_markdown_fences("  plain  ") == "plain"


def test_recommender_posts_and_caches(tmp_path: Path, make_request) -> None:
    post = FakePost([_text_response(json.dumps(VALID_PAYLOAD))])
    recommender = OpenAiRecommender(SETTINGS, post=post)
    request = make_request(tmp_path / "app.py")

    first = recommender.recommend(request)
    second = recommender.recommend(request)

    assert first is not None and first == second
    assert first.formatter_id == "black"
    assert len(post.calls) == 1
    call = post.calls[0]
    assert call["url"] == "https://api.example.test/v1/responses"
    assert call["headers"] == {"Authorization": "Bearer sk-test"}
    assert call["json"]["model"] == SETTINGS.model
    assert call["timeout"] == SETTINGS.timeout_seconds


def test_recommender_accepts_fenced_json(tmp_path: Path, make_request) -> None:
    post = FakePost([_text_response(f"```json\n{json.dumps(VALID_PAYLOAD)}\n```")])

    recommendation = OpenAiRecommender(SETTINGS, post=post).recommend(make_request(tmp_path / "app.py"))

    assert recommendation is not None


@pytest.mark.parametrize(
    "response",
    [
        _FakeResponse({}, status=500),
        _FakeResponse(ValueError("not json")),
        _text_response("I would suggest black."),
        _text_response(json.dumps({**VALID_PAYLOAD, "install_strategy": "brew"})),
    ],
)
def test_recommender_returns_none_on_bad_responses(tmp_path: Path, make_request, response) -> None:
    cache = RecommendationCache()
    recommender = OpenAiRecommender(SETTINGS, cache=cache, post=FakePost([response]))
    request = make_request(tmp_path / "app.py")

    assert recommender.recommend(request) is None
    assert cache.get((request.extension, "", request.os_info.name, SETTINGS.model)) is None


def test_recommender_without_api_key_never_posts(tmp_path: Path, make_request) -> None:
    post = FakePost([])

    assert OpenAiRecommender(None, post=post).recommend(make_request(tmp_path / "a.py")) is None
    assert OpenAiRecommender(OpenAiSettings(api_key="  "), post=post).recommend(make_request(tmp_path / "a.py")) is None
    assert post.calls == []


def test_recommender_propagates_transport_errors_as_none(tmp_path: Path, make_request) -> None:
    def failing_post(url: str, **kwargs: Any):
        raise requests.ConnectionError("offline")

    assert OpenAiRecommender(SETTINGS, post=failing_post).recommend(make_request(tmp_path / "a.py")) is None


def test_cache_expires_entries() -> None:
    now = [0.0]
    cache = RecommendationCache(ttl_seconds=10, clock=lambda: now[0])
    recommendation = RecommendationPayload.model_validate(VALID_PAYLOAD).to_recommendation()
    key = ("py", "python", "Linux", "gpt-4o-mini")
    cache.put(key, recommendation)

    now[0] = 5.0
    assert cache.get(key) == recommendation
    now[0] = 11.0
    assert cache.get(key) is None


def test_advisor_format_strips_fences() -> None:
    post = FakePost([_text_response("```python\nx = 1\n```")])

    assert OpenAiFormatAdvisor(SETTINGS, post=post).format("py", "python", "x=1") == "x = 1"
    assert post.calls[0]["json"]["max_output_tokens"] == 4000


@pytest.mark.parametrize(
    ("text", "expected"),
    [('{"score": 87}', 87), ('{"score": 101}', None), ('{"score": true}', None), ("[1]", None), ("nope", None)],
)
def test_advisor_score(text: str, expected: int | None) -> None:
    advisor = OpenAiFormatAdvisor(SETTINGS, post=FakePost([_text_response(text)]))

    assert advisor.score("py", "python", "x=1", "x = 1") == expected


def test_user_prompt_truncates_sample(tmp_path: Path, make_request) -> None:
    request = make_request(tmp_path / "app.py", sample="y" * 5000, language_id="python")

    prompt = build_user_prompt(request)

    assert "y" * 800 in prompt
    assert "y" * 801 not in prompt
    assert "python" in prompt
