# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""OpenAI Responses API adapters for the recommender and format advisor ports."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Final

import requests
from pydantic import ValidationError

from ..config import OpenAiSettings
from ..models import FormatRequest, FormatterRecommendation
from ..registry import DEFAULT_DEFINITIONS
from .cache import RecommendationCache
from .prompts import (
    build_format_prompt,
    build_schema_hint,
    build_score_prompt,
    build_system_prompt,
    build_user_prompt,
)
from .schema import RecommendationPayload

LOGGER = logging.getLogger(__name__)

RESPONSES_PATH: Final[str] = "/v1/responses"
_FENCE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^```[\w+-]*\n(?P<body>.*?)\n?```$", re.DOTALL)

Poster = Callable[..., requests.Response]


def extract_output_text(body: Mapping[str, Any]) -> str | None:
    """Return the text produced by a Responses API call.

    Prefers the aggregated ``output_text`` field and otherwise joins the text
    parts of every ``output[*].content[*]`` entry.
    """

    direct = body.get("output_text")
    if isinstance(direct, str) and direct.strip():
        return direct
    output = body.get("output")
    if not isinstance(output, list):
        return None
    parts: list[str] = []
    for item in output:
        content = item.get("content") if isinstance(item, dict) else None
        if not isinstance(content, list):
            continue
        for part in content:
            text = part.get("text") if isinstance(part, dict) else None
            if isinstance(text, str) and text.strip():
                parts.append(text)
    joined = "\n".join(parts)
    return joined if joined.strip() else None


def strip_markdown_fences(text: str) -> str:
    stripped = text.strip()
    match = _FENCE_PATTERN.match(stripped)
    return match.group("body") if match else stripped


class _ResponsesClient:
    """Minimal ``POST /v1/responses`` client returning decoded JSON or ``None``."""

    def __init__(self, settings: OpenAiSettings | None, *, post: Poster = requests.post) -> None:
        self._settings = settings
        self._post = post

    @property
    def settings(self) -> OpenAiSettings | None:
        if self._settings is None or not self._settings.api_key.strip():
            return None
        return self._settings

    def create(self, payload: Mapping[str, Any]) -> Mapping[str, Any] | None:
        settings = self.settings
        if settings is None:
            return None
        url = settings.base_url.rstrip("/") + RESPONSES_PATH
        try:
            response = self._post(
                url,
                json=dict(payload),
                headers={"Authorization": f"Bearer {settings.api_key}"},
                timeout=settings.timeout_seconds,
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            LOGGER.debug("OpenAI request to %s failed: %s", url, exc)
            return None
        return body if isinstance(body, dict) else None


class OpenAiRecommender:
    """Ask a model which allow-listed formatter suits a file.

    Returns ``None`` on missing credentials, HTTP failures, undecodable output
    or payloads that fail :class:`RecommendationPayload` validation.
    """

    def __init__(
        self,
        settings: OpenAiSettings | None,
        *,
        cache: RecommendationCache | None = None,
        formatter_ids: Iterable[str] | None = None,
        post: Poster = requests.post,
    ) -> None:
        self._client = _ResponsesClient(settings, post=post)
        self._cache = cache or RecommendationCache()
        ids = formatter_ids if formatter_ids is not None else (definition.id for definition in DEFAULT_DEFINITIONS)
        self._formatter_ids = tuple(ids)

    def recommend(self, request: FormatRequest) -> FormatterRecommendation | None:
        settings = self._client.settings
        if settings is None:
            return None
        key = (request.extension, request.language_id or "", request.os_info.name, settings.model)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        body = self._client.create(self._payload(settings.model, request))
        text = extract_output_text(body) if body is not None else None
        if text is None:
            return None
        try:
            payload = RecommendationPayload.model_validate_json(strip_markdown_fences(text))
        except ValidationError as exc:
            LOGGER.debug("Discarding invalid recommendation for .%s: %s", request.extension, exc)
            return None
        recommendation = payload.to_recommendation()
        self._cache.put(key, recommendation)
        return recommendation

    def _payload(self, model: str, request: FormatRequest) -> dict[str, Any]:
        return {
            "model": model,
            "input": [
                {
                    "role": "system",
                    "content": [{"type": "input_text", "text": build_system_prompt(self._formatter_ids)}],
                },
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": build_schema_hint(self._formatter_ids)},
                        {"type": "input_text", "text": build_user_prompt(request)},
                    ],
                },
            ],
            "text": {"format": {"type": "text"}},
        }


class OpenAiFormatAdvisor:
    """Best-effort scoring and last-resort formatting through the Responses API."""

    def __init__(self, settings: OpenAiSettings | None, *, post: Poster = requests.post) -> None:
        self._client = _ResponsesClient(settings, post=post)

    def score(self, extension: str, language_id: str | None, original: str, candidate: str) -> int | None:
        text = self._ask(build_score_prompt(extension, language_id, original, candidate), max_output_tokens=200)
        if text is None:
            return None
        try:
            value = json.loads(strip_markdown_fences(text)).get("score")
        except (ValueError, AttributeError):
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        return value if 0 <= value <= 100 else None

    def format(self, extension: str, language_id: str | None, content: str) -> str | None:
        text = self._ask(build_format_prompt(extension, language_id, content), max_output_tokens=4000)
        if text is None:
            return None
        formatted = strip_markdown_fences(text)
        return formatted if formatted.strip() else None

    def _ask(self, prompt: str, *, max_output_tokens: int) -> str | None:
        settings = self._client.settings
        if settings is None:
            return None
        body = self._client.create(
            {
                "model": settings.model,
                "input": [{"role": "user", "content": prompt}],
                "max_output_tokens": max_output_tokens,
            },
        )
        return extract_output_text(body) if body is not None else None


__all__ = [
    "OpenAiFormatAdvisor",
    "OpenAiRecommender",
    "extract_output_text",
    "strip_markdown_fences",
]
