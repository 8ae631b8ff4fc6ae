# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Prompt text sent to the OpenAI Responses API."""

from __future__ import annotations

from collections.abc import Iterable
from textwrap import dedent

from ..models import FormatRequest, InstallStrategy

USER_SAMPLE_CHARS = 800


def build_system_prompt(formatter_ids: Iterable[str]) -> str:
    allowed = "\n".join(f"  - {formatter_id}" for formatter_id in formatter_ids)
    strategies = ", ".join(strategy.name for strategy in InstallStrategy)
    return (
        "You are a formatter selector.\n"
        "Return ONLY valid JSON that matches the schema exactly.\n"
        "Do not include markdown, explanations outside JSON, or extra keys.\n"
        "Choose a formatter ONLY from this allow-list of formatter_id values:\n"
        f"{allowed}\n\n"
        f"Install strategies must be one of: {strategies}.\n"
        "run_args must contain ONLY flags that are safe and commonly used."
    )


def build_schema_hint(formatter_ids: Iterable[str]) -> str:
    ids = "|".join(formatter_ids)
    strategies = "|".join(strategy.name for strategy in InstallStrategy)
    return dedent(
        f"""\
        JSON schema:
        {{
          "formatter_id": "{ids}",
          "version": "stable version string (e.g. 3.3.3)",
          "install_strategy": "{strategies}",
          "run_args": ["..."],
          "confidence": 0.0,
          "rationale": "short"
        }}""",
    )


def build_user_prompt(request: FormatRequest) -> str:
    sample = (request.sample or "")[:USER_SAMPLE_CHARS]
    host = " ".join(part for part in (request.host_info.name, request.host_info.build) if part) or "unknown"
    return (
        "Select the best formatter for this file.\n\n"
        f"extension: {request.extension}\n"
        f"languageId: {request.language_id or 'unknown'}\n"
        f"os: {request.os_info.name} {request.os_info.version} ({request.os_info.arch})\n"
        f"host: {host}\n"
        f"preferExistingFormatterFirst: {str(request.prefer_existing_formatter_first).lower()}\n\n"
        f"First {USER_SAMPLE_CHARS} chars sample (may be empty):\n"
        f"{sample}"
    )


def build_score_prompt(extension: str, language_id: str | None, original: str, candidate: str) -> str:
    return (
        "You are a strict code-formatting judge.\n\n"
        "Rate ONLY the formatting quality of the candidate output for the given file type.\n"
        "Score must be an integer 0..100.\n\n"
        "Consider indentation consistency, tag and brace integrity (must not break syntax),\n"
        "spacing normalization and common best practices for this language.\n\n"
        'Output MUST be JSON only: {"score": <int>}\n\n'
        f"File extension: .{extension}\n"
        f"Language id: {language_id or 'unknown'}\n\n"
        f"ORIGINAL:\n---\n{original}\n---\n\n"
        f"CANDIDATE:\n---\n{candidate}\n---"
    )


def build_format_prompt(extension: str, language_id: str | None, content: str) -> str:
    return (
        "Format the following file content using best practices for its language.\n"
        "Return ONLY the formatted content. No explanations. No markdown fences.\n\n"
        f"File extension: .{extension}\n"
        f"Language id: {language_id or 'unknown'}\n\n"
        f"CONTENT:\n---\n{content}\n---"
    )


__all__ = [
    "USER_SAMPLE_CHARS",
    "build_format_prompt",
    "build_schema_hint",
    "build_score_prompt",
    "build_system_prompt",
    "build_user_prompt",
]
