# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Narrow interfaces through which hosts plug into the pipeline.

Each port has a null implementation so a front end only wires the
capabilities it actually has.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from .models import (
    Executable,
    FormatRequest,
    FormatterDefinition,
    FormatterRecommendation,
    InstallResult,
    InstallStrategy,
    RunResult,
)


@runtime_checkable
class InstallerPort(Protocol):
    """Resolve or provision an executable for a validated plan."""

    def ensure_installed(
        self,
        definition: FormatterDefinition,
        version: str,
        strategy: InstallStrategy,
    ) -> InstallResult: ...


@runtime_checkable
class RunnerPort(Protocol):
    """Execute a formatter against one file."""

    def run(
        self,
        definition: FormatterDefinition,
        executable: Executable,
        args: Sequence[str],
        file_path: str,
        *,
        cancel_event: threading.Event | None = None,
    ) -> RunResult: ...


@runtime_checkable
class FileClassifier(Protocol):
    """Resolve a file's extension, language and a bounded content sample."""

    def classify(self, file_path: str) -> tuple[str, str | None]: ...

    def sample(self, file_path: str, max_chars: int = 2000) -> str | None: ...


@runtime_checkable
class NativeFormatter(Protocol):
    """Host-provided formatter (IDE, build tool) attempted after external tools."""

    def try_format(self, file_path: str) -> bool: ...


@runtime_checkable
class ContentWriter(Protocol):
    """Persist formatted text; must not expose partially written files."""

    def write_text(self, file_path: str, content: str) -> bool: ...


@runtime_checkable
class AiRecommender(Protocol):
    """Suggest a formatter plan. Returns ``None`` whenever unavailable."""

    def recommend(self, request: FormatRequest) -> FormatterRecommendation | None: ...


@runtime_checkable
class AiFormatAdvisor(Protocol):
    """Best-effort AI scoring and rewriting; never raises into the pipeline."""

    def score(self, extension: str, language_id: str | None, original: str, candidate: str) -> int | None: ...

    def format(self, extension: str, language_id: str | None, content: str) -> str | None: ...


@runtime_checkable
class ConsentPrompter(Protocol):
    """Ask the user whether a formatter may be installed and run."""

    def ask_to_trust(self, definition: FormatterDefinition, plan: FormatterRecommendation) -> bool: ...


class NoOpNativeFormatter:
    def try_format(self, file_path: str) -> bool:
        return False


class NoOpRecommender:
    def recommend(self, request: FormatRequest) -> FormatterRecommendation | None:
        return None


class NoOpFormatAdvisor:
    def score(self, extension: str, language_id: str | None, original: str, candidate: str) -> int | None:
        return None

    def format(self, extension: str, language_id: str | None, content: str) -> str | None:
        return None


class StaticConsentPrompter:
    """Prompter that always gives the same answer, for unattended runs."""

    def __init__(self, answer: bool) -> None:
        self._answer = answer

    def ask_to_trust(self, definition: FormatterDefinition, plan: FormatterRecommendation) -> bool:
        return self._answer


__all__ = [
    "AiFormatAdvisor",
    "AiRecommender",
    "ConsentPrompter",
    "ContentWriter",
    "FileClassifier",
    "InstallerPort",
    "NativeFormatter",
    "NoOpFormatAdvisor",
    "NoOpNativeFormatter",
    "NoOpRecommender",
    "RunnerPort",
    "StaticConsentPrompter",
]
