# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures and recording fakes for the formatguard ports."""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from formatguard.consent import InMemoryConsentStore
from formatguard.models import (
    Executable,
    FormatRequest,
    FormatterDefinition,
    FormatterRecommendation,
    InstallResult,
    InstallStrategy,
    OsInfo,
    RunResult,
)


@dataclass
class RecordingInstaller:
    """Installer fake returning a fixed result and recording every call."""

    result: InstallResult = field(
        default_factory=lambda: InstallResult.success(
            "Resolved fake",
            tool_home=None,
            executable=Executable("/bin/fake"),
        ),
    )
    calls: list[tuple[str, str, InstallStrategy]] = field(default_factory=list)

    def ensure_installed(
        self,
        definition: FormatterDefinition,
        version: str,
        strategy: InstallStrategy,
    ) -> InstallResult:
        self.calls.append((definition.id, version, strategy))
        return self.result


@dataclass
class RecordingRunner:
    """Runner fake; ``effect`` may rewrite the target file to simulate formatting."""

    result: RunResult = field(default_factory=lambda: RunResult(ok=True, stdout="", stderr="", exit_code=0))
    effect: Callable[[Path], None] | None = None
    calls: list[tuple[str, tuple[str, ...], str]] = field(default_factory=list)

    def run(
        self,
        definition: FormatterDefinition,
        executable: Executable,
        args: Sequence[str],
        file_path: str,
        *,
        cancel_event: threading.Event | None = None,
    ) -> RunResult:
        self.calls.append((definition.id, tuple(args), file_path))
        if self.effect is not None and self.result.ok:
            self.effect(Path(file_path))
        return self.result


@dataclass
class ScriptedNative:
    ok: bool = False
    effect: Callable[[Path], None] | None = None
    calls: list[str] = field(default_factory=list)

    def try_format(self, file_path: str) -> bool:
        self.calls.append(file_path)
        if self.ok and self.effect is not None:
            self.effect(Path(file_path))
        return self.ok


@dataclass
class ScriptedRecommender:
    recommendation: FormatterRecommendation | None = None
    calls: int = 0

    def recommend(self, request: FormatRequest) -> FormatterRecommendation | None:
        self.calls += 1
        return self.recommendation


@dataclass
class ScriptedAdvisor:
    text: str | None = None
    calls: int = 0

    def score(self, extension: str, language_id: str | None, original: str, candidate: str) -> int | None:
        return None

    def format(self, extension: str, language_id: str | None, content: str) -> str | None:
        self.calls += 1
        return self.text


@dataclass
class ScriptedPrompter:
    answer: bool
    asked: list[str] = field(default_factory=list)

    def ask_to_trust(self, definition: FormatterDefinition, plan: FormatterRecommendation) -> bool:
        self.asked.append(definition.id)
        return self.answer


def make_definition(
    formatter_id: str = "black",
    *,
    extensions: Sequence[str] = ("py",),
    strategies: Sequence[InstallStrategy] = (InstallStrategy.PIP,),
    allowed_args: Sequence[str] = ("--quiet",),
    template: tuple[str, ...] | None = None,
    package: str | None = None,
) -> FormatterDefinition:
    kwargs = {} if template is None else {"command_template": template}
    return FormatterDefinition(
        id=formatter_id,
        display_name=formatter_id.title(),
        supported_extensions=frozenset(extensions),
        install_strategies=frozenset(strategies),
        allowed_args=frozenset(allowed_args),
        package=package,
        **kwargs,
    )


def make_plan(
    formatter_id: str = "black",
    *,
    version: str = "24.8.0",
    strategy: InstallStrategy = InstallStrategy.PIP,
    args: Sequence[str] = ("--quiet",),
    confidence: float = 1.0,
) -> FormatterRecommendation:
    return FormatterRecommendation(
        formatter_id=formatter_id,
        version=version,
        install_strategy=strategy,
        run_args=tuple(args),
        confidence=confidence,
        rationale="test",
    )


@pytest.fixture
def os_info() -> OsInfo:
    return OsInfo(name="Linux", arch="x86_64", version="6.0")


@pytest.fixture
def make_request(os_info: OsInfo) -> Callable[..., FormatRequest]:
    """Return a factory building requests for files on disk."""

    def _factory(path: Path, **overrides: object) -> FormatRequest:
        values: dict[str, object] = {
            "file_path": str(path),
            "extension": path.suffix.lstrip("."),
            "os_info": os_info,
        }
        values.update(overrides)
        return FormatRequest(**values)  # type: ignore[arg-type]

    return _factory


@pytest.fixture
def consent() -> InMemoryConsentStore:
    return InMemoryConsentStore()
