# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Per-file formatting decision pipeline.

The pipeline walks one file through classification, extension policy, the
external-formatter path, the host's native formatter and finally the
optional AI rewrite. Each decision appends a :class:`FormatStep` so the
returned :class:`FormatResult` explains exactly which path was taken.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Final, TypeVar

from .classifier import SimpleFileClassifier
from .consent import ConsentStore
from .models import (
    FormatRequest,
    FormatResult,
    FormatStep,
    FormatStepType,
    FormatterDefinition,
    FormatterRecommendation,
)
from .plans import default_plan_for, order_candidates
from .ports import (
    AiFormatAdvisor,
    AiRecommender,
    ConsentPrompter,
    ContentWriter,
    FileClassifier,
    InstallerPort,
    NativeFormatter,
    NoOpFormatAdvisor,
    NoOpNativeFormatter,
    NoOpRecommender,
    RunnerPort,
    StaticConsentPrompter,
)
from .registry import FormatterRegistry
from .runner import TRUNCATION_MARKER
from .safety import SafetyPolicy
from .writer import AtomicFileWriter

LOGGER = logging.getLogger(__name__)

STDERR_EXCERPT_CHARS: Final[int] = 400
AI_CONTENT_LIMIT: Final[int] = 200_000
NO_FORMATTER_SUCCEEDED: Final[str] = "File could not be formatted (no formatter succeeded)."

T = TypeVar("T")


class FormatRoute(str, Enum):
    """Top-level branch chosen for an extension."""

    NO_OP = "no_op"
    NATIVE_ONLY = "native_only"
    EXTERNAL_FIRST = "external_first"


@dataclass(frozen=True, slots=True)
class FormatPolicy:
    """Extension routing table.

    Attributes:
        no_op_extensions: Extensions reported as formatted without any work.
        native_only_extensions: Extensions only the host's native formatter may touch.
    """

    no_op_extensions: frozenset[str] = frozenset({"cmd", "bat"})
    native_only_extensions: frozenset[str] = frozenset({"xml", "java", "kt", "kts", "json"})

    def route(self, extension: str) -> FormatRoute:
        if extension in self.no_op_extensions:
            return FormatRoute.NO_OP
        if extension in self.native_only_extensions:
            return FormatRoute.NATIVE_ONLY
        return FormatRoute.EXTERNAL_FIRST

    def known_extensions(self) -> frozenset[str]:
        return self.no_op_extensions | self.native_only_extensions


@dataclass(slots=True)
class _Trail:
    steps: list[FormatStep] = field(default_factory=list)

    def add(self, step_type: FormatStepType, message: str, *, ok: bool = True) -> None:
        LOGGER.debug("[%s] %s", step_type.value, message)
        self.steps.append(FormatStep(step_type, message, ok))


@dataclass(frozen=True, slots=True)
class _ExternalOutcome:
    formatter: str | None = None
    canceled: bool = False


def _excerpt(stderr: str) -> str:
    text = stderr.replace(TRUNCATION_MARKER, " ").strip()
    return text[:STDERR_EXCERPT_CHARS]


class FormatPipeline:
    """Format a single file using the safest available path.

    Only the registry, installer, runner and consent store are required;
    every other port defaults to a null implementation. The consent prompter
    defaults to declining, so an unattended pipeline never installs an
    untrusted formatter unless ``allow_auto_install`` is set on the request.
    """

    def __init__(
        self,
        *,
        registry: FormatterRegistry,
        installer: InstallerPort,
        runner: RunnerPort,
        consent: ConsentStore,
        prompter: ConsentPrompter | None = None,
        classifier: FileClassifier | None = None,
        native: NativeFormatter | None = None,
        writer: ContentWriter | None = None,
        recommender: AiRecommender | None = None,
        advisor: AiFormatAdvisor | None = None,
        safety: SafetyPolicy | None = None,
        policy: FormatPolicy | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._registry = registry
        self._installer = installer
        self._runner = runner
        self._consent = consent
        self._prompter = prompter or StaticConsentPrompter(False)
        self._classifier = classifier or SimpleFileClassifier()
        self._native = native or NoOpNativeFormatter()
        self._writer = writer or AtomicFileWriter()
        self._recommender = recommender or NoOpRecommender()
        self._advisor = advisor or NoOpFormatAdvisor()
        self._safety = safety or SafetyPolicy()
        self._policy = policy or FormatPolicy()
        self._cancel_event = cancel_event

    @property
    def policy(self) -> FormatPolicy:
        return self._policy

    @property
    def registry(self) -> FormatterRegistry:
        return self._registry

    def execute(self, base_request: FormatRequest) -> FormatResult:
        """Run the decision pipeline for ``base_request``.

        Args:
            base_request: Request describing the file and the caller's permissions.

        Returns:
            FormatResult: Audit trail plus, for dry-run AI rewrites, the text
            that would have been written. ``errors`` is non-empty only when
            no path succeeded.
        """

        trail = _Trail()
        trail.add(FormatStepType.CLASSIFY, "Classifying file…")
        request = self._classify(base_request)
        language = f" (language={request.language_id})" if request.language_id else ""
        trail.add(FormatStepType.CLASSIFY, f"Detected extension .{request.extension}{language}")

        route = self._policy.route(request.extension)
        if route is FormatRoute.NO_OP:
            trail.add(FormatStepType.POLICY, f"Formatting skipped for .{request.extension} by policy.")
            trail.add(FormatStepType.DONE, "Reported as formatted by policy.")
            return FormatResult.build(trail.steps)

        if route is FormatRoute.NATIVE_ONLY:
            trail.add(FormatStepType.POLICY, f".{request.extension} is formatted by the native formatter only.")
            if self._try_native(request, trail):
                trail.add(FormatStepType.DONE, "Formatted using native formatter.")
                return FormatResult.build(trail.steps, formatter="native")
            trail.add(FormatStepType.DONE, "Native formatter failed.", ok=False)
            return FormatResult.build(trail.steps, errors=["Native formatter failed."])

        trail.add(FormatStepType.POLICY, f".{request.extension} uses external formatters first.")
        original = self._snapshot(request.file_path)

        external = self._run_external(request, trail)
        if external.formatter is not None:
            trail.add(FormatStepType.DONE, f"Formatted using {external.formatter}.")
            return FormatResult.build(trail.steps, formatter=external.formatter)
        if external.canceled:
            trail.add(FormatStepType.DONE, "Canceled.", ok=False)
            return FormatResult.build(trail.steps, errors=["Formatting canceled."])

        trail.add(FormatStepType.NATIVE_FORMAT, "External formatters unavailable; attempting native formatter…")
        if self._try_native(request, trail):
            trail.add(FormatStepType.DONE, "Formatted using native formatter.")
            return FormatResult.build(trail.steps, formatter="native")

        errors: list[str] = []
        if request.ai_enabled and request.network_allowed:
            result = self._ai_fallback(request, original, trail, errors)
            if result is not None:
                return result

        errors.append(NO_FORMATTER_SUCCEEDED)
        trail.add(FormatStepType.DONE, "Formatting failed (no applicable formatter).", ok=False)
        return FormatResult.build(trail.steps, errors=errors)

    def _classify(self, request: FormatRequest) -> FormatRequest:
        extension, language_id = self._classifier.classify(request.file_path)
        sample = None if request.sample is not None else self._classifier.sample(request.file_path)
        return request.classified(extension=extension.lower(), language_id=language_id, sample=sample)

    def _guarded(self, trail: _Trail, step_type: FormatStepType, label: str, call: Callable[[], T]) -> T | None:
        """Invoke ``call`` and convert unexpected exceptions into a failed step."""

        try:
            return call()
        except Exception as exc:
            LOGGER.exception("%s raised unexpectedly", label)
            trail.add(step_type, f"{label} failed unexpectedly: {exc}", ok=False)
            return None

    def _try_native(self, request: FormatRequest, trail: _Trail) -> bool:
        trail.add(FormatStepType.NATIVE_FORMAT, "Formatting using native formatter…")
        ok = self._guarded(
            trail,
            FormatStepType.NATIVE_FORMAT,
            "Native formatter",
            lambda: self._native.try_format(request.file_path),
        )
        if not ok:
            trail.add(FormatStepType.NATIVE_FORMAT, "Native formatter did not format the file.", ok=False)
        return bool(ok)

    def _recommend(self, request: FormatRequest, trail: _Trail) -> FormatterRecommendation | None:
        if not request.network_allowed:
            trail.add(FormatStepType.SELECT, "Network disabled; using deterministic default plans.")
            return None
        recommendation = self._guarded(
            trail,
            FormatStepType.AI_RECOMMEND,
            "Recommender",
            lambda: self._recommender.recommend(request),
        )
        if recommendation is None:
            trail.add(FormatStepType.AI_RECOMMEND, "No recommendation; using deterministic default plans.")
        else:
            trail.add(
                FormatStepType.AI_RECOMMEND,
                f"Recommended {recommendation.formatter_id} {recommendation.version} "
                f"(confidence {recommendation.confidence:.2f}): {recommendation.rationale}",
            )
        return recommendation

    def _plan_for(
        self,
        candidate: FormatterDefinition,
        extension: str,
        recommendation: FormatterRecommendation | None,
    ) -> FormatterRecommendation | None:
        if recommendation is not None and recommendation.formatter_id == candidate.id:
            return recommendation
        return default_plan_for(candidate.id, extension)

    def _run_external(self, request: FormatRequest, trail: _Trail) -> _ExternalOutcome:
        candidates = self._registry.find_by_extension(request.extension)
        if not candidates:
            trail.add(FormatStepType.SELECT, f"No external formatter registered for .{request.extension}.", ok=False)
            return _ExternalOutcome()

        recommendation = self._recommend(request, trail)
        for candidate in order_candidates(request.extension, candidates):
            if self._cancel_event is not None and self._cancel_event.is_set():
                trail.add(FormatStepType.SELECT, "Canceled before trying further formatters.", ok=False)
                return _ExternalOutcome(canceled=True)
            trail.add(FormatStepType.SELECT, f"Selected formatter: {candidate.display_name}")
            plan = self._plan_for(candidate, request.extension, recommendation)
            outcome = self._attempt(request, candidate, plan, trail)
            if outcome.formatter is not None or outcome.canceled:
                return outcome
        return _ExternalOutcome()

    def _attempt(
        self,
        request: FormatRequest,
        candidate: FormatterDefinition,
        plan: FormatterRecommendation | None,
        trail: _Trail,
    ) -> _ExternalOutcome:
        name = candidate.display_name
        if plan is None:
            trail.add(FormatStepType.VALIDATE, f"No plan available for {name}; skipping.", ok=False)
            return _ExternalOutcome()

        validation = self._safety.validate(candidate, plan)
        if not validation.accepted:
            trail.add(FormatStepType.VALIDATE, f"Plan for {name} rejected: {'; '.join(validation.reasons)}", ok=False)
            return _ExternalOutcome()
        version = validation.sanitized_version or ""
        trail.add(FormatStepType.VALIDATE, f"Plan accepted: {candidate.id} {version} via {plan.install_strategy.value}")

        if not request.allow_auto_install and not self._ensure_consent(candidate, plan, trail):
            return _ExternalOutcome()

        install = self._guarded(
            trail,
            FormatStepType.ENSURE_INSTALLED,
            "Installer",
            lambda: self._installer.ensure_installed(candidate, version, plan.install_strategy),
        )
        if install is None:
            return _ExternalOutcome()
        if not install.ok or install.executable is None:
            trail.add(FormatStepType.ENSURE_INSTALLED, f"{name} unavailable: {install.message}", ok=False)
            return _ExternalOutcome()
        trail.add(FormatStepType.ENSURE_INSTALLED, install.message)

        trail.add(FormatStepType.RUN_EXTERNAL_FORMATTER, f"Running {name}…")
        executable = install.executable
        run = self._guarded(
            trail,
            FormatStepType.RUN_EXTERNAL_FORMATTER,
            "Runner",
            lambda: self._runner.run(
                candidate,
                executable,
                validation.sanitized_args,
                request.file_path,
                cancel_event=self._cancel_event,
            ),
        )
        if run is None:
            return _ExternalOutcome()
        if run.ok:
            trail.add(FormatStepType.RUN_EXTERNAL_FORMATTER, f"{name} succeeded.")
            return _ExternalOutcome(formatter=candidate.id)

        details = f"Formatter {name} failed (exit code {run.exit_code})."
        if excerpt := _excerpt(run.stderr):
            details += f" stderr={excerpt}"
        trail.add(FormatStepType.RUN_EXTERNAL_FORMATTER, details, ok=False)
        return _ExternalOutcome(canceled=run.canceled)

    def _ensure_consent(
        self,
        candidate: FormatterDefinition,
        plan: FormatterRecommendation,
        trail: _Trail,
    ) -> bool:
        trusted = self._guarded(
            trail,
            FormatStepType.CONSENT,
            "Consent store",
            lambda: self._consent.is_formatter_trusted(candidate.id),
        )
        if trusted:
            trail.add(FormatStepType.CONSENT, f"{candidate.display_name} is trusted.")
            return True
        approved = self._guarded(
            trail,
            FormatStepType.CONSENT,
            "Consent prompter",
            lambda: self._prompter.ask_to_trust(candidate, plan),
        )
        if not approved:
            trail.add(FormatStepType.CONSENT, f"Consent to install {candidate.display_name} was declined.", ok=False)
            return False
        recorded = self._guarded(trail, FormatStepType.CONSENT, "Consent store", lambda: self._record_trust(candidate))
        if not recorded:
            trail.add(FormatStepType.CONSENT, f"Consent for {candidate.display_name} could not be saved.", ok=False)
            return False
        trail.add(FormatStepType.CONSENT, f"{candidate.display_name} is now trusted.")
        return True

    def _record_trust(self, candidate: FormatterDefinition) -> bool:
        self._consent.trust_formatter(candidate.id)
        return True

    @staticmethod
    def _snapshot(file_path: str) -> str | None:
        path = Path(file_path)
        try:
            if path.stat().st_size > AI_CONTENT_LIMIT * 4:
                return None
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None
        return content if len(content) <= AI_CONTENT_LIMIT else None

    def _ai_fallback(
        self,
        request: FormatRequest,
        original: str | None,
        trail: _Trail,
        errors: list[str],
    ) -> FormatResult | None:
        if original is None:
            trail.add(FormatStepType.AI_FORMAT, "File is unreadable or too large for AI formatting.", ok=False)
            return None
        trail.add(FormatStepType.AI_FORMAT, "Attempting AI formatting as last resort (experimental)…")
        formatted = self._guarded(
            trail,
            FormatStepType.AI_FORMAT,
            "AI advisor",
            lambda: self._advisor.format(request.extension, request.language_id, original),
        )
        if formatted is None or not formatted.strip():
            trail.add(FormatStepType.AI_FORMAT, "AI advisor returned no content.", ok=False)
            return None
        if original.endswith("\n") and not formatted.endswith("\n"):
            formatted += "\n"

        if request.dry_run:
            trail.add(FormatStepType.DONE, "Dry run: AI fallback would rewrite the file.")
            return FormatResult.build(trail.steps, output=formatted, formatter="ai")

        written = self._guarded(
            trail,
            FormatStepType.AI_FORMAT,
            "Content writer",
            lambda: self._writer.write_text(request.file_path, formatted),
        )
        if written:
            trail.add(FormatStepType.DONE, "Formatted using AI fallback (experimental).")
            return FormatResult.build(trail.steps, formatter="ai")
        errors.append("AI fallback produced output but it could not be written.")
        trail.add(FormatStepType.AI_FORMAT, "Writing AI output failed.", ok=False)
        return None


__all__ = ["AI_CONTENT_LIMIT", "NO_FORMATTER_SUCCEEDED", "FormatPipeline", "FormatPolicy", "FormatRoute"]
