# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Immutable data model shared by the registry, installer, runner and pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Final

EXE_PLACEHOLDER: Final[str] = "{exe}"
ARGS_PLACEHOLDER: Final[str] = "{args}"
FILE_PLACEHOLDER: Final[str] = "{file}"

EXIT_START_FAILED: Final[int] = -1
EXIT_CANCELED: Final[int] = -2
EXIT_TIMED_OUT: Final[int] = -3


class InstallStrategy(str, Enum):
    """Enumerate the ways an executable may be provisioned."""

    NPM = "npm"
    PIP = "pip"
    GO = "go"
    BINARY = "binary"

    @classmethod
    def parse(cls, raw: str) -> InstallStrategy | None:
        """Return the strategy matching ``raw`` (case-insensitive) or ``None``.

        Args:
            raw: Strategy label such as ``"NPM"`` or ``"binary"``.

        Returns:
            InstallStrategy | None: Matching member when recognised.
        """

        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class OsInfo:
    """Operating system descriptor attached to every request."""

    name: str
    arch: str
    version: str


@dataclass(frozen=True, slots=True)
class HostInfo:
    """Descriptor of the front end driving the pipeline."""

    name: str | None = None
    build: str | None = None


@dataclass(frozen=True, slots=True)
class FormatRequest:
    """Per-file formatting request.

    The pipeline never mutates a request; :meth:`classified` returns an
    enriched copy carrying the resolved extension, language and sample.
    """

    file_path: str
    extension: str
    os_info: OsInfo
    host_info: HostInfo = field(default_factory=HostInfo)
    language_id: str | None = None
    sample: str | None = None
    prefer_existing_formatter_first: bool = True
    allow_auto_install: bool = False
    network_allowed: bool = True
    ai_enabled: bool = False
    dry_run: bool = False

    def classified(self, *, extension: str, language_id: str | None, sample: str | None) -> FormatRequest:
        """Return a copy enriched with classification results."""

        return replace(
            self,
            extension=extension,
            language_id=language_id,
            sample=self.sample if self.sample is not None else sample,
        )


@dataclass(frozen=True, slots=True)
class FormatterDefinition:
    """Allow-listed description of an external formatter.

    Attributes:
        id: Stable registry key.
        display_name: Human-readable name used in audit messages.
        supported_extensions: Lower-case extensions (without dot) handled by the tool.
        install_strategies: Strategies the installer may use for this tool.
        allowed_args: Deny-by-default argument allow-list.
        command_template: Ordered tokens; placeholders are substituted by the runner.
        package: Package or module name used by package-manager strategies.
    """

    id: str
    display_name: str
    supported_extensions: frozenset[str]
    install_strategies: frozenset[InstallStrategy]
    allowed_args: frozenset[str]
    command_template: tuple[str, ...] = (EXE_PLACEHOLDER, ARGS_PLACEHOLDER, FILE_PLACEHOLDER)
    package: str | None = None

    @property
    def package_name(self) -> str:
        """Return the package name, defaulting to the formatter id."""

        return self.package or self.id


@dataclass(frozen=True, slots=True)
class FormatterRecommendation:
    """Untrusted plan describing how to install and run a formatter."""

    formatter_id: str
    version: str
    install_strategy: InstallStrategy
    run_args: tuple[str, ...]
    confidence: float
    rationale: str
    sources: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of validating a plan against a formatter definition."""

    accepted: bool
    reasons: tuple[str, ...] = ()
    sanitized_args: tuple[str, ...] = ()
    sanitized_version: str | None = None


@dataclass(frozen=True, slots=True)
class Executable:
    """Resolved program plus any arguments that must precede the real ones.

    ``prefix_args`` holds, for example, the script path when an interpreter
    must launch the formatter (``node prettier.cjs``).
    """

    primary: str
    prefix_args: tuple[str, ...] = ()

    def argv(self) -> list[str]:
        """Return the launcher portion of a command line."""

        return [self.primary, *self.prefix_args]


@dataclass(frozen=True, slots=True)
class InstallResult:
    """Outcome of a single installation attempt."""

    ok: bool
    message: str
    tool_home: str | None = None
    executable: Executable | None = None

    @classmethod
    def success(cls, message: str, *, tool_home: str | None, executable: Executable) -> InstallResult:
        return cls(ok=True, message=message, tool_home=tool_home, executable=executable)

    @classmethod
    def failure(cls, message: str) -> InstallResult:
        return cls(ok=False, message=message)


@dataclass(frozen=True, slots=True)
class RunResult:
    """Outcome of a formatter process invocation."""

    ok: bool
    stdout: str
    stderr: str
    exit_code: int

    @property
    def timed_out(self) -> bool:
        return self.exit_code == EXIT_TIMED_OUT

    @property
    def canceled(self) -> bool:
        return self.exit_code == EXIT_CANCELED


class FormatStepType(str, Enum):
    """Phase tags recorded in the audit trail."""

    CLASSIFY = "classify"
    POLICY = "policy"
    NATIVE_FORMAT = "native_format"
    SELECT = "select"
    AI_RECOMMEND = "ai_recommend"
    VALIDATE = "validate"
    CONSENT = "consent"
    ENSURE_INSTALLED = "ensure_installed"
    RUN_EXTERNAL_FORMATTER = "run_external_formatter"
    AI_FORMAT = "ai_format"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class FormatStep:
    """Audit-trail entry appended at each decision point."""

    type: FormatStepType
    message: str
    ok: bool = True


@dataclass(frozen=True, slots=True)
class FormatResult:
    """Terminal state of a pipeline invocation.

    A non-empty ``errors`` tuple means no path could format the file.
    """

    steps: tuple[FormatStep, ...]
    output: str | None = None
    errors: tuple[str, ...] = ()
    formatter: str | None = None

    @property
    def succeeded(self) -> bool:
        return not self.errors

    def phases(self) -> list[FormatStepType]:
        """Return the ordered step types, useful for asserting the path taken."""

        return [step.type for step in self.steps]

    @classmethod
    def build(
        cls,
        steps: Sequence[FormatStep],
        *,
        output: str | None = None,
        errors: Sequence[str] = (),
        formatter: str | None = None,
    ) -> FormatResult:
        return cls(steps=tuple(steps), output=output, errors=tuple(errors), formatter=formatter)


__all__ = [
    "ARGS_PLACEHOLDER",
    "EXE_PLACEHOLDER",
    "EXIT_CANCELED",
    "EXIT_START_FAILED",
    "EXIT_TIMED_OUT",
    "FILE_PLACEHOLDER",
    "Executable",
    "FormatRequest",
    "FormatResult",
    "FormatStep",
    "FormatStepType",
    "FormatterDefinition",
    "FormatterRecommendation",
    "HostInfo",
    "InstallResult",
    "InstallStrategy",
    "OsInfo",
    "RunResult",
    "ValidationResult",
]
