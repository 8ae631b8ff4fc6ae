# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared plumbing for install strategy handlers."""

from __future__ import annotations

import os
import platform
import re
import shutil
import stat
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from subprocess import CompletedProcess
from typing import ClassVar, Protocol

from ..errors import InstallError, SubprocessExecutionError
from ..models import FormatterDefinition, InstallResult, InstallStrategy
from ..process import CommandOptions, run_command

STDERR_EXCERPT_LIMIT = 400


class CommandRunner(Protocol):
    """Callable compatible with :func:`formatguard.process.run_command`."""

    def __call__(self, args: Sequence[str], *, options: CommandOptions | None = None) -> CompletedProcess[str]: ...


@dataclass(frozen=True, slots=True)
class InstallContext:
    """Environment shared by every strategy handler.

    Attributes:
        cache_dir: Root directory for per-tool installations.
        network_allowed: Whether handlers may reach package registries.
        timeout_seconds: Upper bound for each install subprocess.
        which: ``PATH`` lookup function.
        command_runner: Shell-free command executor.
    """

    cache_dir: Path
    network_allowed: bool = True
    timeout_seconds: float = 600.0
    which: Callable[[str], str | None] = shutil.which
    command_runner: CommandRunner = run_command


class StrategyHandler(ABC):
    """Provision an executable for one :class:`InstallStrategy`.

    Handlers raise :class:`InstallError` for every expected failure; the
    installer service turns those into failed :class:`InstallResult` values.
    """

    strategy: ClassVar[InstallStrategy]

    def __init__(self, context: InstallContext) -> None:
        self._context = context

    @abstractmethod
    def install(self, definition: FormatterDefinition, version: str) -> InstallResult:
        """Return an installed executable for ``definition`` at ``version``."""

    def tool_home(self, definition: FormatterDefinition, version: str) -> Path:
        """Return the deterministic cache directory for ``definition`` at ``version``."""

        return self._context.cache_dir / self.strategy.value / _slugify(definition.id.lower()) / _slugify(version)

    def _require_network(self, definition: FormatterDefinition, version: str) -> None:
        if not self._context.network_allowed:
            raise InstallError(
                f"Network access is disabled; cannot install {definition.id} {version} via {self.strategy.value}.",
            )

    def _require_tool(self, name: str) -> str:
        resolved = self._context.which(name)
        if resolved is None:
            raise InstallError(f"'{name}' was not found on PATH; it is required for {self.strategy.value} installs.")
        return resolved

    def _run(self, args: Sequence[str], *, cwd: Path | None = None, env: Mapping[str, str] | None = None) -> None:
        options = CommandOptions(cwd=cwd, env=env, check=True, timeout=self._context.timeout_seconds)
        try:
            self._context.command_runner(args, options=options)
        except SubprocessExecutionError as exc:
            raise InstallError(
                f"{Path(args[0]).name} exited with status {exc.returncode}: {stderr_excerpt(exc.stderr)}",
            ) from exc
        except FileNotFoundError as exc:
            raise InstallError(str(exc)) from exc


def stderr_excerpt(stderr: str | None) -> str:
    """Return the first characters of trimmed ``stderr`` for audit messages."""

    text = (stderr or "").strip()
    return text[:STDERR_EXCERPT_LIMIT] if text else "<no output>"


def _slugify(value: str) -> str:
    """Return a filesystem-friendly slug for *value*."""
    return re.sub(r"[^A-Za-z0-9_.-]+", "-", value)


def is_windows() -> bool:
    return os.name == "nt"


def executable_file_name(name: str, *, suffix: str = ".exe") -> str:
    """Return ``name`` with the platform executable suffix applied."""

    return f"{name}{suffix}" if is_windows() else name


def is_executable_file(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def make_executable(path: Path) -> None:
    """Set executable permissions on ``path`` for user/group/other.

    Args:
        path: Path to the downloaded artifact.
    """

    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def _normalize_system(system: str) -> str:
    normalized = system.lower()
    if normalized == "darwin" or normalized.startswith("mac"):
        return "mac"
    if normalized.startswith("win"):
        return "windows"
    return normalized


def _normalize_architecture(machine: str) -> str:
    """Return normalised architecture identifier derived from ``machine``.

    Args:
        machine: Raw architecture string reported by the platform.

    Returns:
        str: Normalised architecture identifier.
    """

    normalized = machine.lower()
    if normalized in {"x86_64", "amd64", "x64"}:
        return "x64"
    if normalized in {"aarch64", "arm64"}:
        return "arm64"
    if normalized in {"i386", "i686", "x86"}:
        return "x86"
    return normalized


def platform_tag(system: str | None = None, machine: str | None = None) -> str:
    """Return the pin lookup key for the current (or supplied) platform, e.g. ``linux-x64``."""

    resolved_system = _normalize_system(system if system is not None else platform.system())
    resolved_machine = _normalize_architecture(machine if machine is not None else platform.machine())
    return f"{resolved_system}-{resolved_machine}"


__all__ = [
    "STDERR_EXCERPT_LIMIT",
    "CommandRunner",
    "InstallContext",
    "StrategyHandler",
    "executable_file_name",
    "is_executable_file",
    "is_windows",
    "make_executable",
    "platform_tag",
    "stderr_excerpt",
]
