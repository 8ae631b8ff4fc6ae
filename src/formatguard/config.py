# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Layered configuration for formatguard.

Sources are merged in increasing precedence: built-in defaults,
``[tool.formatguard]`` in ``pyproject.toml``, ``.formatguard.toml``,
environment variables and finally explicit overrides (usually CLI flags).
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .consent import CONSENT_FILE_NAME
from .errors import ConfigError

STATE_DIR_NAME: Final[str] = ".formatguard"
PROJECT_CONFIG_NAME: Final[str] = ".formatguard.toml"
PYPROJECT_NAME: Final[str] = "pyproject.toml"
PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "formatguard"
OPENAI_KEY: Final[str] = "openai"

_TRUE_VALUES: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES: Final[frozenset[str]] = frozenset({"0", "false", "no", "off"})
_PATH_KEYS: Final[tuple[str, ...]] = ("cache_dir", "state_dir", "pins_file")


class OpenAiSettings(BaseModel):
    """Credentials and endpoint for the OpenAI Responses API."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    api_key: str = Field(repr=False)
    model: str = "gpt-4o-mini"
    base_url: str = "https://api.openai.com"
    timeout_seconds: float = Field(default=60.0, gt=0)


class FormatGuardSettings(BaseModel):
    """Resolved runtime settings.

    Attributes:
        cache_dir: Root of per-tool installations.
        state_dir: Directory holding persisted state such as the consent file.
        pins_file: Optional JSON manifest of pinned binary downloads.
        timeout_seconds: Deadline for each formatter subprocess.
        install_timeout_seconds: Deadline for each install subprocess or download.
        output_limit: Maximum characters captured per output stream.
        poll_interval: Runner polling interval in seconds.
        kill_grace_seconds: Wait between terminate and kill.
        network_allowed: Whether installers and AI ports may use the network.
        ai_enabled: Whether the AI last-resort formatter may run.
        allow_auto_install: Skip the consent prompt for untrusted formatters.
        dry_run: Report changes without keeping them on disk.
        jobs: Number of files formatted concurrently.
        openai: OpenAI settings, present only when an API key is configured.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    cache_dir: Path
    state_dir: Path
    pins_file: Path | None = None
    timeout_seconds: float = Field(default=600.0, gt=0)
    install_timeout_seconds: float = Field(default=600.0, gt=0)
    output_limit: int = Field(default=200_000, gt=0)
    poll_interval: float = Field(default=0.05, gt=0)
    kill_grace_seconds: float = Field(default=2.0, ge=0)
    network_allowed: bool = True
    ai_enabled: bool = False
    allow_auto_install: bool = False
    dry_run: bool = False
    jobs: int = Field(default=1, ge=1)
    openai: OpenAiSettings | None = None

    @property
    def consent_file(self) -> Path:
        return self.state_dir / CONSENT_FILE_NAME


def _read_toml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc


def _pyproject_section(root: Path) -> dict[str, Any]:
    data = _read_toml(root / PYPROJECT_NAME)
    tool_section = data.get(PYPROJECT_TOOL_KEY)
    if not isinstance(tool_section, Mapping):
        return {}
    section = tool_section.get(PYPROJECT_SECTION_KEY)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ConfigError(f"[{PYPROJECT_TOOL_KEY}.{PYPROJECT_SECTION_KEY}] in {root / PYPROJECT_NAME} must be a table")
    return dict(section)


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean flag, got {raw!r}")


def _env_fragment(env: Mapping[str, str]) -> dict[str, Any]:
    fragment: dict[str, Any] = {}
    if (raw := env.get("FORMATGUARD_NETWORK")) is not None:
        fragment["network_allowed"] = _parse_bool("FORMATGUARD_NETWORK", raw)
    if (raw := env.get("FORMATGUARD_AI")) is not None:
        fragment["ai_enabled"] = _parse_bool("FORMATGUARD_AI", raw)
    if (raw := env.get("FORMATGUARD_TIMEOUT")) is not None:
        fragment["timeout_seconds"] = raw
    if (raw := env.get("FORMATGUARD_JOBS")) is not None:
        fragment["jobs"] = raw
    if raw := env.get("FORMATGUARD_CACHE_DIR"):
        fragment["cache_dir"] = raw
    openai: dict[str, Any] = {}
    for name, key in (("OPENAI_API_KEY", "api_key"), ("OPENAI_MODEL", "model"), ("OPENAI_BASE_URL", "base_url")):
        if raw := env.get(name):
            openai[key] = raw
    if openai:
        fragment[OPENAI_KEY] = openai
    return fragment


def _merge(base: dict[str, Any], fragment: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in fragment.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


def _resolve_paths(fragment: Mapping[str, Any], root: Path) -> dict[str, Any]:
    resolved = dict(fragment)
    for key in _PATH_KEYS:
        value = resolved.get(key)
        if isinstance(value, (str, Path)):
            path = Path(value).expanduser()
            resolved[key] = path if path.is_absolute() else root / path
    return resolved


def load_settings(
    root: Path,
    *,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> FormatGuardSettings:
    """Return settings for the project rooted at ``root``.

    Args:
        root: Project root; relative paths in configuration files resolve against it.
        env: Environment mapping, defaults to ``os.environ``.
        overrides: Highest-precedence values. ``None`` entries are ignored so
            unset CLI flags do not mask file configuration.

    Returns:
        FormatGuardSettings: Validated settings.

    Raises:
        ConfigError: If a configuration file is unreadable, contains unknown
            keys or holds invalid values.
    """

    root = root.resolve()
    state_dir = root / STATE_DIR_NAME
    data: dict[str, Any] = {"cache_dir": state_dir / "cache", "state_dir": state_dir}
    for fragment in (_pyproject_section(root), _read_toml(root / PROJECT_CONFIG_NAME)):
        data = _merge(data, _resolve_paths(fragment, root))
    data = _merge(data, _resolve_paths(_env_fragment(env if env is not None else os.environ), root))
    if overrides:
        explicit = {key: value for key, value in overrides.items() if value is not None}
        data = _merge(data, _resolve_paths(explicit, root))

    openai = data.get(OPENAI_KEY)
    if isinstance(openai, Mapping) and not str(openai.get("api_key") or "").strip():
        data.pop(OPENAI_KEY)
    try:
        return FormatGuardSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid formatguard configuration: {exc}") from exc


__all__ = [
    "PROJECT_CONFIG_NAME",
    "STATE_DIR_NAME",
    "FormatGuardSettings",
    "OpenAiSettings",
    "load_settings",
]
