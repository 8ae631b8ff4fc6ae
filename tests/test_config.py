# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from formatguard.config import STATE_DIR_NAME, load_settings
from formatguard.errors import ConfigError


def _write(path: Path, text: str) -> None:
    path.write_text(dedent(text), encoding="utf-8")


def test_defaults_live_under_project_state_dir(tmp_path: Path) -> None:
    settings = load_settings(tmp_path, env={})

    root = tmp_path.resolve()
    assert settings.state_dir == root / STATE_DIR_NAME
    assert settings.cache_dir == root / STATE_DIR_NAME / "cache"
    assert settings.consent_file == root / STATE_DIR_NAME / "trusted-formatters.json"
    assert settings.timeout_seconds == 600.0
    assert settings.network_allowed is True
    assert settings.ai_enabled is False
    assert settings.allow_auto_install is False
    assert settings.jobs == 1
    assert settings.openai is None


def test_project_file_overrides_pyproject(tmp_path: Path) -> None:
    _write(
        tmp_path / "pyproject.toml",
        """
        [project]
        name = "demo"

        [tool.formatguard]
        timeout_seconds = 30
        jobs = 2
        cache_dir = "tools"
        """,
    )
    _write(
        tmp_path / ".formatguard.toml",
        """
        jobs = 4
        pins_file = "pins.json"
        """,
    )

    settings = load_settings(tmp_path, env={})

    assert settings.timeout_seconds == 30.0
    assert settings.jobs == 4
    assert settings.cache_dir == tmp_path.resolve() / "tools"
    assert settings.pins_file == tmp_path.resolve() / "pins.json"


def test_environment_overrides_files(tmp_path: Path) -> None:
    _write(tmp_path / ".formatguard.toml", "network_allowed = true\njobs = 2\n")

    settings = load_settings(
        tmp_path,
        env={"FORMATGUARD_NETWORK": "off", "FORMATGUARD_AI": "Yes", "FORMATGUARD_JOBS": "8"},
    )

    assert settings.network_allowed is False
    assert settings.ai_enabled is True
    assert settings.jobs == 8


def test_overrides_skip_none_values(tmp_path: Path) -> None:
    _write(tmp_path / ".formatguard.toml", "dry_run = true\njobs = 3\n")

    settings = load_settings(tmp_path, env={}, overrides={"dry_run": None, "jobs": 5})

    assert settings.dry_run is True
    assert settings.jobs == 5


def test_openai_section_requires_api_key(tmp_path: Path) -> None:
    _write(tmp_path / ".formatguard.toml", '[openai]\nmodel = "gpt-4.1-mini"\n')

    assert load_settings(tmp_path, env={}).openai is None

    settings = load_settings(tmp_path, env={"OPENAI_API_KEY": "sk-secret"})
    assert settings.openai is not None
    assert settings.openai.model == "gpt-4.1-mini"
    assert "sk-secret" not in repr(settings)


@pytest.mark.parametrize(
    ("config", "env"),
    [
        ("unknown_key = 1\n", {}),
        ("jobs = 0\n", {}),
        ("timeout_seconds = -1\n", {}),
        ("", {"FORMATGUARD_NETWORK": "maybe"}),
        ("", {"FORMATGUARD_TIMEOUT": "soon"}),
        ("jobs = [\n", {}),
    ],
)
def test_invalid_configuration_raises_config_error(tmp_path: Path, config: str, env: dict[str, str]) -> None:
    _write(tmp_path / ".formatguard.toml", config)

    with pytest.raises(ConfigError):
        load_settings(tmp_path, env=env)


def test_pyproject_section_must_be_table(tmp_path: Path) -> None:
    _write(tmp_path / "pyproject.toml", '[tool]\nformatguard = "yes"\n')

    with pytest.raises(ConfigError, match="must be a table"):
        load_settings(tmp_path, env={})
