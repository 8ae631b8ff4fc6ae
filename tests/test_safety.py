# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

from __future__ import annotations

import pytest

from conftest import make_definition, make_plan
from formatguard.models import InstallStrategy
from formatguard.registry import DEFAULT_DEFINITIONS
from formatguard.safety import SafetyPolicy

POLICY = SafetyPolicy()


def test_valid_plan_is_accepted_with_sanitized_values() -> None:
    result = POLICY.validate(make_definition(), make_plan(version=" 24.8.0 "))

    assert result.accepted
    assert result.sanitized_args == ("--quiet",)
    assert result.sanitized_version == "24.8.0"


def test_unknown_arguments_are_dropped_not_rejected() -> None:
    definition = make_definition(allowed_args=("--quiet", "-l"))

    result = POLICY.validate(definition, make_plan(args=("--config=/etc/evil", "-l", "--quiet", "; rm")))

    assert result.accepted
    assert result.sanitized_args == ("-l", "--quiet")
    assert any("--config=/etc/evil" in reason for reason in result.reasons)


@pytest.mark.parametrize("definition", DEFAULT_DEFINITIONS, ids=lambda definition: definition.id)
@pytest.mark.parametrize(
    "args",
    [(), ("--write", "-w", "-i"), ("--quiet", "--exec", "rm -rf /"), ("--search-parent-directories", "--parser=yaml")],
)
def test_sanitized_args_are_subset_of_allow_list(definition, args) -> None:
    strategy = next(iter(definition.install_strategies))
    plan = make_plan(definition.id, strategy=strategy, args=args)

    result = POLICY.validate(definition, plan)

    assert set(result.sanitized_args) <= definition.allowed_args


@pytest.mark.parametrize("formatter_id", ["ruff", "blackk", "", "prettier"])
def test_id_mismatch_always_rejects(formatter_id: str) -> None:
    result = POLICY.validate(make_definition("black"), make_plan(formatter_id))

    assert not result.accepted
    assert result.sanitized_args == ()
    assert result.sanitized_version is None


def test_disallowed_strategy_rejects() -> None:
    result = POLICY.validate(make_definition(), make_plan(strategy=InstallStrategy.BINARY))

    assert not result.accepted
    assert "binary" in result.reasons[0]


@pytest.mark.parametrize(
    "version",
    ["; rm -rf /", "1.0 && curl", "$(id)", "1.0/../..", "v1 2", "1.0\n2", "24.8.0;", "", "   ", "1.0+local", "ü1"],
)
def test_unsafe_versions_reject(version: str) -> None:
    result = POLICY.validate(make_definition(), make_plan(version=version))

    assert not result.accepted


@pytest.mark.parametrize("version", ["24.8.0", "stable", "v0.13.0", "17", "3.8.0-rc_1"])
def test_safe_versions_accept(version: str) -> None:
    assert POLICY.validate(make_definition(), make_plan(version=version)).accepted
