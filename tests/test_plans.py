# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

from __future__ import annotations

from formatguard.models import InstallStrategy
from formatguard.plans import default_plan_for, order_candidates
from formatguard.registry import build_default_registry
from formatguard.safety import SafetyPolicy


def test_every_default_plan_passes_the_safety_policy() -> None:
    registry = build_default_registry()
    policy = SafetyPolicy()

    for definition in registry.values():
        for extension in sorted(definition.supported_extensions):
            plan = default_plan_for(definition.id, extension)
            assert plan is not None, definition.id
            result = policy.validate(definition, plan)
            assert result.accepted, (definition.id, result.reasons)
            assert result.sanitized_args == plan.run_args


def test_prettier_plan_adds_parser_for_html_and_yaml() -> None:
    html = default_plan_for("prettier", "html")
    yaml = default_plan_for("prettier", "yml")
    typescript = default_plan_for("prettier", "ts")

    assert html is not None and html.run_args == ("--write", "--parser=html")
    assert yaml is not None and yaml.run_args == ("--write", "--parser=yaml")
    assert typescript is not None and typescript.run_args == ("--write",)
    assert typescript.install_strategy is InstallStrategy.NPM


def test_unknown_formatter_has_no_plan() -> None:
    assert default_plan_for("rustfmt", "rs") is None


def test_preferred_formatter_moves_first() -> None:
    registry = build_default_registry()

    yaml = order_candidates("yaml", registry.find_by_extension("yaml"))
    python = order_candidates("py", registry.find_by_extension("py"))

    assert [definition.id for definition in yaml] == ["yamlfmt", "prettier"]
    assert [definition.id for definition in python] == ["black", "ruff"]
