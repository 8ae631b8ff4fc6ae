# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Deterministic default plans and per-extension formatter preferences."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Final

from .models import FormatterDefinition, FormatterRecommendation, InstallStrategy
from .registry import C_FAMILY_EXTENSIONS

DETERMINISTIC_RATIONALE: Final[str] = "deterministic default"

PREFERRED_FORMATTERS: Final[Mapping[str, str]] = MappingProxyType(
    {
        "yaml": "yamlfmt",
        "yml": "yamlfmt",
        "go": "gofmt",
        **{extension: "clang-format" for extension in C_FAMILY_EXTENSIONS},
    },
)


def _plan(formatter_id: str, version: str, strategy: InstallStrategy, *args: str) -> FormatterRecommendation:
    return FormatterRecommendation(
        formatter_id=formatter_id,
        version=version,
        install_strategy=strategy,
        run_args=tuple(args),
        confidence=1.0,
        rationale=DETERMINISTIC_RATIONALE,
    )


_DEFAULT_PLANS: Final[Mapping[str, FormatterRecommendation]] = MappingProxyType(
    {
        "prettier": _plan("prettier", "3.3.3", InstallStrategy.NPM, "--write"),
        "black": _plan("black", "24.8.0", InstallStrategy.PIP, "--quiet"),
        "ruff": _plan("ruff", "0.6.9", InstallStrategy.PIP),
        "gofmt": _plan("gofmt", "stable", InstallStrategy.GO, "-w"),
        "yamlfmt": _plan("yamlfmt", "0.13.0", InstallStrategy.GO, "-w"),
        "clang-format": _plan("clang-format", "17", InstallStrategy.BINARY, "-i"),
        "shfmt": _plan("shfmt", "3.8.0", InstallStrategy.BINARY, "-w"),
        "stylua": _plan("stylua", "0.20.0", InstallStrategy.BINARY),
    },
)

_PRETTIER_PARSERS: Final[Mapping[str, str]] = MappingProxyType(
    {"html": "--parser=html", "htm": "--parser=html", "yaml": "--parser=yaml", "yml": "--parser=yaml"},
)


def default_plan_for(formatter_id: str, extension: str) -> FormatterRecommendation | None:
    """Return the hard-coded plan for ``formatter_id`` or ``None`` when unknown.

    Args:
        formatter_id: Registry id of the formatter.
        extension: Lower-case extension of the target file.

    Returns:
        FormatterRecommendation | None: Deterministic plan for the formatter.
    """

    plan = _DEFAULT_PLANS.get(formatter_id.lower())
    if plan is None:
        return None
    parser = _PRETTIER_PARSERS.get(extension) if plan.formatter_id == "prettier" else None
    if parser is None:
        return plan
    return FormatterRecommendation(
        formatter_id=plan.formatter_id,
        version=plan.version,
        install_strategy=plan.install_strategy,
        run_args=(*plan.run_args, parser),
        confidence=plan.confidence,
        rationale=plan.rationale,
    )


def order_candidates(extension: str, candidates: Sequence[FormatterDefinition]) -> list[FormatterDefinition]:
    """Return ``candidates`` with the preferred formatter for ``extension`` first.

    Remaining candidates keep the registry order, which is sorted by id.
    """

    preferred = PREFERRED_FORMATTERS.get(extension)
    if preferred is None:
        return list(candidates)
    head = [candidate for candidate in candidates if candidate.id.lower() == preferred]
    tail = [candidate for candidate in candidates if candidate.id.lower() != preferred]
    return head + tail


__all__ = ["DETERMINISTIC_RATIONALE", "PREFERRED_FORMATTERS", "default_plan_for", "order_candidates"]
