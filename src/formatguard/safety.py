# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Allow-list validation applied to every formatter plan before execution."""

from __future__ import annotations

import re
from typing import Final

from .models import FormatterDefinition, FormatterRecommendation, ValidationResult

SAFE_VERSION_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[0-9A-Za-z._-]+$")


class SafetyPolicy:
    """Validate plans against the registry's allow-lists.

    The policy is pure: it never touches the filesystem or network. Unknown
    arguments are dropped from the sanitized set rather than rejecting the
    plan, while id mismatches, disallowed strategies and unsafe versions
    reject it outright.
    """

    def validate(self, definition: FormatterDefinition, plan: FormatterRecommendation) -> ValidationResult:
        """Return whether ``plan`` may be used for ``definition``.

        Args:
            definition: Registry entry the plan claims to target.
            plan: Untrusted recommendation, deterministic or AI-suggested.

        Returns:
            ValidationResult: Acceptance flag, human-readable reasons and the
            sanitized arguments and version downstream components must use.
        """

        reasons: list[str] = []
        if plan.formatter_id != definition.id:
            reasons.append(
                f"Formatter id mismatch: plan targets '{plan.formatter_id}', expected '{definition.id}'.",
            )
        if plan.install_strategy not in definition.install_strategies:
            reasons.append(f"Install strategy '{plan.install_strategy.value}' is not allowed for {definition.id}.")

        version = plan.version.strip()
        if not version:
            reasons.append("Missing version.")
        elif SAFE_VERSION_PATTERN.fullmatch(version) is None:
            reasons.append(f"Unsafe version string {plan.version!r}.")

        sanitized_args = tuple(arg for arg in plan.run_args if arg in definition.allowed_args)
        if reasons:
            return ValidationResult(accepted=False, reasons=tuple(reasons))

        dropped = [arg for arg in plan.run_args if arg not in definition.allowed_args]
        notes = (f"Dropped arguments outside the allow-list: {', '.join(dropped)}",) if dropped else ()
        return ValidationResult(
            accepted=True,
            reasons=notes,
            sanitized_args=sanitized_args,
            sanitized_version=version,
        )


__all__ = ["SAFE_VERSION_PATTERN", "SafetyPolicy"]
