# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Pydantic schema for AI formatter recommendations."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, field_validator

from ..models import FormatterRecommendation, InstallStrategy


class RecommendationPayload(BaseModel):
    """JSON object a recommender must return before it is treated as a plan.

    ``formatter_id`` is trimmed and lower-cased to match registry ids.
    ``confidence`` is accepted on either a 0-1 or a 0-100 scale and is
    normalised to 0-1.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    formatter_id: StrictStr = Field(min_length=1)
    version: StrictStr
    install_strategy: InstallStrategy
    run_args: list[StrictStr]
    confidence: StrictFloat | StrictInt
    rationale: StrictStr

    @field_validator("formatter_id")
    @classmethod
    def _normalise_formatter_id(cls, value: str) -> str:
        normalised = value.strip().lower()
        if not normalised:
            raise ValueError("formatter_id must not be blank")
        return normalised

    @field_validator("install_strategy", mode="before")
    @classmethod
    def _parse_strategy(cls, value: object) -> InstallStrategy:
        if isinstance(value, InstallStrategy):
            return value
        if not isinstance(value, str):
            raise ValueError("install_strategy must be a string")
        strategy = InstallStrategy.parse(value)
        if strategy is None:
            raise ValueError(f"unknown install_strategy {value!r}")
        return strategy

    @field_validator("confidence")
    @classmethod
    def _normalise_confidence(cls, value: float) -> float:
        if 0.0 <= value <= 1.0:
            return float(value)
        if 1.0 < value <= 100.0:
            return value / 100.0
        raise ValueError("confidence must be within 0-1 or 0-100")

    def to_recommendation(self) -> FormatterRecommendation:
        return FormatterRecommendation(
            formatter_id=self.formatter_id,
            version=self.version,
            install_strategy=self.install_strategy,
            run_args=tuple(self.run_args),
            confidence=float(self.confidence),
            rationale=self.rationale,
        )


__all__ = ["RecommendationPayload"]
