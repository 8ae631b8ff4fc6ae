# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Optional AI-backed recommender and format advisor."""

from __future__ import annotations

from .cache import RecommendationCache
from .openai import OpenAiFormatAdvisor, OpenAiRecommender
from .schema import RecommendationPayload

__all__ = ["OpenAiFormatAdvisor", "OpenAiRecommender", "RecommendationCache", "RecommendationPayload"]
