# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Time-bounded cache for AI recommendations."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Final

from ..models import FormatterRecommendation

DEFAULT_TTL_SECONDS: Final[float] = 3600.0

RecommendationKey = tuple[str, str, str, str]


@dataclass(frozen=True, slots=True)
class _Entry:
    recommendation: FormatterRecommendation
    stored_at: float


class RecommendationCache:
    """Thread-safe mapping from (extension, language, OS, model) to a recommendation.

    Entries older than ``ttl_seconds`` are evicted on read.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[RecommendationKey, _Entry] = {}
        self._lock = Lock()

    def get(self, key: RecommendationKey) -> FormatterRecommendation | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at > self._ttl_seconds:
                del self._entries[key]
                return None
            return entry.recommendation

    def put(self, key: RecommendationKey, recommendation: FormatterRecommendation) -> None:
        with self._lock:
            self._entries[key] = _Entry(recommendation, self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


__all__ = ["DEFAULT_TTL_SECONDS", "RecommendationCache", "RecommendationKey"]
