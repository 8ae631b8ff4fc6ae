# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Persisted record of formatter ids the user has agreed to install and run."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Final, Protocol

from .writer import atomic_write_bytes

LOGGER = logging.getLogger(__name__)

CONSENT_FILE_NAME: Final[str] = "trusted-formatters.json"


def normalize_formatter_id(formatter_id: str) -> str:
    return formatter_id.strip().lower()


class ConsentStore(Protocol):
    """Trust set consulted before a formatter is installed."""

    def is_formatter_trusted(self, formatter_id: str) -> bool: ...

    def trust_formatter(self, formatter_id: str) -> None: ...

    def untrust_formatter(self, formatter_id: str) -> None: ...

    def trusted_formatters(self) -> frozenset[str]: ...


class InMemoryConsentStore:
    """Non-persistent consent store, handy for hosts with their own settings storage."""

    def __init__(self, trusted: frozenset[str] | set[str] = frozenset()) -> None:
        self._trusted = {normalize_formatter_id(item) for item in trusted if item.strip()}
        self._lock = threading.Lock()

    def is_formatter_trusted(self, formatter_id: str) -> bool:
        with self._lock:
            return normalize_formatter_id(formatter_id) in self._trusted

    def trust_formatter(self, formatter_id: str) -> None:
        with self._lock:
            self._trusted.add(normalize_formatter_id(formatter_id))

    def untrust_formatter(self, formatter_id: str) -> None:
        with self._lock:
            self._trusted.discard(normalize_formatter_id(formatter_id))

    def trusted_formatters(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._trusted)


class FileConsentStore:
    """Consent store backed by a sorted JSON list on disk.

    Ids are trimmed and lower-cased before comparison and storage. Every
    mutation rewrites the file atomically while holding the store lock, so
    concurrent batch workers cannot lose each other's updates.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._trusted = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def is_formatter_trusted(self, formatter_id: str) -> bool:
        with self._lock:
            return normalize_formatter_id(formatter_id) in self._trusted

    def trust_formatter(self, formatter_id: str) -> None:
        key = normalize_formatter_id(formatter_id)
        if not key:
            return
        with self._lock:
            if key in self._trusted:
                return
            self._trusted.add(key)
            try:
                self._persist()
            except OSError:
                self._trusted.discard(key)
                raise

    def untrust_formatter(self, formatter_id: str) -> None:
        key = normalize_formatter_id(formatter_id)
        with self._lock:
            if key not in self._trusted:
                return
            self._trusted.discard(key)
            try:
                self._persist()
            except OSError:
                self._trusted.add(key)
                raise

    def trusted_formatters(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._trusted)

    def _load(self) -> set[str]:
        if not self._path.is_file():
            return set()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning("Ignoring unreadable consent file %s: %s", self._path, exc)
            return set()
        if not isinstance(raw, list):
            LOGGER.warning("Ignoring consent file %s: expected a JSON list", self._path)
            return set()
        return {normalize_formatter_id(item) for item in raw if isinstance(item, str) and item.strip()}

    def _persist(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(sorted(self._trusted), indent=2) + "\n"
        atomic_write_bytes(self._path, payload.encode("utf-8"))


__all__ = [
    "CONSENT_FILE_NAME",
    "ConsentStore",
    "FileConsentStore",
    "InMemoryConsentStore",
    "normalize_formatter_id",
]
