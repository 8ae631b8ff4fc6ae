# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Installer entry point dispatching to strategy handlers."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType

from ..errors import InstallError
from ..models import FormatterDefinition, InstallResult, InstallStrategy
from .base import InstallContext, StrategyHandler
from .binary import BinaryStrategy, Fetcher
from .go import GoStrategy
from .npm import NpmStrategy
from .pins import PinManifest, download_bytes
from .pip import PipStrategy

LOGGER = logging.getLogger(__name__)

_CacheKey = tuple[str, str, InstallStrategy]


def default_handlers(
    context: InstallContext,
    *,
    pins: PinManifest | None = None,
    fetch: Fetcher = download_bytes,
) -> dict[InstallStrategy, StrategyHandler]:
    """Return one handler per :class:`InstallStrategy`."""

    return {
        InstallStrategy.NPM: NpmStrategy(context),
        InstallStrategy.PIP: PipStrategy(context),
        InstallStrategy.GO: GoStrategy(context),
        InstallStrategy.BINARY: BinaryStrategy(context, pins=pins, fetch=fetch),
    }


class FormatterInstaller:
    """Resolve or provision formatter executables.

    Results are memoised per ``(id, version, strategy)`` for the lifetime of
    the installer. Concurrent callers asking for the same key are serialised
    on a per-key lock so only one of them runs the package manager.
    """

    def __init__(
        self,
        context: InstallContext,
        *,
        pins: PinManifest | None = None,
        handlers: Mapping[InstallStrategy, StrategyHandler] | None = None,
    ) -> None:
        self._context = context
        self._handlers: Mapping[InstallStrategy, StrategyHandler] = MappingProxyType(
            dict(handlers) if handlers is not None else default_handlers(context, pins=pins),
        )
        self._results: dict[_CacheKey, InstallResult] = {}
        self._locks: dict[_CacheKey, threading.Lock] = {}
        self._guard = threading.Lock()

    def ensure_installed(
        self,
        definition: FormatterDefinition,
        version: str,
        strategy: InstallStrategy,
    ) -> InstallResult:
        """Return an executable for ``definition`` installed via ``strategy``.

        Args:
            definition: Allow-listed formatter definition.
            version: Sanitized version string.
            strategy: Strategy already validated against ``definition``.

        Returns:
            InstallResult: ``ok`` with an executable, or a failure message.
            Expected failures never raise.
        """

        key: _CacheKey = (definition.id.lower(), version, strategy)
        with self._lock_for(key):
            cached = self._results.get(key)
            if cached is not None:
                return cached
            result = self._install(definition, version, strategy)
            self._results[key] = result
            return result

    def _lock_for(self, key: _CacheKey) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    def _install(self, definition: FormatterDefinition, version: str, strategy: InstallStrategy) -> InstallResult:
        if strategy not in definition.install_strategies:
            return InstallResult.failure(f"Install strategy '{strategy.value}' is not allowed for {definition.id}.")
        handler = self._handlers.get(strategy)
        if handler is None:
            return InstallResult.failure(f"No installer registered for strategy '{strategy.value}'.")
        try:
            result = handler.install(definition, version)
        except InstallError as exc:
            LOGGER.debug("Install of %s %s via %s failed: %s", definition.id, version, strategy.value, exc)
            return InstallResult.failure(str(exc))
        except OSError as exc:
            LOGGER.warning("Install of %s %s via %s failed: %s", definition.id, version, strategy.value, exc)
            return InstallResult.failure(f"Install of {definition.id} {version} failed: {exc}")
        LOGGER.debug("%s", result.message)
        return result


__all__ = ["FormatterInstaller", "default_handlers"]
