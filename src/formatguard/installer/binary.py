# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Checksum-verified downloads of pinned standalone binaries."""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path

import requests

from ..errors import ChecksumMismatchError, InstallError
from ..models import Executable, FormatterDefinition, InstallResult, InstallStrategy
from .base import (
    InstallContext,
    StrategyHandler,
    executable_file_name,
    is_executable_file,
    make_executable,
    platform_tag,
)
from .pins import PinManifest, download_bytes, sha256_hex

LOGGER = logging.getLogger(__name__)

Fetcher = Callable[..., bytes]


class BinaryStrategy(StrategyHandler):
    """Resolve from ``PATH`` or the cache, else download a pinned binary.

    Downloads are written to a temporary file beside the final path and only
    renamed into place after the digest matches the pin.
    """

    strategy = InstallStrategy.BINARY

    def __init__(
        self,
        context: InstallContext,
        *,
        pins: PinManifest | None = None,
        fetch: Fetcher = download_bytes,
        platform: str | None = None,
    ) -> None:
        super().__init__(context)
        self._pins = pins or PinManifest()
        self._fetch = fetch
        self._platform = platform or platform_tag()

    def install(self, definition: FormatterDefinition, version: str) -> InstallResult:
        on_path = self._context.which(definition.id)
        if on_path is not None:
            return InstallResult.success(
                f"Resolved {definition.id} from PATH",
                tool_home=None,
                executable=Executable(on_path),
            )

        home = self.tool_home(definition, version)
        target = home / executable_file_name(definition.id)
        if is_executable_file(target):
            return InstallResult.success(
                f"Using cached {definition.id} {version} from {home}",
                tool_home=str(home),
                executable=Executable(str(target)),
            )

        pin = self._pins.lookup(definition.id, version, self._platform)
        if pin is None:
            raise InstallError(
                f"No pinned download for {definition.id} {version} on {self._platform}; refusing to download.",
            )
        self._require_network(definition, version)

        try:
            payload = self._fetch(pin.url, timeout=self._context.timeout_seconds)
        except requests.RequestException as exc:
            raise InstallError(f"Download of {definition.id} {version} failed: {exc}") from exc

        actual = sha256_hex(payload)
        if actual.lower() != pin.sha256.lower():
            raise ChecksumMismatchError(definition.id, version, pin.sha256.lower(), actual)

        self._place(payload, target)
        LOGGER.debug("Installed %s %s to %s", definition.id, version, target)
        return InstallResult.success(
            f"Downloaded {definition.id} {version} (sha256 verified)",
            tool_home=str(home),
            executable=Executable(str(target)),
        )

    @staticmethod
    def _place(payload: bytes, target: Path) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        handle, temp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".part", dir=target.parent)
        temp_path = Path(temp_name)
        try:
            with os.fdopen(handle, "wb") as stream:
                stream.write(payload)
            make_executable(temp_path)
            os.replace(temp_path, target)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise


__all__ = ["BinaryStrategy", "Fetcher"]
