# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Pinned binary downloads and SHA-256 verification."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import ConfigError

PinKey = tuple[str, str, str]


class BinaryPin(BaseModel):
    """Download location and expected digest for one (tool, version, platform)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = Field(pattern=r"^https://")
    sha256: str = Field(pattern=r"^[0-9A-Fa-f]{64}$")


class PinManifest:
    """Read-only lookup table of pinned binaries.

    The manifest ships empty; deployments supply pins through a JSON file of
    the form ``{"<tool>": {"<version>": {"<platform>": {"url": ..., "sha256": ...}}}}``.
    """

    def __init__(self, pins: Mapping[PinKey, BinaryPin] | None = None) -> None:
        self._pins: Mapping[PinKey, BinaryPin] = MappingProxyType(
            {(tool.lower(), version, platform): pin for (tool, version, platform), pin in (pins or {}).items()},
        )

    def lookup(self, tool_id: str, version: str, platform: str) -> BinaryPin | None:
        return self._pins.get((tool_id.lower(), version, platform))

    def __len__(self) -> int:
        return len(self._pins)

    @classmethod
    def from_json(cls, path: Path) -> PinManifest:
        """Load a manifest from ``path``.

        Args:
            path: JSON document nested as tool -> version -> platform -> pin.

        Returns:
            PinManifest: Parsed manifest.

        Raises:
            ConfigError: If the file cannot be read or has the wrong shape.
        """

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Unable to read pin manifest {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"Pin manifest {path} must contain a JSON object")
        pins: dict[PinKey, BinaryPin] = {}
        try:
            for tool, versions in raw.items():
                for version, platforms in versions.items():
                    for platform, entry in platforms.items():
                        pins[(tool, version, platform)] = BinaryPin.model_validate(entry)
        except (AttributeError, ValidationError) as exc:
            raise ConfigError(f"Invalid pin manifest {path}: {exc}") from exc
        return cls(pins)


def download_bytes(url: str, *, timeout: float) -> bytes:
    """Return the body served at ``url``.

    Raises:
        requests.RequestException: On connection failures or HTTP errors.
    """

    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.content


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


__all__ = ["BinaryPin", "PinKey", "PinManifest", "download_bytes", "sha256_hex"]
