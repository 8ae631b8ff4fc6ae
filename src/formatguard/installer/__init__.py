# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Formatter installation strategies and the installer service."""

from __future__ import annotations

from .base import InstallContext, StrategyHandler, platform_tag
from .binary import BinaryStrategy
from .go import GoStrategy
from .npm import NpmStrategy
from .pins import BinaryPin, PinManifest
from .pip import PipStrategy
from .service import FormatterInstaller, default_handlers

__all__ = [
    "BinaryPin",
    "BinaryStrategy",
    "FormatterInstaller",
    "GoStrategy",
    "InstallContext",
    "NpmStrategy",
    "PinManifest",
    "PipStrategy",
    "StrategyHandler",
    "default_handlers",
    "platform_tag",
]
