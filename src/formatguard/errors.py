# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy for formatguard.

Expected failures (missing tools, disabled network, checksum mismatches) are
reported through result objects. These exceptions are raised inside a
component and converted to results at its public boundary, except for
:class:`RegistryError` and :class:`ConfigError` which signal programming or
configuration mistakes at startup.
"""

from __future__ import annotations

from collections.abc import Sequence


class RegistryError(ValueError):
    """Raised when the formatter catalog is malformed."""


class ConfigError(Exception):
    """Raised when configuration input is invalid."""


class InstallError(RuntimeError):
    """Raised by install strategies when an executable cannot be provisioned."""


class ChecksumMismatchError(InstallError):
    """Raised when a pinned download does not match its expected digest."""

    def __init__(self, tool_id: str, version: str, expected: str, actual: str) -> None:
        super().__init__(
            f"Checksum mismatch for {tool_id} {version}: expected {expected}, got {actual}. Aborting.",
        )
        self.tool_id = tool_id
        self.version = version
        self.expected = expected
        self.actual = actual


class SubprocessExecutionError(RuntimeError):
    """Raised when a subprocess exits with a non-zero status while ``check`` is true."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stdout: str | None,
        stderr: str | None,
    ) -> None:
        super().__init__(
            f"Command '{command[0]}' exited with status {returncode}. stderr: {stderr or '<none>'}",
        )
        self.command = tuple(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


__all__ = [
    "ChecksumMismatchError",
    "ConfigError",
    "InstallError",
    "RegistryError",
    "SubprocessExecutionError",
]
