# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Atomic file replacement used for AI-formatted output and dry-run restores."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

LOGGER = logging.getLogger(__name__)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Replace ``path`` with ``data`` without exposing a partially written file.

    Args:
        path: Destination file; its directory must exist.
        data: New file content.
    """

    handle, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    temp_path = Path(temp_name)
    try:
        with os.fdopen(handle, "wb") as stream:
            stream.write(data)
        if path.exists():
            os.chmod(temp_path, path.stat().st_mode & 0o7777)
        os.replace(temp_path, path)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise


class AtomicFileWriter:
    """Content writer that replaces files atomically with UTF-8 text."""

    def write_text(self, file_path: str, content: str) -> bool:
        try:
            atomic_write_bytes(Path(file_path), content.encode("utf-8"))
        except OSError as exc:
            LOGGER.warning("Failed to write %s: %s", file_path, exc)
            return False
        return True


__all__ = ["AtomicFileWriter", "atomic_write_bytes"]
