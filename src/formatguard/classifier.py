# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Extension and language detection for target files."""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Final

from .registry import C_FAMILY_EXTENSIONS

DEFAULT_SAMPLE_CHARS: Final[int] = 2000

LANGUAGE_BY_EXTENSION: Final = MappingProxyType(
    {
        "kt": "kotlin",
        "kts": "kotlin",
        "java": "java",
        "xml": "xml",
        "json": "json",
        "js": "javascript",
        "jsx": "javascript",
        "ts": "typescript",
        "tsx": "typescript",
        "css": "css",
        "scss": "scss",
        "html": "html",
        "htm": "html",
        "md": "markdown",
        "py": "python",
        "pyi": "python",
        "go": "go",
        "sh": "shell",
        "bash": "shell",
        "yml": "yaml",
        "yaml": "yaml",
        "lua": "lua",
        **{extension: "cpp" if extension not in {"c", "h"} else "c" for extension in C_FAMILY_EXTENSIONS},
    },
)


def file_extension(file_path: str | Path) -> str:
    """Return the lower-case extension of ``file_path`` without the dot."""

    return Path(file_path).suffix.lstrip(".").lower()


class SimpleFileClassifier:
    """Classify files by extension and read a bounded text sample."""

    def classify(self, file_path: str) -> tuple[str, str | None]:
        extension = file_extension(file_path)
        return extension, LANGUAGE_BY_EXTENSION.get(extension)

    def sample(self, file_path: str, max_chars: int = DEFAULT_SAMPLE_CHARS) -> str | None:
        """Return up to ``max_chars`` characters of ``file_path`` or ``None`` when unreadable."""

        path = Path(file_path)
        if not path.is_file():
            return None
        try:
            with path.open(encoding="utf-8", errors="replace") as stream:
                return stream.read(max_chars)
        except OSError:
            return None


__all__ = ["DEFAULT_SAMPLE_CHARS", "LANGUAGE_BY_EXTENSION", "SimpleFileClassifier", "file_extension"]
