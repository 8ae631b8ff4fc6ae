# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

from __future__ import annotations

import stat
from pathlib import Path

import pytest

from formatguard.classifier import SimpleFileClassifier, file_extension
from formatguard.writer import AtomicFileWriter


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("main.GO", ("go", "go")),
        ("config.yml", ("yml", "yaml")),
        ("Build.kts", ("kts", "kotlin")),
        ("vector.hpp", ("hpp", "cpp")),
        ("Makefile", ("", None)),
        ("archive.tar.gz", ("gz", None)),
    ],
)
def test_classify(name: str, expected: tuple[str, str | None]) -> None:
    assert SimpleFileClassifier().classify(f"/repo/{name}") == expected


def test_sample_is_bounded_and_tolerates_missing_files(tmp_path: Path) -> None:
    path = tmp_path / "long.md"
    path.write_text("a" * 5000, encoding="utf-8")
    classifier = SimpleFileClassifier()

    assert classifier.sample(str(path)) == "a" * 2000
    assert classifier.sample(str(path), max_chars=10) == "a" * 10
    assert classifier.sample(str(tmp_path / "missing.md")) is None


def test_file_extension_lowercases() -> None:
    assert file_extension(Path("README.MD")) == "md"


def test_atomic_writer_replaces_content_and_keeps_mode(tmp_path: Path) -> None:
    path = tmp_path / "script.sh"
    path.write_text("echo  hi\n", encoding="utf-8")
    path.chmod(0o755)

    assert AtomicFileWriter().write_text(str(path), "echo hi\n")

    assert path.read_text(encoding="utf-8") == "echo hi\n"
    assert stat.S_IMODE(path.stat().st_mode) == 0o755
    assert [entry.name for entry in tmp_path.iterdir()] == ["script.sh"]


def test_atomic_writer_reports_failure(tmp_path: Path) -> None:
    assert not AtomicFileWriter().write_text(str(tmp_path / "missing-dir" / "file.txt"), "content")
