# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

from __future__ import annotations

import logging

import pytest
from rich.logging import RichHandler

from formatguard.coverage import FileFormatReport, FormatOutcome
from formatguard.logging import PACKAGE_LOGGER, configure_logging, fail, report_file, section


@pytest.fixture
def restore_package_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


def test_status_lines_are_plain_when_not_a_terminal(capsys: pytest.CaptureFixture[str]) -> None:
    fail("broken", use_emoji=False)
    section("Coverage", use_color=True)

    out = capsys.readouterr().out
    assert "broken\n" in out
    assert "--- Coverage ---" in out
    assert "\x1b[" not in out


def test_report_file_names_formatter(capsys: pytest.CaptureFixture[str]) -> None:
    report = FileFormatReport(
        path="src/main.go",
        extension="go",
        outcome=FormatOutcome.FORMATTED,
        formatter="gofmt",
        before_hash="a",
        after_hash="b",
        changed=True,
    )

    report_file(report, use_emoji=True)

    out = capsys.readouterr().out
    assert out.startswith("✅ formatted")
    assert "src/main.go via gofmt" in out


def test_configure_logging_replaces_handler(restore_package_logger: logging.Logger) -> None:
    configure_logging(verbose=False)
    configure_logging(verbose=True)

    rich_handlers = [handler for handler in restore_package_logger.handlers if isinstance(handler, RichHandler)]
    assert len(rich_handlers) == 1
    assert restore_package_logger.level == logging.DEBUG
    assert restore_package_logger.propagate is False
