# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Console reporting and log configuration for the command-line front end.

Library modules only log through ``logging.getLogger(__name__)``. The CLI
calls :func:`configure_logging` once so those records render through Rich on
standard error, while the helpers below print user-facing status lines on
standard output.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final

from rich.logging import RichHandler
from rich.rule import Rule
from rich.text import Text

from .console import console_for, detect_tty
from .coverage import FileFormatReport, FormatOutcome

PACKAGE_LOGGER: Final[str] = "formatguard"


@dataclass(frozen=True, slots=True)
class Tone:
    """Glyph and Rich style used for one kind of status line."""

    glyph: str
    style: str


INFO: Final[Tone] = Tone("ℹ️ ", "cyan")
OK: Final[Tone] = Tone("✅ ", "green")
WARN: Final[Tone] = Tone("⚠️ ", "yellow")
FAIL: Final[Tone] = Tone("❌ ", "red")

OUTCOME_TONES: Final[Mapping[FormatOutcome, Tone]] = MappingProxyType(
    {
        FormatOutcome.FORMATTED: OK,
        FormatOutcome.ALREADY_FORMATTED: INFO,
        FormatOutcome.FAILED: FAIL,
    },
)


def configure_logging(*, verbose: bool) -> None:
    """Attach a Rich handler to the package logger.

    With ``verbose`` every audit step is shown at DEBUG level; otherwise only
    warnings such as an ignored consent file reach the terminal. Calling this
    again replaces the previous handler.

    Args:
        verbose: Whether to emit DEBUG records.
    """

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in [handler for handler in logger.handlers if isinstance(handler, RichHandler)]:
        logger.removeHandler(handler)
    handler = RichHandler(
        console=console_for(color=True, emoji=False, stderr=True),
        show_time=False,
        show_path=verbose,
        markup=False,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


def emit(tone: Tone, msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Print ``msg`` prefixed and styled according to ``tone``."""

    color = detect_tty() if use_color is None else use_color
    text = Text(f"{tone.glyph if use_emoji else ''}{msg}")
    if color:
        text.stylize(tone.style)
    console_for(color=color, emoji=use_emoji).print(text)


def info(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    emit(INFO, msg, use_emoji=use_emoji, use_color=use_color)


def ok(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    emit(OK, msg, use_emoji=use_emoji, use_color=use_color)


def warn(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    emit(WARN, msg, use_emoji=use_emoji, use_color=use_color)


def fail(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    emit(FAIL, msg, use_emoji=use_emoji, use_color=use_color)


def section(title: str, *, use_color: bool) -> None:
    """Print a section header; a rule on colour terminals, dashes otherwise."""

    console = console_for(color=use_color, emoji=False)
    if use_color and detect_tty():
        console.print()
        console.print(Rule(title))
    else:
        console.print(Text(f"\n--- {title} ---"))


def report_file(report: FileFormatReport, *, use_emoji: bool) -> None:
    """Print the one-line progress entry for a finished file."""

    suffix = f" via {report.formatter}" if report.formatter else ""
    emit(OUTCOME_TONES[report.outcome], f"{report.outcome.value:<17} {report.path}{suffix}", use_emoji=use_emoji)


__all__ = [
    "OUTCOME_TONES",
    "PACKAGE_LOGGER",
    "Tone",
    "configure_logging",
    "emit",
    "fail",
    "info",
    "ok",
    "report_file",
    "section",
    "warn",
]
