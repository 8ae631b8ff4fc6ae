# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared Rich consoles for command-line output and log records."""

from __future__ import annotations

import sys
from threading import Lock

from rich.console import Console

_CONSOLES: dict[tuple[bool, bool, bool, bool], Console] = {}
_LOCK = Lock()


def detect_tty() -> bool:
    """Return ``True`` when stdout appears to be backed by a terminal."""

    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


def console_for(*, color: bool, emoji: bool, stderr: bool = False) -> Console:
    """Return a cached console for the requested presentation.

    Colour is only honoured when stdout is a terminal, so piping the CLI into a
    file or another tool always yields plain text. Consoles do not bind a
    stream at construction; Rich resolves ``sys.stdout``/``sys.stderr`` on each
    write, which keeps captured test output working.

    Args:
        color: Whether ANSI styling is wanted.
        emoji: Whether Rich should render ``:emoji:`` codes and glyphs.
        stderr: Write to standard error instead of standard output.

    Returns:
        Console: Console shared by every caller with the same settings.
    """

    tty = detect_tty()
    styled = color and tty
    key = (styled, emoji, stderr, tty)
    with _LOCK:
        console = _CONSOLES.get(key)
        if console is None:
            console = Console(
                stderr=stderr,
                color_system="auto" if styled else None,
                force_terminal=tty,
                no_color=not styled,
                emoji=emoji,
                highlight=False,
                soft_wrap=True,
            )
            _CONSOLES[key] = console
        return console


def reset_consoles() -> None:
    """Forget cached consoles, for example after stdout has been redirected."""

    with _LOCK:
        _CONSOLES.clear()


__all__ = ["console_for", "detect_tty", "reset_consoles"]
