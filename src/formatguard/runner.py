# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Bounded, cancellable and timeout-protected formatter execution."""

from __future__ import annotations

import logging

# Bandit: the command line is built exclusively from an allow-listed template.
import subprocess  # nosec B404
import threading
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import IO, Final

from .models import (
    ARGS_PLACEHOLDER,
    EXE_PLACEHOLDER,
    EXIT_CANCELED,
    EXIT_START_FAILED,
    EXIT_TIMED_OUT,
    FILE_PLACEHOLDER,
    Executable,
    FormatterDefinition,
    RunResult,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_OUTPUT_LIMIT: Final[int] = 200_000
TRUNCATION_MARKER: Final[str] = "\n…(truncated)…\n"
_READ_CHUNK: Final[int] = 8192
_READER_JOIN_SECONDS: Final[float] = 1.0


class _BoundedSink:
    """Thread-safe text buffer that stops growing at ``limit`` characters."""

    def __init__(self, limit: int) -> None:
        self._limit = limit
        self._parts: list[str] = []
        self._size = 0
        self._truncated = False
        self._lock = threading.Lock()

    def write(self, chunk: str) -> None:
        with self._lock:
            if self._truncated:
                return
            remaining = self._limit - self._size
            if len(chunk) > remaining:
                self._parts.append(chunk[:remaining])
                self._parts.append(TRUNCATION_MARKER)
                self._size = self._limit
                self._truncated = True
                return
            self._parts.append(chunk)
            self._size += len(chunk)

    def getvalue(self) -> str:
        with self._lock:
            return "".join(self._parts)


def _drain(stream: IO[str], sink: _BoundedSink) -> None:
    # Keep reading past the cap so the child never blocks on a full pipe.
    try:
        while chunk := stream.read(_READ_CHUNK):
            sink.write(chunk)
    except (OSError, ValueError):
        LOGGER.debug("Output stream closed while draining", exc_info=True)
    finally:
        stream.close()


def build_command(
    definition: FormatterDefinition,
    executable: Executable,
    args: Sequence[str],
    file_path: str,
) -> list[str]:
    """Expand the command template of ``definition``.

    Args:
        definition: Formatter whose template is expanded.
        executable: Resolved launcher substituted for ``{exe}``.
        args: Sanitized arguments substituted for ``{args}``.
        file_path: Target file substituted for ``{file}``.

    Returns:
        list[str]: Argument vector in template order. Tokens other than the
        placeholders are copied verbatim.
    """

    command: list[str] = []
    for token in definition.command_template:
        if token == EXE_PLACEHOLDER:
            command.extend(executable.argv())
        elif token == ARGS_PLACEHOLDER:
            command.extend(args)
        elif token == FILE_PLACEHOLDER:
            command.append(file_path)
        else:
            command.append(token)
    return command


class HardenedProcessRunner:
    """Run formatter subprocesses with a deadline, cancellation and output caps.

    Each call spawns exactly two reader threads (stdout and stderr) which are
    joined before :meth:`run` returns.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 600.0,
        output_limit: int = DEFAULT_OUTPUT_LIMIT,
        poll_interval: float = 0.05,
        kill_grace_seconds: float = 2.0,
        log: Callable[[str], None] | None = None,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if output_limit <= 0:
            raise ValueError("output_limit must be positive")
        self._timeout_seconds = timeout_seconds
        self._output_limit = output_limit
        self._poll_interval = poll_interval
        self._kill_grace_seconds = kill_grace_seconds
        self._log = log or LOGGER.debug

    def run(
        self,
        definition: FormatterDefinition,
        executable: Executable,
        args: Sequence[str],
        file_path: str,
        *,
        cancel_event: threading.Event | None = None,
    ) -> RunResult:
        """Execute ``definition`` against ``file_path``.

        Args:
            definition: Formatter definition supplying the command template.
            executable: Launcher produced by the installer.
            args: Sanitized arguments.
            file_path: File to format; its parent becomes the working directory.
            cancel_event: Optional cooperative cancellation signal.

        Returns:
            RunResult: ``ok`` is true only for a zero exit status. Start
            failures, cancellation and timeouts use negative sentinel codes.
        """

        command = build_command(definition, executable, args, file_path)
        self._log(f"Running {' '.join(command)}")
        parent = Path(file_path).parent
        cwd = str(parent) if str(parent) and parent.is_dir() else None
        try:
            process = subprocess.Popen(  # nosec B603 - allow-listed command template
                command,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except (OSError, ValueError) as exc:
            LOGGER.debug("Failed to start %s: %s", command[0], exc)
            return RunResult(
                ok=False,
                stdout="",
                stderr=f"Failed to start {command[0]}: {exc}",
                exit_code=EXIT_START_FAILED,
            )

        if process.stdout is None or process.stderr is None:
            LOGGER.debug("Process %s started without output pipes", command[0])
            self._stop(process)
            return RunResult(
                ok=False,
                stdout="",
                stderr=f"Failed to start {command[0]}: output pipes unavailable",
                exit_code=EXIT_START_FAILED,
            )

        stdout_sink = _BoundedSink(self._output_limit)
        stderr_sink = _BoundedSink(self._output_limit)
        readers = [
            threading.Thread(target=_drain, args=(process.stdout, stdout_sink), daemon=True),
            threading.Thread(target=_drain, args=(process.stderr, stderr_sink), daemon=True),
        ]
        for reader in readers:
            reader.start()

        exit_code = self._wait(process, cancel_event)

        for reader in readers:
            reader.join(_READER_JOIN_SECONDS)
        stderr = stderr_sink.getvalue()
        if exit_code == EXIT_TIMED_OUT:
            stderr += f"\nTimed out after {self._timeout_seconds:g}s"
        elif exit_code == EXIT_CANCELED:
            stderr += "\nCanceled"
        return RunResult(ok=exit_code == 0, stdout=stdout_sink.getvalue(), stderr=stderr, exit_code=exit_code)

    def _wait(self, process: subprocess.Popen[str], cancel_event: threading.Event | None) -> int:
        deadline = time.monotonic() + self._timeout_seconds
        while True:
            returncode = process.poll()
            if returncode is not None:
                return returncode
            if cancel_event is not None and cancel_event.is_set():
                self._stop(process)
                return EXIT_CANCELED
            if time.monotonic() >= deadline:
                self._stop(process)
                return EXIT_TIMED_OUT
            time.sleep(self._poll_interval)

    def _stop(self, process: subprocess.Popen[str]) -> None:
        process.terminate()
        try:
            process.wait(timeout=self._kill_grace_seconds)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()


__all__ = ["DEFAULT_OUTPUT_LIMIT", "TRUNCATION_MARKER", "HardenedProcessRunner", "build_command"]
