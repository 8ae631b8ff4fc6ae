# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Batch driver: collect files, run the pipeline and classify outcomes by hash."""

from __future__ import annotations

import difflib
import hashlib
import logging
import os
import platform
import threading
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from .classifier import file_extension
from .coverage import CoverageReport, FileFormatReport, FormatOutcome, aggregate
from .models import FormatRequest, FormatResult, HostInfo, OsInfo
from .pipeline import FormatPipeline
from .writer import atomic_write_bytes

LOGGER = logging.getLogger(__name__)

HASH_LIMIT_BYTES: Final[int] = 5 * 1024 * 1024
EXCLUDED_DIRECTORIES: Final[frozenset[str]] = frozenset(
    {".git", ".idea", ".gradle", "build", "out", "target", "node_modules", ".venv", ".formatguard"},
)
PREVIEW_CONTEXT_LINES: Final[int] = 2

LogCallback = Callable[[str], None]
ReportCallback = Callable[[FileFormatReport], None]


def current_os_info() -> OsInfo:
    return OsInfo(
        name=platform.system() or "unknown",
        arch=platform.machine() or "unknown",
        version=platform.release() or "unknown",
    )


def hash_bytes(data: bytes) -> str:
    return hashlib.sha256(data[:HASH_LIMIT_BYTES]).hexdigest()


def hash_file(path: Path) -> str | None:
    """Return the SHA-256 of the first 5 MiB of ``path`` or ``None`` when unreadable."""

    try:
        with path.open("rb") as stream:
            return hashlib.sha256(stream.read(HASH_LIMIT_BYTES)).hexdigest()
    except OSError:
        return None


def collect_files(
    root: Path,
    *,
    extensions: Iterable[str] | None = None,
    excluded: Iterable[str] = EXCLUDED_DIRECTORIES,
) -> list[Path]:
    """Return writable regular files under ``root`` in sorted order.

    Args:
        root: Directory to walk.
        extensions: When given, keep only files with these lower-case extensions.
        excluded: Directory names pruned from the walk.

    Returns:
        list[Path]: Candidate files.
    """

    if not root.exists():
        return []
    if root.is_file():
        return [root]
    wanted = frozenset(extensions) if extensions is not None else None
    skipped = frozenset(excluded)
    files: list[Path] = []
    for directory, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in skipped)
        for name in sorted(filenames):
            path = Path(directory) / name
            if not path.is_file() or path.is_symlink() or not os.access(path, os.W_OK):
                continue
            if wanted is not None and file_extension(path) not in wanted:
                continue
            files.append(path)
    return files


def preview_diff(before: str, after: str, *, path: str = "file", context: int = PREVIEW_CONTEXT_LINES) -> str:
    """Return a unified diff of the first changed hunk with ``context`` surrounding lines."""

    diff = difflib.unified_diff(
        before.splitlines(),
        after.splitlines(),
        fromfile=f"{path} (before)",
        tofile=f"{path} (after)",
        n=context,
        lineterm="",
    )
    lines: list[str] = []
    hunks = 0
    for line in diff:
        if line.startswith("@@"):
            hunks += 1
            if hunks > 1:
                break
        lines.append(line)
    return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class BatchOptions:
    """Per-run switches copied into every :class:`FormatRequest`."""

    dry_run: bool = False
    preview: bool = False
    ai_enabled: bool = False
    network_allowed: bool = True
    allow_auto_install: bool = False
    host_info: HostInfo = field(default_factory=lambda: HostInfo(name="formatguard-cli"))


def _notes(result: FormatResult) -> tuple[str, ...]:
    failed_steps = [step.message for step in result.steps if not step.ok]
    return (*failed_steps, *result.errors)


class BatchFormatter:
    """Run a :class:`FormatPipeline` over many files.

    Content read before and after each pipeline invocation decides the
    outcome; the reported hashes cover only the first 5 MiB. Under dry run
    any on-disk change is rolled back before the next file starts. Setting
    ``cancel_event`` stops new files from starting; the pipeline passes the
    same event to the runner so in-flight formatters are killed.
    """

    def __init__(
        self,
        pipeline: FormatPipeline,
        *,
        jobs: int = 1,
        cancel_event: threading.Event | None = None,
        os_info: OsInfo | None = None,
        log: LogCallback | None = None,
        on_report: ReportCallback | None = None,
    ) -> None:
        if jobs < 1:
            raise ValueError("jobs must be at least 1")
        self._pipeline = pipeline
        self._jobs = jobs
        self._cancel_event = cancel_event or threading.Event()
        self._os_info = os_info or current_os_info()
        self._log = log or LOGGER.info
        self._on_report = on_report

    def supported_extensions(self) -> frozenset[str]:
        return self._pipeline.registry.extensions() | self._pipeline.policy.known_extensions()

    def collect(self, root: Path) -> list[Path]:
        return collect_files(root, extensions=self.supported_extensions())

    def run(self, root: Path, options: BatchOptions) -> CoverageReport:
        """Collect supported files under ``root`` and format them."""

        return self.format_files(self.collect(root), options)

    def format_files(self, paths: Sequence[Path], options: BatchOptions) -> CoverageReport:
        if self._jobs == 1 or len(paths) <= 1:
            results = [self._format_one(path, options) for path in paths]
        else:
            with ThreadPoolExecutor(max_workers=self._jobs, thread_name_prefix="formatguard") as executor:
                results = list(executor.map(lambda path: self._format_one(path, options), paths))
        reports = [report for report in results if report is not None]
        if len(reports) < len(paths):
            self._log(f"Canceled; {len(paths) - len(reports)} file(s) were not started.")
        return aggregate(reports)

    def _format_one(self, path: Path, options: BatchOptions) -> FileFormatReport | None:
        if self._cancel_event.is_set():
            return None
        extension = file_extension(path)
        try:
            original = path.read_bytes()
        except OSError as exc:
            return self._report_failure(path, extension, None, f"Unable to read file: {exc}")
        before_hash = hash_bytes(original)
        request = FormatRequest(
            file_path=str(path),
            extension=extension,
            os_info=self._os_info,
            host_info=options.host_info,
            allow_auto_install=options.allow_auto_install,
            network_allowed=options.network_allowed,
            ai_enabled=options.ai_enabled,
            dry_run=options.dry_run,
        )
        try:
            result = self._pipeline.execute(request)
        except Exception as exc:
            LOGGER.exception("Pipeline raised unexpectedly for %s", path)
            self._restore_if_modified(path, original, options)
            return self._report_failure(path, extension, before_hash, f"Formatting raised unexpectedly: {exc}")

        try:
            current: bytes | None = path.read_bytes()
        except OSError:
            current = None
        # Hashes cover only the first 5 MiB; change detection compares full content.
        modified = current != original
        after_hash = hash_bytes(current) if current is not None else None
        proposed = current if modified else None
        would_change = modified

        if options.dry_run and modified:
            try:
                atomic_write_bytes(path, original)
            except OSError as exc:
                LOGGER.error("Unable to restore %s after dry run: %s", path, exc)
                return self._report_failure(
                    path,
                    extension,
                    before_hash,
                    f"Unable to restore original content after dry run: {exc}",
                )
            modified = False
        elif options.dry_run and result.output is not None:
            candidate = result.output.encode("utf-8")
            if candidate != original:
                proposed = candidate
                after_hash = hash_bytes(candidate)
                would_change = True

        if result.errors:
            outcome = FormatOutcome.FAILED
        elif would_change:
            outcome = FormatOutcome.FORMATTED
        else:
            outcome = FormatOutcome.ALREADY_FORMATTED

        preview = None
        if options.preview and proposed is not None:
            preview = preview_diff(
                original.decode("utf-8", errors="replace"),
                proposed.decode("utf-8", errors="replace"),
                path=str(path),
            )
        report = FileFormatReport(
            path=str(path),
            extension=extension,
            outcome=outcome,
            formatter=result.formatter,
            before_hash=before_hash,
            after_hash=after_hash,
            changed=modified,
            notes=_notes(result),
            preview=preview,
        )
        if self._on_report is not None:
            self._on_report(report)
        else:
            self._log(f"{outcome.value:<17} {path}")
        return report

    def _restore_if_modified(self, path: Path, original: bytes, options: BatchOptions) -> None:
        if not options.dry_run:
            return
        try:
            if path.read_bytes() != original:
                atomic_write_bytes(path, original)
        except OSError as exc:
            LOGGER.error("Unable to restore %s after dry run: %s", path, exc)

    def _report_failure(self, path: Path, extension: str, before_hash: str | None, note: str) -> FileFormatReport:
        report = FileFormatReport(
            path=str(path),
            extension=extension,
            outcome=FormatOutcome.FAILED,
            formatter=None,
            before_hash=before_hash,
            after_hash=None,
            changed=False,
            notes=(note,),
        )
        if self._on_report is not None:
            self._on_report(report)
        else:
            self._log(f"{report.outcome.value:<17} {path}")
        return report


__all__ = [
    "EXCLUDED_DIRECTORIES",
    "HASH_LIMIT_BYTES",
    "BatchFormatter",
    "BatchOptions",
    "collect_files",
    "current_os_info",
    "hash_bytes",
    "hash_file",
    "preview_diff",
]
