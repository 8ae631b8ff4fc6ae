# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Per-file outcomes and their aggregation into a coverage report."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum


class FormatOutcome(str, Enum):
    """Final classification of a processed file."""

    FORMATTED = "formatted"
    ALREADY_FORMATTED = "already_formatted"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class FileFormatReport:
    """Outcome for one file.

    Attributes:
        path: File that was processed.
        extension: Lower-case extension without the dot.
        outcome: Hash-derived classification.
        formatter: Formatter that succeeded, ``None`` when none did.
        before_hash: SHA-256 of the content before processing.
        after_hash: SHA-256 of the resulting content. Under dry run this is
            the content that would have been written.
        changed: Whether the file on disk was modified.
        notes: Failed steps and errors collected from the audit trail.
        preview: Optional diff preview of the change.
    """

    path: str
    extension: str
    outcome: FormatOutcome
    formatter: str | None
    before_hash: str | None
    after_hash: str | None
    changed: bool
    notes: tuple[str, ...] = ()
    preview: str | None = None


@dataclass(frozen=True, slots=True)
class CoverageReport:
    """Aggregate totals for a run."""

    total_files: int
    formatted_files: int
    already_formatted_files: int
    failed_files: int
    coverage_percent: float
    files: tuple[FileFormatReport, ...]


def coverage_percent(covered: int, total: int) -> float:
    """Return ``covered / total`` as a percentage rounded to two decimals (``0.0`` for no files)."""

    if total == 0:
        return 0.0
    return round(covered / total * 100, 2)


def aggregate(reports: Sequence[FileFormatReport]) -> CoverageReport:
    """Summarise ``reports`` into a :class:`CoverageReport`.

    Args:
        reports: Per-file reports in processing order.

    Returns:
        CoverageReport: Counts per outcome and the coverage percentage of
        files that ended formatted or already formatted.
    """

    formatted = sum(1 for report in reports if report.outcome is FormatOutcome.FORMATTED)
    already = sum(1 for report in reports if report.outcome is FormatOutcome.ALREADY_FORMATTED)
    failed = sum(1 for report in reports if report.outcome is FormatOutcome.FAILED)
    return CoverageReport(
        total_files=len(reports),
        formatted_files=formatted,
        already_formatted_files=already,
        failed_files=failed,
        coverage_percent=coverage_percent(formatted + already, len(reports)),
        files=tuple(reports),
    )


__all__ = ["CoverageReport", "FileFormatReport", "FormatOutcome", "aggregate", "coverage_percent"]
