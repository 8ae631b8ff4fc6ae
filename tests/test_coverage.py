# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

from __future__ import annotations

import pytest

from formatguard.coverage import FileFormatReport, FormatOutcome, aggregate, coverage_percent


def _report(outcome: FormatOutcome, index: int = 0) -> FileFormatReport:
    return FileFormatReport(
        path=f"file{index}.py",
        extension="py",
        outcome=outcome,
        formatter="black" if outcome is FormatOutcome.FORMATTED else None,
        before_hash="a",
        after_hash="b" if outcome is FormatOutcome.FORMATTED else "a",
        changed=outcome is FormatOutcome.FORMATTED,
    )


def test_empty_run_has_zero_coverage() -> None:
    report = aggregate([])

    assert report.total_files == 0
    assert report.coverage_percent == 0.0


@pytest.mark.parametrize(
    ("outcomes", "expected"),
    [
        ([FormatOutcome.FORMATTED], 100.0),
        ([FormatOutcome.FAILED], 0.0),
        ([FormatOutcome.FORMATTED, FormatOutcome.ALREADY_FORMATTED, FormatOutcome.FAILED], 66.67),
        ([FormatOutcome.ALREADY_FORMATTED] * 2 + [FormatOutcome.FAILED] * 5, 28.57),
    ],
)
def test_coverage_counts_formatted_and_already_formatted(outcomes: list[FormatOutcome], expected: float) -> None:
    report = aggregate([_report(outcome, index) for index, outcome in enumerate(outcomes)])

    assert report.total_files == len(outcomes)
    assert report.formatted_files == outcomes.count(FormatOutcome.FORMATTED)
    assert report.already_formatted_files == outcomes.count(FormatOutcome.ALREADY_FORMATTED)
    assert report.failed_files == outcomes.count(FormatOutcome.FAILED)
    assert report.coverage_percent == expected


@pytest.mark.parametrize(("covered", "total"), [(1, 3), (2, 3), (7, 9), (0, 4), (13, 17)])
def test_coverage_percent_matches_rounded_ratio(covered: int, total: int) -> None:
    assert coverage_percent(covered, total) == round(covered / total * 100, 2)
