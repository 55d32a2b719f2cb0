# ABOUTME: Tests the latest-per-grade reducer and bias classification for fairness reports.
# ABOUTME: Covers latest/history modes, grade filters, tie-breaks, and validation.

from datetime import datetime, timedelta, timezone

import pytest

from src.common.config import BiasThresholds
from src.common.schemas import EvaluationReport
from src.common.validation import ValidationError
from src.fairness.reports import (
    BiasStatus,
    ReportMode,
    build_category_view,
    classify_bias,
    reduce_reports_by_category,
    reports_to_frame,
)

T0 = datetime(2025, 1, 10, tzinfo=timezone.utc)


def _report(report_id, grade, hours, dir_ratio=1.0, spd=0.0):
    return EvaluationReport(
        id=report_id,
        category=grade,
        evaluated_at=T0 + timedelta(hours=hours),
        spd=spd,
        dir=dir_ratio,
        sample_size=40,
    )


def test_latest_mode_keeps_newest_per_grade():
    reports = [_report("old", 5, 1), _report("new", 5, 2)]

    result = reduce_reports_by_category(reports, "latest", "ALL")

    assert [r.id for r in result] == ["new"]


def test_latest_mode_independent_of_input_order():
    reports = [_report("new", 5, 9), _report("old", 5, 1), _report("g3", 3, 4)]

    result = reduce_reports_by_category(reports, ReportMode.LATEST)

    assert [r.id for r in result] == ["new", "g3"]


def test_latest_mode_with_grade_filter():
    reports = [_report("g3", 3, 1), _report("g4", 4, 2), _report("g5", 5, 3)]

    result = reduce_reports_by_category(reports, "latest", 4)

    assert [r.id for r in result] == ["g4"]


def test_grade_filter_accepts_numeric_string():
    reports = [_report("g3", 3, 1), _report("g4", 4, 2)]

    assert [r.id for r in reduce_reports_by_category(reports, "latest", "4")] == ["g4"]


def test_exact_tie_keeps_earlier_report():
    reports = [_report("first", 5, 3), _report("second", 5, 3)]

    result = reduce_reports_by_category(reports, "latest")

    assert [r.id for r in result] == ["first"]


def test_history_mode_keeps_everything_sorted():
    reports = [_report("a", 5, 1), _report("b", 4, 7), _report("c", 5, 3), _report("d", 3, 5)]

    result = reduce_reports_by_category(reports, "history")

    assert len(result) == len(reports)
    stamps = [r.evaluated_at for r in result]
    assert stamps == sorted(stamps, reverse=True)


def test_history_mode_with_filter():
    reports = [_report("a", 5, 1), _report("b", 4, 7), _report("c", 5, 3)]

    result = reduce_reports_by_category(reports, "history", 5)

    assert [r.id for r in result] == ["c", "a"]


def test_filter_without_matches_is_empty():
    assert reduce_reports_by_category([_report("a", 5, 1)], "latest", 8) == []
    assert reduce_reports_by_category([], "history") == []


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        reduce_reports_by_category([_report("a", 5, 1)], "newest")


def test_missing_timestamp_strict_and_skip():
    reports = [_report("a", 5, 1), EvaluationReport(id="bad", category=5, evaluated_at=None)]

    with pytest.raises(ValidationError) as excinfo:
        reduce_reports_by_category(reports, "latest")
    assert excinfo.value.field == "evaluated_at"

    assert [r.id for r in reduce_reports_by_category(reports, "latest", policy="skip")] == ["a"]


def test_missing_grade_rejected():
    with pytest.raises(ValidationError) as excinfo:
        reduce_reports_by_category([EvaluationReport(id="x", category=None, evaluated_at=T0)])

    assert excinfo.value.field == "grade"


def test_category_view_latest_dominates_each_grade():
    reports = [_report(str(i), 3 + i % 3, (i * 7) % 11) for i in range(12)]

    view = build_category_view(reports)

    for grade, latest in view.latest_by_category.items():
        for report in reports:
            if report.category == grade:
                assert latest.evaluated_at >= report.evaluated_at
    assert len(view.all_sorted) == len(reports)


@pytest.mark.parametrize(
    "ratio,expected",
    [
        (0.7, BiasStatus.BIAS_AGAINST),
        (0.8, BiasStatus.NO_BIAS),
        (0.9, BiasStatus.NO_BIAS),
        (1.25, BiasStatus.NO_BIAS),
        (1.3, BiasStatus.BIAS_IN_FAVOR),
    ],
)
def test_classify_bias_thresholds(ratio, expected):
    assert classify_bias(ratio, 0.05) is expected


def test_classify_bias_custom_thresholds_and_labels():
    thresholds = BiasThresholds(lower=0.9, upper=1.1)

    assert classify_bias(0.85, thresholds=thresholds) is BiasStatus.BIAS_AGAINST
    assert classify_bias(1.15, thresholds=thresholds) is BiasStatus.BIAS_IN_FAVOR
    assert BiasStatus.BIAS_AGAINST.label == "Bias Against Dyslexic"
    assert BiasStatus.NO_BIAS.label == "No Significant Bias"


def test_reports_to_frame_includes_status():
    frame = reports_to_frame([_report("a", 5, 1, dir_ratio=0.5), _report("b", 4, 2, dir_ratio=1.0)])

    assert list(frame["status"]) == ["Bias Against Dyslexic", "No Significant Bias"]
    assert list(frame["grade"]) == [5, 4]


def test_naive_report_times_compare_as_utc():
    naive = EvaluationReport(id="naive", category=5, evaluated_at=datetime(2025, 1, 10, 3, 0), dir=0.9)
    reports = [_report("aware", 5, 2), naive, _report("other", 4, 1)]

    latest = reduce_reports_by_category(reports, ReportMode.LATEST)
    history = reduce_reports_by_category(reports, ReportMode.HISTORY, 5)

    assert [r.id for r in latest] == ["naive", "other"]
    assert latest[0].evaluated_at.tzinfo is not None
    assert [r.id for r in history] == ["naive", "aware"]
