# ABOUTME: Reduces fairness evaluation reports to the latest per grade or full history.
# ABOUTME: Classifies each report's disparate impact ratio into a bias status.

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional, Sequence, Union

import pandas as pd

from src.common.config import BiasThresholds
from src.common.ordering import ALL, filter_by_key, latest_per_key, sort_newest_first
from src.common.schemas import CategoryView, EvaluationReport, normalize_category
from src.common.validation import ValidationPolicy, apply_policy, validate_report

REPORT_COLUMNS = ["grade", "spd", "dir", "sample_size", "evaluated_at", "status"]


class ReportMode(str, Enum):
    LATEST = "latest"
    HISTORY = "history"

    @classmethod
    def parse(cls, value: Union[str, "ReportMode"]) -> "ReportMode":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for mode in cls:
            if mode.value == normalized:
                return mode
        raise ValueError(f"Unsupported report mode '{value}'. Expected one of: latest, history.")


class BiasStatus(str, Enum):
    BIAS_AGAINST = "Bias Against Dyslexic"
    NO_BIAS = "No Significant Bias"
    BIAS_IN_FAVOR = "Bias In Favor of Dyslexic"

    @property
    def label(self) -> str:
        return self.value


def classify_bias(
    disparate_impact: float,
    statistical_parity: Optional[float] = None,
    thresholds: BiasThresholds = BiasThresholds(),
) -> BiasStatus:
    """
    Map a disparate impact ratio to a bias status.

    Only the ratio decides; `statistical_parity` is accepted so callers can pass
    a report's two measurements together. Both bounds count as "no bias".
    """

    if disparate_impact < thresholds.lower:
        return BiasStatus.BIAS_AGAINST
    if disparate_impact > thresholds.upper:
        return BiasStatus.BIAS_IN_FAVOR
    return BiasStatus.NO_BIAS


def build_category_view(
    reports: Sequence[EvaluationReport],
    policy: Union[str, ValidationPolicy] = ValidationPolicy.STRICT,
) -> CategoryView:
    valid = apply_policy(reports, validate_report, policy)
    return CategoryView(
        latest_by_category=latest_per_key(valid, _category, _evaluated_at),
        all_sorted=sort_newest_first(valid, _evaluated_at),
    )


def reduce_reports_by_category(
    reports: Sequence[EvaluationReport],
    mode: Union[str, ReportMode] = ReportMode.LATEST,
    category_filter: Any = ALL,
    policy: Union[str, ValidationPolicy] = ValidationPolicy.STRICT,
) -> List[EvaluationReport]:
    """
    Return reports newest first, optionally collapsed to the latest per grade.

    Latest mode keeps one report per grade (a tie keeps the earlier report),
    then filters, then sorts. History mode skips the collapse.
    """

    mode = ReportMode.parse(mode)
    visible: List[EvaluationReport] = apply_policy(reports, validate_report, policy)
    if mode is ReportMode.LATEST:
        visible = list(latest_per_key(visible, _category, _evaluated_at).values())
    if category_filter != ALL:
        category_filter = normalize_category(category_filter)
    visible = filter_by_key(visible, _category, category_filter)
    return sort_newest_first(visible, _evaluated_at)


def reports_to_frame(
    reports: Sequence[EvaluationReport],
    thresholds: BiasThresholds = BiasThresholds(),
) -> pd.DataFrame:
    rows = [
        {
            "grade": r.category,
            "spd": r.spd,
            "dir": r.dir,
            "sample_size": r.sample_size,
            "evaluated_at": r.evaluated_at,
            "status": classify_bias(r.dir, r.spd, thresholds).label if r.dir is not None else None,
        }
        for r in reports
    ]
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def _category(report: EvaluationReport) -> Any:
    return report.category


def _evaluated_at(report: EvaluationReport):
    return report.evaluated_at
