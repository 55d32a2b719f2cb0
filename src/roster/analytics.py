# ABOUTME: Computes drill-down analytics for one student's essays.
# ABOUTME: Reports score spread, recent trend, score bands, rubric means, and upload stats.

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from src.common.config import ScoreBandThresholds
from src.common.ordering import sort_newest_first
from src.common.schemas import UploadRecord

RUBRIC_COMPONENTS = ("richness_5", "organization_6", "technical_3")
FAIRNESS_METRICS = ("spd", "dir", "eod")
TREND_WINDOW = 3


@dataclass(frozen=True)
class ScoreBands:
    excellent: int = 0
    good: int = 0
    average: int = 0
    needs_work: int = 0


@dataclass(frozen=True)
class StudentAnalytics:
    scored_count: int
    average_score: float
    max_score: float
    min_score: float
    trend: float
    trend_pct: float
    bands: ScoreBands
    rubric_averages: Dict[str, float] = field(default_factory=dict)
    dyslexic_rate: float = 0.0
    fairness_averages: Optional[Dict[str, float]] = None


@dataclass(frozen=True)
class UploadStats:
    total_images: int
    total_size: int
    first_upload: Optional[datetime] = None
    last_upload: Optional[datetime] = None


def student_analytics(
    essays: Sequence[UploadRecord],
    thresholds: ScoreBandThresholds = ScoreBandThresholds(),
) -> Optional[StudentAnalytics]:
    """
    Summarize a student's scored essays, or return None when nothing is scored yet.

    The trend compares the mean of the newest three scored essays against the
    oldest three; with fewer than six essays the windows overlap.
    """

    scored = [e for e in essays if e.has_score and e.uploaded_at is not None]
    if not scored:
        return None

    scored = sort_newest_first(scored, lambda e: e.uploaded_at)
    scores = [e.score for e in scored]
    window = min(TREND_WINDOW, len(scores))
    recent_avg = _mean(scores[:window])
    oldest_avg = _mean(scores[-window:])
    trend = recent_avg - oldest_avg
    trend_pct = (trend / oldest_avg * 100) if oldest_avg > 0 else 0.0

    dyslexic = sum(1 for e in scored if _dyslexic_flag(e))

    return StudentAnalytics(
        scored_count=len(scored),
        average_score=_mean(scores),
        max_score=max(scores),
        min_score=min(scores),
        trend=trend,
        trend_pct=trend_pct,
        bands=band_scores(scores, thresholds),
        rubric_averages=_rubric_averages(scored),
        dyslexic_rate=dyslexic / len(scored) * 100,
        fairness_averages=_fairness_averages(scored),
    )


def band_scores(scores: Sequence[float], thresholds: ScoreBandThresholds = ScoreBandThresholds()) -> ScoreBands:
    excellent = good = average = needs_work = 0
    for score in scores:
        if score >= thresholds.excellent:
            excellent += 1
        elif score >= thresholds.good:
            good += 1
        elif score >= thresholds.average:
            average += 1
        else:
            needs_work += 1
    return ScoreBands(excellent=excellent, good=good, average=average, needs_work=needs_work)


def upload_stats(records: Sequence[UploadRecord]) -> UploadStats:
    dates = sorted(r.uploaded_at for r in records if r.uploaded_at is not None)
    return UploadStats(
        total_images=len(records),
        total_size=sum(int(r.file_size or 0) for r in records),
        first_upload=dates[0] if dates else None,
        last_upload=dates[-1] if dates else None,
    )


def _rubric_averages(essays: Sequence[UploadRecord]) -> Dict[str, float]:
    collected: Dict[str, List[float]] = {}
    for essay in essays:
        rubric = essay.extra.get("rubric") or {}
        for component in RUBRIC_COMPONENTS:
            value = rubric.get(component)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                collected.setdefault(component, []).append(float(value))
    return {component: _mean(values) for component, values in collected.items()}


def _fairness_averages(essays: Sequence[UploadRecord]) -> Optional[Dict[str, float]]:
    """
    Mean SPD/DIR/EOD over the essays that carry a per-essay fairness report.

    Unreadable metric values count as 0, so every report weighs the same.
    """

    reports = [e.extra.get("fairness_report") for e in essays]
    reports = [r for r in reports if r]
    if not reports:
        return None
    return {metric: _mean([_metric_value(r, metric) for r in reports]) for metric in FAIRNESS_METRICS}


def _metric_value(report, metric: str) -> float:
    value = report.get(metric) if hasattr(report, "get") else None
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def _dyslexic_flag(essay: UploadRecord) -> bool:
    details = essay.extra.get("details") or {}
    return bool(details.get("dyslexic_flag"))


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)
