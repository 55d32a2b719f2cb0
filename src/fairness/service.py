# ABOUTME: Wires the record repository to the fairness report reducer.
# ABOUTME: Callers re-invoke it when the history toggle or grade filter changes.

from __future__ import annotations

from typing import Any, List, Optional

from src.common.config import AppConfig
from src.common.ordering import ALL
from src.common.repository import RecordRepository
from src.common.schemas import EvaluationReport

from .reports import ReportMode, reduce_reports_by_category


def load_reports(repository: RecordRepository) -> List[EvaluationReport]:
    return [EvaluationReport.from_document(doc) for doc in repository.list_reports()]


def fetch_report_view(
    repository: RecordRepository,
    mode: ReportMode = ReportMode.LATEST,
    category_filter: Any = ALL,
    config: Optional[AppConfig] = None,
) -> List[EvaluationReport]:
    config = config or AppConfig()
    return reduce_reports_by_category(
        load_reports(repository),
        mode=mode,
        category_filter=category_filter,
        policy=config.fairness.validation,
    )
