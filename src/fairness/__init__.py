# ABOUTME: Exposes the fairness dashboard engine.
# ABOUTME: Groups the latest-per-grade reducer, bias classification, and service.

from .reports import (
    BiasStatus,
    ReportMode,
    build_category_view,
    classify_bias,
    reduce_reports_by_category,
    reports_to_frame,
)
from .service import fetch_report_view

__all__ = [
    "BiasStatus",
    "ReportMode",
    "build_category_view",
    "classify_bias",
    "fetch_report_view",
    "reduce_reports_by_category",
    "reports_to_frame",
]
