# ABOUTME: Exposes the student roster engine.
# ABOUTME: Groups aggregation, drill-down analytics, and the repository-backed service.

from .aggregation import AttributePolicy, aggregate_by_student, summaries_to_frame
from .analytics import student_analytics, upload_stats
from .service import fetch_student_summaries

__all__ = [
    "AttributePolicy",
    "aggregate_by_student",
    "fetch_student_summaries",
    "student_analytics",
    "summaries_to_frame",
    "upload_stats",
]
