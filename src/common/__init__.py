# ABOUTME: Makes the shared common package importable across the roster and fairness engines.
# ABOUTME: Re-exports schema types, validation, and paging helpers for convenience.

from .schemas import CategoryView, EvaluationReport, StudentSummary, UploadRecord
from .validation import ValidationError, ValidationPolicy
from .pagination import Page, paginate

__all__ = [
    "CategoryView",
    "EvaluationReport",
    "Page",
    "StudentSummary",
    "UploadRecord",
    "ValidationError",
    "ValidationPolicy",
    "paginate",
]
