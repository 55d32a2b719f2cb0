# ABOUTME: Validates upload records and evaluation reports before reduction.
# ABOUTME: Supports strict (raise) and skip (drop and report) policies.

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Tuple, TypeVar, Union

from .schemas import EvaluationReport, UploadRecord
from .timestamps import to_utc_datetime

T = TypeVar("T")


class ValidationError(ValueError):
    """Raised when a record lacks a required key field."""

    def __init__(self, record_id: str, field: str, kind: str = "record") -> None:
        self.record_id = record_id
        self.field = field
        label = record_id or "<no id>"
        super().__init__(f"Invalid {kind} '{label}': missing required field '{field}'")


class ValidationPolicy(str, Enum):
    STRICT = "strict"
    SKIP = "skip"

    @classmethod
    def parse(cls, value: Union[str, "ValidationPolicy"]) -> "ValidationPolicy":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for policy in cls:
            if policy.value == normalized:
                return policy
        raise ValueError(f"Unsupported validation policy '{value}'. Expected one of: strict, skip.")


def validate_upload(record: UploadRecord) -> UploadRecord:
    if not isinstance(record.student_id, str) or not record.student_id:
        raise ValidationError(record.id, "studentId", kind="upload")
    uploaded_at = _aware(record.uploaded_at)
    if uploaded_at is None:
        raise ValidationError(record.id, "uploadedAt", kind="upload")
    if uploaded_at is not record.uploaded_at:
        record = replace(record, uploaded_at=uploaded_at)
    return record


def validate_report(report: EvaluationReport) -> EvaluationReport:
    if report.category is None:
        raise ValidationError(report.id, "grade", kind="report")
    evaluated_at = _aware(report.evaluated_at)
    if evaluated_at is None:
        raise ValidationError(report.id, "evaluated_at", kind="report")
    if evaluated_at is not report.evaluated_at:
        report = replace(report, evaluated_at=evaluated_at)
    return report


def _aware(value: Any) -> Optional[datetime]:
    # Naive datetimes and raw values are read as UTC so mixed inputs stay comparable.
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value
    return to_utc_datetime(value)


def partition_valid(
    items: Iterable[T], validator: Callable[[T], T]
) -> Tuple[List[T], List[ValidationError]]:
    """
    Split items into those passing `validator` and the errors for the rest.
    """

    valid: List[T] = []
    errors: List[ValidationError] = []
    for item in items:
        try:
            valid.append(validator(item))
        except ValidationError as exc:
            errors.append(exc)
    return valid, errors


def apply_policy(
    items: Iterable[T], validator: Callable[[T], T], policy: Union[str, ValidationPolicy]
) -> List[T]:
    """
    Validate the whole input before anything is reduced.

    STRICT raises the first error; SKIP returns only the valid items.
    """

    policy = ValidationPolicy.parse(policy)
    if policy is ValidationPolicy.STRICT:
        return [validator(item) for item in items]
    valid, _ = partition_valid(items, validator)
    return valid
