# ABOUTME: Defines canonical record structures shared by the roster and fairness engines.
# ABOUTME: Centralizes upload, student summary, and evaluation report definitions.

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from .timestamps import to_utc_datetime

_UPLOAD_KEYS = {
    "id": ("id",),
    "student_id": ("studentId", "student_id"),
    "student_age": ("studentAge", "student_age"),
    "student_grade": ("studentGrade", "student_grade"),
    "student_gender": ("studentGender", "student_gender"),
    "uploaded_at": ("uploadedAt", "uploaded_at"),
    "score": ("score",),
    "file_name": ("fileName", "file_name"),
    "file_size": ("fileSize", "file_size"),
    "image_url": ("imageUrl", "image_url"),
}

_REPORT_KEYS = {
    "id": ("id",),
    "category": ("grade", "category"),
    "evaluated_at": ("evaluated_at", "evaluatedAt"),
    "spd": ("spd",),
    "dir": ("dir",),
    "threshold": ("threshold",),
    "sample_size": ("sample_size", "sampleSize"),
}


def is_present_score(value: Any) -> bool:
    """A score counts only when it is a real, finite number."""

    if value is None or isinstance(value, bool):
        return False
    if not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


@dataclass(frozen=True)
class UploadRecord:
    """One uploaded essay image as stored in the record store."""

    id: str
    student_id: str
    uploaded_at: Optional[datetime]
    score: Optional[float] = None
    student_age: Optional[int] = None
    student_grade: Optional[str] = None
    student_gender: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    image_url: Optional[str] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def has_score(self) -> bool:
        return is_present_score(self.score)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "UploadRecord":
        """
        Build a record from a raw store document without validating it.

        Missing keys become None (or "" for identifiers) so that validation can
        report them by name afterwards.
        """

        values = _pick(doc, _UPLOAD_KEYS)
        student_id = values["student_id"]
        score = values["score"]
        return cls(
            id="" if values["id"] is None else str(values["id"]),
            student_id="" if student_id is None else str(student_id),
            uploaded_at=to_utc_datetime(values["uploaded_at"]),
            score=float(score) if is_present_score(score) else None,
            student_age=values["student_age"],
            student_grade=values["student_grade"],
            student_gender=values["student_gender"],
            file_name=values["file_name"],
            file_size=values["file_size"],
            image_url=values["image_url"],
            extra=_leftovers(doc, _UPLOAD_KEYS),
        )


@dataclass
class StudentSummary:
    """Per-student roll-up rebuilt on every aggregation call."""

    student_id: str
    last_upload_date: datetime
    essay_count: int = 0
    essays: List[UploadRecord] = field(default_factory=list)
    scored_count: int = 0
    average_score: Optional[float] = None
    student_age: Optional[int] = None
    student_grade: Optional[str] = None
    student_gender: Optional[str] = None


@dataclass(frozen=True)
class EvaluationReport:
    """Batch-level fairness evaluation for one grade."""

    category: Any
    evaluated_at: Optional[datetime]
    spd: Optional[float] = None
    dir: Optional[float] = None
    threshold: Optional[float] = None
    sample_size: Optional[int] = None
    id: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "EvaluationReport":
        values = _pick(doc, _REPORT_KEYS)
        return cls(
            category=normalize_category(values["category"]),
            evaluated_at=to_utc_datetime(values["evaluated_at"]),
            spd=_to_float(values["spd"]),
            dir=_to_float(values["dir"]),
            threshold=_to_float(values["threshold"]),
            sample_size=values["sample_size"],
            id="" if values["id"] is None else str(values["id"]),
            extra=_leftovers(doc, _REPORT_KEYS),
        )


@dataclass(frozen=True)
class CategoryView:
    """Latest report per category alongside the full newest-first history."""

    latest_by_category: Dict[Any, EvaluationReport]
    all_sorted: List[EvaluationReport]


def _pick(doc: Mapping[str, Any], keys: Mapping[str, tuple]) -> Dict[str, Any]:
    picked: Dict[str, Any] = {}
    for name, aliases in keys.items():
        picked[name] = next((doc[alias] for alias in aliases if doc.get(alias) is not None), None)
    return picked


def _leftovers(doc: Mapping[str, Any], keys: Mapping[str, tuple]) -> Dict[str, Any]:
    known = {alias for aliases in keys.values() for alias in aliases}
    return {k: v for k, v in doc.items() if k not in known}


def normalize_category(value: Any) -> Any:
    # Grades arrive as numbers or numeric strings depending on the writer.
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
