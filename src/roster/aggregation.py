# ABOUTME: Groups per-image upload records into per-student summaries.
# ABOUTME: Maintains running average scores and orders students by latest upload.

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Dict, List, Sequence, Union

import pandas as pd

from src.common.ordering import sort_newest_first
from src.common.schemas import StudentSummary, UploadRecord
from src.common.validation import ValidationPolicy, apply_policy, validate_upload

SUMMARY_COLUMNS = [
    "student_id",
    "student_age",
    "student_grade",
    "student_gender",
    "essay_count",
    "scored_count",
    "average_score",
    "last_upload_date",
]


class AttributePolicy(str, Enum):
    """Which record's age/grade/gender a summary keeps when records disagree."""

    FIRST_SEEN = "first_seen"
    LAST_SEEN = "last_seen"

    @classmethod
    def parse(cls, value: Union[str, "AttributePolicy"]) -> "AttributePolicy":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for policy in cls:
            if policy.value == normalized:
                return policy
        raise ValueError(f"Unsupported attribute policy '{value}'. Expected one of: first_seen, last_seen.")


def aggregate_by_student(
    records: Sequence[UploadRecord],
    policy: Union[str, ValidationPolicy] = ValidationPolicy.STRICT,
    attribute_policy: Union[str, AttributePolicy] = AttributePolicy.FIRST_SEEN,
) -> List[StudentSummary]:
    """
    Fold upload records into one summary per student, newest upload first.

    Steps:
    - Validate the whole input (strict raises, skip drops invalid records).
    - Fold in input order, updating the running mean as
      new = (old * n + score) / (n + 1) for each present score.
    - Round averages to two decimals (half-up) once folding is done.
    - Sort by last upload date, descending.
    """

    valid = apply_policy(records, validate_upload, policy)
    attribute_policy = AttributePolicy.parse(attribute_policy)

    by_student: Dict[str, StudentSummary] = {}
    for record in valid:
        summary = by_student.get(record.student_id)
        if summary is None:
            by_student[record.student_id] = _start_summary(record)
            continue

        summary.essay_count += 1
        summary.essays.append(record)
        if record.uploaded_at > summary.last_upload_date:
            summary.last_upload_date = record.uploaded_at
        if record.has_score:
            n = summary.scored_count
            previous = summary.average_score if n else 0.0
            summary.average_score = (previous * n + record.score) / (n + 1)
            summary.scored_count = n + 1
        if attribute_policy is AttributePolicy.LAST_SEEN:
            _overwrite_attributes(summary, record)

    for summary in by_student.values():
        if summary.average_score is not None:
            summary.average_score = round_half_up(summary.average_score)

    return sort_newest_first(by_student.values(), lambda s: s.last_upload_date)


def round_half_up(value: float, places: int = 2) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def summaries_to_frame(summaries: Sequence[StudentSummary]) -> pd.DataFrame:
    rows = [{column: getattr(summary, column) for column in SUMMARY_COLUMNS} for summary in summaries]
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def _start_summary(record: UploadRecord) -> StudentSummary:
    return StudentSummary(
        student_id=record.student_id,
        last_upload_date=record.uploaded_at,
        essay_count=1,
        essays=[record],
        scored_count=1 if record.has_score else 0,
        average_score=record.score if record.has_score else None,
        student_age=record.student_age,
        student_grade=record.student_grade,
        student_gender=record.student_gender,
    )


def _overwrite_attributes(summary: StudentSummary, record: UploadRecord) -> None:
    # Missing values on the newer record do not erase known ones.
    if record.student_age is not None:
        summary.student_age = record.student_age
    if record.student_grade is not None:
        summary.student_grade = record.student_grade
    if record.student_gender is not None:
        summary.student_gender = record.student_gender
