# ABOUTME: Wires the record repository to the student aggregation engine.
# ABOUTME: Re-run on every refresh; nothing is cached between calls.

from __future__ import annotations

from typing import List, Optional

from src.common.config import AppConfig
from src.common.repository import RecordRepository
from src.common.schemas import StudentSummary, UploadRecord

from .aggregation import aggregate_by_student


def load_upload_records(repository: RecordRepository, owner_id: str) -> List[UploadRecord]:
    return [UploadRecord.from_document(doc) for doc in repository.list_uploads(owner_id)]


def fetch_student_summaries(
    repository: RecordRepository,
    owner_id: str,
    config: Optional[AppConfig] = None,
) -> List[StudentSummary]:
    """Fetch an owner's uploads and return the roster, newest activity first."""

    config = config or AppConfig()
    records = load_upload_records(repository, owner_id)
    return aggregate_by_student(
        records,
        policy=config.roster.validation,
        attribute_policy=config.roster.attribute_policy,
    )


def find_student(summaries: List[StudentSummary], student_id: str) -> Optional[StudentSummary]:
    return next((s for s in summaries if s.student_id == student_id), None)
