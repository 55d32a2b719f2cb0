# ABOUTME: Abstracts the remote record store behind an injectable repository.
# ABOUTME: Ships in-memory and export-file implementations for tests and the CLI.

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

import pandas as pd

UPLOADS_COLLECTION = "userImages"
REPORTS_COLLECTION = "fairnessReports"


class RecordRepository(Protocol):
    """Anything that can hand back raw upload and report documents."""

    def list_uploads(self, owner_id: str) -> List[Mapping[str, Any]]:
        ...

    def list_reports(self) -> List[Mapping[str, Any]]:
        ...


class InMemoryRecordRepository:
    def __init__(
        self,
        uploads: Optional[Sequence[Mapping[str, Any]]] = None,
        reports: Optional[Sequence[Mapping[str, Any]]] = None,
    ) -> None:
        self._uploads = list(uploads or [])
        self._reports = list(reports or [])

    def list_uploads(self, owner_id: str) -> List[Mapping[str, Any]]:
        return [dict(doc) for doc in self._uploads if _owner_of(doc) == owner_id]

    def list_reports(self) -> List[Mapping[str, Any]]:
        return [dict(doc) for doc in self._reports]


class FileRecordRepository:
    """
    Reads a record-store export from disk.

    `path` is either a JSON file shaped like
    `{"userImages": [...], "fairnessReports": [...]}` or a directory holding
    `uploads.parquet` and/or `reports.parquet`.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Record store export not found at {self.path}")
        self._cache: Optional[Dict[str, List[Dict[str, Any]]]] = None

    def list_uploads(self, owner_id: str) -> List[Mapping[str, Any]]:
        return [doc for doc in self._collections()[UPLOADS_COLLECTION] if _owner_of(doc) == owner_id]

    def list_reports(self) -> List[Mapping[str, Any]]:
        return list(self._collections()[REPORTS_COLLECTION])

    def _collections(self) -> Dict[str, List[Dict[str, Any]]]:
        if self._cache is None:
            if self.path.is_dir():
                self._cache = {
                    UPLOADS_COLLECTION: _read_parquet_docs(self.path / "uploads.parquet"),
                    REPORTS_COLLECTION: _read_parquet_docs(self.path / "reports.parquet"),
                }
            else:
                payload = json.loads(self.path.read_text(encoding="utf-8"))
                self._cache = {
                    UPLOADS_COLLECTION: list(payload.get(UPLOADS_COLLECTION, [])),
                    REPORTS_COLLECTION: list(payload.get(REPORTS_COLLECTION, [])),
                }
        return self._cache


def _read_parquet_docs(path: Path) -> List[Dict[str, Any]]:
    if not path.exists():
        return []
    df = pd.read_parquet(path)
    # NaN/NaT would otherwise leak in as "present" values.
    df = df.astype(object).where(df.notna(), None)
    return df.to_dict(orient="records")


def _owner_of(doc: Mapping[str, Any]) -> Any:
    return doc.get("userId", doc.get("user_id"))
