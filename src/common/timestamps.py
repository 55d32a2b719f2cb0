# ABOUTME: Normalizes record-store timestamps into timezone-aware UTC datetimes.
# ABOUTME: Accepts datetimes, ISO strings, epoch millis, and Firestore timestamp maps.

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import pandas as pd


def to_utc_datetime(value: Any) -> Optional[datetime]:
    """
    Coerce a raw timestamp into a UTC datetime, or None when it cannot be read.

    Numbers are epoch milliseconds, which is how the mobile client stores
    `Date` values. Mappings follow the Firestore export shape
    (`seconds`/`_seconds` plus optional `nanoseconds`/`_nanoseconds`).
    Naive datetimes and strings without an offset are taken as UTC.
    """

    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Mapping):
        return _from_firestore_mapping(value)

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        stamp = pd.to_datetime(value, unit="ms", utc=True, errors="coerce")
    elif isinstance(value, str):
        if not value.strip():
            return None
        stamp = pd.to_datetime(value.strip(), utc=True, errors="coerce")
    elif isinstance(value, (datetime, pd.Timestamp)):
        try:
            stamp = pd.Timestamp(value)
        except (ValueError, OverflowError):
            return None
        stamp = stamp.tz_localize("UTC") if stamp.tzinfo is None else stamp.tz_convert("UTC")
    else:
        return None

    if stamp is None or pd.isna(stamp):
        return None
    return stamp.to_pydatetime()


def _from_firestore_mapping(value: Mapping) -> Optional[datetime]:
    seconds = value.get("seconds", value.get("_seconds"))
    if seconds is None or isinstance(seconds, bool):
        return None
    nanos = value.get("nanoseconds", value.get("_nanoseconds")) or 0
    try:
        total = float(seconds) + float(nanos) / 1e9
        return datetime.fromtimestamp(total, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None
