"""
Applicant result records as seen by the analytics engine.

Documents coming out of the store are loosely shaped (marks typed in by
hand, missing counters, numbers stored as strings); ``from_document``
turns them into a uniform, read-only record.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union


@dataclass(frozen=True)
class ApplicantResultRecord:
    """One applicant's exam outcome."""

    roll_number: str
    institute_raw: Optional[str] = None
    grade_raw: Optional[Union[str, int, float]] = None
    attendance_complete: bool = False
    score: Optional[float] = None
    search_count: int = 0

    @property
    def has_result(self) -> bool:
        """Present with a numeric score recorded."""
        return self.attendance_complete and self.score is not None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "ApplicantResultRecord":
        """
        Build a record from a stored applicant document.

        Accepts both the stored field names (``scholarshipRollNumber``,
        ``institute``, ``instituteClass``, ``isAttendanceComplete``,
        ``resultDetails``) and the short engine names (``rollNumber``,
        ``score`` ...).
        """
        roll = doc.get("scholarshipRollNumber", doc.get("rollNumber"))

        raw_score = doc.get("score")
        details = latest_result_details(doc.get("resultDetails"))
        if raw_score is None and details is not None:
            raw_score = details.get("marks", details.get("score"))

        attendance = doc.get("isAttendanceComplete", doc.get("attendanceComplete"))

        return cls(
            roll_number="" if roll is None else str(roll),
            institute_raw=doc.get("institute", doc.get("instituteRaw")),
            grade_raw=doc.get("instituteClass", doc.get("gradeRaw")),
            attendance_complete=attendance is True,
            score=coerce_score(raw_score),
            search_count=coerce_count(doc.get("searchCount")),
        )


def latest_result_details(value: Any) -> Optional[Dict[str, Any]]:
    """
    Return the current result details object.

    Older exports keep ``resultDetails`` as a list of pushed entries; the
    last object in that list is the current one.
    """
    if isinstance(value, dict):
        return value
    if isinstance(value, list):
        for entry in reversed(value):
            if isinstance(entry, dict):
                return entry
    return None


def coerce_score(value: Any) -> Optional[float]:
    """Return *value* as a finite float, or None when it is not a usable mark."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_count(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def records_from_documents(docs: Iterable[Dict[str, Any]]) -> List[ApplicantResultRecord]:
    return [ApplicantResultRecord.from_document(d) for d in docs]


def total_searches(records: Iterable[ApplicantResultRecord]) -> int:
    """Sum of public lookups across *records*."""
    return sum(r.search_count for r in records)
