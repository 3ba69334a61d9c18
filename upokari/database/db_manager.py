"""
Database manager — applicant CRUD, search counters and band config rows.

Uses SQLAlchemy sessions scoped to each public method so one manager is
safe to share between concurrent requests.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import create_engine, func
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from upokari.analytics.records import latest_result_details
from upokari.config import get_config
from upokari.database.models import Applicant, Base, ResultCalculationConfig
from upokari.utils.logger import get_logger

log = get_logger(__name__)

# document field -> column, for find() filters and imports
_APPLICANT_FIELDS = {
    "scholarshipRollNumber": "roll_number",
    "name": "name",
    "institute": "institute",
    "instituteClass": "institute_class",
    "instituteRollNumber": "institute_roll_number",
    "isAttendanceComplete": "is_attendance_complete",
    "resultDetails": "result_details",
    "searchCount": "search_count",
}

_BAND_CONFIG_COLUMNS = ("total_marks", "pass_percent", "high_marks_percent", "got75_percent")


class DatabaseManager:
    """Record source and config source for the analytics engine."""

    def __init__(self, database_url: Optional[str] = None):
        """
        Args:
            database_url: SQLAlchemy URL. Defaults to ``DATABASE_URL`` from config.
        """
        self.database_url = database_url or get_config().DATABASE_URL
        engine_kwargs: Dict[str, Any] = {"echo": False, "future": True}
        if self.database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if self.database_url in ("sqlite://", "sqlite:///:memory:"):
                # one shared connection, otherwise every session sees an empty db
                engine_kwargs["poolclass"] = StaticPool
        self._engine = create_engine(self.database_url, **engine_kwargs)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    def _session(self) -> Session:
        return self._session_factory()

    # -----------------------------------------------------------------------
    # Initialization
    # -----------------------------------------------------------------------

    def init_db(self) -> None:
        """Create all tables if they do not exist."""
        Base.metadata.create_all(self._engine)
        log.info("Database initialised at %s", self.database_url)

    # -----------------------------------------------------------------------
    # Applicants
    # -----------------------------------------------------------------------

    def save_applicant(self, doc: Dict[str, Any]) -> int:
        """
        Upsert an applicant document (keyed on ``scholarshipRollNumber``).

        Only fields present in *doc* are written on update. A list-shaped
        ``resultDetails`` is stored as its last entry.

        Returns:
            The ``Applicant.id``.
        """
        roll = doc.get("scholarshipRollNumber")
        if not roll:
            raise ValueError("scholarshipRollNumber is required")

        with self._session() as s:
            applicant = s.query(Applicant).filter_by(roll_number=str(roll)).first()
            if applicant is None:
                applicant = Applicant(roll_number=str(roll), search_count=0)
                s.add(applicant)

            for field, column in _APPLICANT_FIELDS.items():
                if field == "scholarshipRollNumber" or field not in doc:
                    continue
                value = doc[field]
                if column == "institute_class" and value is not None:
                    value = str(value)
                if column == "is_attendance_complete":
                    value = value is True
                if column == "result_details":
                    value = latest_result_details(value)
                setattr(applicant, column, value)

            s.commit()
            return applicant.id

    def find_applicants(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Return applicant documents matching *filters* (exact match on document fields).

        Raises:
            KeyError: When a filter names an unknown field.
        """
        with self._session() as s:
            query = s.query(Applicant)
            for field, value in (filters or {}).items():
                query = query.filter(getattr(Applicant, _APPLICANT_FIELDS[field]) == value)
            return [_applicant_to_dict(a) for a in query.order_by(Applicant.id).all()]

    def get_applicant(self, roll_number: str) -> Optional[Dict[str, Any]]:
        with self._session() as s:
            applicant = s.query(Applicant).filter_by(roll_number=roll_number).first()
            return _applicant_to_dict(applicant) if applicant else None

    # -----------------------------------------------------------------------
    # Results
    # -----------------------------------------------------------------------

    def add_result(
        self, roll_number: str, result_details: Dict[str, Any], user_id: Optional[str] = None
    ) -> Optional[bool]:
        """
        Attach result details to an applicant, replacing any previous ones.

        Returns:
            None if the applicant does not exist, True if a previous result
            was replaced, False if this is the first result.
        """
        with self._session() as s:
            applicant = s.query(Applicant).filter_by(roll_number=roll_number).first()
            if applicant is None:
                return None
            replaced = applicant.result_details is not None
            applicant.result_details = dict(result_details)
            applicant.updated_by = user_id
            s.commit()
            log.info(
                "%s result for %s", "Replaced" if replaced else "Added", roll_number
            )
            return replaced

    def update_course_fund(
        self, roll_number: str, course_fund: Any, user_id: Optional[str] = None
    ) -> Optional[bool]:
        """
        Set ``courseFund`` inside an applicant's result details.

        Returns:
            None if the applicant does not exist, False if it has no result
            details yet, True once updated.
        """
        with self._session() as s:
            applicant = s.query(Applicant).filter_by(roll_number=roll_number).first()
            if applicant is None:
                return None
            details = latest_result_details(applicant.result_details)
            if details is None:
                return False
            # reassign so the JSON column registers the change
            applicant.result_details = {**details, "courseFund": course_fund}
            applicant.updated_by = user_id
            s.commit()
            log.info("Updated course fund for %s", roll_number)
            return True

    def delete_result(self, roll_number: str, user_id: Optional[str] = None) -> bool:
        """Clear an applicant's result details. False if there was nothing to clear."""
        with self._session() as s:
            applicant = s.query(Applicant).filter_by(roll_number=roll_number).first()
            if applicant is None or applicant.result_details is None:
                return False
            applicant.result_details = None
            applicant.updated_by = user_id
            s.commit()
            log.info("Deleted result for %s", roll_number)
            return True

    # -----------------------------------------------------------------------
    # Search counters
    # -----------------------------------------------------------------------

    def increment_search_count(self, roll_number: str) -> Optional[Dict[str, Any]]:
        """Bump the lookup counter and return the updated document (None if absent)."""
        with self._session() as s:
            applicant = s.query(Applicant).filter_by(roll_number=roll_number).first()
            if applicant is None:
                return None
            applicant.search_count = (applicant.search_count or 0) + 1
            s.commit()
            return _applicant_to_dict(applicant)

    def get_total_searches(self) -> int:
        with self._session() as s:
            total = s.query(
                func.coalesce(func.sum(func.coalesce(Applicant.search_count, 0)), 0)
            ).scalar()
            return int(total or 0)

    # -----------------------------------------------------------------------
    # Band configuration
    # -----------------------------------------------------------------------

    def get_band_config_rows(self) -> Dict[str, Dict[str, Optional[float]]]:
        """Stored config per band name; bands never written are absent."""
        with self._session() as s:
            return {
                row.band: {col: getattr(row, col) for col in _BAND_CONFIG_COLUMNS}
                for row in s.query(ResultCalculationConfig).all()
            }

    def upsert_band_config(
        self, band: str, values: Dict[str, float], user_id: Optional[str] = None
    ) -> None:
        """Write the given columns of *band*'s config row, creating it if needed."""
        with self._session() as s:
            row = s.query(ResultCalculationConfig).filter_by(band=band).first()
            if row is None:
                row = ResultCalculationConfig(band=band)
                s.add(row)
            for col in _BAND_CONFIG_COLUMNS:
                if col in values:
                    setattr(row, col, values[col])
            row.updated_by = user_id
            row.updated_at = datetime.utcnow()
            s.commit()
            log.info("Saved %s band config: %s", band, values)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _applicant_to_dict(a: Applicant) -> Dict[str, Any]:
    return {
        "id": a.id,
        "scholarshipRollNumber": a.roll_number,
        "name": a.name,
        "institute": a.institute,
        "instituteClass": a.institute_class,
        "instituteRollNumber": a.institute_roll_number,
        "isAttendanceComplete": bool(a.is_attendance_complete),
        "resultDetails": a.result_details,
        "searchCount": a.search_count or 0,
        "submittedAt": a.submitted_at.isoformat() if a.submitted_at else None,
        "updatedAt": a.updated_at.isoformat() if a.updated_at else None,
    }
