"""
SQLAlchemy ORM models for the Upokari result database.

Tables
------
- applicants                — one row per scholarship applicant
- result_calculation_config — one row per grade band
"""

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Shared declarative base for all models."""
    pass


class Applicant(Base):
    """A scholarship applicant and, once entered, their exam result."""

    __tablename__ = "applicants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    roll_number = Column(String(32), unique=True, nullable=False, index=True)
    name = Column(String(256), nullable=True)
    institute = Column(Text, nullable=True)
    institute_class = Column(String(32), nullable=True)
    institute_roll_number = Column(String(64), nullable=True)
    is_attendance_complete = Column(Boolean, nullable=False, default=False)
    result_details = Column(JSON, nullable=True)
    search_count = Column(Integer, nullable=True, default=0)
    updated_by = Column(String(64), nullable=True)
    submitted_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<Applicant {self.roll_number}>"


class ResultCalculationConfig(Base):
    """Scoring parameters of one grade band (``lower`` or ``upper``)."""

    __tablename__ = "result_calculation_config"

    id = Column(Integer, primary_key=True, autoincrement=True)
    band = Column(String(16), unique=True, nullable=False)
    total_marks = Column(Float, nullable=True)
    pass_percent = Column(Float, nullable=True)
    high_marks_percent = Column(Float, nullable=True)
    got75_percent = Column(Float, nullable=True)
    updated_by = Column(String(64), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<ResultCalculationConfig {self.band}>"
