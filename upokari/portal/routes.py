"""
Portal Routes — result reports, band configuration and result records.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from upokari.analytics.band_config import Band
from upokari.analytics.config_store import get_band_config, set_band_config
from upokari.analytics.records import records_from_documents
from upokari.analytics.reports import build_institute_wise_report, build_result_stats_report
from upokari.config import Config
from upokari.database.db_manager import DatabaseManager
from upokari.portal.auth import verify_auth_token
from upokari.utils.report_generator import generate_institute_workbook

router = APIRouter()

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def get_db(request: Request) -> DatabaseManager:
    return request.app.state.db


def get_settings(request: Request) -> Config:
    return request.app.state.config


def _no_cache(response: Response) -> None:
    for name, value in NO_CACHE_HEADERS.items():
        response.headers[name] = value


# ── Request bodies ──

class BandConfigIn(BaseModel):
    totalMarks: Optional[float] = Field(default=None, gt=0)
    passPercent: Optional[float] = Field(default=None, ge=0, le=100)
    highMarksPercent: Optional[float] = Field(default=None, ge=0, le=100)
    got75Percent: Optional[float] = Field(default=None, ge=0, le=100)


class ResultConfigIn(BaseModel):
    lower: Optional[BandConfigIn] = None
    upper: Optional[BandConfigIn] = None


class AddResultIn(BaseModel):
    scholarshipRollNumber: str = Field(min_length=1)
    resultDetails: Dict[str, Any]


class CourseFundIn(BaseModel):
    scholarshipRollNumber: str = Field(min_length=1)
    courseFund: Any


# ── Reports ──

@router.get("/result-stats")
def result_stats(
    response: Response, db: DatabaseManager = Depends(get_db)
) -> Dict[str, Any]:
    """Overall, per-class and per-band result statistics."""
    _no_cache(response)
    records = records_from_documents(db.find_applicants())
    data = build_result_stats_report(records, get_band_config(db))
    return {"success": True, "data": data}


@router.get("/institute-wise-stats")
def institute_wise_stats(
    response: Response,
    db: DatabaseManager = Depends(get_db),
    settings: Config = Depends(get_settings),
) -> Dict[str, Any]:
    """Ranked institutes of both grade bands."""
    _no_cache(response)
    records = records_from_documents(db.find_applicants())
    data = build_institute_wise_report(
        records,
        get_band_config(db),
        similarity_threshold=settings.SIMILARITY_THRESHOLD,
        min_present=settings.MIN_PRESENT_FOR_RANKING,
    )
    return {"success": True, "data": data}


@router.get("/institute-wise-stats/export")
def institute_wise_stats_export(
    db: DatabaseManager = Depends(get_db),
    settings: Config = Depends(get_settings),
) -> StreamingResponse:
    """The institute leaderboard as an Excel workbook."""
    records = records_from_documents(db.find_applicants())
    report = build_institute_wise_report(
        records,
        get_band_config(db),
        similarity_threshold=settings.SIMILARITY_THRESHOLD,
        min_present=settings.MIN_PRESENT_FOR_RANKING,
    )
    return StreamingResponse(
        generate_institute_workbook(report),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={
            "Content-Disposition": 'attachment; filename="institute-wise-stats.xlsx"',
            **NO_CACHE_HEADERS,
        },
    )


# ── Band configuration ──

@router.get("/result-calculation-config")
def read_result_calculation_config(db: DatabaseManager = Depends(get_db)) -> Dict[str, Any]:
    return {"success": True, "data": get_band_config(db).to_dict()}


@router.post("/result-calculation-config")
def write_result_calculation_config(
    body: ResultConfigIn,
    db: DatabaseManager = Depends(get_db),
    user_id: str = Depends(verify_auth_token),
) -> Dict[str, Any]:
    """Merge the given fields into the stored config of one or both bands."""
    if body.lower is None and body.upper is None:
        raise HTTPException(status_code=400, detail="lower or upper config is required")

    for band, partial in ((Band.LOWER, body.lower), (Band.UPPER, body.upper)):
        if partial is not None:
            set_band_config(db, band, partial.model_dump(exclude_none=True), user_id=user_id)

    return {
        "success": True,
        "message": "Result calculation config saved",
        "data": get_band_config(db).to_dict(),
    }


# ── Result records ──

@router.post("/add-result")
def add_result(
    body: AddResultIn,
    db: DatabaseManager = Depends(get_db),
    user_id: str = Depends(verify_auth_token),
) -> Dict[str, str]:
    replaced = db.add_result(body.scholarshipRollNumber, body.resultDetails, user_id=user_id)
    if replaced is None:
        raise HTTPException(status_code=404, detail="Scholarship not found")
    if replaced:
        return {"message": "Result details updated successfully (previously existed)"}
    return {"message": "Result details added successfully"}


@router.post("/update-course-fund")
def update_course_fund(
    body: CourseFundIn,
    db: DatabaseManager = Depends(get_db),
    user_id: str = Depends(verify_auth_token),
) -> Dict[str, Any]:
    updated = db.update_course_fund(body.scholarshipRollNumber, body.courseFund, user_id=user_id)
    if updated is None:
        raise HTTPException(status_code=404, detail="Scholarship not found")
    if not updated:
        raise HTTPException(status_code=404, detail="No result details found for this scholarship")
    return {"message": "Course fund updated successfully", "updatedCourseFund": body.courseFund}


@router.delete("/result/{roll_number}")
def delete_result(
    roll_number: str,
    db: DatabaseManager = Depends(get_db),
    user_id: str = Depends(verify_auth_token),
) -> Dict[str, str]:
    if not db.delete_result(roll_number, user_id=user_id):
        raise HTTPException(status_code=404, detail="Result not found")
    return {"message": "Result deleted successfully"}


@router.get("/search-result/{roll_number}")
def search_result(roll_number: str, db: DatabaseManager = Depends(get_db)) -> Dict[str, Any]:
    """Public result lookup; every hit is counted."""
    doc = db.increment_search_count(roll_number)
    if doc is None:
        raise HTTPException(status_code=404, detail="Result not found")
    return doc


@router.get("/total-searches")
def total_searches(db: DatabaseManager = Depends(get_db)) -> Dict[str, int]:
    return {"totalSearches": db.get_total_searches()}
