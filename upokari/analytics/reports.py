"""
Report builders — shape engine output into the JSON the portal serves.
"""

from typing import Any, Dict, Iterable, List

from upokari.analytics.band_config import Band, BandConfigSet
from upokari.analytics.institute_merger import DEFAULT_SIMILARITY_THRESHOLD
from upokari.analytics.ranking import DEFAULT_MIN_PRESENT, rank_institutes
from upokari.analytics.records import ApplicantResultRecord
from upokari.analytics.statistics import compute_result_stats, split_by_band
from upokari.utils.logger import get_logger

log = get_logger(__name__)


def build_result_stats_report(
    records: Iterable[ApplicantResultRecord], band_config: BandConfigSet
) -> Dict[str, Any]:
    """``data`` payload of ``GET /result-stats``."""
    records = list(records)
    report = compute_result_stats(records, band_config)
    log.info(
        "Built result stats: %d applications, %d present",
        report["overall"]["totalApplications"],
        report["overall"]["totalPresent"],
    )
    return report


def build_institute_wise_report(
    records: Iterable[ApplicantResultRecord],
    band_config: BandConfigSet,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    min_present: int = DEFAULT_MIN_PRESENT,
) -> Dict[str, Any]:
    """``data`` payload of ``GET /institute-wise-stats``."""
    records = list(records)
    parts = split_by_band(records)

    data: Dict[str, Any] = {}
    for band in (Band.LOWER, Band.UPPER):
        entries = rank_institutes(
            parts[band], band_config, band,
            similarity_threshold=similarity_threshold,
            min_present=min_present,
        )
        institutes: List[Dict[str, Any]] = [e.to_dict() for e in entries]
        data[f"{band.value}Band"] = {
            "totalApplications": len(parts[band]),
            "totalNumberOfInstitutions": len(institutes),
            "institutes": institutes,
        }
        log.info("Ranked %d %s-band institutes", len(institutes), band.value)
    return data
