"""
Result statistics — attendance, pass and high-score counts and ratios.

Produces the overall figures, a per-class breakdown, a per-band
breakdown and the top five scorers of every class.
"""

import math
from typing import Any, Dict, Iterable, List, Sequence, Tuple

import numpy as np

from upokari.analytics.band_config import Band, BandConfigSet
from upokari.analytics.normalization import normalize_grade
from upokari.analytics.records import ApplicantResultRecord

TOP_SCORERS_PER_CLASS = 5


def percent(count: float, denominator: float) -> float:
    """``count / denominator`` as a percentage with 2 decimals, half rounded up; 0 if undefined."""
    if not denominator:
        return 0.0
    return math.floor(count / denominator * 10000 + 0.5) / 100


def _stats_block(
    records: Sequence[ApplicantResultRecord], band_config: BandConfigSet
) -> Dict[str, Any]:
    """Counts and ratios for *records*, each judged against its own band."""
    total_present = 0
    scores: List[float] = []
    pass_count = got70_count = got75_count = 0

    for record in records:
        if not record.attendance_complete:
            continue
        total_present += 1
        if record.score is None:
            continue
        scores.append(record.score)
        cfg = band_config.for_grade(record.grade_raw)
        if record.score >= cfg.pass_threshold:
            pass_count += 1
        if record.score >= cfg.high_marks_threshold:
            got70_count += 1
        if record.score >= cfg.got75_threshold:
            got75_count += 1

    result_added = len(scores)
    return {
        "totalApplications": len(records),
        "totalPresent": total_present,
        "resultAddedCount": result_added,
        "passCount": pass_count,
        "got70Count": got70_count,
        "got75Count": got75_count,
        "averageMarks": round(float(np.mean(scores)), 2) if scores else 0.0,
        "presentRatio": percent(total_present, len(records)),
        "resultAddedRatio": percent(result_added, total_present),
        "passRatio": percent(pass_count, result_added),
        "got70Ratio": percent(got70_count, result_added),
        "got75Ratio": percent(got75_count, result_added),
    }


def _class_sort_key(grade: str) -> Tuple[int, int, str]:
    # numeric grades first in numeric order, then labels alphabetically
    try:
        return (0, int(grade), "")
    except ValueError:
        return (1, 0, grade)


def _group_by_class(
    records: Iterable[ApplicantResultRecord],
) -> Dict[str, List[ApplicantResultRecord]]:
    groups: Dict[str, List[ApplicantResultRecord]] = {}
    for record in records:
        groups.setdefault(normalize_grade(record.grade_raw), []).append(record)
    return dict(sorted(groups.items(), key=lambda kv: _class_sort_key(kv[0])))


def _top_scorers(records: Sequence[ApplicantResultRecord]) -> List[Dict[str, Any]]:
    scored = [r for r in records if r.has_result]
    # sorted() is stable, so equal scores keep input order
    ranked = sorted(scored, key=lambda r: r.score, reverse=True)
    return [
        {"rollNumber": r.roll_number, "score": r.score}
        for r in ranked[:TOP_SCORERS_PER_CLASS]
    ]


def split_by_band(
    records: Iterable[ApplicantResultRecord],
) -> Dict[Band, List[ApplicantResultRecord]]:
    """Partition records into the lower and upper band; every record lands in exactly one."""
    parts: Dict[Band, List[ApplicantResultRecord]] = {Band.LOWER: [], Band.UPPER: []}
    for record in records:
        parts[Band.of_grade(record.grade_raw)].append(record)
    return parts


def compute_result_stats(
    records: Iterable[ApplicantResultRecord],
    band_config: BandConfigSet,
) -> Dict[str, Any]:
    """
    Aggregate exam results.

    Args:
        records: Applicant result records, in the order they were stored.
        band_config: Scoring parameters for both bands.

    Returns:
        Dict with ``overall``, ``byClass``, ``lower``, ``upper`` and
        ``top5ByClass``. Empty input gives a zero-filled report.
    """
    records = list(records)
    by_class = _group_by_class(records)
    bands = split_by_band(records)

    return {
        "overall": _stats_block(records, band_config),
        "byClass": [
            {"class": grade, **_stats_block(group, band_config)}
            for grade, group in by_class.items()
        ],
        "lower": _stats_block(bands[Band.LOWER], band_config),
        "upper": _stats_block(bands[Band.UPPER], band_config),
        "top5ByClass": {
            grade: _top_scorers(group) for grade, group in by_class.items()
        },
    }
