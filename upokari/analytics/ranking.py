"""
Institute ranking — fairness-weighted leaderboard per grade band.

Each institute gets a composite score from attendance, share of high
scorers and average mark. Institutes with too few present students are
ranked after all the others so a single strong student cannot carry a
tiny institute to the top.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Tuple

from upokari.analytics.band_config import Band, BandConfigSet
from upokari.analytics.institute_merger import (
    DEFAULT_SIMILARITY_THRESHOLD,
    InstituteAggregate,
    build_institute_aggregates,
)
from upokari.analytics.records import ApplicantResultRecord
from upokari.analytics.statistics import percent, split_by_band

ATTENDANCE_WEIGHT = 0.3
HIGH_SCORE_WEIGHT = 0.5
AVERAGE_MARK_WEIGHT = 0.2

DEFAULT_MIN_PRESENT = 10


@dataclass(frozen=True)
class InstituteRankEntry:
    rank: int
    institute: str
    application_count: int
    present_count: int
    result_added_count: int
    pass_count: int
    got70_count: int
    average_marks: float
    attendance_rate: float
    high_score_rate: float
    avg_mark_rate: float
    final_score: float
    application_share: float
    qualified: bool

    def to_dict(self) -> Dict[str, Any]:
        """JSON shape; rates as percentages, the final score on a 0-1 scale."""
        return {
            "rank": self.rank,
            "institute": self.institute,
            "applicationCount": self.application_count,
            "presentCount": self.present_count,
            "resultAddedCount": self.result_added_count,
            "passCount": self.pass_count,
            "got70Count": self.got70_count,
            "averageMarks": round(self.average_marks, 2),
            "attendanceRate": percent(self.attendance_rate, 1),
            "passRate": percent(self.pass_count, self.result_added_count),
            "highScoreRate": percent(self.high_score_rate, 1),
            "avgMarkRate": percent(self.avg_mark_rate, 1),
            "finalScore": round(self.final_score, 4),
            "applicationShare": self.application_share,
            "qualified": self.qualified,
        }


def collation_key(name: str) -> str:
    """Case- and width-insensitive key that keeps Bengali in alphabet order."""
    return unicodedata.normalize("NFKC", name).casefold()


def _rates(agg: InstituteAggregate, total_marks: float) -> Tuple[float, float, float]:
    attendance = agg.present_count / agg.application_count if agg.application_count else 0.0
    high_score = agg.got70_count / agg.present_count if agg.present_count else 0.0
    avg_mark = agg.average_score / total_marks if total_marks > 0 else 0.0
    return attendance, high_score, min(max(avg_mark, 0.0), 1.0)


def final_score(attendance_rate: float, high_score_rate: float, avg_mark_rate: float) -> float:
    return (
        ATTENDANCE_WEIGHT * attendance_rate
        + HIGH_SCORE_WEIGHT * high_score_rate
        + AVERAGE_MARK_WEIGHT * avg_mark_rate
    )


def rank_institutes(
    records: Iterable[ApplicantResultRecord],
    band_config: BandConfigSet,
    band: Band,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    min_present: int = DEFAULT_MIN_PRESENT,
) -> List[InstituteRankEntry]:
    """
    Rank the institutes of one band.

    Args:
        records: Applicant records of any band; only *band*'s are used.
        band_config: Scoring parameters for both bands.
        band: Band to rank.
        similarity_threshold: Edit-distance ratio for merging institute names.
        min_present: Institutes with fewer present students rank last.

    Returns:
        Entries ordered by rank, starting at 1.
    """
    partition = split_by_band(records)[band]
    cfg = band_config.for_band(band)
    total_applications = len(partition)

    scored = []
    for agg in build_institute_aggregates(partition, cfg, similarity_threshold):
        attendance, high_score, avg_mark = _rates(agg, cfg.total_marks)
        score = final_score(attendance, high_score, avg_mark)
        scored.append((agg, attendance, high_score, avg_mark, score))

    def sort_key(item):
        agg, attendance, high_score, _, score = item
        return (-score, -high_score, -attendance, collation_key(agg.canonical_name))

    qualified = sorted((s for s in scored if s[0].present_count >= min_present), key=sort_key)
    unqualified = sorted((s for s in scored if s[0].present_count < min_present), key=sort_key)

    entries: List[InstituteRankEntry] = []
    for rank, (agg, attendance, high_score, avg_mark, score) in enumerate(
        qualified + unqualified, start=1
    ):
        entries.append(
            InstituteRankEntry(
                rank=rank,
                institute=agg.canonical_name,
                application_count=agg.application_count,
                present_count=agg.present_count,
                result_added_count=agg.result_added_count,
                pass_count=agg.pass_count,
                got70_count=agg.got70_count,
                average_marks=agg.average_score,
                attendance_rate=attendance,
                high_score_rate=high_score,
                avg_mark_rate=avg_mark,
                final_score=score,
                application_share=percent(agg.application_count, total_applications),
                qualified=agg.present_count >= min_present,
            )
        )
    return entries
