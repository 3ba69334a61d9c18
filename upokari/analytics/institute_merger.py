"""
Institute merger — folds differently spelled institute names together.

Records are first bucketed strictly on the institute group key, then the
buckets are merged pairwise when their keys look like the same institute.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List

from rapidfuzz.distance import Levenshtein

from upokari.analytics.band_config import GradeBandConfig
from upokari.analytics.normalization import institute_group_key, normalize_institute_name
from upokari.analytics.records import ApplicantResultRecord
from upokari.utils.logger import get_logger

log = get_logger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.70
MIN_SHARED_WORD_LENGTH = 2


@dataclass
class InstituteAggregate:
    """Running counters for one institute."""

    canonical_name: str
    application_count: int = 0
    present_count: int = 0
    result_added_count: int = 0
    pass_count: int = 0
    got70_count: int = 0
    total_marks_sum: float = 0.0

    def add_record(self, record: ApplicantResultRecord, band_config: GradeBandConfig) -> None:
        self.application_count += 1
        if not record.attendance_complete:
            return
        self.present_count += 1
        if record.score is None:
            return
        self.result_added_count += 1
        self.total_marks_sum += record.score
        if record.score >= band_config.pass_threshold:
            self.pass_count += 1
        if record.score >= band_config.high_marks_threshold:
            self.got70_count += 1

    def absorb(self, other: "InstituteAggregate") -> None:
        """Fold *other*'s counters into this aggregate; the name stays."""
        self.application_count += other.application_count
        self.present_count += other.present_count
        self.result_added_count += other.result_added_count
        self.pass_count += other.pass_count
        self.got70_count += other.got70_count
        self.total_marks_sum += other.total_marks_sum

    @property
    def average_score(self) -> float:
        if not self.result_added_count:
            return 0.0
        return self.total_marks_sum / self.result_added_count


def name_similarity(a: str, b: str) -> float:
    """
    Levenshtein ratio ``1 - distance / max(len(a), len(b))``.

    Two empty strings are identical (1.0); exactly one empty gives 0.0.
    """
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    distance = Levenshtein.distance(a, b)
    return 1.0 - distance / max(len(a), len(b))


def is_merge_candidate(
    a: str, b: str, threshold: float = DEFAULT_SIMILARITY_THRESHOLD
) -> bool:
    """Whether two institute keys should be treated as one institute."""
    if name_similarity(a, b) >= threshold:
        return True

    words_a, words_b = a.split(), b.split()
    if words_a and words_b:
        if words_a[0] == words_b[0] and len(words_a[0]) >= MIN_SHARED_WORD_LENGTH:
            return True
        if words_a[:2] == words_b[:2]:
            return True
    return False


def group_by_institute(
    records: Iterable[ApplicantResultRecord], band_config: GradeBandConfig
) -> Dict[str, InstituteAggregate]:
    """
    Bucket records on the institute group key.

    The display name of each bucket is the first raw name seen for it.
    """
    groups: Dict[str, InstituteAggregate] = {}
    for record in records:
        key = institute_group_key(normalize_institute_name(record.institute_raw))
        agg = groups.get(key)
        if agg is None:
            display = (record.institute_raw or "").strip() or "Unknown"
            agg = groups[key] = InstituteAggregate(canonical_name=display)
        agg.add_record(record, band_config)
    return groups


def merge_institutes(
    groups: Dict[str, InstituteAggregate],
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> List[InstituteAggregate]:
    """
    Greedily merge buckets whose keys are merge candidates.

    Keys are walked in sorted order. Each surviving key absorbs every later
    key it matches; an absorbed key is never compared again, so on
    ambiguous triples the first survivor wins.

    Args:
        groups: Output of :func:`group_by_institute`.
        threshold: Minimum similarity for a pure edit-distance match.

    Returns:
        Merged aggregates, in key order of their survivors.
    """
    keys = sorted(groups)
    absorbed = set()
    merged: List[InstituteAggregate] = []

    for i, key in enumerate(keys):
        if key in absorbed:
            continue
        survivor = groups[key]
        for other in keys[i + 1:]:
            if other in absorbed:
                continue
            if is_merge_candidate(key, other, threshold):
                log.debug("Merging institute key %r into %r", other, key)
                survivor.absorb(groups[other])
                absorbed.add(other)
        merged.append(survivor)

    return merged


def build_institute_aggregates(
    records: Iterable[ApplicantResultRecord],
    band_config: GradeBandConfig,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> List[InstituteAggregate]:
    """Group then fuzzy-merge *records* into per-institute aggregates."""
    return merge_institutes(group_by_institute(records, band_config), threshold)
