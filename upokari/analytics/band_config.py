"""
Grade-band scoring parameters.

Two bands exist: ``lower`` (grades 3-5) and ``upper`` (everything else).
Each carries a total mark and three percentage cutoffs; the cutoffs are
turned into absolute marks and compared directly with raw scores.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from upokari.analytics.normalization import is_lower_band


class Band(str, Enum):
    LOWER = "lower"
    UPPER = "upper"

    @classmethod
    def of_grade(cls, grade_raw: Any) -> "Band":
        """Band a raw grade label falls into."""
        return cls.LOWER if is_lower_band(grade_raw) else cls.UPPER


# API field name -> dataclass attribute
FIELD_NAMES = {
    "totalMarks": "total_marks",
    "passPercent": "pass_percent",
    "highMarksPercent": "high_marks_percent",
    "got75Percent": "got75_percent",
}


@dataclass(frozen=True)
class GradeBandConfig:
    total_marks: float
    pass_percent: float
    high_marks_percent: float
    got75_percent: float

    def _threshold(self, percent: float) -> float:
        return self.total_marks * (percent / 100)

    @property
    def pass_threshold(self) -> float:
        return self._threshold(self.pass_percent)

    @property
    def high_marks_threshold(self) -> float:
        return self._threshold(self.high_marks_percent)

    @property
    def got75_threshold(self) -> float:
        return self._threshold(self.got75_percent)

    def merged(self, partial: Optional[Mapping[str, Any]]) -> "GradeBandConfig":
        """
        Overlay the numeric fields present in *partial* onto this config.

        Keys may be API names (``passPercent``) or attribute names
        (``pass_percent``). Missing, None and non-numeric values keep the
        current value.
        """
        if not partial:
            return self
        updates: Dict[str, float] = {}
        for api_name, attr in FIELD_NAMES.items():
            value = partial.get(api_name, partial.get(attr))
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            updates[attr] = float(value)
        return replace(self, **updates)

    def to_dict(self) -> Dict[str, float]:
        values = asdict(self)
        return {api: values[attr] for api, attr in FIELD_NAMES.items()}


DEFAULT_BAND_CONFIGS: Dict[Band, GradeBandConfig] = {
    Band.LOWER: GradeBandConfig(
        total_marks=45, pass_percent=40, high_marks_percent=70, got75_percent=75
    ),
    Band.UPPER: GradeBandConfig(
        total_marks=100, pass_percent=40, high_marks_percent=60, got75_percent=75
    ),
}


@dataclass(frozen=True)
class BandConfigSet:
    """Configuration for both bands, loaded once per request."""

    lower: GradeBandConfig = DEFAULT_BAND_CONFIGS[Band.LOWER]
    upper: GradeBandConfig = DEFAULT_BAND_CONFIGS[Band.UPPER]

    def for_band(self, band: Band) -> GradeBandConfig:
        return self.lower if band is Band.LOWER else self.upper

    def for_grade(self, grade_raw: Any) -> GradeBandConfig:
        return self.for_band(Band.of_grade(grade_raw))

    def with_band(self, band: Band, config: GradeBandConfig) -> "BandConfigSet":
        if band is Band.LOWER:
            return replace(self, lower=config)
        return replace(self, upper=config)

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {Band.LOWER.value: self.lower.to_dict(), Band.UPPER.value: self.upper.to_dict()}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "BandConfigSet":
        """Build from ``{"lower": {...}, "upper": {...}}``, defaulting anything missing."""
        data = data or {}
        return cls(
            lower=DEFAULT_BAND_CONFIGS[Band.LOWER].merged(data.get(Band.LOWER.value)),
            upper=DEFAULT_BAND_CONFIGS[Band.UPPER].merged(data.get(Band.UPPER.value)),
        )
