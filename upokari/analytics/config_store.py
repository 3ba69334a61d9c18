"""
Config store — reads and writes the per-band scoring parameters.
"""

from typing import Any, Mapping, Optional

from upokari.analytics.band_config import (
    DEFAULT_BAND_CONFIGS,
    Band,
    BandConfigSet,
    GradeBandConfig,
)
from upokari.database.db_manager import DatabaseManager


def get_band_config(db: DatabaseManager) -> BandConfigSet:
    """
    Load the current configuration of both bands.

    Missing rows and null columns fall back to the built-in defaults.
    """
    rows = db.get_band_config_rows()
    return BandConfigSet(
        lower=DEFAULT_BAND_CONFIGS[Band.LOWER].merged(rows.get(Band.LOWER.value)),
        upper=DEFAULT_BAND_CONFIGS[Band.UPPER].merged(rows.get(Band.UPPER.value)),
    )


def set_band_config(
    db: DatabaseManager,
    band: Band,
    partial: Optional[Mapping[str, Any]],
    user_id: Optional[str] = None,
) -> GradeBandConfig:
    """
    Merge *partial* over *band*'s current config and persist the result.

    Returns:
        The effective config for *band* after the write.
    """
    current = get_band_config(db).for_band(band)
    updated = current.merged(partial)
    db.upsert_band_config(
        band.value,
        {
            "total_marks": updated.total_marks,
            "pass_percent": updated.pass_percent,
            "high_marks_percent": updated.high_marks_percent,
            "got75_percent": updated.got75_percent,
        },
        user_id=user_id,
    )
    return updated
