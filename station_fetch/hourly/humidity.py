"""
Relative humidity correction for ICAO (airport) sister stations.

Airport sensors read low compared with NEWA sensors; values are mapped
with rh / (0.0047 * rh + 0.53), which leaves 0 and 100 unchanged.
"""
import logging
import math
from typing import Any, List

from .config import MISSING_VALUE

logger = logging.getLogger(__name__)


def _adjust_one(rh: Any) -> Any:
    if rh is None or rh == MISSING_VALUE or rh == "":
        return rh

    try:
        value = float(rh)
    except (TypeError, ValueError):
        logger.warning(f"Skipping humidity adjustment for non-numeric value {rh!r}")
        return rh

    # half-up rounding
    adjusted = int(math.floor(value / (0.0047 * value + 0.53) + 0.5))
    return str(adjusted) if isinstance(rh, str) else adjusted


def rh_adjustment_icao(value: Any) -> Any:
    """
    Adjust a relative humidity reading, or a list of hourly readings.

    Missing values ("M", None, "") are passed through untouched.
    String readings come back as strings, numbers as ints.
    """
    if isinstance(value, (list, tuple)):
        return [_adjust_one(rh) for rh in value]
    return _adjust_one(value)


def adjust_column(rows: List[List[Any]], column: int) -> None:
    """Apply the correction in place to one column of every row."""
    for row in rows:
        row[column] = rh_adjustment_icao(row[column])
