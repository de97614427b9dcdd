"""
Default cleaning step: fill the selected station's gaps from sister stations.
"""
import copy
import logging
from typing import Any, Dict, Tuple

from .config import MISSING_VALUE
from .models import RequestParams, ResultBundle

logger = logging.getLogger(__name__)


def is_missing(value: Any) -> bool:
    return value is None or value == MISSING_VALUE or value == ""


def _fill(value: Any, substitute: Any) -> Tuple[Any, int]:
    """Fill a cell (scalar or per-hour list) from the sister cell; returns (value, filled)."""
    if isinstance(value, list):
        if not isinstance(substitute, list):
            return value, 0
        filled = 0
        merged = []
        for hour, observed in enumerate(value):
            replacement = substitute[hour] if hour < len(substitute) else None
            if is_missing(observed) and not is_missing(replacement):
                merged.append(replacement)
                filled += 1
            else:
                merged.append(observed)
        return merged, filled

    if is_missing(value) and not is_missing(substitute) and not isinstance(substitute, list):
        return substitute, 1
    return value, 0


def clean_fetched_data(bundle: ResultBundle, params: RequestParams) -> Dict[str, Any]:
    """
    Merge the fetched bundle into one result.

    Missing readings of the selected station are replaced with the sister
    station reading for the same day and element.

    Returns:
        Dictionary with:
            - sid: Selected station
            - elements: Element codes, in column order after the date
            - tzo: Timezone offset of the selected station
            - observed: Selected station rows with gaps filled
            - forecast: Forecast rows (empty if none were fetched)
            - filled: Number of readings taken from sister stations
    """
    observed = copy.deepcopy(bundle.current_stn)
    sister = bundle.sister_stn
    filled = 0

    for day, row in enumerate(observed):
        if day >= len(sister):
            break
        for column in range(1, min(len(row), len(sister[day]))):
            row[column], count = _fill(row[column], sister[day][column])
            filled += count

    if filled:
        logger.info(f"Filled {filled} missing readings for {params.sid} from sister stations")

    return {
        'sid': params.sid,
        'elements': list(params.ele_list),
        'tzo': bundle.tzo,
        'observed': observed,
        'forecast': bundle.forecast if bundle.forecast is not None else [],
        'filled': filled,
    }
