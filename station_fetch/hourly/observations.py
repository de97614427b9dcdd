"""
Selected station hourly observations from ACIS StnData.
"""
import logging
from typing import Any, Dict, Optional

import requests

from .api_client import post_json
from .config import STATION_DATA_URL
from .models import RequestParams
from .structured_logger import StructuredLogger

logger = logging.getLogger(__name__)
structured_logger = StructuredLogger(__name__)


def error_from_acis(data: Dict[str, Any]) -> Dict[str, Any]:
    """Log an ACIS-reported error; the payload is returned unchanged."""
    if isinstance(data, dict) and 'error' in data:
        logger.error(f"ACIS returned an error: {data['error']}")
    return data


def fetch_current_station_hourly_data(params: RequestParams) -> Optional[Dict[str, Any]]:
    """
    Fetch the selected station's hourly series for the requested range.

    Args:
        params: Request parameters

    Returns:
        The ACIS payload ({data, meta: {tzo}} or {error}), or None if the
        request failed
    """
    try:
        data = post_json(STATION_DATA_URL, params.to_payload())
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.error(f"Failed to load station data for {params.sid}: {e}")
        structured_logger.log_request_failed(
            source='station', station=params.sid, url=STATION_DATA_URL, error=e
        )
        return None

    return error_from_acis(data)
