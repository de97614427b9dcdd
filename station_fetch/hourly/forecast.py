"""
Hourly forecast for the selected station from NEWA getFcstData.

One request per element (plus probability of precipitation), issued in
parallel; the per-element series are scattered into one matrix by row
position.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from typing import Any, List, Optional, Tuple

import requests

from . import config
from .api_client import DelimitedClient
from .humidity import rh_adjustment_icao
from .models import RequestParams, RowMatrix, empty_matrix
from .sister_stations import check_row_count
from .structured_logger import StructuredLogger

logger = logging.getLogger(__name__)
structured_logger = StructuredLogger(__name__)

Series = List[List[Any]]


def forecast_end_date(today: Optional[date] = None) -> str:
    """Last day of the forecast horizon: always today + FORECAST_DAYS."""
    today = today or date.today()
    return (today + timedelta(days=config.FORECAST_DAYS)).isoformat()


def forecast_elements(params: RequestParams) -> List[str]:
    return [*params.ele_list, config.FORECAST_EXTRA_ELEMENT]


def _fetch_element(client: DelimitedClient, url: str, element: str,
                   station: str) -> Optional[Tuple[str, Series]]:
    try:
        data = client.get(url)['data']
        if element == config.HUMIDITY_ELEMENT:
            data = [[day[0], rh_adjustment_icao(day[1])] for day in data]
        return element, data
    except (requests.exceptions.RequestException, ValueError,
            KeyError, IndexError, TypeError) as e:
        logger.error(f"Failed to load {element} hourly forecast data for {station}: {e}")
        structured_logger.log_request_failed(
            source='forecast', station=station, url=url, error=e
        )
        return None


def fetch_hourly_forecast_data(
    params: RequestParams,
    today: Optional[date] = None,
    client: Optional[DelimitedClient] = None,
    max_workers: int = config.MAX_CONCURRENT_REQUESTS
) -> RowMatrix:
    """
    Fetch the hourly forecast for every requested element plus "pop".

    The forecast runs from the request's start date to today + 5 days,
    whatever the request's own end date.

    Args:
        params: Request parameters
        today: Current date (default: date.today())
        client: Delimiter-aware client (default: new DelimitedClient)
        max_workers: Maximum concurrent requests

    Returns:
        RowMatrix with columns [date, *ele_list, pop]; empty if no element
        answered
    """
    client = client or DelimitedClient()
    station_id, network = params.station_parts()
    end_date = forecast_end_date(today)
    elements = forecast_elements(params)

    urls = [
        f"{config.FORECAST_URL}/{station_id}/{network}/{element}/{params.sdate}/{end_date}"
        for element in elements
    ]

    with ThreadPoolExecutor(max_workers=min(max_workers, len(elements))) as executor:
        futures = [
            executor.submit(_fetch_element, client, url, element, params.sid)
            for element, url in zip(elements, urls)
        ]
        data = [future.result() for future in futures]

    # Column of each series is its position in the element list
    answered = [(column, result[1]) for column, result in enumerate(data, start=1)
                if result is not None]
    if not answered:
        logger.warning(f"No forecast data for {params.sid}")
        return []

    # Rows are matched by position; the first series that answered fixes the dates
    first_series = answered[0][1]
    n_rows = len(first_series)
    results = empty_matrix(n_rows, len(elements) + 1)
    for row, day in zip(results, first_series):
        row[0] = day[0]

    for column, series in answered:
        check_row_count(f"Forecast {elements[column - 1]}", n_rows, len(series))
        for row, day in zip(results, series):
            row[column] = day[1]

    logger.debug(f"Forecast for {params.sid}: {n_rows} rows through {end_date}")

    return results
