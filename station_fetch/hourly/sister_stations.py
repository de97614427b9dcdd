"""
Sister Stations - Substitute Data for the Selected Station

A sister station is a nearby station whose readings fill in elements the
selected station is missing. NEWA names one sister per element; every
sister is fetched in parallel and merged column by column into one matrix
aligned with the request's element order.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import requests

from . import config
from .api_client import DelimitedClient, get_json
from .humidity import adjust_column
from .models import (
    IdAndNetworkMap,
    RequestParams,
    RowAlignmentError,
    RowMatrix,
    StationDataError,
    empty_matrix
)
from .structured_logger import StructuredLogger

logger = logging.getLogger(__name__)
structured_logger = StructuredLogger(__name__)


def check_row_count(source: str, expected: int, actual: int, strict: Optional[bool] = None) -> None:
    """
    Warn (or raise, with strict alignment) when a source's row count differs.

    Rows beyond the expected count are dropped; missing rows stay None.
    """
    if actual == expected:
        return

    if strict is None:
        strict = config.STRICT_ROW_ALIGNMENT

    message = f"{source} returned {actual} rows, expected {expected}"
    if strict:
        raise RowAlignmentError(message)
    logger.warning(message)


def format_id_network(data: Dict[str, Any], ele_list) -> IdAndNetworkMap:
    """
    Group requested elements by the sister station that supplies them.

    Args:
        data: Lookup response mapping element code -> "id network"
        ele_list: Requested element codes, in request order

    Returns:
        {"id network": [column, ...]} where column is the 1-based position
        of the element in a row (column 0 holds the date)

    Raises:
        StationDataError: If the response is not a mapping
    """
    if not isinstance(data, dict):
        raise StationDataError(f"Unexpected sister station response: {type(data).__name__}")

    id_and_network: IdAndNetworkMap = {}
    for position, element in enumerate(ele_list, start=1):
        sister = data.get(element)
        if not sister:
            logger.debug(f"  No sister station for {element}")
            continue
        id_and_network.setdefault(" ".join(str(sister).split()), []).append(position)

    return id_and_network


def fetch_sister_station_id_and_network(params: RequestParams) -> Optional[IdAndNetworkMap]:
    """
    Resolve the sister stations of the selected station.

    Returns:
        IdAndNetworkMap, or None if the lookup failed
    """
    station_id, network = params.station_parts()
    url = f"{config.SISTER_INFO_URL}/{station_id}/{network}"

    try:
        return format_id_network(get_json(url), params.ele_list)
    except (requests.exceptions.RequestException, ValueError, StationDataError) as e:
        logger.error(f"Failed to load sister station id and network for {params.sid}: {e}")
        structured_logger.log_request_failed(
            source='sister_info', station=params.sid, url=url, error=e
        )
        return None


def _fetch_sister_rows(client: DelimitedClient, params: RequestParams,
                       columns: List[int]) -> Optional[List[Dict[int, Any]]]:
    """
    Fetch one sister station and keep only the columns it supplies.

    Returns:
        One {column: value} dict per day, or None if the request failed
    """
    try:
        body = client.post(config.STATION_DATA_URL, params.to_payload())
        rows = body['data']
        return [{column: day[column] for column in columns} for day in rows]
    except (requests.exceptions.RequestException, ValueError,
            KeyError, IndexError, TypeError) as e:
        logger.error(f"Failed to load sister station data for {params.sid}: {e}")
        structured_logger.log_request_failed(
            source='sister', station=params.sid, url=config.STATION_DATA_URL, error=e
        )
        return None


def fetch_sister_station_hourly_data(
    params: RequestParams,
    id_and_network: Optional[IdAndNetworkMap],
    client: Optional[DelimitedClient] = None,
    max_workers: int = config.MAX_CONCURRENT_REQUESTS
) -> RowMatrix:
    """
    Fetch every sister station in parallel and merge them into one matrix.

    The matrix has one row per day of the first station that answered and
    len(ele_list) + 1 columns. Column 0 is left None; the date comes from
    the selected station's own series. For the NEWA network the relative
    humidity column is corrected for ICAO sensors.

    Args:
        params: Request parameters of the selected station
        id_and_network: Sister stations and the columns each one supplies
        client: Delimiter-aware client (default: new DelimitedClient)
        max_workers: Maximum concurrent requests

    Returns:
        Merged RowMatrix (empty if no sister station answered)
    """
    if not id_and_network:
        logger.info(f"No sister stations for {params.sid}")
        return []

    client = client or DelimitedClient()
    sisters = list(id_and_network)

    # Each future writes to the slot of its own sister, so arrival order is irrelevant
    with ThreadPoolExecutor(max_workers=min(max_workers, len(sisters))) as executor:
        futures = [
            executor.submit(_fetch_sister_rows, client, params.with_station(sister),
                            id_and_network[sister])
            for sister in sisters
        ]
        stations = [future.result() for future in futures]

    answered = [(sister, rows) for sister, rows in zip(sisters, stations) if rows is not None]
    if not answered:
        logger.warning(f"No sister station data for {params.sid}")
        return []

    n_rows = len(answered[0][1])
    results = empty_matrix(n_rows, len(params.ele_list) + 1)

    for sister, rows in answered:
        check_row_count(f"Sister station {sister}", n_rows, len(rows))
        for row, day in zip(results, rows):
            for column, value in day.items():
                row[column] = value

    if params.network == config.HUMIDITY_NETWORK and config.HUMIDITY_ELEMENT in params.ele_list:
        rhum_column = params.ele_list.index(config.HUMIDITY_ELEMENT) + 1
        adjust_column(results, rhum_column)

    logger.debug(f"Merged {len(answered)}/{len(sisters)} sister stations "
                 f"into {n_rows} rows for {params.sid}")

    return results
