"""
Hourly Data Orchestrator

Fetches the selected station, resolves and fetches its sister stations,
adds the forecast when the request reaches into the current year, and
hands the bundle to a cleaning function.
"""
import sys
import json
import argparse
import logging
import time
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional, Union

from . import config
from .api_client import DelimitedClient, check_api_connection
from .cleaning import clean_fetched_data
from .forecast import fetch_hourly_forecast_data
from .models import RequestParams, ResultBundle, StationData, StationFetchError
from .observations import fetch_current_station_hourly_data
from .sister_stations import (
    fetch_sister_station_hourly_data,
    fetch_sister_station_id_and_network
)
from .storage import atomic_write_json
from .structured_logger import StructuredLogger

logger = logging.getLogger(__name__)
structured_logger = StructuredLogger(__name__)

Cleaner = Callable[[ResultBundle, RequestParams], Any]


def setup_logging(verbose: bool = False):
    """
    Configure logging for the CLI.

    Args:
        verbose: If True, set DEBUG level; otherwise INFO

    Returns:
        Tuple of (human log file path, JSON log file path)
    """
    level = logging.DEBUG if verbose else logging.INFO

    # stdout carries the JSON result, so console logs go to stderr
    logging.basicConfig(
        level=level,
        format=config.LOG_FORMAT,
        datefmt=config.LOG_DATE_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )

    config.LOGS_DIR.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    log_file = config.LOGS_DIR / f"station_fetch_{timestamp}.log"
    json_log_file = config.LOGS_DIR / f"station_fetch_{timestamp}.json"

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(config.LOG_FORMAT, config.LOG_DATE_FORMAT))
    logging.getLogger().addHandler(file_handler)

    # Every structured logger lives under the package logger
    StructuredLogger('station_fetch').setup_json_logging(json_log_file)

    logging.info(f"Logging to: {log_file}")
    logging.info(f"JSON logs: {json_log_file}")

    return log_file, json_log_file


def is_same_year(first: date, second: date) -> bool:
    return first.year == second.year


def fetch_data(
    params: Union[RequestParams, Dict[str, Any]],
    cleaner: Cleaner = clean_fetched_data,
    today: Optional[date] = None,
    client: Optional[DelimitedClient] = None
) -> Any:
    """
    Fetch and assemble all hourly data for one request.

    Steps run one after another:
    1. Selected station data
    2. Sister station ids and networks
    3. Sister station data, merged
    4. Forecast data, only if the end date is in the current year

    Args:
        params: RequestParams, or a dict with sid, eleList, sdate, edate, network
        cleaner: Called with (ResultBundle, RequestParams); its result is returned
        today: Current date (default: date.today())
        client: Delimiter-aware client for sister and forecast requests

    Returns:
        Whatever the cleaner returns

    Raises:
        InvalidRequestError: If params are malformed
        StationDataError: If the selected station data is missing or invalid
    """
    if not isinstance(params, RequestParams):
        params = RequestParams.from_dict(params)
    today = today or date.today()
    client = client or DelimitedClient()

    start_time = time.time()

    current_station = StationData.from_payload(fetch_current_station_hourly_data(params))

    sister_station_id_and_network = fetch_sister_station_id_and_network(params)

    sister_station = fetch_sister_station_hourly_data(
        params, sister_station_id_and_network, client=client
    )

    forecast = None
    if is_same_year(today, params.end_date):
        forecast = fetch_hourly_forecast_data(params, today=today, client=client)

    bundle = ResultBundle(
        current_stn=current_station.data,
        tzo=current_station.tzo,
        sister_stn=sister_station,
        forecast=forecast
    )

    structured_logger.log_fetch_complete(
        station=params.sid,
        current_rows=len(bundle.current_stn),
        sister_stations=len(sister_station_id_and_network or {}),
        sister_rows=len(bundle.sister_stn),
        forecast_rows=len(forecast) if forecast is not None else None,
        duration_sec=time.time() - start_time
    )

    return cleaner(bundle, params)


def main():
    """CLI entry point for hourly station data"""
    parser = argparse.ArgumentParser(
        description="Fetch hourly station, sister station and forecast data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Temperature and humidity for a NEWA station, printed as JSON
  station-fetch --sid "cu_gfr newa" --elements temp,rhum --sdate 2024-06-01 --edate 2024-06-10

  # Write the result to a file
  station-fetch --sid "kalb icao" --network icao --elements temp,prcp --sdate 2024-06-01 --edate 2024-06-10 --output out.json
        """
    )

    parser.add_argument('--sid', type=str, help='Station id and network (e.g., "cu_gfr newa")')
    parser.add_argument('--elements', type=str,
                        help='Comma-separated element codes (e.g., "temp,rhum,prcp")')
    parser.add_argument('--sdate', type=str, help='Start date (YYYY-MM-DD)')
    parser.add_argument('--edate', type=str, help='End date (YYYY-MM-DD)')
    parser.add_argument('--network', type=str,
                        help='Network of the station (default: taken from --sid)')
    parser.add_argument('--output', type=str, help='Write the JSON result to this file')
    parser.add_argument('--check', action='store_true',
                        help='Only test the connection to the observation endpoint')
    parser.add_argument('--verbose', action='store_true',
                        help='Enable verbose logging (DEBUG level)')

    args = parser.parse_args()

    setup_logging(args.verbose)

    if args.check:
        sys.exit(0 if check_api_connection() else 1)

    missing = [name for name in ('sid', 'elements', 'sdate', 'edate') if not getattr(args, name)]
    if missing:
        parser.error(f"the following arguments are required: "
                     f"{', '.join('--' + name for name in missing)}")

    sid_parts = args.sid.split()
    request = {
        'sid': args.sid,
        'eleList': [e.strip() for e in args.elements.split(',') if e.strip()],
        'sdate': args.sdate,
        'edate': args.edate,
        'network': args.network or (sid_parts[1] if len(sid_parts) == 2 else None),
    }

    try:
        result = fetch_data(request)
    except StationFetchError as e:
        logger.error(f"[FAIL] {e}")
        sys.exit(1)

    if args.output:
        path = atomic_write_json(result, args.output)
        logger.info(f"[OK] Result written to {path}")
    else:
        print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
