"""
JSON event log for hourly station fetches.

Fetch events go to the normal log and, once a JSON file is attached,
one JSON object per line to that file.
"""
import json
import logging
from pathlib import Path
from datetime import datetime, timezone


class JSONFormatter(logging.Formatter):
    """One JSON object per record; event fields come from record.extra_data."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **getattr(record, 'extra_data', {}),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class StructuredLogger:
    """Wraps a module logger with named fetch events."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.json_log_file = None

    def setup_json_logging(self, log_file: Path):
        """Attach a JSON-lines file handler to this logger and its children."""
        self.json_log_file = log_file

        json_handler = logging.FileHandler(log_file)
        json_handler.setLevel(logging.DEBUG)
        json_handler.setFormatter(JSONFormatter())
        self.logger.addHandler(json_handler)

    def log_event(self, level: str, message: str, **extra_data):
        extra = {'extra_data': extra_data} if extra_data else {}
        getattr(self.logger, level.lower())(message, extra=extra)

    def log_request_failed(self, source: str, station: str, url: str, error: Exception):
        """
        Log a failed upstream request with structured data.

        Args:
            source: Which fetcher issued the request (station, sister, forecast)
            station: Station "id network" the request was for
            url: Request URL
            error: The exception that ended the request
        """
        self.log_event(
            'WARNING',
            f"{source} request for {station} failed",
            event_type="request_failed",
            source=source,
            station=station,
            url=url,
            error_type=type(error).__name__,
            error=str(error)
        )

    def log_fetch_complete(self, station: str, current_rows: int, sister_stations: int,
                           sister_rows: int, forecast_rows, duration_sec: float):
        """
        Log a completed fetch with structured data.

        Args:
            station: Selected station "id network"
            current_rows: Rows returned for the selected station
            sister_stations: Number of sister stations resolved
            sister_rows: Rows in the merged sister matrix
            forecast_rows: Rows in the forecast matrix, None if not fetched
            duration_sec: Total time taken
        """
        self.log_event(
            'INFO',
            f"{station} fetched: {current_rows} rows, {sister_stations} sister stations",
            event_type="fetch_complete",
            station=station,
            current_rows=current_rows,
            sister_stations=sister_stations,
            sister_rows=sister_rows,
            forecast=forecast_rows is not None,
            forecast_rows=forecast_rows,
            duration_seconds=round(duration_sec, 2)
        )
