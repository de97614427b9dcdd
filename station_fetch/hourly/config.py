"""
Configuration for Hourly Station Data

Simple module-level configuration read from the environment (.env supported).
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Get project root (3 levels up: hourly -> station_fetch -> project_root)
PROJECT_ROOT = Path(__file__).parent.parent.parent.absolute()

# Load environment variables
load_dotenv(PROJECT_ROOT / ".env")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# API Configuration
PROTOCOL = os.getenv("STATION_FETCH_PROTOCOL", "https:")

STATION_DATA_URL = f"{PROTOCOL}//data.rcc-acis.org/StnData"
SISTER_INFO_URL = f"{PROTOCOL}//newa2.nrcc.cornell.edu/newaUtil/stationSisterInfo"
FORECAST_URL = f"{PROTOCOL}//newa2.nrcc.cornell.edu/newaUtil/getFcstData"

REQUEST_TIMEOUT = int(os.getenv("STATION_FETCH_TIMEOUT", "60"))  # seconds

# Concurrency Settings
MAX_CONCURRENT_REQUESTS = int(os.getenv("STATION_FETCH_MAX_WORKERS", "10"))

# Forecast Settings
FORECAST_DAYS = 5  # forecast horizon always ends today + 5 days
FORECAST_EXTRA_ELEMENT = "pop"  # probability of precipitation

# Humidity correction applies to this network/element only
HUMIDITY_NETWORK = "newa"
HUMIDITY_ELEMENT = "rhum"

# ACIS conventions
MISSING_VALUE = "M"
FIELD_DELIMITER = ","

# Raise instead of truncating/padding when merged sources disagree on row count
STRICT_ROW_ALIGNMENT = _env_bool("STATION_FETCH_STRICT_ALIGNMENT")

# Retry Configuration
MAX_RETRIES = int(os.getenv("STATION_FETCH_MAX_RETRIES", "3"))
RETRY_INITIAL_WAIT = 1  # seconds
RETRY_MAX_WAIT = 10  # seconds
RETRY_MULTIPLIER = 2  # exponential backoff multiplier

# Logging Configuration
LOGS_DIR = Path(os.getenv("STATION_FETCH_LOGS_DIR", PROJECT_ROOT / "logs"))
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
