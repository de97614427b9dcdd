"""
ACIS / NEWA HTTP Client with Retry Logic

Handles all HTTP interactions for the hourly fetchers including:
- Retry logic with exponential backoff
- Rate limit handling (429 errors with Retry-After)
- Server error handling (5xx errors)
- Network error handling
- A delimiter-aware variant whose response rows are pre-split into fields
"""
import logging
from typing import Any, Dict, Optional

import requests
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
    before_sleep_log,
    after_log
)

from .config import (
    STATION_DATA_URL,
    REQUEST_TIMEOUT,
    FIELD_DELIMITER,
    MAX_RETRIES,
    RETRY_INITIAL_WAIT,
    RETRY_MAX_WAIT,
    RETRY_MULTIPLIER
)

# Set up logger for this module
logger = logging.getLogger(__name__)

_session = requests.Session()


def is_retryable_error(exception: BaseException) -> bool:
    """
    Determine if an exception should trigger a retry.

    Retryable errors:
    - 5xx server errors (temporary server issues)
    - 429 rate limit errors
    - Network errors (timeouts, connection errors)

    Non-retryable errors:
    - 4xx client errors (except 429)
    - Invalid responses (undecodable JSON)

    Args:
        exception: The exception to check

    Returns:
        True if the error should be retried
    """
    if isinstance(exception, requests.exceptions.HTTPError):
        if exception.response is None:
            return False
        status_code = exception.response.status_code
        return status_code >= 500 or status_code == 429
    return isinstance(exception, (requests.exceptions.ConnectionError,
                                  requests.exceptions.Timeout))


def get_retry_after_seconds(response: requests.Response) -> int:
    """
    Extract retry-after value (in seconds) from response headers.

    Returns 0 if the header is absent or in HTTP-date format.
    """
    retry_after = response.headers.get('Retry-After')
    if retry_after:
        try:
            return int(retry_after)
        except ValueError:
            logger.warning(f"Could not parse Retry-After header: {retry_after}")
    return 0


def wait_strategy(retry_state):
    """
    Custom wait strategy that honors Retry-After headers.

    If a 429 response includes Retry-After, wait that long.
    Otherwise, use exponential backoff.
    """
    exception = retry_state.outcome.exception()

    if isinstance(exception, requests.exceptions.HTTPError) and exception.response is not None:
        if exception.response.status_code == 429:
            wait_seconds = get_retry_after_seconds(exception.response)
            if wait_seconds > 0:
                logger.info(f"Rate limited. Honoring Retry-After: {wait_seconds}s")
                return wait_seconds

    return wait_exponential(
        multiplier=RETRY_MULTIPLIER,
        min=RETRY_INITIAL_WAIT,
        max=RETRY_MAX_WAIT
    )(retry_state)


api_retry_decorator = retry(
    stop=stop_after_attempt(MAX_RETRIES),
    wait=wait_strategy,
    retry=retry_if_exception(is_retryable_error),
    reraise=True,
    before_sleep=before_sleep_log(logger, logging.WARNING),
    after=after_log(logger, logging.DEBUG)
)


@api_retry_decorator
def _request(method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Any:
    logger.debug(f"{method} {url}")

    response = _session.request(
        method,
        url,
        json=payload,
        timeout=REQUEST_TIMEOUT
    )
    response.raise_for_status()

    return response.json()


def post_json(url: str, payload: Dict[str, Any]) -> Any:
    """
    POST a JSON body and return the decoded JSON response.

    Raises:
        requests.exceptions.RequestException: After retries are exhausted
            or on a non-retryable HTTP error
        ValueError: If the body is not valid JSON
    """
    return _request('POST', url, payload)


def get_json(url: str) -> Any:
    """GET a URL and return the decoded JSON response."""
    return _request('GET', url)


def split_fields(value: Any, delimiter: str = FIELD_DELIMITER) -> Any:
    """Split delimited strings into lists of fields, recursing into lists."""
    if isinstance(value, str):
        if delimiter in value:
            return value.split(delimiter)
        return value
    if isinstance(value, list):
        return [split_fields(item, delimiter) for item in value]
    return value


class DelimitedClient:
    """
    HTTP client whose response rows are pre-split by a field delimiter.

    ACIS returns some hourly series as one delimited string per day;
    this client hands them back as lists, one entry per field.
    """

    def __init__(self, delimiter: str = FIELD_DELIMITER):
        self.delimiter = delimiter

    def _split_rows(self, body: Any) -> Any:
        if isinstance(body, dict) and isinstance(body.get('data'), list):
            body = dict(body)
            body['data'] = split_fields(body['data'], self.delimiter)
        return body

    def post(self, url: str, payload: Dict[str, Any]) -> Any:
        return self._split_rows(post_json(url, payload))

    def get(self, url: str) -> Any:
        return self._split_rows(get_json(url))


def check_api_connection() -> bool:
    """
    Test if the ACIS observation endpoint is reachable.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        response = _session.post(
            STATION_DATA_URL,
            json={'sid': 'kalb', 'sdate': '2024-01-01', 'edate': '2024-01-01', 'elems': ['maxt']},
            timeout=30
        )
        response.raise_for_status()

        logger.info("[OK] API connection test successful")
        return True

    except requests.exceptions.RequestException as e:
        logger.error(f"[FAIL] API connection test failed: {e}")
        return False
