"""
Typed request/response records for hourly station data.

Responses from ACIS and NEWA are validated here so that a malformed
payload is rejected where it enters, not deep inside a merge step.
"""
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

RowMatrix = List[List[Any]]
IdAndNetworkMap = Dict[str, List[int]]


class StationFetchError(Exception):
    """Base class for errors raised by the hourly fetchers"""


class InvalidRequestError(StationFetchError, ValueError):
    """Request parameters are missing or malformed"""


class StationDataError(StationFetchError):
    """An upstream payload is missing required fields"""


class RowAlignmentError(StationFetchError):
    """Merged sources disagree on row count (strict alignment only)"""


def parse_date(value: str) -> date:
    """Parse an ISO date, accepting a trailing time part ("2024-01-10T00:00")."""
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise InvalidRequestError(f"Invalid date: {value!r}")


@dataclass(frozen=True)
class RequestParams:
    """
    Parameters of one hourly data request.

    Attributes:
        sid: Station id and network separated by a space (e.g., "kalb icao")
        ele_list: Element codes in request order (e.g., ("temp", "rhum"))
        sdate: Start date, ISO format
        edate: End date, ISO format
        network: Network name of the selected station (e.g., "newa")
    """
    sid: str
    ele_list: Tuple[str, ...]
    sdate: str
    edate: str
    network: str

    def __post_init__(self):
        if not self.sid or len(self.sid.split()) != 2:
            raise InvalidRequestError(f"sid must be 'id network', got {self.sid!r}")
        if isinstance(self.ele_list, str) or not self.ele_list:
            raise InvalidRequestError(f"ele_list must be a sequence of element codes, got {self.ele_list!r}")
        if not all(isinstance(element, str) and element for element in self.ele_list):
            raise InvalidRequestError(f"Element codes must be non-empty strings, got {self.ele_list!r}")
        if len(set(self.ele_list)) != len(self.ele_list):
            raise InvalidRequestError(f"Duplicate element codes in {self.ele_list!r}")
        if not self.network:
            raise InvalidRequestError("network is required")
        # Store as tuple so the record stays hashable and immutable
        object.__setattr__(self, 'ele_list', tuple(self.ele_list))
        parse_date(self.sdate)
        parse_date(self.edate)

    @classmethod
    def from_dict(cls, params: Dict[str, Any]) -> "RequestParams":
        """Build from the wire format: sid, eleList, sdate, edate, network."""
        missing = [key for key in ('sid', 'eleList', 'sdate', 'edate', 'network')
                   if not params.get(key)]
        if missing:
            raise InvalidRequestError(f"Missing request parameters: {', '.join(missing)}")

        return cls(
            sid=params['sid'],
            ele_list=params['eleList'],
            sdate=params['sdate'],
            edate=params['edate'],
            network=params['network'],
        )

    def station_parts(self) -> Tuple[str, str]:
        """Split sid into (id, network)."""
        station_id, network = self.sid.split()
        return station_id, network

    def with_station(self, sid: str) -> "RequestParams":
        return replace(self, sid=sid)

    @property
    def end_date(self) -> date:
        return parse_date(self.edate)

    def to_payload(self) -> Dict[str, Any]:
        """Body of the ACIS StnData POST."""
        return {
            'sid': self.sid,
            'sdate': self.sdate,
            'edate': self.edate,
            'elems': list(self.ele_list),
            'meta': 'tzo',
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sid': self.sid,
            'eleList': list(self.ele_list),
            'sdate': self.sdate,
            'edate': self.edate,
            'network': self.network,
        }


@dataclass
class StationData:
    """Observed hourly rows of the selected station plus its timezone offset."""
    data: RowMatrix
    tzo: Any

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> "StationData":
        if not isinstance(payload, dict):
            raise StationDataError("No station data was returned")
        if 'error' in payload:
            raise StationDataError(f"ACIS returned an error: {payload['error']}")

        data = payload.get('data')
        meta = payload.get('meta')
        if not isinstance(data, list):
            raise StationDataError("Station data payload has no 'data' rows")
        if not isinstance(meta, dict) or 'tzo' not in meta:
            raise StationDataError("Station data payload has no 'meta.tzo'")

        return cls(data=data, tzo=meta['tzo'])


@dataclass
class ResultBundle:
    """Everything the cleaning function needs, assembled once per request."""
    current_stn: RowMatrix
    tzo: Any
    sister_stn: RowMatrix = field(default_factory=list)
    forecast: Optional[RowMatrix] = None

    @property
    def has_forecast(self) -> bool:
        return self.forecast is not None

    def to_dict(self) -> Dict[str, Any]:
        results = {
            'currentStn': self.current_stn,
            'tzo': self.tzo,
            'sisterStn': self.sister_stn,
        }
        if self.forecast is not None:
            results['forecast'] = self.forecast
        return results


def empty_matrix(rows: int, columns: int) -> RowMatrix:
    """Allocate a rows x columns matrix of None with independent rows."""
    return [[None] * columns for _ in range(rows)]
