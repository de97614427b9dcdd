"""
Hourly Station Data

Fetches the selected station, its sister stations and the short-range
forecast, then hands the assembled bundle to a cleaning function.
"""

from .models import RequestParams, ResultBundle, StationData
from .orchestrate import fetch_data

__all__ = ['RequestParams', 'ResultBundle', 'StationData', 'fetch_data']
