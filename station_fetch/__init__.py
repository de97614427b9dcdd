"""
Station Fetch Package

Client-side retrieval of weather-station data for the NEWA tools:
- hourly: observed, sister-station and forecast hourly data from ACIS/NEWA
"""

__version__ = "1.0.0"
