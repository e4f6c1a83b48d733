"""Data access layer exports."""

from market_analyzer.data.models import (
    Candle,
    HistorySeries,
    MarketInput,
    VenueSnapshot,
    VenueTimeframeSnapshot,
)
from market_analyzer.data.normalize import InvalidInputFormat, parse_market_input

__all__ = [
    "Candle",
    "HistorySeries",
    "InvalidInputFormat",
    "MarketInput",
    "VenueSnapshot",
    "VenueTimeframeSnapshot",
    "parse_market_input",
]
