"""Normalize raw provider payloads into typed market inputs."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from market_analyzer.config import settings
from market_analyzer.data.models import (
    Candle,
    HistorySeries,
    MarketInput,
    VenueSnapshot,
    VenueTimeframeSnapshot,
)


logger = logging.getLogger(__name__)


class InvalidInputFormat(ValueError):
    """Raised when the payload carries no recognizable venue data."""


SNAPSHOT_MAPPING = {
    "price": ("price", "close", "last"),
    "price_change_pct": ("price_change_pct", "price_change"),
    "open_interest": ("open_interest", "oi"),
    "oi_change_pct": ("oi_change_pct", "oi_change"),
    "volume": ("volume", "volume_usd"),
    "cvd": ("cvd",),
    "funding_rate_pct": ("funding_rate_pct", "funding_rate_avg_pct", "funding"),
}

CANDLE_MAPPING = {
    "time": ("time", "timestamp", "ts", "t"),
    "open": ("open", "o"),
    "high": ("high", "h"),
    "low": ("low", "l"),
    "close": ("close", "c", "price", "rate", "oi", "cvd", "value"),
    "volume": ("volume", "volume_usd", "v"),
}

HISTORY_MAPPING = {
    "price": ("price", "priceHistory", "price_history"),
    "oi": ("oi", "oiHistory", "oi_history"),
    "funding": ("funding", "fundingHistory", "funding_history"),
    "cvd": ("cvd", "cvdHistory", "cvd_history"),
}


def _to_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def _pick(row: Mapping[str, Any], aliases: Tuple[str, ...]) -> Any:
    for key in aliases:
        if key in row and row[key] is not None:
            return row[key]
    return None


def _find_key(payload: Mapping[str, Any], name: str) -> Optional[str]:
    target = name.lower()
    for key in payload:
        if isinstance(key, str) and key.lower() == target:
            return key
    return None


def parse_timeframe_snapshot(row: Optional[Mapping[str, Any]]) -> VenueTimeframeSnapshot:
    if not isinstance(row, Mapping):
        return VenueTimeframeSnapshot(available=False)
    values = {
        field_name: _to_float(_pick(row, aliases))
        for field_name, aliases in SNAPSHOT_MAPPING.items()
    }
    return VenueTimeframeSnapshot(**values)


def parse_venue(venue: str, payload: Optional[Mapping[str, Any]]) -> VenueSnapshot:
    if not isinstance(payload, Mapping):
        logger.warning("No snapshot data for venue %s", venue)
        return VenueSnapshot(venue=venue)
    frames = {
        str(timeframe): parse_timeframe_snapshot(row)
        for timeframe, row in payload.items()
    }
    return VenueSnapshot(venue=venue, frames=frames)


def parse_candles(rows: Optional[Iterable[Any]]) -> Tuple[Candle, ...]:
    if not rows:
        return ()
    candles: List[Candle] = []
    for index, row in enumerate(rows):
        if isinstance(row, Mapping):
            close = _to_float(_pick(row, CANDLE_MAPPING["close"]), default=None)
            if close is None:
                continue
            time_value = _to_float(_pick(row, CANDLE_MAPPING["time"]), default=None)
            candles.append(
                Candle(
                    time=int(time_value) if time_value is not None else index,
                    open=_to_float(_pick(row, CANDLE_MAPPING["open"]), default=close),
                    high=_to_float(_pick(row, CANDLE_MAPPING["high"]), default=close),
                    low=_to_float(_pick(row, CANDLE_MAPPING["low"]), default=close),
                    close=close,
                    volume=_to_float(_pick(row, CANDLE_MAPPING["volume"])),
                )
            )
        else:
            close = _to_float(row, default=None)
            if close is None:
                continue
            candles.append(Candle(index, close, close, close, close))
    candles.sort(key=lambda candle: candle.time)
    return tuple(candles)


def parse_history(history: Optional[Mapping[str, Any]]) -> HistorySeries:
    if not isinstance(history, Mapping):
        return HistorySeries()
    series: Dict[str, Tuple[Candle, ...]] = {}
    for field_name, aliases in HISTORY_MAPPING.items():
        series[field_name] = parse_candles(_pick(history, aliases))
    return HistorySeries(**series)


def parse_market_input(
    market_data: Mapping[str, Any],
    history: Optional[Mapping[str, Any]] = None,
    retail_venue: Optional[str] = None,
    smart_venue: Optional[str] = None,
) -> MarketInput:
    """Build a MarketInput from `{snapshot, history}` or a bare snapshot."""
    retail_venue = retail_venue or settings.retail_venue
    smart_venue = smart_venue or settings.smart_venue
    if not isinstance(market_data, Mapping):
        raise InvalidInputFormat("market data must be a mapping")

    snapshot: Mapping[str, Any] = market_data
    if isinstance(market_data.get("snapshot"), Mapping):
        snapshot = market_data["snapshot"]
        if history is None:
            history = market_data.get("history")

    retail_key = _find_key(snapshot, retail_venue)
    smart_key = _find_key(snapshot, smart_venue)
    if retail_key is None and smart_key is None:
        raise InvalidInputFormat(
            f"no {retail_venue} or {smart_venue} snapshot in market data"
        )

    return MarketInput(
        retail=parse_venue(
            retail_venue, snapshot.get(retail_key) if retail_key else None
        ),
        smart=parse_venue(smart_venue, snapshot.get(smart_key) if smart_key else None),
        history=parse_history(history),
    )
