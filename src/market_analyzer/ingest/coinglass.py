"""Coinglass futures data ingestion."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import httpx
import numpy as np

from market_analyzer.config import settings
from market_analyzer.data.models import (
    Candle,
    HistorySeries,
    MarketInput,
    VenueSnapshot,
    VenueTimeframeSnapshot,
)
from market_analyzer.data.normalize import parse_candles

logger = logging.getLogger(__name__)

SNAPSHOT_LIMIT = 10
TAKER_LIMIT = 100
TAKER_INTERVALS = {"4h": "h4", "1d": "h24"}


class CoinglassClient:
    """Thin wrapper over the Coinglass v4 REST API.

    Every fetch returns a list of rows; transport, HTTP and provider errors
    are logged and surface as an empty list.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.coinglass_api_key
        self.api_base = (api_base or settings.coinglass_api_base).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.http_timeout_s
        self._transport = transport

    def get(self, endpoint: str, params: Mapping[str, Any]) -> List[Dict[str, Any]]:
        headers = {"accept": "application/json", "CG-API-KEY": self.api_key}
        url = self.api_base + endpoint
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.get(url, params=dict(params), headers=headers)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Coinglass request failed for %s %s: %s", endpoint, params, exc)
            return []
        if not isinstance(payload, dict):
            logger.warning("Coinglass returned a non-object body for %s %s", endpoint, params)
            return []
        if str(payload.get("code")) != "0":
            logger.warning(
                "Coinglass returned code %s for %s %s: %s",
                payload.get("code"), endpoint, params, payload.get("msg"),
            )
            return []
        data = payload.get("data")
        return data if isinstance(data, list) else []

    def price_history(self, exchange: str, symbol: str, interval: str, limit: int):
        return self.get(
            "/futures/price/history",
            {"exchange": exchange, "symbol": symbol, "interval": interval, "limit": limit},
        )

    def open_interest_history(self, exchange: str, symbol: str, interval: str, limit: int):
        return self.get(
            "/futures/open-interest/history",
            {"exchange": exchange, "symbol": symbol, "interval": interval, "limit": limit},
        )

    def funding_history(self, exchange: str, symbol: str, interval: str, limit: int):
        return self.get(
            "/futures/funding-rate/history",
            {"exchange": exchange, "symbol": symbol, "interval": interval, "limit": limit},
        )

    def taker_volume_history(self, exchange: str, symbol: str, interval: str, limit: int):
        return self.get(
            "/futures/v2/taker-buy-sell-volume/history",
            {
                "exchange": exchange,
                "symbol": symbol,
                "interval": TAKER_INTERVALS.get(interval, interval),
                "limit": limit,
            },
        )


def smart_symbol(symbol: str) -> str:
    """Coin-margined contract used as the smart-money proxy."""
    if symbol.upper().endswith("USDT"):
        return symbol[:-1]
    return symbol


def calculate_change(latest: float, previous: float) -> Optional[float]:
    if not latest or not previous:
        return None
    return round((latest - previous) / previous * 100.0, 2)


def taker_deltas(rows: Iterable[Mapping[str, Any]]) -> List[float]:
    deltas = []
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        buy = row.get("taker_buy_volume_usd", row.get("buyVol", 0))
        sell = row.get("taker_sell_volume_usd", row.get("sellVol", 0))
        try:
            deltas.append(float(buy or 0) - float(sell or 0))
        except (TypeError, ValueError):
            deltas.append(0.0)
    return deltas


def calculate_cvd(rows: Sequence[Mapping[str, Any]], window: Optional[int] = None) -> float:
    deltas = taker_deltas(rows)
    if window:
        deltas = deltas[-window:]
    return round(float(np.sum(deltas)), 2) if deltas else 0.0


def _row_time(row: Mapping[str, Any]) -> Optional[int]:
    try:
        return int(float(row.get("time")))
    except (TypeError, ValueError, OverflowError):
        return None


def rolling_cvd(rows: Sequence[Mapping[str, Any]], window: int) -> Tuple[Candle, ...]:
    """Rolling-window CVD sums, comparable with the snapshot CVD."""
    timed = [row for row in rows if isinstance(row, Mapping) and _row_time(row) is not None]
    deltas = np.asarray(taker_deltas(timed), dtype=float)
    if window <= 0 or deltas.size < window:
        return ()
    sums = np.convolve(deltas, np.ones(window), mode="valid")
    times = [_row_time(row) for row in timed][window - 1 :]
    return tuple(
        Candle(t, float(v), float(v), float(v), float(v)) for t, v in zip(times, sums)
    )


def calculate_funding_average(rows: Sequence[Mapping[str, Any]]) -> Optional[float]:
    candles = parse_candles(rows)
    if not candles:
        return None
    return round(float(np.mean([c.close for c in candles])) * 100.0, 4)


def build_timeframe_snapshot(
    client: CoinglassClient, exchange: str, symbol: str, timeframe: str, cvd_window: int
) -> VenueTimeframeSnapshot:
    prices = parse_candles(client.price_history(exchange, symbol, timeframe, SNAPSHOT_LIMIT))
    oi = parse_candles(client.open_interest_history(exchange, symbol, timeframe, SNAPSHOT_LIMIT))
    funding = client.funding_history(exchange, symbol, timeframe, SNAPSHOT_LIMIT)
    taker = client.taker_volume_history(exchange, symbol, timeframe, TAKER_LIMIT)

    if len(prices) < 2 or len(oi) < 2:
        logger.warning("Insufficient data for %s %s %s", exchange, symbol, timeframe)
        return VenueTimeframeSnapshot(available=False)

    return VenueTimeframeSnapshot(
        price=prices[-1].close,
        price_change_pct=calculate_change(prices[-1].close, prices[-2].close) or 0.0,
        open_interest=oi[-1].close,
        oi_change_pct=calculate_change(oi[-1].close, oi[-2].close) or 0.0,
        volume=prices[-1].volume,
        cvd=calculate_cvd(taker, cvd_window),
        funding_rate_pct=calculate_funding_average(funding) or 0.0,
    )


def fetch_venue(
    client: CoinglassClient,
    exchange: str,
    symbol: str,
    timeframes: Sequence[str],
    cvd_window: int,
) -> VenueSnapshot:
    frames = {
        tf: build_timeframe_snapshot(client, exchange, symbol, tf, cvd_window)
        for tf in timeframes
    }
    return VenueSnapshot(venue=exchange, frames=frames)


def fetch_history(
    client: CoinglassClient, exchange: str, symbol: str, timeframe: str
) -> HistorySeries:
    limit = settings.history_limit
    window = settings.cvd_window
    prices = parse_candles(client.price_history(exchange, symbol, timeframe, limit))
    oi = parse_candles(client.open_interest_history(exchange, symbol, timeframe, limit))
    funding_rows = client.funding_history(
        exchange, symbol, timeframe, settings.funding_history_limit
    )
    # Scaled to percent so history and snapshot funding share a unit.
    funding = tuple(
        Candle(c.time, c.open * 100, c.high * 100, c.low * 100, c.close * 100)
        for c in parse_candles(funding_rows)
    )
    taker = client.taker_volume_history(exchange, symbol, timeframe, limit + window)
    return HistorySeries(
        price=prices, oi=oi, funding=funding, cvd=rolling_cvd(taker, window)
    )


def fetch_market_data(
    symbol: Optional[str] = None,
    timeframes: Optional[Sequence[str]] = None,
    client: Optional[CoinglassClient] = None,
    include_history: bool = True,
) -> MarketInput:
    """Fetch both venues plus retail history and return a typed input."""
    symbol = symbol or settings.default_symbol
    timeframes = tuple(timeframes or settings.analyzer_timeframes)
    client = client or CoinglassClient()
    window = settings.cvd_window

    retail = fetch_venue(client, settings.retail_venue, symbol, timeframes, window)
    smart = fetch_venue(client, settings.smart_venue, smart_symbol(symbol), timeframes, window)
    history = HistorySeries()
    if include_history:
        history = fetch_history(client, settings.retail_venue, symbol, timeframes[0])
    logger.info(
        "Fetched %s: %d price / %d OI / %d funding / %d CVD history points",
        symbol, len(history.price), len(history.oi), len(history.funding), len(history.cvd),
    )
    return MarketInput(retail=retail, smart=smart, history=history)
