"""Payload builders shared by the analyzer test suites."""

from __future__ import annotations

from typing import Any, Dict, List



def frame(
    price_change: float = 0.0,
    oi_change: float = 0.0,
    cvd: float = 0.0,
    volume: float = 0.0,
    funding: float = 0.0,
    price: float = 60000.0,
    oi: float = 1e10,
) -> Dict[str, Any]:
    return {
        "price": price,
        "price_change": price_change,
        "oi": oi,
        "oi_change": oi_change,
        "volume": volume,
        "cvd": cvd,
        "funding_rate_avg_pct": funding,
    }


def distribution_payload(direction: int = 1) -> Dict[str, Any]:
    """Rally into net selling on the retail venue; ``direction=-1`` mirrors it."""
    d = direction
    return {
        "snapshot": {
            "Binance": {
                "4h": frame(3.0 * d, 2.0 * d, -5e8 * d, 2e10, 0.08 * d),
                "1d": frame(4.0 * d, 1.0 * d, -1e9 * d, 8e10, 0.08 * d),
            },
            "Bybit": {
                "4h": frame(2.8 * d, -1.5 * d, -1e8 * d, 5e9, 0.05 * d),
                "1d": frame(3.5 * d, -0.5 * d, -2e8 * d, 2e10, 0.05 * d),
            },
        },
        "history": {},
    }


def candles(closes: List[float], spread: float = 0.005) -> List[Dict[str, Any]]:
    base = 1_700_000_000_000
    return [
        {
            "time": base + i * 4 * 3600 * 1000,
            "open": close,
            "high": close * (1 + spread),
            "low": close * (1 - spread),
            "close": close,
        }
        for i, close in enumerate(closes)
    ]


