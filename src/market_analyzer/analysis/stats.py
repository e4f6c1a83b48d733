"""Statistics primitives shared by the analyzers.

Every helper returns ``None`` on insufficient or degenerate input instead of
raising; callers treat ``None`` as "no evidence".
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np
import pandas as pd


def _finite(values: Optional[Sequence[float]]) -> np.ndarray:
    if values is None:
        return np.array([], dtype=float)
    arr = np.asarray(list(values), dtype=float)
    return arr[np.isfinite(arr)]


def mean(values: Sequence[float]) -> Optional[float]:
    arr = _finite(values)
    if arr.size == 0:
        return None
    return float(arr.mean())


def sma(values: Sequence[float], length: int) -> Optional[float]:
    arr = _finite(values)
    if length <= 0 or arr.size < length:
        return None
    return float(arr[-length:].mean())


def ema(values: Sequence[float], length: int) -> Optional[float]:
    """EMA seeded with the SMA of the first ``length`` values."""
    arr = _finite(values)
    if length <= 0 or arr.size < length:
        return None
    k = 2.0 / (length + 1)
    value = float(arr[:length].mean())
    for item in arr[length:]:
        value = float(item) * k + value * (1 - k)
    return value


def std(values: Sequence[float]) -> Optional[float]:
    """Population standard deviation."""
    arr = _finite(values)
    if arr.size == 0:
        return None
    return float(arr.std(ddof=0))


def z_score(value: Optional[float], values: Sequence[float]) -> Optional[float]:
    if value is None or not math.isfinite(value):
        return None
    avg = mean(values)
    dev = std(values)
    if avg is None or dev is None or dev == 0:
        return None
    return (value - avg) / dev


def pct_change(base: Optional[float], current: Optional[float]) -> Optional[float]:
    if base is None or current is None or base == 0:
        return None
    if not (math.isfinite(base) and math.isfinite(current)):
        return None
    return (current - base) / abs(base) * 100.0


def slope(values: Sequence[float]) -> Optional[float]:
    """Least-squares slope of value against index."""
    arr = _finite(values)
    n = arr.size
    if n < 2:
        return None
    x = np.arange(n, dtype=float)
    denominator = n * float((x * x).sum()) - float(x.sum()) ** 2
    if denominator == 0:
        return None
    numerator = n * float((x * arr).sum()) - float(x.sum()) * float(arr.sum())
    return numerator / denominator


def atr(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> Optional[float]:
    """Mean true range over the trailing ``period`` bars."""
    if period <= 0 or not (len(highs) == len(lows) == len(closes)):
        return None
    if len(closes) < period + 1:
        return None
    high = pd.Series(highs, dtype=float)
    low = pd.Series(lows, dtype=float)
    close = pd.Series(closes, dtype=float)
    prev_close = close.shift(1)
    tr = pd.concat(
        [
            (high - low).abs(),
            (high - prev_close).abs(),
            (low - prev_close).abs(),
        ],
        axis=1,
    ).max(axis=1)
    window = tr.iloc[1:].tail(period)
    if window.isna().any():
        return None
    value = float(window.mean())
    return value if math.isfinite(value) else None


def percentile_rank(value: Optional[float], values: Sequence[float]) -> Optional[float]:
    """Share of ``values`` at or below ``value``, in percent."""
    arr = _finite(values)
    if value is None or arr.size == 0:
        return None
    sorted_vals = np.sort(arr)
    rank = np.searchsorted(sorted_vals, value, side="right")
    return float(rank / sorted_vals.size * 100.0)


def log_returns(values: Sequence[float]) -> np.ndarray:
    arr = _finite(values)
    if arr.size < 2:
        return np.array([], dtype=float)
    prev = arr[:-1]
    curr = arr[1:]
    mask = (prev > 0) & (curr > 0)
    return np.log(curr[mask] / prev[mask])


def max_drawdown_pct(values: Sequence[float]) -> Optional[float]:
    """Deepest peak-to-trough decline in percent (zero or negative)."""
    series = pd.Series(_finite(values))
    series = series[series > 0]
    if series.empty:
        return None
    drawdown = series / series.cummax() - 1.0
    return float(drawdown.min() * 100.0)
