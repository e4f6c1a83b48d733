"""Data layer models for normalized futures snapshots and history."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class Candle:
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True)
class VenueTimeframeSnapshot:
    """One venue, one timeframe. Numeric fields are already defaulted."""

    price: float = 0.0
    price_change_pct: float = 0.0
    open_interest: float = 0.0
    oi_change_pct: float = 0.0
    volume: float = 0.0
    cvd: float = 0.0
    funding_rate_pct: float = 0.0
    available: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "price": self.price,
            "price_change": self.price_change_pct,
            "oi": self.open_interest,
            "oi_change": self.oi_change_pct,
            "volume": self.volume,
            "cvd": self.cvd,
            "funding_rate_avg_pct": self.funding_rate_pct,
        }


EMPTY_FRAME = VenueTimeframeSnapshot(available=False)


@dataclass(frozen=True)
class VenueSnapshot:
    venue: str
    frames: Dict[str, VenueTimeframeSnapshot] = field(default_factory=dict)

    def frame(self, timeframe: str) -> VenueTimeframeSnapshot:
        return self.frames.get(timeframe, EMPTY_FRAME)

    def to_dict(self) -> Dict[str, Any]:
        return {
            timeframe: snap.to_dict() if snap.available else None
            for timeframe, snap in self.frames.items()
        }


@dataclass(frozen=True)
class HistorySeries:
    """Ascending candle series; any of them may be short or empty."""

    price: Tuple[Candle, ...] = ()
    oi: Tuple[Candle, ...] = ()
    funding: Tuple[Candle, ...] = ()
    cvd: Tuple[Candle, ...] = ()


@dataclass(frozen=True)
class MarketInput:
    retail: VenueSnapshot
    smart: VenueSnapshot
    history: HistorySeries = field(default_factory=HistorySeries)

    def raw_snapshot(self) -> Dict[str, Any]:
        return {
            self.retail.venue.lower(): self.retail.to_dict(),
            self.smart.venue.lower(): self.smart.to_dict(),
        }
