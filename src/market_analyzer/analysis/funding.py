"""Statistically relative funding extremity with contrarian bias."""

from __future__ import annotations

from typing import Optional, Sequence

from market_analyzer.analysis.signals import Bias, SignalResult, neutral, rounded
from market_analyzer.analysis.stats import percentile_rank, slope, z_score
from market_analyzer.data.models import Candle

MIN_HISTORY = 20


def _trend(rates: Sequence[float]) -> str:
    value = slope(rates)
    if value is None or value == 0:
        return "flat"
    return "increasing" if value > 0 else "decreasing"


def _band(z: float):
    """Map a funding z-score to (level, bias, confidence)."""
    if z > 2.5:
        return "critical_high", Bias.SHORT, 9.0
    if z > 1.5:
        return "high", Bias.SHORT, 7.0
    if z < -2.5:
        return "critical_low", Bias.LONG, 9.0
    if z < -1.5:
        return "low", Bias.LONG, 7.0
    if abs(z) < 0.5:
        return "balanced", Bias.WAIT, 2.0
    return "mild", Bias.WAIT, 2.0 * abs(z)


def analyze_funding(
    funding_history: Sequence[Candle], current: Optional[float] = None
) -> SignalResult:
    rates = [c.close for c in funding_history]
    latest = rates[-1] if rates else current

    if len(rates) < MIN_HISTORY:
        return neutral(
            "normal",
            f"Funding history too short ({len(rates)} points)",
            current=latest,
            z_score=None,
            percentile=None,
            trend=None,
            extreme_level="normal",
            history_points=len(rates),
        )

    z = z_score(latest, rates)
    details = {
        "current": latest,
        "z_score": rounded(z, 3),
        "percentile": rounded(percentile_rank(latest, rates), 1),
        "trend": _trend(rates),
        "history_points": len(rates),
    }
    if z is None:
        return neutral(
            "normal",
            "Funding has not varied over the window",
            extreme_level="normal",
            **details,
        )

    level, bias, confidence = _band(z)
    details["extreme_level"] = level
    return SignalResult(
        type=level,
        grade=abs(z) * 10.0 / 3.0,
        bias=bias,
        confidence=confidence,
        interpretation=f"Funding z-score {z:+.2f} ({level})",
        details=details,
    )
