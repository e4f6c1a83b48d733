"""Position-flow pattern from cross-venue open-interest change."""

from __future__ import annotations

from market_analyzer.analysis.signals import Bias, SignalResult, clamp, rounded, sign
from market_analyzer.analysis.thresholds import DEFAULT_THRESHOLDS, AdaptiveThresholds
from market_analyzer.data.models import VenueTimeframeSnapshot

RETAIL_WEIGHT = 1.0
SMART_WEIGHT = 1.5
STRENGTH_SCALE = 3.0
SMART_LEAD_BOOST = 1.25
RETAIL_HEAVY_PENALTY = 0.7
RETAIL_HEAVY_MIN = 0.5
RETAIL_HEAVY_RATIO = 0.3

PATTERNS = {
    "short_cover": (Bias.WAIT, "Price up on falling OI: shorts covering, no new demand"),
    "long_liquidation": (Bias.WAIT, "Price down on falling OI: longs liquidating"),
    "long_to_short": (Bias.SHORT, "Price down, OI up while longs still pay funding"),
    "short_to_long": (Bias.LONG, "Price up, OI up while shorts still pay funding"),
    "fresh_longs": (Bias.LONG, "Price and OI rising together: new longs"),
    "fresh_shorts": (Bias.SHORT, "Price falling with OI rising: new shorts"),
}


def weighted_oi_change(
    retail: VenueTimeframeSnapshot, smart: VenueTimeframeSnapshot
) -> float:
    return (
        retail.oi_change_pct * RETAIL_WEIGHT + smart.oi_change_pct * SMART_WEIGHT
    ) / (RETAIL_WEIGHT + SMART_WEIGHT)


def _classify(price: float, weighted: float, funding: float, t: AdaptiveThresholds) -> str:
    price_up = price > t.price_significant_pct
    price_down = price < -t.price_significant_pct
    oi_up = weighted > t.oi_significant_pct
    oi_down = weighted < -t.oi_significant_pct

    if price_up and oi_down:
        return "short_cover"
    if price_down and oi_down:
        return "long_liquidation"
    if price_down and oi_up and funding > 0:
        return "long_to_short"
    if price_up and oi_up and funding < 0:
        return "short_to_long"
    if price_up and oi_up:
        return "fresh_longs"
    if price_down and oi_up:
        return "fresh_shorts"
    return "none"


def analyze_oi_rotation(
    retail: VenueTimeframeSnapshot,
    smart: VenueTimeframeSnapshot,
    thresholds: AdaptiveThresholds = DEFAULT_THRESHOLDS,
) -> SignalResult:
    weighted = weighted_oi_change(retail, smart)
    price = retail.price_change_pct
    funding = retail.funding_rate_pct
    retail_move = abs(retail.oi_change_pct)
    smart_move = abs(smart.oi_change_pct)

    smart_leading = (
        smart_move > retail_move
        and sign(weighted) != 0
        and sign(smart.oi_change_pct) == sign(weighted)
    )
    retail_heavy = (
        retail_move >= RETAIL_HEAVY_MIN and smart_move < retail_move * RETAIL_HEAVY_RATIO
    )
    details = {
        "weighted_oi_change": rounded(weighted, 3),
        "retail_oi_change": retail.oi_change_pct,
        "smart_oi_change": smart.oi_change_pct,
        "funding": funding,
        "smart_leading": smart_leading,
        "retail_heavy": retail_heavy,
    }

    kind = _classify(price, weighted, funding, thresholds)
    if kind == "none":
        return SignalResult(
            type="none",
            grade=0.0,
            bias=Bias.WAIT,
            confidence=0.0,
            interpretation="No significant OI rotation",
            details=details,
        )

    bias, text = PATTERNS[kind]
    strength = abs(weighted) * STRENGTH_SCALE
    if smart_leading:
        strength *= SMART_LEAD_BOOST
        text += "; smart-money venue leads"
    if retail_heavy:
        strength *= RETAIL_HEAVY_PENALTY
        text += "; retail heavy"
    strength = clamp(strength)
    return SignalResult(
        type=kind,
        grade=strength,
        bias=bias,
        confidence=strength,
        interpretation=text,
        details=details,
    )
