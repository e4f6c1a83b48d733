"""Priority-ordered market regime classification.

Rules are evaluated top-down and the first match returns immediately; the
order is the confidence hierarchy.
"""

from __future__ import annotations

from typing import List

from market_analyzer.analysis.oi_rotation import weighted_oi_change
from market_analyzer.analysis.signals import Bias, SignalResult, rounded
from market_analyzer.analysis.thresholds import AdaptiveThresholds
from market_analyzer.data.models import VenueTimeframeSnapshot

TRAP_GRADE = 5.0
STRONG_TREND_PCT = 10.0
ABSORPTION_GRADE = 5.0
ROTATION_STRENGTH = 5.0


def _consensus(first: VenueTimeframeSnapshot, second: VenueTimeframeSnapshot) -> float:
    frames = [frame for frame in (first, second) if frame.available]
    if not frames:
        return 0.0
    return sum(frame.price_change_pct for frame in frames) / len(frames)


def _regime(
    regime: str,
    sub_type: str,
    bias: Bias,
    confidence: float,
    characteristics: List[str],
    price_consensus: float,
    weighted_oi: float,
) -> SignalResult:
    return SignalResult(
        type=regime,
        grade=confidence,
        bias=bias,
        confidence=confidence,
        interpretation=characteristics[0],
        details={
            "regime": regime,
            "sub_type": sub_type,
            "characteristics": characteristics,
            "price_consensus": rounded(price_consensus, 3),
            "weighted_oi_change": rounded(weighted_oi, 3),
        },
    )


def detect_regime(
    retail_4h: VenueTimeframeSnapshot,
    smart_4h: VenueTimeframeSnapshot,
    retail_1d: VenueTimeframeSnapshot,
    smart_1d: VenueTimeframeSnapshot,
    thresholds: AdaptiveThresholds,
    eps: SignalResult,
    absorption: SignalResult,
    rotation: SignalResult,
    trap: SignalResult,
) -> SignalResult:
    price = _consensus(retail_4h, smart_4h)
    daily = _consensus(retail_1d, smart_1d)
    oi = weighted_oi_change(retail_4h, smart_4h)
    price_up = price > thresholds.price_significant_pct
    price_down = price < -thresholds.price_significant_pct
    oi_up = oi > thresholds.oi_significant_pct
    oi_down = oi < -thresholds.oi_significant_pct

    def build(regime, sub_type, bias, confidence, characteristics):
        return _regime(regime, sub_type, bias, confidence, characteristics, price, oi)

    if trap.grade >= TRAP_GRADE:
        return build(
            "trap", trap.type, trap.bias, trap.confidence,
            [trap.interpretation, "Trapped side is likely to be forced out"],
        )

    if abs(daily) > STRONG_TREND_PCT:
        if daily > 0:
            return build(
                "strong_trend", "parabolic_up", Bias.LONG, 8.0,
                [f"Daily move {daily:+.2f}%: parabolic advance", "Do not fade strength"],
            )
        return build(
            "strong_trend", "capitulation_down", Bias.SHORT, 8.0,
            [f"Daily move {daily:+.2f}%: capitulation", "Do not catch the knife"],
        )

    if absorption.type == "distribution" and absorption.grade >= ABSORPTION_GRADE:
        return build(
            "distribution", "absorbed_buying", Bias.SHORT, absorption.confidence,
            [absorption.interpretation, "Supply is meeting the rally"],
        )

    if absorption.type == "accumulation" and absorption.grade >= ABSORPTION_GRADE:
        return build(
            "accumulation", "absorbed_selling", Bias.LONG, absorption.confidence,
            [absorption.interpretation, "Demand is meeting the decline"],
        )

    if rotation.grade >= ROTATION_STRENGTH:
        return build(
            "rotation", rotation.type, rotation.bias, rotation.confidence,
            [rotation.interpretation],
        )

    if price_up and oi_up and absorption.type == "confirmed_buying":
        return build(
            "trending", "healthy_bull", Bias.LONG, 7.0,
            ["Price, OI and buying flow rising together", "Sustainable advance"],
        )
    if price_down and oi_up and absorption.type == "confirmed_selling":
        return build(
            "trending", "healthy_bear", Bias.SHORT, 7.0,
            ["Price falling with fresh OI and selling flow", "Sustainable decline"],
        )

    if oi_down and (price_up or price_down):
        sub_type = "short_covering" if price_up else "long_deleveraging"
        return build(
            "covering", sub_type, Bias.WAIT, 5.0,
            ["Positions closing into the move; not fresh conviction"],
        )

    leader = eps.get("leader", "unknown")
    return build(
        "unclear", "choppy", Bias.WAIT, 3.0,
        [f"No clear regime (venue leader: {leader}); wait for clarity"],
    )
