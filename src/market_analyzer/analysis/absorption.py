"""Price versus order-flow divergence (absorption) analyzer."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from market_analyzer.analysis.exchange_priority import cvd_signs_agree
from market_analyzer.analysis.signals import Bias, SignalResult, clamp, rounded
from market_analyzer.analysis.stats import z_score
from market_analyzer.analysis.thresholds import DEFAULT_THRESHOLDS, AdaptiveThresholds
from market_analyzer.data.models import Candle, VenueTimeframeSnapshot

PRICE_MOVE = 0.5
FLOW_Z = 0.5
MIN_CVD_HISTORY = 10
RATIO_SCALE = 40.0
CVD_UNIT = 5e8
Z_CAP = 3.0
OI_BOOST = 1.2
AGREEMENT_BOOST = 1.15


def normalize_cvd(
    snapshot: VenueTimeframeSnapshot, cvd_history: Sequence[Candle]
) -> Tuple[Optional[float], str]:
    """Return a z-like CVD reading and the method used to get it."""
    if len(cvd_history) > MIN_CVD_HISTORY:
        z = z_score(snapshot.cvd, [c.close for c in cvd_history])
        if z is not None:
            return z, "zscore"
    if snapshot.volume > 0:
        ratio = snapshot.cvd / snapshot.volume * RATIO_SCALE
    else:
        ratio = snapshot.cvd / CVD_UNIT
    return max(-Z_CAP, min(Z_CAP, ratio)), "ratio"


def analyze_absorption(
    primary: VenueTimeframeSnapshot,
    secondary: VenueTimeframeSnapshot,
    cvd_history: Sequence[Candle] = (),
    thresholds: AdaptiveThresholds = DEFAULT_THRESHOLDS,
) -> SignalResult:
    cvd_z, method = normalize_cvd(primary, cvd_history)
    price = primary.price_change_pct
    oi_confirms = (
        max(primary.oi_change_pct, secondary.oi_change_pct)
        > thresholds.oi_significant_pct
    )
    agreement = cvd_signs_agree(primary.cvd, secondary.cvd)
    details = {
        "cvd_z": rounded(cvd_z, 3),
        "cvd_method": method,
        "price_change": price,
        "oi_confirms": oi_confirms,
        "cvd_agreement": agreement,
        "primary_cvd": primary.cvd,
        "secondary_cvd": secondary.cvd,
    }

    price_up = price > PRICE_MOVE
    price_down = price < -PRICE_MOVE
    flow_up = cvd_z is not None and cvd_z > FLOW_Z
    flow_down = cvd_z is not None and cvd_z < -FLOW_Z

    if price_up and flow_down:
        kind, bias = "distribution", Bias.SHORT
        text = "Price rising into net selling; buyers are being absorbed"
    elif price_down and flow_up:
        kind, bias = "accumulation", Bias.LONG
        text = "Price falling into net buying; sellers are being absorbed"
    elif price_up and flow_up:
        kind, bias = "confirmed_buying", Bias.LONG
        text = "Aggressive buying is moving price up"
    elif price_down and flow_down:
        kind, bias = "confirmed_selling", Bias.SHORT
        text = "Aggressive selling is moving price down"
    else:
        return SignalResult(
            type="none",
            grade=0.0,
            bias=Bias.WAIT,
            confidence=0.0,
            interpretation="No meaningful price/flow relationship",
            details=details,
        )

    grade = 3.0 * abs(cvd_z) + abs(price)
    if oi_confirms:
        grade *= OI_BOOST
        text += "; fresh OI confirms"
    if agreement:
        grade *= AGREEMENT_BOOST
        text += "; both venues' CVD agree"
    grade = clamp(grade)
    return SignalResult(
        type=kind,
        grade=grade,
        bias=bias,
        confidence=grade,
        interpretation=text,
        details=details,
    )
