"""Rank which venue's position flow currently carries the signal.

The coin-margined venue is treated as the smart-money proxy and the
USDT-margined venue as retail. A smart-money leader up-weights that venue's
signals downstream; a retail leader is suspect on its own and is
down-weighted instead of being treated as confirmation.
"""

from __future__ import annotations

from market_analyzer.analysis.signals import Bias, SignalResult, rounded
from market_analyzer.data.models import VenueTimeframeSnapshot

MIN_ACTIVITY = 0.3
LEADER_ACTIVITY = 0.5
DOMINANCE_CUTOFF = 0.7

LEADER_SMART = "smart_money"
LEADER_RETAIL = "retail"
SYNCHRONIZED = "synchronized"
LOW_ACTIVITY = "low_activity"


def cvd_signs_agree(first: float, second: float) -> bool:
    return (first > 0 and second > 0) or (first < 0 and second < 0)


def analyze_exchange_priority(
    retail: VenueTimeframeSnapshot, smart: VenueTimeframeSnapshot
) -> SignalResult:
    retail_move = abs(retail.oi_change_pct)
    smart_move = abs(smart.oi_change_pct)
    total = retail_move + smart_move
    agreement = cvd_signs_agree(retail.cvd, smart.cvd)
    base = {
        "total_activity": rounded(total, 3),
        "retail_oi_change": retail.oi_change_pct,
        "smart_oi_change": smart.oi_change_pct,
        "cvd_agreement": agreement,
    }

    if total < MIN_ACTIVITY:
        return SignalResult(
            type=LOW_ACTIVITY,
            grade=0.0,
            bias=Bias.WAIT,
            confidence=1.0,
            interpretation="OI barely moved on either venue; no leader",
            details={
                "leader": LOW_ACTIVITY,
                "retail_dominance": 0.5,
                "smart_dominance": 0.5,
                "signal_weights": {"retail": 1.0, "smart_money": 1.0},
                **base,
            },
        )

    retail_share = retail_move / total
    smart_share = smart_move / total
    shares = {
        "retail_dominance": rounded(retail_share, 3),
        "smart_dominance": rounded(smart_share, 3),
    }

    if smart_share > DOMINANCE_CUTOFF and total > LEADER_ACTIVITY:
        return SignalResult(
            type=LEADER_SMART,
            grade=smart_share * 10,
            bias=Bias.WAIT,
            confidence=5.0 + 5.0 * smart_share,
            interpretation=(
                f"Smart-money venue drives {smart_share:.0%} of OI change"
            ),
            details={
                "leader": LEADER_SMART,
                "signal_weights": {"retail": 0.8, "smart_money": 1.5},
                **shares,
                **base,
            },
        )

    if retail_share > DOMINANCE_CUTOFF and total > LEADER_ACTIVITY:
        return SignalResult(
            type=LEADER_RETAIL,
            grade=retail_share * 10,
            bias=Bias.WAIT,
            confidence=3.0,
            interpretation=(
                f"Retail venue drives {retail_share:.0%} of OI change without "
                "smart-money participation"
            ),
            details={
                "leader": LEADER_RETAIL,
                "signal_weights": {"retail": 0.6, "smart_money": 1.0},
                **shares,
                **base,
            },
        )

    return SignalResult(
        type=SYNCHRONIZED,
        grade=5.0,
        bias=Bias.WAIT,
        confidence=5.0,
        interpretation="Both venues moving OI together",
        details={
            "leader": SYNCHRONIZED,
            "signal_weights": {"retail": 1.0, "smart_money": 1.0},
            **shares,
            **base,
        },
    )
