"""Bull/bear trap scoring.

Scoring is additive: each corroborating factor adds evidence and none of
them is a hard precondition. A trap is emitted once the score reaches
``ACTIVATION_SCORE``.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from market_analyzer.analysis.exchange_priority import LEADER_RETAIL, LEADER_SMART
from market_analyzer.analysis.signals import Bias, SignalResult
from market_analyzer.data.models import VenueTimeframeSnapshot

PRICE_MOVE = 0.5
OI_MOVE = 0.3
ACTIVATION_SCORE = 4.0
MINOR_DOMINANCE = 0.3


def _score_side(
    absorption_type: str,
    rotation_type: str,
    leader: str,
    minor_dominance_key: str,
    funding_z: float,
    absorption: SignalResult,
    eps: SignalResult,
    rotation: SignalResult,
) -> Tuple[float, List[str]]:
    score = 0.0
    factors: List[str] = []

    if absorption.type == absorption_type:
        points = min(3.0, absorption.grade / 3.0)
        score += points
        factors.append(f"{absorption_type} absorption (+{points:.2f})")

    if funding_z > 0:
        points = min(3.0, 1.5 * funding_z)
        score += points
        factors.append(f"funding z {funding_z:.2f} (+{points:.2f})")

    if eps.get("leader") == leader:
        score += 2.0
        factors.append(f"{leader} leading (+2.00)")
    else:
        dominance = eps.get(minor_dominance_key)
        if dominance is not None and dominance < MINOR_DOMINANCE:
            score += 1.0
            factors.append(f"{minor_dominance_key} below 30% (+1.00)")

    if rotation.type == rotation_type:
        points = min(2.0, rotation.grade / 5.0)
        score += points
        factors.append(f"{rotation_type} rotation (+{points:.2f})")

    return score, factors


def detect_trap(
    primary: VenueTimeframeSnapshot,
    absorption: SignalResult,
    funding: SignalResult,
    eps: SignalResult,
    rotation: SignalResult,
) -> SignalResult:
    price = primary.price_change_pct
    oi = primary.oi_change_pct
    z = funding.get("z_score") or 0.0
    details: Dict[str, object] = {"score": 0.0, "factors": [], "candidate": None}

    if abs(price) <= PRICE_MOVE or abs(oi) <= OI_MOVE:
        return SignalResult(
            type="none",
            grade=0.0,
            bias=Bias.WAIT,
            confidence=0.0,
            interpretation="Price or OI move too small to evaluate traps",
            details=details,
        )

    if price > 0 and oi > 0:
        candidate, bias = "bull_trap", Bias.SHORT
        # Bull trap: crowded longs, retail chasing, smart money absent.
        score, factors = _score_side(
            "distribution", "fresh_longs", LEADER_RETAIL, "smart_dominance",
            z, absorption, eps, rotation,
        )
    elif price < 0 and oi > 0:
        candidate, bias = "bear_trap", Bias.LONG
        score, factors = _score_side(
            "accumulation", "fresh_shorts", LEADER_SMART, "retail_dominance",
            -z, absorption, eps, rotation,
        )
    else:
        return SignalResult(
            type="none",
            grade=0.0,
            bias=Bias.WAIT,
            confidence=0.0,
            interpretation="OI falling; no trapped positioning",
            details=details,
        )

    details = {"score": round(score, 2), "factors": factors, "candidate": candidate}
    if score < ACTIVATION_SCORE:
        return SignalResult(
            type="none",
            grade=0.0,
            bias=Bias.WAIT,
            confidence=0.0,
            interpretation=f"{candidate} evidence too weak (score {score:.3f})",
            details=details,
        )

    return SignalResult(
        type=candidate,
        grade=score,
        bias=bias,
        confidence=score,
        interpretation=f"{candidate.replace('_', ' ')} (score {score:.2f}): "
        + ", ".join(factors),
        details=details,
    )
