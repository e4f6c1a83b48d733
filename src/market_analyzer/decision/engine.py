"""Weighted vote over the analyzer signals."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

from market_analyzer.analysis.exchange_priority import LEADER_RETAIL, LEADER_SMART
from market_analyzer.analysis.signals import Bias, SignalResult, clamp
from market_analyzer.decision.models import DecisionResult, WeightedSignal

logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS: Dict[str, float] = {
    "trap": 0.25,
    "absorption": 0.20,
    "regime": 0.15,
    "technical": 0.15,
    "exchange_priority": 0.15,
    "oi_rotation": 0.10,
}
SCORE_SCALE = 10.0
MAX_REASONS = 3


def _weighted_text(text: str, venue: str, weight: float) -> str:
    if weight == 1.0:
        return text
    return f"{text} ({venue} weight x{weight:g})"


class DecisionEngine:
    """Combine analyzer outputs into one LONG/SHORT/WAIT call.

    Each signal adds ``confidence * weight * 10`` to the accumulator of its
    own bias. Venue-bound signals are first scaled by the exchange-priority
    venue weights. The largest accumulator wins only when it is the unique
    maximum and exceeds ``activation_floor``; otherwise the result is WAIT.
    """

    def __init__(
        self,
        weights: Optional[Mapping[str, float]] = None,
        activation_floor: float = 20.0,
        trap_grade: float = 5.0,
    ) -> None:
        self.weights = dict(weights or DEFAULT_WEIGHTS)
        self.activation_floor = activation_floor
        self.trap_grade = trap_grade

    def _exchange_signal(self, eps: SignalResult, rotation: SignalResult) -> tuple:
        leader = eps.get("leader")
        if leader == LEADER_SMART:
            return rotation.bias, eps.confidence, (
                f"{eps.interpretation}; following rotation bias {rotation.bias.value}"
            )
        if leader == LEADER_RETAIL:
            return Bias.WAIT, eps.confidence, f"{eps.interpretation}; retail lead is suspect"
        return Bias.WAIT, eps.confidence, eps.interpretation

    def _collect(
        self,
        eps: SignalResult,
        absorption: SignalResult,
        rotation: SignalResult,
        trap: SignalResult,
        regime: SignalResult,
        technical: SignalResult,
    ) -> List[WeightedSignal]:
        # Absorption reads the retail venue; rotation is led by smart-money OI.
        venue_weights = eps.get("signal_weights") or {}
        retail_weight = venue_weights.get("retail", 1.0)
        smart_weight = venue_weights.get("smart_money", 1.0)

        entries = []
        if trap.grade >= self.trap_grade:
            entries.append(("trap", trap.bias, trap.confidence, trap.interpretation))
        entries.append(
            (
                "absorption",
                absorption.bias,
                clamp(absorption.confidence * retail_weight),
                _weighted_text(absorption.interpretation, "retail", retail_weight),
            )
        )
        entries.append(("regime", regime.bias, regime.confidence, regime.interpretation))
        entries.append(
            ("technical", technical.bias, technical.confidence, technical.interpretation)
        )
        entries.append(("exchange_priority", *self._exchange_signal(eps, rotation)))
        entries.append(
            (
                "oi_rotation",
                rotation.bias,
                clamp(rotation.confidence * smart_weight),
                _weighted_text(rotation.interpretation, "smart-money", smart_weight),
            )
        )

        signals = []
        for name, bias, confidence, text in entries:
            weight = self.weights.get(name, 0.0)
            signals.append(
                WeightedSignal(
                    name=name,
                    bias=bias,
                    confidence=confidence,
                    weight=weight,
                    contribution=confidence * weight * SCORE_SCALE,
                    interpretation=text,
                )
            )
        return signals

    def decide(
        self,
        eps: SignalResult,
        absorption: SignalResult,
        rotation: SignalResult,
        trap: SignalResult,
        regime: SignalResult,
        technical: SignalResult,
    ) -> DecisionResult:
        signals = self._collect(eps, absorption, rotation, trap, regime, technical)
        scores = {bias.value.lower(): 0.0 for bias in (Bias.LONG, Bias.SHORT, Bias.WAIT)}
        for signal in signals:
            scores[signal.bias.value.lower()] += signal.contribution

        top = max(scores.values())
        leaders = [key for key, value in scores.items() if value == top]
        if top > self.activation_floor and len(leaders) == 1:
            bias = Bias(leaders[0].upper())
        else:
            bias = Bias.WAIT

        contributing = [s for s in signals if s.confidence > 0 and s.weight > 0]
        total_weight = sum(s.weight for s in contributing)
        confidence = 0.0
        if total_weight > 0:
            confidence = round(
                sum(s.confidence * s.weight for s in contributing) / total_weight, 1
            )

        matching = sorted(
            (s for s in signals if s.bias == bias and s.confidence > 0),
            key=lambda s: s.rank,
            reverse=True,
        )
        reasoning = [f"{s.name}: {s.interpretation}" for s in matching[:MAX_REASONS]]

        logger.debug("Decision scores %s -> %s", scores, bias.value)
        return DecisionResult(
            bias=bias,
            confidence=confidence,
            scores={key: round(value, 4) for key, value in scores.items()},
            signals=tuple(signals),
            reasoning=reasoning,
        )
