"""Decision models and schemas."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from market_analyzer.analysis.signals import Bias, rounded


@dataclass(frozen=True)
class WeightedSignal:
    name: str
    bias: Bias
    confidence: float
    weight: float
    contribution: float
    interpretation: str

    @property
    def rank(self) -> float:
        return self.confidence * self.weight

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "bias": self.bias.value,
            "confidence": self.confidence,
            "weight": self.weight,
            "contribution": rounded(self.contribution),
            "interpretation": self.interpretation,
        }


@dataclass(frozen=True)
class DecisionResult:
    bias: Bias
    confidence: float
    scores: Dict[str, float]
    signals: Tuple[WeightedSignal, ...] = ()
    reasoning: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bias": self.bias.value,
            "confidence": self.confidence,
            "scores": {key: rounded(value) for key, value in self.scores.items()},
            "signals": [signal.to_dict() for signal in self.signals],
            "reasoning": list(self.reasoning),
        }
