"""Common signal shape returned by every analyzer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import math
from typing import Any, Dict, Optional


class Bias(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"
    WAIT = "WAIT"


def clamp(value: Optional[float], low: float = 0.0, high: float = 10.0) -> float:
    if value is None or not math.isfinite(value):
        return low
    return max(low, min(high, float(value)))


def sign(value: float) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def rounded(value: Optional[float], digits: int = 2) -> Optional[float]:
    if value is None or not math.isfinite(value):
        return None
    return round(float(value), digits)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_jsonable(value: Any) -> Any:
    """Recursively camelCase dict keys and drop non-finite floats."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {_camel(str(key)): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


@dataclass(frozen=True)
class SignalResult:
    type: str
    grade: float
    bias: Bias
    confidence: float
    interpretation: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "grade", round(clamp(self.grade), 2))
        object.__setattr__(self, "confidence", round(clamp(self.confidence), 2))
        object.__setattr__(self, "bias", Bias(self.bias))

    def get(self, key: str, default: Any = None) -> Any:
        return self.details.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": self.type,
            "grade": self.grade,
            "bias": self.bias.value,
            "confidence": self.confidence,
            "interpretation": self.interpretation,
        }
        payload.update(to_jsonable(self.details))
        return payload


def neutral(kind: str, interpretation: str, **details: Any) -> SignalResult:
    return SignalResult(
        type=kind,
        grade=0.0,
        bias=Bias.WAIT,
        confidence=0.0,
        interpretation=interpretation,
        details=details,
    )
