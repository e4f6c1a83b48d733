"""Advisory response schema."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from market_analyzer.analysis.signals import Bias

MARKET_MODES = {
    "distribution",
    "accumulation",
    "short_covering",
    "long_trap",
    "short_trap",
    "trending_down",
    "trending_up",
    "unclear",
}


class AdvisoryInsight(BaseModel):
    final_bias: Bias
    confidence: float
    market_mode: str = "unclear"
    price_oi_state: Optional[str] = None
    summary: str = ""
    reasoning: Dict[str, str] = Field(default_factory=dict)
    key_signals: List[str] = Field(default_factory=list)
    risk_warnings: List[str] = Field(default_factory=list)

    @field_validator("final_bias", mode="before")
    @classmethod
    def _normalize_bias(cls, value):
        if isinstance(value, str):
            normalized = value.strip().upper()
            if normalized in {"NEUTRAL", "HOLD", "NONE", ""}:
                return Bias.WAIT.value
            return normalized
        return value

    @field_validator("confidence")
    @classmethod
    def _check_confidence(cls, value: float) -> float:
        if value < 0 or value > 10:
            raise ValueError("confidence must be between 0 and 10")
        return value

    @field_validator("market_mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value) -> str:
        if not isinstance(value, str):
            return "unclear"
        normalized = value.strip().lower().replace(" ", "_").replace("-", "_")
        return normalized if normalized in MARKET_MODES else "unclear"

    @field_validator("reasoning", mode="before")
    @classmethod
    def _stringify_reasoning(cls, value):
        if not isinstance(value, dict):
            return {}
        return {str(key): str(item) for key, item in value.items()}

    @field_validator("summary")
    @classmethod
    def _strip_summary(cls, value: str) -> str:
        return value.strip()
