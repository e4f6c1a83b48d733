"""Prompt builder for the market advisory narrative."""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any, Dict, Mapping, Optional

from market_analyzer.config import settings


@dataclass(frozen=True)
class PromptBundle:
    system: str
    user: str


PRICE_OI_STATES = {
    (1, 1): ("STATE 1: Price up & OI up", "New positioning; healthy trend or long trap"),
    (1, -1): ("STATE 2: Price up & OI down", "Short-covering rally; weak, not new demand"),
    (-1, 1): ("STATE 3: Price down & OI up", "Fresh shorts; strong continuation"),
    (-1, -1): ("STATE 4: Price down & OI down", "Deleveraging cleanup; long liquidations"),
}


def _direction(value: Optional[float]) -> int:
    if not value:
        return 0
    return 1 if value > 0 else -1


def price_oi_state(frame: Mapping[str, Any]) -> tuple:
    """Classify a snapshot frame into one of the four price/OI states."""
    key = (_direction(frame.get("price_change")), _direction(frame.get("oi_change")))
    return PRICE_OI_STATES.get(key, ("Unknown", "Price or OI unchanged"))


def _venue_frame(snapshot: Mapping[str, Any], venue: str, timeframe: str) -> Dict[str, Any]:
    for key, frames in snapshot.items():
        if str(key).lower() == venue.lower() and isinstance(frames, Mapping):
            frame = frames.get(timeframe)
            return dict(frame) if isinstance(frame, Mapping) else {}
    return {}


class PromptBuilder:
    """Build system and user prompts from the computed market metrics."""

    def __init__(self, retail_venue: Optional[str] = None, smart_venue: Optional[str] = None):
        self.retail_venue = retail_venue or settings.retail_venue
        self.smart_venue = smart_venue or settings.smart_venue

    def build(
        self, metrics: Mapping[str, Any], snapshot: Optional[Mapping[str, Any]] = None
    ) -> PromptBundle:
        snapshot = snapshot if snapshot is not None else metrics.get("raw") or {}
        retail_4h = _venue_frame(snapshot, self.retail_venue, "4h")
        retail_1d = _venue_frame(snapshot, self.retail_venue, "1d")
        smart_4h = _venue_frame(snapshot, self.smart_venue, "4h")
        state, state_text = price_oi_state(retail_4h)

        system_prompt = (
            "You are a crypto derivatives analyst. "
            f"{self.retail_venue} USDT-margined futures show where retail leans; "
            f"{self.smart_venue} coin-margined futures show where larger players lean. "
            "When they disagree, the side retail favors is usually vulnerable. "
            "Price alone is never a signal: read it against OI, CVD and funding. "
            "If signals conflict, prefer WAIT. "
            "Return JSON only. No markdown, no extra text. "
            "Use this schema exactly:\n"
            "{\n"
            '  "final_bias": "LONG|SHORT|WAIT",\n'
            '  "confidence": 0,\n'
            '  "market_mode": "distribution|accumulation|short_covering|long_trap|'
            'short_trap|trending_down|trending_up|unclear",\n'
            '  "price_oi_state": "string",\n'
            '  "summary": "string",\n'
            '  "reasoning": {\n'
            '    "price_oi_pattern": "string",\n'
            '    "cvd_signal": "string",\n'
            '    "funding_state": "string",\n'
            '    "whale_activity": "string"\n'
            "  },\n"
            '  "key_signals": ["string"],\n'
            '  "risk_warnings": ["string"]\n'
            "}\n"
            "Rules:\n"
            "- confidence is between 0 and 10 and reflects how well the signals align.\n"
            "- Use only the data provided.\n"
        )

        decision = metrics.get("finalDecision") or {}
        regime = metrics.get("marketRegime") or {}
        user_payload = {
            "price_oi_state": {"state": state, "description": state_text},
            "retail_4h": retail_4h,
            "retail_1d": retail_1d,
            "smart_4h": smart_4h,
            "engine": {
                "final_bias": decision.get("bias"),
                "confidence": decision.get("confidence"),
                "reasoning": decision.get("reasoning"),
                "regime": regime.get("regime"),
                "regime_sub_type": regime.get("subType"),
                "exchange_leader": (metrics.get("exchangePriority") or {}).get("leader"),
                "absorption": (metrics.get("absorption") or {}).get("type"),
                "oi_rotation": (metrics.get("oiRotation") or {}).get("type"),
                "trap": (metrics.get("trapDetection") or {}).get("type"),
                "funding_z": (metrics.get("fundingAdvanced") or {}).get("zScore"),
                "funding_level": (metrics.get("fundingAdvanced") or {}).get("extremeLevel"),
                "trend": (metrics.get("technical") or {}).get("direction"),
                "momentum24": (metrics.get("technical") or {}).get("momentum24"),
                "adaptive_thresholds": metrics.get("adaptiveThresholds"),
            },
        }
        user_prompt = (
            f"Current state: {state} ({state_text}).\n"
            "Classify the market mode, state the bias and explain it.\n"
            + json.dumps(user_payload, ensure_ascii=True, default=str)
        )
        return PromptBundle(system=system_prompt, user=user_prompt)
