"""End-to-end analysis pass: typed input in, JSON-ready metrics out."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Dict, Mapping, Optional

from market_analyzer.analysis.absorption import analyze_absorption
from market_analyzer.analysis.exchange_priority import analyze_exchange_priority
from market_analyzer.analysis.funding import analyze_funding
from market_analyzer.analysis.oi_rotation import analyze_oi_rotation
from market_analyzer.analysis.open_interest import analyze_open_interest
from market_analyzer.analysis.regime import detect_regime
from market_analyzer.analysis.signals import SignalResult, to_jsonable
from market_analyzer.analysis.technical import analyze_technical
from market_analyzer.analysis.thresholds import (
    AdaptiveThresholds,
    compute_adaptive_thresholds,
)
from market_analyzer.analysis.trap import detect_trap
from market_analyzer.data.models import MarketInput
from market_analyzer.data.normalize import parse_market_input
from market_analyzer.decision.engine import DecisionEngine
from market_analyzer.decision.models import DecisionResult
from market_analyzer.utils.time import utc_now_ms

logger = logging.getLogger(__name__)

PRIMARY_TIMEFRAME = "4h"
DAILY_TIMEFRAME = "1d"

_ENGINE = DecisionEngine()


@dataclass(frozen=True)
class MarketAnalysis:
    exchange_priority: SignalResult
    absorption: SignalResult
    oi_rotation: SignalResult
    trap: SignalResult
    thresholds: AdaptiveThresholds
    regime: SignalResult
    technical: SignalResult
    funding: SignalResult
    open_interest: SignalResult
    decision: DecisionResult
    raw: Dict[str, Any]

    def to_dict(self, timestamp: int) -> Dict[str, Any]:
        return {
            "timestamp": timestamp,
            "timeframe": PRIMARY_TIMEFRAME,
            "exchangePriority": self.exchange_priority.to_dict(),
            "absorption": self.absorption.to_dict(),
            "oiRotation": self.oi_rotation.to_dict(),
            "trapDetection": self.trap.to_dict(),
            "adaptiveThresholds": self.thresholds.to_dict(),
            "marketRegime": self.regime.to_dict(),
            "technical": self.technical.to_dict(),
            "fundingAdvanced": self.funding.to_dict(),
            "oiAdvanced": self.open_interest.to_dict(),
            "finalDecision": to_jsonable(self.decision.to_dict()),
            "raw": self.raw,
        }


def compute(market: MarketInput, engine: Optional[DecisionEngine] = None) -> MarketAnalysis:
    """Run every analyzer over one typed input. Pure and deterministic."""
    engine = engine or _ENGINE
    history = market.history
    retail_4h = market.retail.frame(PRIMARY_TIMEFRAME)
    smart_4h = market.smart.frame(PRIMARY_TIMEFRAME)
    retail_1d = market.retail.frame(DAILY_TIMEFRAME)
    smart_1d = market.smart.frame(DAILY_TIMEFRAME)

    thresholds = compute_adaptive_thresholds(history.price)
    eps = analyze_exchange_priority(retail_4h, smart_4h)
    absorption = analyze_absorption(retail_4h, smart_4h, history.cvd, thresholds)
    rotation = analyze_oi_rotation(retail_4h, smart_4h, thresholds)
    funding = analyze_funding(history.funding, current=retail_4h.funding_rate_pct)
    technical = analyze_technical(history.price)
    open_interest = analyze_open_interest(history.oi, history.price)
    trap = detect_trap(retail_4h, absorption, funding, eps, rotation)
    regime = detect_regime(
        retail_4h, smart_4h, retail_1d, smart_1d,
        thresholds, eps, absorption, rotation, trap,
    )
    logger.debug(
        "Stages: eps=%s absorption=%s rotation=%s trap=%s regime=%s technical=%s",
        eps.type, absorption.type, rotation.type, trap.type, regime.type, technical.type,
    )
    decision = engine.decide(eps, absorption, rotation, trap, regime, technical)

    return MarketAnalysis(
        exchange_priority=eps,
        absorption=absorption,
        oi_rotation=rotation,
        trap=trap,
        thresholds=thresholds,
        regime=regime,
        technical=technical,
        funding=funding,
        open_interest=open_interest,
        decision=decision,
        raw=market.raw_snapshot(),
    )


def calculate_market_metrics(
    market_data: Mapping[str, Any],
    history: Optional[Mapping[str, Any]] = None,
    *,
    now_ms: Optional[int] = None,
) -> Dict[str, Any]:
    """Parse a raw payload and return the full metrics object.

    Raises ``InvalidInputFormat`` when neither venue is present.
    """
    market = parse_market_input(market_data, history)
    analysis = compute(market)
    logger.info(
        "Final decision %s (confidence %.1f)",
        analysis.decision.bias.value,
        analysis.decision.confidence,
    )
    return analysis.to_dict(now_ms if now_ms is not None else utc_now_ms())
