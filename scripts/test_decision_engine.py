"""Decision engine tests."""

from __future__ import annotations

import pytest

from market_analyzer.analysis.signals import Bias, SignalResult, neutral
from market_analyzer.decision import DecisionEngine

QUIET = neutral("none", "quiet")


def _signal(kind, confidence, bias, **details):
    return SignalResult(kind, confidence, bias, confidence, kind, details)


def _eps(leader, confidence=5.0, weights=None):
    return _signal(
        leader, confidence, Bias.WAIT, leader=leader,
        signal_weights=weights or {"retail": 1.0, "smart_money": 1.0},
    )


def _decide(engine=None, eps=None, absorption=QUIET, rotation=QUIET, trap=QUIET,
            regime=QUIET, technical=QUIET):
    engine = engine or DecisionEngine()
    return engine.decide(
        eps or _eps("low_activity", 0.0), absorption, rotation, trap, regime, technical
    )


def _names(result):
    return [signal.name for signal in result.signals]


def test_distribution_consensus_goes_short():
    result = _decide(
        eps=_eps("synchronized", 5.0),
        absorption=_signal("distribution", 8.28, Bias.SHORT),
        regime=_signal("distribution", 8.28, Bias.SHORT),
    )
    assert result.bias == Bias.SHORT
    assert result.scores["short"] == pytest.approx(28.98)
    assert result.scores["wait"] == pytest.approx(7.5)
    assert result.confidence == 7.3
    assert result.reasoning[0].startswith("absorption")
    assert len(result.reasoning) == 2


def test_activation_floor_forces_wait():
    result = _decide(absorption=_signal("distribution", 5.0, Bias.SHORT))
    assert result.scores["short"] == pytest.approx(10.0)
    assert result.bias == Bias.WAIT


def test_tied_leaders_wait():
    engine = DecisionEngine(weights={"absorption": 0.25, "regime": 0.25})
    result = _decide(
        engine=engine,
        absorption=_signal("accumulation", 10.0, Bias.LONG),
        regime=_signal("distribution", 10.0, Bias.SHORT),
    )
    assert result.scores["long"] == result.scores["short"] == pytest.approx(25.0)
    assert result.bias == Bias.WAIT


def test_trap_only_counts_when_active():
    weak = _decide(trap=_signal("bull_trap", 4.5, Bias.SHORT))
    strong = _decide(trap=_signal("bull_trap", 6.0, Bias.SHORT))
    assert "trap" not in _names(weak)
    assert "trap" in _names(strong)
    assert strong.scores["short"] == pytest.approx(15.0)


def test_smart_leader_adopts_rotation_bias():
    result = _decide(
        eps=_eps("smart_money", 9.5),
        rotation=_signal("fresh_longs", 6.0, Bias.LONG),
    )
    exchange = next(s for s in result.signals if s.name == "exchange_priority")
    assert exchange.bias == Bias.LONG
    assert exchange.confidence == 9.5


def test_retail_leader_forces_wait():
    result = _decide(
        eps=_eps("retail", 3.0),
        rotation=_signal("fresh_longs", 6.0, Bias.LONG),
    )
    exchange = next(s for s in result.signals if s.name == "exchange_priority")
    assert exchange.bias == Bias.WAIT


def test_no_contributors_means_zero_confidence():
    result = _decide()
    assert result.bias == Bias.WAIT
    assert result.confidence == 0.0
    assert result.reasoning == []


def test_to_dict_shape():
    payload = _decide(absorption=_signal("distribution", 8.0, Bias.SHORT)).to_dict()
    assert set(payload) == {"bias", "confidence", "scores", "signals", "reasoning"}
    assert payload["signals"][0]["name"] == "absorption"


def test_retail_leader_discounts_absorption():
    absorption = _signal("distribution", 8.0, Bias.SHORT)
    synced = _decide(eps=_eps("synchronized"), absorption=absorption)
    retail = _decide(
        eps=_eps("retail", 3.0, {"retail": 0.6, "smart_money": 1.0}),
        absorption=absorption,
    )
    weighted = next(s for s in retail.signals if s.name == "absorption")
    assert synced.scores["short"] == pytest.approx(16.0)
    assert retail.scores["short"] == pytest.approx(9.6)
    assert weighted.confidence == pytest.approx(4.8)
    assert "retail weight x0.6" in weighted.interpretation


def test_smart_leader_boosts_rotation_within_range():
    result = _decide(
        eps=_eps("smart_money", 9.0, {"retail": 0.8, "smart_money": 1.5}),
        rotation=_signal("fresh_longs", 8.0, Bias.LONG),
    )
    rotation = next(s for s in result.signals if s.name == "oi_rotation")
    assert rotation.confidence == 10.0
    assert result.scores["long"] == pytest.approx(10.0 + 9.0 * 0.15 * 10)


def test_score_keys_are_lowercase():
    payload = _decide().to_dict()
    assert set(payload["scores"]) == {"long", "short", "wait"}
