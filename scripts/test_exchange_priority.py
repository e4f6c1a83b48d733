"""Exchange priority (venue leadership) tests."""

from __future__ import annotations

import pytest

from market_analyzer.analysis.exchange_priority import analyze_exchange_priority
from market_analyzer.analysis.signals import Bias
from market_analyzer.data.models import VenueTimeframeSnapshot as Frame


def test_low_activity_floor():
    result = analyze_exchange_priority(
        Frame(oi_change_pct=0.1, cvd=5e8), Frame(oi_change_pct=-0.1, cvd=-5e8)
    )
    assert result.get("leader") == "low_activity"
    assert result.confidence <= 2
    assert result.get("signal_weights") == {"retail": 1.0, "smart_money": 1.0}


def test_smart_money_leader():
    result = analyze_exchange_priority(
        Frame(oi_change_pct=0.2), Frame(oi_change_pct=1.8)
    )
    assert result.get("leader") == "smart_money"
    assert result.confidence == pytest.approx(9.5)
    assert result.get("signal_weights")["smart_money"] == 1.5
    assert result.bias == Bias.WAIT


def test_retail_leader_is_low_confidence():
    result = analyze_exchange_priority(
        Frame(oi_change_pct=1.8), Frame(oi_change_pct=0.2)
    )
    assert result.get("leader") == "retail"
    assert result.confidence == pytest.approx(3.0)
    assert result.get("signal_weights")["retail"] == 0.6


def test_synchronized_and_cvd_agreement():
    result = analyze_exchange_priority(
        Frame(oi_change_pct=1.0, cvd=1e8), Frame(oi_change_pct=1.0, cvd=2e8)
    )
    assert result.get("leader") == "synchronized"
    assert result.confidence == pytest.approx(5.0)
    assert result.get("cvd_agreement") is True
    assert result.to_dict()["cvdAgreement"] is True


def test_dominance_needs_enough_activity():
    # 90% share but total move under the leadership floor.
    result = analyze_exchange_priority(
        Frame(oi_change_pct=0.04), Frame(oi_change_pct=0.36)
    )
    assert result.get("leader") == "synchronized"
