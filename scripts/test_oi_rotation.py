"""OI rotation tests."""

from __future__ import annotations

import pytest

from market_analyzer.analysis.oi_rotation import analyze_oi_rotation, weighted_oi_change
from market_analyzer.analysis.signals import Bias
from market_analyzer.data.models import VenueTimeframeSnapshot as Frame


def _rotation(price, retail_oi, smart_oi, funding=0.01):
    retail = Frame(price_change_pct=price, oi_change_pct=retail_oi, funding_rate_pct=funding)
    smart = Frame(price_change_pct=price, oi_change_pct=smart_oi)
    return analyze_oi_rotation(retail, smart)


def test_weighted_change_favors_smart_venue():
    assert weighted_oi_change(
        Frame(oi_change_pct=1.0), Frame(oi_change_pct=2.0)
    ) == pytest.approx(1.6)


def test_fresh_longs_with_smart_lead():
    result = _rotation(2.0, 1.0, 2.0)
    assert result.type == "fresh_longs"
    assert result.bias == Bias.LONG
    assert result.get("smart_leading") is True
    assert result.grade == pytest.approx(6.0)


def test_short_cover_is_wait():
    result = _rotation(2.0, -1.0, -2.0)
    assert result.type == "short_cover"
    assert result.bias == Bias.WAIT


def test_long_liquidation_is_wait():
    result = _rotation(-2.0, -1.0, -1.0)
    assert result.type == "long_liquidation"
    assert result.bias == Bias.WAIT


def test_funding_flips():
    assert _rotation(-2.0, 1.0, 1.0, funding=0.05).type == "long_to_short"
    assert _rotation(-2.0, 1.0, 1.0, funding=0.05).bias == Bias.SHORT
    assert _rotation(2.0, 1.0, 1.0, funding=-0.02).type == "short_to_long"
    assert _rotation(-2.0, 1.0, 1.0, funding=-0.02).type == "fresh_shorts"


def test_retail_heavy_penalty():
    result = _rotation(2.0, 2.0, 0.1)
    assert result.type == "fresh_longs"
    assert result.get("retail_heavy") is True
    assert result.grade == pytest.approx(1.81)


def test_quiet_market_and_cap():
    assert _rotation(0.1, 1.0, 1.0).type == "none"
    assert _rotation(3.0, 5.0, 5.0).grade == 10.0
