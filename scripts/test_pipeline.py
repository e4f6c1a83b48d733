"""End-to-end metrics pipeline tests."""

from __future__ import annotations

import copy
import json

import numpy as np
import pytest

from market_fixtures import candles, frame
from market_analyzer.data import InvalidInputFormat, parse_market_input
from market_analyzer.decision import calculate_market_metrics, compute

OUTPUT_KEYS = {
    "timestamp",
    "timeframe",
    "exchangePriority",
    "absorption",
    "oiRotation",
    "trapDetection",
    "adaptiveThresholds",
    "marketRegime",
    "technical",
    "fundingAdvanced",
    "oiAdvanced",
    "finalDecision",
    "raw",
}
SIGNAL_KEYS = (
    "exchangePriority",
    "absorption",
    "oiRotation",
    "trapDetection",
    "marketRegime",
    "technical",
    "fundingAdvanced",
    "oiAdvanced",
)


def _assert_ranges(metrics):
    for key in SIGNAL_KEYS:
        section = metrics[key]
        assert 0 <= section["confidence"] <= 10, key
        assert 0 <= section["grade"] <= 10, key
        assert section["bias"] in {"LONG", "SHORT", "WAIT"}, key
    decision = metrics["finalDecision"]
    assert 0 <= decision["confidence"] <= 10
    assert decision["bias"] in {"LONG", "SHORT", "WAIT"}


def test_distribution_scenario(scenario_payload):
    metrics = calculate_market_metrics(scenario_payload, now_ms=1)
    assert set(metrics) == OUTPUT_KEYS
    assert metrics["absorption"]["type"] == "distribution"
    assert metrics["absorption"]["grade"] == pytest.approx(8.28)
    assert metrics["marketRegime"]["bias"] == "SHORT"
    assert metrics["finalDecision"]["bias"] == "SHORT"
    assert metrics["finalDecision"]["confidence"] > 5
    assert set(metrics["finalDecision"]["scores"]) == {"long", "short", "wait"}
    scores = metrics["finalDecision"]["scores"]
    assert scores["short"] > scores["long"]
    assert metrics["trapDetection"]["type"] == "none"
    assert metrics["raw"]["binance"]["4h"]["price_change"] == 3.0


def test_mirrored_scenario_flips_to_long(scenario_payload, mirrored_payload):
    short = calculate_market_metrics(scenario_payload, now_ms=1)
    long = calculate_market_metrics(mirrored_payload, now_ms=1)
    assert long["absorption"]["type"] == "accumulation"
    assert long["marketRegime"]["bias"] == "LONG"
    assert long["finalDecision"]["bias"] == "LONG"
    assert long["finalDecision"]["confidence"] == short["finalDecision"]["confidence"]
    assert long["absorption"]["grade"] == short["absorption"]["grade"]


def test_insufficient_history_still_complete(scenario_payload):
    payload = copy.deepcopy(scenario_payload)
    short_series = candles([100.0 + i for i in range(5)])
    payload["history"] = {"price": short_series, "oi": short_series, "funding": short_series}
    metrics = calculate_market_metrics(payload, now_ms=1)
    assert set(metrics) == OUTPUT_KEYS
    assert metrics["technical"]["technicalBias"] == "WAIT"
    assert metrics["fundingAdvanced"]["extremeLevel"] == "normal"
    assert metrics["fundingAdvanced"]["confidence"] == 0
    assert metrics["adaptiveThresholds"]["volatilityRegime"] == "unknown"


def test_deterministic_apart_from_timestamp(scenario_payload):
    first = calculate_market_metrics(scenario_payload, now_ms=1)
    second = calculate_market_metrics(copy.deepcopy(scenario_payload), now_ms=2)
    first.pop("timestamp")
    second.pop("timestamp")
    assert first == second


def test_low_activity_floor():
    payload = {
        "Binance": {"4h": frame(2.0, 0.1, -5e8, 2e10)},
        "Bybit": {"4h": frame(2.0, 0.1, -1e8, 5e9)},
    }
    metrics = calculate_market_metrics(payload, now_ms=1)
    assert metrics["exchangePriority"]["leader"] == "low_activity"
    assert metrics["exchangePriority"]["confidence"] <= 2


def test_random_inputs_stay_in_range():
    rng = np.random.default_rng(7)
    for _ in range(25):
        closes = list(100 * np.exp(np.cumsum(rng.normal(0, 0.02, 60))))
        oi = list(1e4 * np.exp(np.cumsum(rng.normal(0, 0.01, 60))))
        funding = list(rng.normal(0.01, 0.02, 30))
        cvd = list(rng.normal(0, 3e8, 30))

        def venue():
            return {
                tf: frame(
                    price_change=rng.normal(0, 4),
                    oi_change=rng.normal(0, 3),
                    cvd=rng.normal(0, 5e8),
                    volume=abs(rng.normal(1e10, 5e9)),
                    funding=rng.normal(0, 0.05),
                )
                for tf in ("4h", "1d")
            }

        payload = {
            "snapshot": {"Binance": venue(), "Bybit": venue()},
            "history": {
                "price": candles(closes, spread=0.02),
                "oi": candles(oi),
                "funding": candles(funding),
                "cvd": candles(cvd),
            },
        }
        metrics = calculate_market_metrics(payload, now_ms=1)
        _assert_ranges(metrics)
        json.dumps(metrics, allow_nan=False)


def test_missing_venues_raise():
    with pytest.raises(InvalidInputFormat):
        calculate_market_metrics({"snapshot": {"OKX": {"4h": frame()}}})
    with pytest.raises(InvalidInputFormat):
        calculate_market_metrics(["not", "a", "mapping"])


def test_one_venue_degrades_instead_of_failing():
    payload = {"snapshot": {"binance": {"4h": frame(1.0, 1.0)}, "BYBIT": None}}
    metrics = calculate_market_metrics(payload, now_ms=1)
    assert metrics["finalDecision"]["bias"] in {"LONG", "SHORT", "WAIT"}
    assert metrics["raw"]["bybit"] == {}


def test_compute_accepts_typed_input(scenario_payload):
    market = parse_market_input(scenario_payload)
    analysis = compute(market)
    assert analysis.decision.bias.value == "SHORT"
    assert analysis.to_dict(5)["timestamp"] == 5


def test_retail_led_absorption_is_discounted(scenario_payload):
    payload = copy.deepcopy(scenario_payload)
    payload["snapshot"]["Bybit"]["4h"]["oi_change"] = 0.1
    metrics = calculate_market_metrics(payload, now_ms=1)
    assert metrics["exchangePriority"]["leader"] == "retail"
    assert metrics["exchangePriority"]["signalWeights"]["retail"] == 0.6
    weighted = next(
        s for s in metrics["finalDecision"]["signals"] if s["name"] == "absorption"
    )
    assert weighted["confidence"] == pytest.approx(0.6 * metrics["absorption"]["confidence"])
