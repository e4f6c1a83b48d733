"""Advisory layer tests with a mocked LLM endpoint."""

from __future__ import annotations

import json

import httpx
import pytest
from pydantic import ValidationError

from market_analyzer.advisor import AdvisoryInsight, LLMClient, MarketAdvisor, PromptBuilder
from market_analyzer.advisor.prompt_builder import price_oi_state
from market_analyzer.decision import calculate_market_metrics
from market_fixtures import distribution_payload


def _completion(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def _advisor(handler) -> MarketAdvisor:
    client = LLMClient(
        api_key="k",
        api_base="https://llm.test/v1",
        model="test-model",
        transport=httpx.MockTransport(handler),
        retry_delay_s=0,
    )
    return MarketAdvisor(
        llm_client=client, prompt_builder=PromptBuilder("Binance", "Bybit")
    )


@pytest.fixture
def metrics():
    return calculate_market_metrics(distribution_payload(1), now_ms=1)


def test_insight_is_parsed(metrics):
    seen = []
    answer = {
        "final_bias": "short",
        "confidence": 7,
        "market_mode": "Distribution",
        "price_oi_state": "STATE 1",
        "summary": "  Retail is buying into smart-money selling. ",
        "reasoning": {"cvd_signal": "negative", "funding_state": 0.08},
        "key_signals": ["CVD diverges from price"],
        "risk_warnings": [],
    }

    def handler(request):
        seen.append(json.loads(request.content))
        return _completion("```json\n" + json.dumps(answer) + "\n```")

    insight = _advisor(handler).get_insight(metrics)
    assert insight["final_bias"] == "SHORT"
    assert insight["market_mode"] == "distribution"
    assert insight["summary"] == "Retail is buying into smart-money selling."
    assert insight["reasoning"]["funding_state"] == "0.08"
    assert seen[0]["model"] == "test-model"
    assert seen[0]["response_format"] == {"type": "json_object"}


def test_neutral_maps_to_wait(metrics):
    def handler(request):
        return _completion(json.dumps({"final_bias": "neutral", "confidence": 2}))

    insight = _advisor(handler).get_insight(metrics)
    assert insight["final_bias"] == "WAIT"
    assert insight["market_mode"] == "unclear"


def test_http_failure_falls_back(metrics):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, text="upstream down")

    insight = _advisor(handler).get_insight(metrics)
    assert insight["error"] == "llm_error"
    assert insight["final_bias"] == "WAIT"
    assert insight["confidence"] == 0
    assert len(calls) == 2


def test_unparseable_reply_falls_back(metrics):
    def handler(request):
        return _completion("I think the market will go up.")

    insight = _advisor(handler).get_insight(metrics)
    assert insight["error"] == "llm_error"
    assert insight["summary"] == "AI analysis unavailable"


def test_out_of_range_confidence_rejected():
    with pytest.raises(ValidationError):
        AdvisoryInsight(final_bias="LONG", confidence=11)


def test_price_oi_states():
    assert price_oi_state({"price_change": 1.0, "oi_change": 2.0})[0].startswith("STATE 1")
    assert price_oi_state({"price_change": 1.0, "oi_change": -2.0})[0].startswith("STATE 2")
    assert price_oi_state({"price_change": -1.0, "oi_change": 2.0})[0].startswith("STATE 3")
    assert price_oi_state({"price_change": -1.0, "oi_change": -2.0})[0].startswith("STATE 4")
    assert price_oi_state({})[0] == "Unknown"


def test_prompt_carries_state_and_engine_read(metrics):
    bundle = PromptBuilder("Binance", "Bybit").build(metrics)
    assert "STATE 1" in bundle.user
    assert '"final_bias": "SHORT"' in bundle.user
    assert '"absorption": "distribution"' in bundle.user
    assert "final_bias" in bundle.system


def test_closed_advisor_falls_back(metrics):
    def handler(request):
        return _completion(json.dumps({"final_bias": "LONG", "confidence": 6}))

    advisor = _advisor(handler)
    assert advisor.get_insight(metrics)["final_bias"] == "LONG"
    advisor.close()
    insight = advisor.get_insight(metrics)
    assert insight["error"] == "llm_error"
    assert insight["final_bias"] == "WAIT"
