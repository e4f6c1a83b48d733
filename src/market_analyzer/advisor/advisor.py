"""Narrative advisory layered on top of the computed metrics."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

import httpx
from pydantic import ValidationError

from market_analyzer.advisor.llm_client import LLMClient
from market_analyzer.advisor.models import AdvisoryInsight
from market_analyzer.advisor.prompt_builder import PromptBuilder
from market_analyzer.analysis.signals import Bias

logger = logging.getLogger(__name__)


def fallback_insight(error: str, message: str = "") -> Dict[str, Any]:
    return {
        "error": error,
        "message": message,
        "final_bias": Bias.WAIT.value,
        "confidence": 0,
        "summary": "AI analysis unavailable",
    }


class MarketAdvisor:
    """Ask an LLM for a narrative read; never affects the engine output."""

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        prompt_builder: Optional[PromptBuilder] = None,
    ) -> None:
        self.llm_client = llm_client
        self.prompt_builder = prompt_builder or PromptBuilder()

    def _client(self) -> LLMClient:
        if self.llm_client is None:
            try:
                self.llm_client = LLMClient()
            except ValueError as exc:
                raise RuntimeError(str(exc)) from exc
        return self.llm_client

    def close(self) -> None:
        if self.llm_client is not None:
            self.llm_client.close()

    def get_insight(
        self, metrics: Mapping[str, Any], snapshot: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, Any]:
        bundle = self.prompt_builder.build(metrics, snapshot)
        try:
            insight, _raw = self._client().chat_json(
                bundle.system, bundle.user, AdvisoryInsight
            )
        except (httpx.HTTPError, ValidationError, json.JSONDecodeError, RuntimeError) as exc:
            logger.warning("Advisory generation failed: %s", exc)
            return fallback_insight("llm_error", str(exc))
        return insight.model_dump(mode="json")
