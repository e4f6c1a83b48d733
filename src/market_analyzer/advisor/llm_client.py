"""OpenAI-compatible chat client used by the advisory layer."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import re
import time
from typing import Any, Dict, Optional, Tuple, Type

import httpx
from pydantic import BaseModel, ValidationError

from market_analyzer.config import settings

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


@dataclass(frozen=True)
class ProviderConfig:
    name: str
    api_key: str
    api_base: str
    model: str


def _provider_table() -> Dict[str, ProviderConfig]:
    return {
        "openai": ProviderConfig(
            "openai", settings.openai_api_key, settings.openai_api_base, settings.openai_model
        ),
        "deepseek": ProviderConfig(
            "deepseek",
            settings.deepseek_api_key,
            settings.deepseek_api_base,
            settings.deepseek_model,
        ),
        "ollama": ProviderConfig("ollama", "", settings.ollama_api_base, settings.ollama_model),
    }


def resolve_provider(
    provider: str,
    api_key: Optional[str] = None,
    api_base: Optional[str] = None,
    model: Optional[str] = None,
) -> ProviderConfig:
    """Pick provider defaults; explicit arguments and LLM_* settings win."""
    base = _provider_table().get(provider)
    if base is None:
        logger.warning("Unknown LLM provider %s, using openai defaults", provider)
        base = _provider_table()["openai"]
    return ProviderConfig(
        name=provider,
        api_key=api_key or settings.llm_api_key or base.api_key,
        api_base=api_base or settings.llm_api_base or base.api_base,
        model=model or settings.llm_model or base.model,
    )


class LLMClient:
    """Chat completions client that returns validated JSON replies."""

    def __init__(
        self,
        provider: Optional[str] = None,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 60.0,
        max_retries: int = 2,
        transport: Optional[httpx.BaseTransport] = None,
        retry_delay_s: float = 0.5,
    ) -> None:
        self.provider = (provider or settings.llm_provider or "openai").lower()
        self.config = resolve_provider(self.provider, api_key, api_base, model)
        if not self.config.api_base:
            raise ValueError(f"LLM API base missing for provider: {self.provider}")
        if not self.config.model:
            raise ValueError(f"LLM model missing for provider: {self.provider}")
        self.max_retries = max(1, max_retries)
        self.retry_delay_s = retry_delay_s
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        self._http = httpx.Client(
            base_url=self.config.api_base.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "LLMClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def chat_json(
        self,
        system_prompt: str,
        user_prompt: str,
        response_model: Type[BaseModel],
        temperature: float = 0.2,
        max_tokens: int = 2500,
    ) -> Tuple[BaseModel, str]:
        """Return the parsed reply and its raw text; re-raises the last failure."""
        payload = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "response_format": {"type": "json_object"},
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        attempt = 0
        while True:
            attempt += 1
            try:
                raw = self._complete(payload)
                return response_model.model_validate(extract_json(raw)), raw
            except (httpx.HTTPError, ValidationError, json.JSONDecodeError) as exc:
                if attempt >= self.max_retries:
                    raise
                logger.info(
                    "%s attempt %d/%d failed: %s",
                    self.config.name, attempt, self.max_retries, exc,
                )
                time.sleep(self.retry_delay_s * attempt)

    def _complete(self, payload: Dict[str, Any]) -> str:
        response = self._http.post("/chat/completions", json=payload)
        response.raise_for_status()
        choices = response.json().get("choices") or [{}]
        choice = choices[0]
        content = (choice.get("message") or {}).get("content") or choice.get("text") or ""
        return content.strip()


def extract_json(text: str) -> dict:
    """Parse a JSON object, tolerating markdown fences and surrounding prose."""
    fenced = _FENCE.search(text)
    if fenced:
        text = fenced.group(1)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise
        return json.loads(text[start : end + 1])
