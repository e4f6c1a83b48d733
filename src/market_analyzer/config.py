"""Configuration loader for the market analyzer."""

from dataclasses import dataclass
import os
from typing import Tuple

from dotenv import load_dotenv


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_csv(value: str | None, default: Tuple[str, ...]) -> Tuple[str, ...]:
    if not value:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _get_float(value: str | None, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_int(value: str | None, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    coinglass_api_key: str
    coinglass_api_base: str
    retail_venue: str
    smart_venue: str
    default_symbol: str
    analyzer_timeframes: Tuple[str, ...]
    history_limit: int
    funding_history_limit: int
    cvd_window: int
    http_timeout_s: float
    cache_duration_minutes: float
    llm_provider: str
    llm_api_base: str
    llm_api_key: str
    llm_model: str
    openai_api_key: str
    openai_api_base: str
    openai_model: str
    deepseek_api_key: str
    deepseek_api_base: str
    deepseek_model: str
    ollama_api_base: str
    ollama_model: str
    advisor_enabled: bool
    api_write_enabled: bool

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            coinglass_api_key=os.getenv("COINGLASS_API_KEY", ""),
            coinglass_api_base=os.getenv(
                "COINGLASS_API_BASE", "https://open-api-v4.coinglass.com/api"
            ),
            retail_venue=os.getenv("RETAIL_VENUE", "Binance"),
            smart_venue=os.getenv("SMART_VENUE", "Bybit"),
            default_symbol=os.getenv("DEFAULT_SYMBOL", "BTCUSDT"),
            analyzer_timeframes=_get_csv(
                os.getenv("ANALYZER_TIMEFRAMES"),
                default=("4h", "1d"),
            ),
            history_limit=_get_int(os.getenv("HISTORY_LIMIT"), 50),
            funding_history_limit=_get_int(os.getenv("FUNDING_HISTORY_LIMIT"), 30),
            cvd_window=_get_int(os.getenv("CVD_WINDOW"), 20),
            http_timeout_s=_get_float(os.getenv("HTTP_TIMEOUT_S"), 15.0),
            cache_duration_minutes=_get_float(
                os.getenv("CACHE_DURATION_MINUTES"), 30.0
            ),
            llm_provider=os.getenv("LLM_PROVIDER", "openai"),
            llm_api_base=os.getenv("LLM_API_BASE", ""),
            llm_api_key=os.getenv("LLM_API_KEY", ""),
            llm_model=os.getenv("LLM_MODEL", ""),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_api_base=os.getenv("OPENAI_API_BASE", "https://api.openai.com/v1"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            deepseek_api_key=os.getenv("DEEPSEEK_API_KEY", ""),
            deepseek_api_base=os.getenv(
                "DEEPSEEK_API_BASE", "https://api.deepseek.com/v1"
            ),
            deepseek_model=os.getenv("DEEPSEEK_MODEL", "deepseek-chat"),
            ollama_api_base=os.getenv("OLLAMA_API_BASE", "http://localhost:11434/v1"),
            ollama_model=os.getenv("OLLAMA_MODEL", ""),
            advisor_enabled=_get_bool(os.getenv("ADVISOR_ENABLED"), default=True),
            api_write_enabled=_get_bool(os.getenv("API_WRITE_ENABLED"), default=True),
        )


settings = Settings.from_env()
