"""Advisory layer exports."""

from market_analyzer.advisor.advisor import MarketAdvisor, fallback_insight
from market_analyzer.advisor.llm_client import LLMClient
from market_analyzer.advisor.models import AdvisoryInsight
from market_analyzer.advisor.prompt_builder import PromptBuilder, PromptBundle

__all__ = [
    "AdvisoryInsight",
    "LLMClient",
    "MarketAdvisor",
    "PromptBuilder",
    "PromptBundle",
    "fallback_insight",
]
