"""AI modules for query enhancement."""

from .llm_client import LLMClient
from .query_enhancer import EnhancementResult, QueryEnhancer

__all__ = ["LLMClient", "QueryEnhancer", "EnhancementResult"]
