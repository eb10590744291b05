"""
Query enhancement - LLM-expanded search terms with deterministic fallback.
"""
import asyncio
import logging
from typing import Literal, Optional

from pydantic import BaseModel, ValidationError

from ..exceptions import EnhancementError
from ..models.query import EnhancedQuery
from ..pipeline.expander import expand, merge_with_fallback
from .llm_client import LLMClient

logger = logging.getLogger(__name__)


ENHANCE_SYSTEM_PROMPT = """You are Hunta, an AI assistant that helps users find second-hand products across marketplaces (eBay, Gumtree, etc.).
Given a user's search term, return JSON ONLY in this format:

{
  "original": "user input here",
  "search_terms": ["term1","term2","term3","term4"],
  "categories": ["category1","category2"],
  "forums": ["forum1","forum2"],
  "flags": {
    "high_value_item": true/false,
    "common_scam_target": true/false,
    "likely_on_forums": true/false,
    "reseller_friendly": true/false
  }
}

Guidelines:
- Prefer seller language (brand, model, abbreviations, common misspellings).
- Include condition words where helpful (used, pre-owned).
- Keep arrays concise and relevant (max ~8 search_terms)."""


class EnhancementResult(BaseModel):
    """
    Tagged outcome of an enhancement attempt.

    status is "ok" when the LLM answer was usable as-is, "merged" when it had
    no terms and was completed by the fallback, "fallback" otherwise.
    """
    status: Literal["ok", "merged", "fallback"]
    query: EnhancedQuery
    reason: Optional[str] = None


class QueryEnhancer:
    """
    Expands a search term via the LLM.
    Any failure degrades to the offline expander; enhance() never raises.
    """

    def __init__(self, llm_client: Optional[LLMClient] = None):
        self.llm = llm_client or LLMClient()

    async def enhance(self, term: str) -> EnhancementResult:
        term = str(term or "").strip()

        if not self.llm.is_available():
            logger.info("OpenAI key missing, using fallback enhancement")
            return EnhancementResult(status="fallback", query=expand(term), reason="LLM not configured")

        try:
            query = await asyncio.wait_for(self._run_enhancement(term), timeout=self.llm.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"Enhancement timed out for '{term}', using fallback")
            return EnhancementResult(status="fallback", query=expand(term), reason="timeout")
        except (EnhancementError, ValidationError) as e:
            logger.warning(f"Enhancement unusable for '{term}': {e}")
            return EnhancementResult(status="fallback", query=expand(term), reason=str(e)[:200])
        except Exception as e:
            logger.error(f"Enhancement error for '{term}': {type(e).__name__}: {e}")
            return EnhancementResult(status="fallback", query=expand(term), reason=type(e).__name__)

        if not query.search_terms:
            logger.warning("LLM returned no search_terms, merging fallback")
            return EnhancementResult(
                status="merged",
                query=merge_with_fallback(query, term),
                reason="no search terms",
            )

        logger.info(f"LLM enhanced: {len(query.search_terms)} terms")
        return EnhancementResult(status="ok", query=query)

    async def _run_enhancement(self, term: str) -> EnhancedQuery:
        """Ask the LLM and validate its answer."""
        logger.info(f"Enhancing query via {self.llm.model}: '{term}'")
        data = await self.llm.call_json(
            system_prompt=ENHANCE_SYSTEM_PROMPT,
            user_prompt=f'Enhance this search query: "{term}"',
        )

        if "search_terms" not in data:
            raise EnhancementError("Response is missing search_terms")

        if not data.get("original"):
            data["original"] = term
        return EnhancedQuery.model_validate(data)
