"""
Search service - runs the full aggregation pipeline for one query.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional, Union

from pydantic import BaseModel, Field

from .ai.query_enhancer import EnhancementResult, QueryEnhancer
from .client.base import SourceCapability, select_sources
from .config import Config, get_config
from .exceptions import InvalidSearchError, SearchError
from .models.export import SearchRun
from .models.query import EnhancedQuery
from .models.scoring import ScoredListing
from .pipeline.currency import RateTable, StaticRateTable, convert
from .pipeline.dedup import dedupe
from .pipeline.expander import expand
from .pipeline.fanout import search_with_status
from .pipeline.normalize import normalize_all
from .pipeline.scoring import RelevanceScorer

logger = logging.getLogger(__name__)

# Process-wide invocation counter, observability only
_search_count = 0


def get_search_count() -> int:
    """Number of searches started by this process."""
    return _search_count


def _record_search() -> int:
    global _search_count
    _search_count += 1
    return _search_count


class SearchOptions(BaseModel):
    """Optional per-search settings."""
    sources: Optional[set[str]] = Field(default=None, description="Allow-list of source names")
    max_pages: Optional[int] = Field(default=None, ge=1)


class SearchService:
    """
    Aggregates marketplace listings for a query.

    Pipeline steps:
    1. Enhance the query (LLM, or the offline expander)
    2. Fan out every term to every active source
    3. Normalize, deduplicate, score and rank
    4. Convert prices to the requested currency
    """

    def __init__(
        self,
        sources: Union[Mapping[str, SourceCapability], Iterable[SourceCapability]],
        enhancer: Optional[QueryEnhancer] = None,
        config: Optional[Config] = None,
        rates: Optional[RateTable] = None,
        scorer: Optional[RelevanceScorer] = None,
    ):
        self.config = config or get_config()
        if isinstance(sources, Mapping):
            self.sources = dict(sources)
        else:
            self.sources = {source.name: source for source in sources}
        self.enhancer = enhancer
        self.rates = rates or StaticRateTable()
        self.scorer = scorer or RelevanceScorer(limit=self.config.search.result_limit)
        self.last_enhanced_query: Optional[EnhancedQuery] = None

    async def perform_search(
        self,
        term: str,
        location: Optional[str] = None,
        currency: Optional[str] = None,
        options: Optional[SearchOptions] = None,
    ) -> list[ScoredListing]:
        """
        Search all active sources and return ranked listings.

        Returns an empty list when nothing was found.

        Raises:
            InvalidSearchError: If the term is blank
            SearchError: If no source is active or the pipeline itself fails
        """
        run = await self.run_search(term, location, currency, options)
        return run.items

    async def run_search(
        self,
        term: str,
        location: Optional[str] = None,
        currency: Optional[str] = None,
        options: Optional[SearchOptions] = None,
    ) -> SearchRun:
        """Like perform_search, but returns the full SearchRun with statuses."""
        search_config = self.config.search
        term = (term or "").strip() if isinstance(term, str) else ""
        if not term:
            raise InvalidSearchError("Please provide a non-empty search term")

        location = (location or search_config.default_location).strip()
        currency = (currency or search_config.default_currency).strip().upper()
        options = options or SearchOptions()
        max_pages = options.max_pages or search_config.default_max_pages

        count = _record_search()
        run_id = str(uuid.uuid4())[:8]
        started_at = datetime.now(timezone.utc)
        logger.info(f"Starting search {run_id} (#{count}) for '{term}' in {location} with {currency}")

        sources = select_sources(self.sources, options.sources)
        if not sources:
            raise SearchError(
                "No marketplace sources available for this search",
                detail={"requested": sorted(options.sources or [])},
            )

        # Step 1: Enhance query
        enhancement = await self._enhance(term)
        enhanced_query = enhancement.query
        self.last_enhanced_query = enhanced_query

        # Step 2: Fan out
        fan_out = await search_with_status(
            term,
            location,
            enhanced_query,
            sources,
            max_pages,
            max_terms=search_config.max_terms,
            timeout_seconds=search_config.source_timeout_seconds,
        )

        # Steps 3-4: normalize, dedup, score, convert
        try:
            normalized = normalize_all(fan_out.listings)
            unique = dedupe(normalized)
            ranked = self.scorer.rank_listings(unique, term, enhanced_query)
            items = convert(ranked, currency, self.rates)
        except Exception as e:
            logger.exception(f"Search {run_id} failed while ranking results")
            raise SearchError(f"Search failed: {e}", detail={"run_id": run_id}) from e

        logger.info(
            f"Search {run_id}: {len(unique)} unique results from {len(fan_out.listings)} total, "
            f"returning {len(items)}"
        )

        return SearchRun(
            run_id=run_id,
            search_term=term,
            location=location,
            currency=currency,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
            enhanced_query=enhanced_query,
            enhancement_source=_ENHANCEMENT_SOURCES[enhancement.status],
            items=items,
            statuses=fan_out.statuses,
            raw_count=len(fan_out.listings),
            normalized_count=len(normalized),
            unique_count=len(unique),
        )

    async def _enhance(self, term: str) -> EnhancementResult:
        if self.enhancer is None:
            return EnhancementResult(status="fallback", query=expand(term), reason="no enhancer")
        try:
            return await self.enhancer.enhance(term)
        except Exception as e:
            logger.warning(f"Enhancement failed, using fallback: {type(e).__name__}: {e}")
            return EnhancementResult(status="fallback", query=expand(term), reason=type(e).__name__)


_ENHANCEMENT_SOURCES = {
    "ok": "llm",
    "merged": "merged",
    "fallback": "fallback",
}
