"""
Fan-out orchestrator - runs every (term, source) search concurrently.
"""
import asyncio
import logging
import time
from typing import Any, Sequence

from pydantic import ValidationError

from ..client.base import SourceCapability
from ..models.export import FanOutResult, SourceStatus
from ..models.listing import RawListing
from ..models.query import EnhancedQuery, unique_texts

logger = logging.getLogger(__name__)

DEFAULT_MAX_TERMS = 5
DEFAULT_TIMEOUT_SECONDS = 45.0


def build_terms(term: str, enhanced_query: EnhancedQuery, max_terms: int = DEFAULT_MAX_TERMS) -> list[str]:
    """Original term first, then enhanced variants; deduplicated and capped."""
    return unique_texts([term, *enhanced_query.search_terms])[:max_terms]


def _coerce_listings(value: Any) -> list[RawListing]:
    listings = []
    for item in value:
        if isinstance(item, RawListing):
            listings.append(item)
            continue
        if isinstance(item, dict):
            try:
                listings.append(RawListing.model_validate(item))
            except ValidationError:
                continue
    return listings


async def fetch_with_status(
    source: SourceCapability,
    term: str,
    location: str,
    max_pages: int,
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> tuple[list[RawListing], SourceStatus]:
    """
    Run one source call, mapping every failure to an empty result.

    Never raises for source errors; the status records what happened.
    """
    name = getattr(source, "name", type(source).__name__)
    started = time.monotonic()

    def elapsed_ms() -> int:
        return int((time.monotonic() - started) * 1000)

    try:
        value = await asyncio.wait_for(source.fetch(term, location, max_pages), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning(f"{name} search timed out for '{term}' after {timeout_seconds:.0f}s")
        return [], SourceStatus(
            source=name, term=term, status="timeout", latency_ms=elapsed_ms(), message="Search timed out"
        )
    except Exception as e:
        logger.warning(f"{name} search failed for '{term}': {type(e).__name__}: {e}")
        return [], SourceStatus(
            source=name, term=term, status="error", latency_ms=elapsed_ms(),
            message=f"Search failed: {str(e)[:100]}",
        )

    if not isinstance(value, (list, tuple)):
        logger.warning(f"{name} returned {type(value).__name__} instead of a list for '{term}'")
        return [], SourceStatus(
            source=name, term=term, status="invalid", latency_ms=elapsed_ms(),
            message="Source returned a non-list result",
        )

    listings = _coerce_listings(value)
    return listings, SourceStatus(
        source=name,
        term=term,
        status="ok" if listings else "empty",
        result_count=len(listings),
        latency_ms=elapsed_ms(),
    )


async def search_with_status(
    term: str,
    location: str,
    enhanced_query: EnhancedQuery,
    sources: Sequence[SourceCapability],
    max_pages: int,
    *,
    max_terms: int = DEFAULT_MAX_TERMS,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> FanOutResult:
    """
    Search every source with every term concurrently.

    Args:
        term: The user's query
        location: Passed through to each source
        enhanced_query: Supplies the term variants
        sources: Active sources for this search
        max_pages: Pages each source may fetch per term
        max_terms: Cap on the working term list
        timeout_seconds: Upper bound for one (term, source) call

    Returns:
        FanOutResult with the concatenated listings and per-call statuses
    """
    terms = build_terms(term, enhanced_query, max_terms)
    logger.info(f"Fanning out {len(terms)} terms across {len(sources)} sources")

    tasks = [
        fetch_with_status(source, t, location, max_pages, timeout_seconds=timeout_seconds)
        for t in terms
        for source in sources
    ]
    task_results = await asyncio.gather(*tasks)

    result = FanOutResult(terms=terms)
    for listings, status in task_results:
        result.listings.extend(listings)
        result.statuses.append(status)

    if result.statuses and result.all_failed:
        logger.warning(f"All {len(result.statuses)} source calls failed")
    elif not result.listings:
        logger.warning("No results from any marketplace")
    else:
        logger.info(f"Collected {len(result.listings)} raw listings from {len(task_results)} calls")
    return result


async def search(
    term: str,
    location: str,
    enhanced_query: EnhancedQuery,
    sources: Sequence[SourceCapability],
    max_pages: int,
    **kwargs: Any,
) -> list[RawListing]:
    """Fan out and return the raw listings only."""
    result = await search_with_status(term, location, enhanced_query, sources, max_pages, **kwargs)
    return result.listings
