"""
Export models - fan-out status and full search run results.
"""
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from .listing import RawListing
from .query import EnhancedQuery
from .scoring import ScoredListing

CallStatus = Literal["ok", "empty", "error", "timeout", "invalid"]


class SourceStatus(BaseModel):
    """Outcome of a single (term, source) call."""
    source: str
    term: str
    status: CallStatus
    result_count: int = 0
    latency_ms: int = 0
    message: Optional[str] = None


class FanOutResult(BaseModel):
    """Everything collected by one fan-out."""
    terms: list[str] = Field(default_factory=list)
    listings: list[RawListing] = Field(default_factory=list)
    statuses: list[SourceStatus] = Field(default_factory=list)

    @property
    def all_failed(self) -> bool:
        return all(s.status not in ("ok", "empty") for s in self.statuses)


class SearchRun(BaseModel):
    """
    Complete outcome of one search.
    Includes the enhanced query and per-call statuses for debugging.
    """
    run_id: str = Field(description="Unique run identifier")
    search_term: str
    location: str
    currency: str
    started_at: datetime
    completed_at: Optional[datetime] = None

    enhanced_query: EnhancedQuery
    enhancement_source: Literal["llm", "merged", "fallback"] = "fallback"

    items: list[ScoredListing] = Field(default_factory=list)
    statuses: list[SourceStatus] = Field(default_factory=list)

    # Processing stats
    raw_count: int = 0
    normalized_count: int = 0
    unique_count: int = 0

    @property
    def processing_time_ms(self) -> Optional[int]:
        if self.completed_at is None:
            return None
        return int((self.completed_at - self.started_at).total_seconds() * 1000)

    def to_minimal_export(self) -> dict[str, Any]:
        """Export the ranked items without score breakdowns."""
        return {
            "metadata": {
                "run_id": self.run_id,
                "query": self.search_term,
                "location": self.location,
                "currency": self.currency,
                "processing_time_ms": self.processing_time_ms,
                "total_results": len(self.items),
            },
            "enhanced_query": self.enhanced_query.model_dump(),
            "items": [
                {
                    "title": item.title,
                    "price": item.price,
                    "link": item.link,
                    "image": item.image,
                    "source": item.source,
                    "score": item.score,
                }
                for item in self.items
            ],
        }
