"""
Scoring models - per-component breakdown and scored listings.
"""
from typing import Optional

from pydantic import BaseModel, Field

from .listing import NormalizedListing


class ScoreBreakdown(BaseModel):
    """Unweighted component scores behind a final relevance score."""
    match: float = Field(ge=0, le=1, description="Term match strength incl. quality adjustments")
    price: float = Field(ge=0, le=1, description="Closeness to the sample median price")
    recency: float = Field(ge=0, le=1)
    source: float = Field(ge=0, le=1, description="Source trust coefficient")
    median_price: Optional[float] = Field(default=None, description="Median used for price closeness")


class ScoredListing(NormalizedListing):
    """A normalized listing with its relevance score."""
    score: float = Field(ge=0, le=1, description="Final score, rounded to 2 decimals")
    breakdown: Optional[ScoreBreakdown] = None
