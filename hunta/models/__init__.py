"""
Pydantic models for Hunta.
All data contracts are defined here for strict validation.
"""

from .listing import RawListing, NormalizedListing
from .query import EnhancedQuery, QueryFlags
from .scoring import ScoreBreakdown, ScoredListing
from .export import SourceStatus, FanOutResult, SearchRun

__all__ = [
    # Listing
    "RawListing",
    "NormalizedListing",
    # Query
    "EnhancedQuery",
    "QueryFlags",
    # Scoring
    "ScoreBreakdown",
    "ScoredListing",
    # Export
    "SourceStatus",
    "FanOutResult",
    "SearchRun",
]
