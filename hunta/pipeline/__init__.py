"""Pipeline modules for search aggregation and ranking."""

from .expander import expand, merge_with_fallback
from .fanout import search, search_with_status
from .normalize import normalize, normalize_all
from .dedup import dedupe, identity_key
from .scoring import RelevanceScorer
from .currency import StaticRateTable, convert

__all__ = [
    "expand",
    "merge_with_fallback",
    "search",
    "search_with_status",
    "normalize",
    "normalize_all",
    "dedupe",
    "identity_key",
    "RelevanceScorer",
    "StaticRateTable",
    "convert",
]
