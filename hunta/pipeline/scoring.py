"""
Relevance scoring engine - deterministic multi-factor ranking with breakdown.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

import numpy as np

from ..models.listing import NormalizedListing
from ..models.query import EnhancedQuery
from ..models.scoring import ScoreBreakdown, ScoredListing
from .terms import normalize_text, tokenize

logger = logging.getLogger(__name__)

# Trust per marketplace; unknown sources get DEFAULT_SOURCE_WEIGHT
SOURCE_WEIGHTS = {
    "ebay": 1.0,
    "cashconverters": 0.9,
    "gumtree": 0.8,
    "facebook": 0.7,
}
DEFAULT_SOURCE_WEIGHT = 0.6

NEUTRAL = 0.5

# (max age in days, score), checked in order
RECENCY_TIERS = [
    (1, 1.0),
    (7, 0.8),
    (30, 0.6),
    (90, 0.4),
]
STALE_SCORE = 0.2

SHORT_TITLE_LENGTH = 20


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class RelevanceScorer:
    """
    Scores listings against the original query and its enhancement.
    All component scores are 0-1 and the final score is their weighted sum.
    """

    def __init__(
        self,
        match_weight: float = 0.50,
        price_weight: float = 0.15,
        recency_weight: float = 0.10,
        source_weight: float = 0.05,
        source_weights: Optional[dict[str, float]] = None,
        limit: int = 40,
    ):
        self.match_weight = match_weight
        self.price_weight = price_weight
        self.recency_weight = recency_weight
        self.source_weight = source_weight
        self.source_weights = source_weights if source_weights is not None else SOURCE_WEIGHTS
        self.limit = limit

        # Match accumulator increments
        self.query_title_hit = 0.30
        self.query_description_hit = 0.10
        self.enhanced_title_hit = 0.20
        self.enhanced_description_hit = 0.05
        self.category_hit = 0.15
        self.verbatim_bonus = 0.25
        self.short_title_penalty = 0.05
        self.image_bonus = 0.03

    def score(
        self,
        listing: NormalizedListing,
        original_term: str,
        enhanced_query: EnhancedQuery,
        median_price: Optional[float],
        now: datetime,
    ) -> tuple[float, ScoreBreakdown]:
        """
        Calculate the final score for a single listing.

        Args:
            listing: The listing to score
            original_term: The user's query as typed
            enhanced_query: Expanded terms and categories
            median_price: Median of parsed prices across the candidate set
            now: Reference time for recency

        Returns:
            Tuple of (rounded final score, component breakdown)
        """
        match = self._calculate_match_score(listing, original_term, enhanced_query)
        price = self._calculate_price_score(listing, median_price)
        recency = self._calculate_recency_score(listing, now)
        source = self._source_trust(listing.source)

        total = (
            match * self.match_weight
            + price * self.price_weight
            + recency * self.recency_weight
            + source * self.source_weight
        )

        breakdown = ScoreBreakdown(
            match=round(match, 4),
            price=round(price, 4),
            recency=recency,
            source=source,
            median_price=median_price,
        )
        return round(_clamp(total), 2), breakdown

    def _calculate_match_score(
        self,
        listing: NormalizedListing,
        original_term: str,
        enhanced_query: EnhancedQuery,
    ) -> float:
        """Term hits plus quality adjustments, clamped to 0-1."""
        title = listing.title.lower()
        description = (listing.description or "").lower()
        score = 0.0

        for token in tokenize(original_term):
            if token in title:
                score += self.query_title_hit
            if token in description:
                score += self.query_description_hit

        for term in enhanced_query.search_terms:
            term = term.lower()
            if term in title:
                score += self.enhanced_title_hit
            if term in description:
                score += self.enhanced_description_hit

        for category in enhanced_query.categories:
            category = category.lower()
            if category in title or category in description:
                score += self.category_hit

        phrase = normalize_text(original_term)
        if phrase and phrase in title:
            score += self.verbatim_bonus

        # Quality signals
        if len(listing.title) < SHORT_TITLE_LENGTH:
            score -= self.short_title_penalty
        if listing.image:
            score += self.image_bonus

        return _clamp(score)

    def _calculate_price_score(
        self,
        listing: NormalizedListing,
        median_price: Optional[float],
    ) -> float:
        """Closeness to the median price; neutral if no comparison possible."""
        if listing.price_amount is None or not median_price or median_price <= 0:
            return NEUTRAL
        distance = abs(listing.price_amount - median_price) / median_price
        return max(0.0, 1 - min(1.0, distance))

    def _calculate_recency_score(self, listing: NormalizedListing, now: datetime) -> float:
        if listing.posted_at is None:
            return NEUTRAL

        age_days = (now - listing.posted_at).total_seconds() / 86400
        for max_days, tier_score in RECENCY_TIERS:
            if age_days <= max_days:
                return tier_score
        return STALE_SCORE

    def _source_trust(self, source: str) -> float:
        return self.source_weights.get((source or "").lower(), DEFAULT_SOURCE_WEIGHT)

    @staticmethod
    def median_price(listings: Sequence[NormalizedListing]) -> Optional[float]:
        """Median of all parsed prices, None if no listing has one."""
        prices = [l.price_amount for l in listings if l.price_amount is not None]
        if not prices:
            return None
        return float(np.median(np.array(prices)))

    def rank_listings(
        self,
        listings: Sequence[NormalizedListing],
        original_term: str,
        enhanced_query: EnhancedQuery,
        now: Optional[datetime] = None,
    ) -> list[ScoredListing]:
        """
        Score and rank all listings.

        Args:
            listings: Deduplicated candidates, in fan-out order
            original_term: The user's query as typed
            enhanced_query: Expanded terms and categories
            now: Reference time for recency (defaults to current UTC time)

        Returns:
            Top listings sorted by score descending; ties keep input order
        """
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        candidates = [l for l in listings if l.title]
        median = self.median_price(candidates)

        scored = []
        for listing in candidates:
            total, breakdown = self.score(listing, original_term, enhanced_query, median, now)
            scored.append(ScoredListing(**listing.model_dump(), score=total, breakdown=breakdown))

        # sort() is stable, so equal scores stay in fan-out order
        scored.sort(key=lambda s: s.score, reverse=True)

        logger.info(f"Scored {len(scored)} listings (median price: {median})")
        return scored[: self.limit]
