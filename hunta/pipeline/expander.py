"""
Fallback query expander: deterministic term variants when the LLM is unavailable.
"""
import logging
import re

from ..models.query import EnhancedQuery, QueryFlags, unique_texts

logger = logging.getLogger(__name__)

MAX_FALLBACK_TERMS = 6
MAX_MERGED_TERMS = 8

# Keyword patterns that add domain-specific variants: (pattern, suffixes)
AUGMENTATIONS = [
    (re.compile(r"iphone|apple"), ["unlocked", "refurbished"]),
    (re.compile(r"guitar|bass|amp|pedal|synth"), ["vintage", "electric"]),
    (re.compile(r"car|vehicle"), ["low mileage", "service history"]),
]

HIGH_VALUE_PATTERN = re.compile(r"iphone|macbook|rolex|gpu|ps5")
SCAM_TARGET_PATTERN = re.compile(r"iphone|designer|luxury|gpu")
FORUM_PATTERN = re.compile(r"guitar|vintage|collectible|pokemon|tcg")

DEFAULT_CATEGORIES = ["general"]
DEFAULT_FORUMS = ["reddit"]


def expand(term: str) -> EnhancedQuery:
    """
    Build an EnhancedQuery without any I/O.

    The same term always yields the same query.
    """
    t = str(term or "").strip()
    lower = t.lower()

    base = [t, f"used {t}", f"{t} second hand", f"{t} pre-owned", f"{t} secondhand"]
    for pattern, suffixes in AUGMENTATIONS:
        if pattern.search(lower):
            base.extend(f"{t} {suffix}" for suffix in suffixes)

    return EnhancedQuery(
        original=t,
        search_terms=unique_texts(base)[:MAX_FALLBACK_TERMS],
        categories=list(DEFAULT_CATEGORIES),
        forums=list(DEFAULT_FORUMS),
        flags=QueryFlags(
            high_value_item=bool(HIGH_VALUE_PATTERN.search(lower)),
            common_scam_target=bool(SCAM_TARGET_PATTERN.search(lower)),
            likely_on_forums=bool(FORUM_PATTERN.search(lower)),
            reseller_friendly=True,
        ),
    )


def merge_with_fallback(enhanced: EnhancedQuery, term: str) -> EnhancedQuery:
    """
    Fill an enhancement that came back without usable terms.

    Terms are the union of fallback and enhancer terms. The enhancer's
    categories, forums and flags win whenever it provided them.
    """
    fallback = expand(term)
    logger.info(f"Merging fallback terms into enhancement for '{fallback.original}'")

    return EnhancedQuery(
        original=enhanced.original or fallback.original,
        search_terms=unique_texts(fallback.search_terms + enhanced.search_terms)[:MAX_MERGED_TERMS],
        categories=enhanced.categories or fallback.categories,
        forums=enhanced.forums or fallback.forums,
        flags=_merge_flags(enhanced.flags, fallback.flags),
    )


def _merge_flags(reported: QueryFlags, fallback: QueryFlags) -> QueryFlags:
    merged = fallback.model_dump()
    merged.update({name: getattr(reported, name) for name in reported.model_fields_set})
    return QueryFlags(**merged)
