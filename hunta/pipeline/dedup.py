"""
Deduplication of listings collected across terms and sources.
"""
import logging
from typing import Iterable, Union
from urllib.parse import urlparse

from ..models.listing import NormalizedListing
from .terms import normalize_text

logger = logging.getLogger(__name__)

# Stands in for the price of listings whose price could not be parsed
UNPARSED_PRICE = "unparsed"

IdentityKey = tuple[str, Union[float, str], str]


def link_domain(link: str) -> str:
    """Host of a link, lower-cased and without a leading 'www.'."""
    try:
        host = urlparse(link).netloc.lower()
    except ValueError:
        return ""
    # Drop credentials and port
    host = host.rsplit("@", 1)[-1].split(":", 1)[0]
    if host.startswith("www."):
        host = host[4:]
    return host


def identity_key(listing: NormalizedListing) -> IdentityKey:
    """
    Composite key recognising the same item scraped through different terms.
    Title alone is not enough: distinct items may share a title.
    """
    price = listing.price_amount if listing.price_amount is not None else UNPARSED_PRICE
    return (normalize_text(listing.title), price, link_domain(listing.link))


def dedupe(listings: Iterable[NormalizedListing]) -> list[NormalizedListing]:
    """Drop repeated listings, keeping the first occurrence in input order."""
    seen: set[IdentityKey] = set()
    unique = []
    total = 0

    for listing in listings:
        total += 1
        key = identity_key(listing)
        if key in seen:
            continue
        seen.add(key)
        unique.append(listing)

    logger.info(f"Deduplicated {total} listings to {len(unique)}")
    return unique
