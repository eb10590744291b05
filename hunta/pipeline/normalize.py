"""
Listing normalizer - canonical titles, display prices and numeric amounts.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..models.listing import NormalizedListing, RawListing

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 500
MAX_UNPARSED_PRICE_LENGTH = 20
DEFAULT_CURRENCY_SYMBOL = "£"

CURRENCY_SYMBOLS = "£$€¥₹"

# "£ 1,250.00", "$99", "280€"
SYMBOL_PRICE_PATTERN = re.compile(
    rf"[{CURRENCY_SYMBOLS}]\s*\d[\d,]*(?:\.\d{{2}})?|\d+(?:\.\d{{2}})?\s*[{CURRENCY_SYMBOLS}]"
)
BARE_NUMBER_PATTERN = re.compile(r"\d[\d,]*(?:\.\d{2})?")
_AMOUNT_PATTERN = re.compile(r"\d+(?:\.\d+)?")
_WHITESPACE = re.compile(r"\s+")
_TITLE_DISALLOWED = re.compile(r"[^\w\s\-.,()]", re.ASCII)


def clean_title(title: str) -> str:
    """Collapse whitespace, drop characters outside the allow-set, truncate."""
    cleaned = _WHITESPACE.sub(" ", title or "")
    cleaned = _TITLE_DISALLOWED.sub("", cleaned)
    return cleaned.strip()[:MAX_TITLE_LENGTH]


def clean_price(price: str) -> str:
    """
    Reduce free-text price to a display string.

    Falls back to a default-currency bare number, then to the truncated raw
    text when nothing numeric is present.
    """
    price = price or ""
    match = SYMBOL_PRICE_PATTERN.search(price)
    if match:
        return _WHITESPACE.sub("", match.group(0))

    match = BARE_NUMBER_PATTERN.search(price)
    if match:
        return f"{DEFAULT_CURRENCY_SYMBOL}{match.group(0)}"

    return price.strip()[:MAX_UNPARSED_PRICE_LENGTH]


def parse_price_amount(display_price: str) -> Optional[float]:
    """Numeric magnitude of a display price, None if there is none."""
    match = _AMOUNT_PATTERN.search((display_price or "").replace(",", ""))
    if not match:
        return None
    return float(match.group(0))


def parse_posted_at(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def clean_description(description: Optional[str]) -> Optional[str]:
    if not description:
        return None
    cleaned = _WHITESPACE.sub(" ", description).strip()
    return cleaned[:MAX_DESCRIPTION_LENGTH] or None


def clean_link(link: Optional[str]) -> str:
    link = (link or "").strip()
    if link.startswith("//"):
        return f"https:{link}"
    return link


def normalize(raw: RawListing) -> Optional[NormalizedListing]:
    """Normalize one raw listing, or return None when title or link is missing."""
    title = clean_title(raw.title or "")
    link = clean_link(raw.link)
    if not title or not link:
        return None

    price = clean_price(raw.price or "")

    return NormalizedListing(
        title=title,
        price=price,
        price_amount=parse_price_amount(price),
        link=link,
        image=(raw.image or "").strip() or None,
        source=raw.source or "unknown",
        description=clean_description(raw.description),
        posted_at=parse_posted_at(raw.posted_at),
    )


def normalize_all(raws: Iterable[RawListing]) -> list[NormalizedListing]:
    """Normalize a batch, dropping listings without title or link."""
    normalized = []
    dropped = 0
    for raw in raws:
        listing = normalize(raw)
        if listing is None:
            dropped += 1
            continue
        normalized.append(listing)

    if dropped:
        logger.debug(f"Dropped {dropped} listings missing title or link")
    return normalized
