"""
Currency conversion for displayed prices.
"""
import logging
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Protocol, Sequence

from ..models.scoring import ScoredListing

logger = logging.getLogger(__name__)

DISPLAY_CURRENCY = "GBP"

CURRENCY_SYMBOLS = {
    "GBP": "£",
    "USD": "$",
    "EUR": "€",
}

# Static pairwise rates, (from, to) -> rate
DEFAULT_RATES = {
    ("GBP", "USD"): 1.27,
    ("GBP", "EUR"): 1.17,
    ("USD", "GBP"): 0.79,
    ("USD", "EUR"): 0.92,
    ("EUR", "GBP"): 0.85,
    ("EUR", "USD"): 1.09,
}

_STRIP_PATTERN = re.compile(r"[£$€,\s]")
_AMOUNT_PATTERN = re.compile(r"\d+(?:\.\d+)?")


class RateTable(Protocol):
    """Anything that can quote a conversion rate between two currency codes."""

    def rate(self, from_currency: str, to_currency: str) -> Optional[float]:
        ...


class StaticRateTable:
    """Fixed lookup table of pairwise rates."""

    def __init__(self, rates: Optional[dict[tuple[str, str], float]] = None):
        self.rates = dict(rates if rates is not None else DEFAULT_RATES)

    def rate(self, from_currency: str, to_currency: str) -> Optional[float]:
        return self.rates.get((from_currency.upper(), to_currency.upper()))


def detect_currency(price: str) -> str:
    """Currency implied by the symbol in a display price."""
    if "$" in price:
        return "USD"
    if "€" in price:
        return "EUR"
    return DISPLAY_CURRENCY


def parse_display_amount(price: str) -> Optional[float]:
    """Amount of a plain decimal display price; None for "inf", "NaN" and other text."""
    match = _AMOUNT_PATTERN.fullmatch(_STRIP_PATTERN.sub("", price))
    if not match:
        return None
    return float(match.group(0))


def convert_price(price: str, target_currency: str, rates: RateTable) -> str:
    """Rewrite one display price, or return it unchanged if it can't be converted."""
    target = target_currency.upper()
    current = detect_currency(price)
    if current == target:
        return price

    amount = parse_display_amount(price)
    rate = rates.rate(current, target)
    symbol = CURRENCY_SYMBOLS.get(target)
    if amount is None or rate is None or symbol is None:
        return price

    converted = Decimal(str(amount * rate)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{symbol}{converted}"


def convert(
    listings: Sequence[ScoredListing],
    target_currency: str,
    rates: Optional[RateTable] = None,
) -> list[ScoredListing]:
    """
    Convert displayed prices to the target currency.

    Listings with unparsable prices or no rate entry pass through unchanged.
    """
    if not target_currency or target_currency.upper() == DISPLAY_CURRENCY:
        return list(listings)

    rates = rates or StaticRateTable()
    converted = []
    for listing in listings:
        new_price = convert_price(listing.price, target_currency, rates)
        if new_price != listing.price:
            listing = listing.model_copy(update={"price": new_price})
        converted.append(listing)

    logger.info(f"Converted prices to {target_currency.upper()}")
    return converted
