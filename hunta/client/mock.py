"""
Mock marketplace source for running without ScrapingBee.
"""
import logging

from ..models.listing import RawListing

logger = logging.getLogger(__name__)

MOCK_IMAGE = "https://images.pexels.com/photos/1751731/pexels-photo-1751731.jpeg"

# Per marketplace: (title suffix, price, link, description template)
MOCK_LISTINGS = {
    "ebay": [
        ("eBay Special", "£180", "https://www.ebay.com/itm/mock-listing-1", "Pre-owned {term} from eBay"),
    ],
    "gumtree": [
        ("Excellent Condition", "£150", "https://www.gumtree.com/p/mock-listing-1", "Used {term} in excellent condition"),
        ("Good Deal", "£120", "https://www.gumtree.com/p/mock-listing-2", "Second-hand {term} at great price"),
    ],
    "facebook": [
        ("Facebook Find", "£100", "https://www.facebook.com/marketplace/item/mock-listing-1",
         "Great {term} from Facebook Marketplace"),
    ],
    "cashconverters": [
        ("CashConverters Mock", "£99", "https://www.cashconverters.co.uk/mock-listing-1",
         "Mock listing for {term} on CashConverters"),
    ],
}


class MockSource:
    """Returns fixed listings built from the search term."""

    def __init__(self, name: str):
        if name not in MOCK_LISTINGS:
            raise ValueError(f"No mock data for source '{name}'")
        self.name = name

    async def fetch(self, term: str, location: str, max_pages: int) -> list[RawListing]:
        logger.warning(f"ScrapingBee not configured, returning mock {self.name} data")
        return [
            RawListing(
                title=f"{term} - {suffix}",
                price=price,
                link=link,
                image=MOCK_IMAGE,
                source=self.name,
                description=description.format(term=term),
            )
            for suffix, price, link, description in MOCK_LISTINGS[self.name]
        ]
