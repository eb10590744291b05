"""
Marketplace sources - page URLs and listing extraction per site.
"""
import logging
import re
from typing import Optional
from urllib.parse import quote_plus, urljoin

import httpx
from bs4 import BeautifulSoup, Tag

from ..config import ScrapingBeeConfig, get_config
from ..exceptions import SourceError
from ..models.listing import RawListing
from .scrapingbee import ScrapingBeeFetcher

logger = logging.getLogger(__name__)

_LOW_RES_EBAY_IMAGE = re.compile(r"_(32|64|96|140|180|225)\.jpg$")
_SYMBOL_PRICE = re.compile(r"[£$€]\d+")


def _text(node: Optional[Tag]) -> str:
    return node.get_text(" ", strip=True) if node is not None else ""


def _attr(node: Optional[Tag], name: str) -> Optional[str]:
    if node is None:
        return None
    value = node.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return value or None


def improve_ebay_image_url(url: Optional[str], item: Optional[Tag] = None) -> Optional[str]:
    """Prefer a high-resolution variant of an eBay thumbnail."""
    if not url and item is not None:
        img = item.select_one(".s-item__image img")
        srcset = _attr(img, "srcset")
        if srcset:
            candidates = [part.strip().split(" ")[0] for part in srcset.split(",") if part.strip()]
            for suffix in ("_1280.jpg", "_640.jpg", "_500.jpg"):
                for candidate in candidates:
                    if suffix in candidate:
                        return candidate
            if candidates:
                return candidates[-1]
        return _attr(img, "data-src") or url

    if url:
        return _LOW_RES_EBAY_IMAGE.sub("_1280.jpg", url)
    return url


class MarketplaceSource:
    """
    Base class for ScrapingBee-backed marketplace sources.
    Subclasses provide the search URL and the HTML extraction.
    """

    name = "marketplace"
    base_url = ""
    render_js = True
    wait_ms: Optional[int] = None
    timeout_seconds: Optional[float] = None
    paginated = True

    def __init__(
        self,
        fetcher: Optional[ScrapingBeeFetcher] = None,
        config: Optional[ScrapingBeeConfig] = None,
    ):
        self.config = config or get_config().scrapingbee
        self.fetcher = fetcher or ScrapingBeeFetcher(self.config)

    def build_url(self, term: str, location: str, page: int) -> str:
        raise NotImplementedError

    def parse(self, html: str) -> list[RawListing]:
        raise NotImplementedError

    async def fetch(self, term: str, location: str, max_pages: int) -> list[RawListing]:
        """
        Fetch up to max_pages result pages and extract listings.

        Stops early when a page yields nothing. A failing first page raises;
        a failing later page ends the loop with the listings collected so far.
        """
        logger.info(f"Searching {self.name} for: '{term}' in {location}")
        pages = max(1, max_pages) if self.paginated else 1
        listings: list[RawListing] = []

        for page in range(1, pages + 1):
            url = self.build_url(term, location, page)
            try:
                html = await self.fetcher.fetch_html(
                    url,
                    render_js=self.render_js,
                    wait_ms=self.wait_ms,
                    timeout_seconds=self.timeout_seconds,
                    source=self.name,
                )
            except (SourceError, httpx.HTTPError) as e:
                if page == 1:
                    raise
                logger.warning(f"{self.name}: page {page} failed, keeping {len(listings)} listings: {e}")
                break
            page_listings = self.parse(html)
            if not page_listings:
                logger.info(f"{self.name}: no listings on page {page}")
                break
            listings.extend(page_listings)

        logger.info(f"Found {len(listings)} {self.name} listings")
        return listings

    def _absolute(self, link: Optional[str]) -> Optional[str]:
        if link and link.startswith("/") and not link.startswith("//"):
            return urljoin(self.base_url, link)
        return link

    def _limit(self, items: list[Tag]) -> list[Tag]:
        return items[: self.config.max_items_per_page]


class EbaySource(MarketplaceSource):
    """eBay UK search results, newest first."""

    name = "ebay"
    base_url = "https://www.ebay.co.uk"
    render_js = False

    def build_url(self, term: str, location: str, page: int) -> str:
        url = f"{self.base_url}/sch/i.html?_nkw={quote_plus(term)}&_sop=12&_fsrp=1&LH_PrefLoc=3"
        if page > 1:
            url += f"&_pgn={page}"
        return url

    def parse(self, html: str) -> list[RawListing]:
        soup = BeautifulSoup(html, "html.parser")
        listings = []
        for item in self._limit(soup.select(".s-item")):
            title = _text(item.select_one(".s-item__title"))
            price = _text(item.select_one(".s-item__price"))
            link = _attr(item.select_one(".s-item__link"), "href")
            image = improve_ebay_image_url(_attr(item.select_one(".s-item__image img"), "src"), item)

            # eBay injects a "Shop on eBay" placeholder tile
            if not (title and price and link) or "shop on ebay" in title.lower():
                continue
            listings.append(RawListing(
                title=title,
                price=price,
                link=link,
                image=image,
                source=self.name,
                description=title,
            ))
        return listings


class GumtreeSource(MarketplaceSource):
    """Gumtree classifieds, optionally narrowed to a location."""

    name = "gumtree"
    base_url = "https://www.gumtree.com"

    def build_url(self, term: str, location: str, page: int) -> str:
        url = f"{self.base_url}/search?search_category=all&q={quote_plus(term)}"
        if location and location != "UK":
            url += f"&search_location={quote_plus(location)}"
        if page > 1:
            url += f"&page={page}"
        return url

    def parse(self, html: str) -> list[RawListing]:
        soup = BeautifulSoup(html, "html.parser")
        listings = []
        for item in self._limit(soup.select('.listing-link, .listing-item, [data-q="listing"]')):
            title = _text(item.select_one(".listing-title, .listing-item-title, h2, h3"))
            price = _text(item.select_one(".listing-price, .price, .ad-price"))
            link = _attr(item.select_one("a"), "href")
            img = item.select_one("img")
            image = _attr(img, "src") or _attr(img, "data-src")

            if not title:
                title = _text(item.select_one('[data-q="listing-title"], .tileTitle'))
            if not price:
                price = _text(item.select_one('[data-q="price"], .tilePrice'))
            if not link:
                link = _attr(item, "href") or _attr(item.select_one('a[href*="/p/"]'), "href")
            link = self._absolute(link)

            if not (title and price and link):
                continue
            listings.append(RawListing(
                title=title,
                price=price,
                link=link,
                image=image,
                source=self.name,
                description=title,
            ))
        return listings


class FacebookSource(MarketplaceSource):
    """Facebook Marketplace search; a single rendered page."""

    name = "facebook"
    base_url = "https://www.facebook.com"
    wait_ms = 3000
    timeout_seconds = 60.0
    paginated = False

    def build_url(self, term: str, location: str, page: int) -> str:
        url = f"{self.base_url}/marketplace/search/?query={quote_plus(term)}"
        if location and location != "UK":
            url += "&exact=false"
        return url

    def parse(self, html: str) -> list[RawListing]:
        soup = BeautifulSoup(html, "html.parser")
        listings = []
        items = soup.select('[data-testid="marketplace-item"], .marketplace-item, .feed-story-item')
        for item in self._limit(items):
            title = _text(item.select_one('span[dir="auto"]'))
            price_span = next(
                (span for span in item.select("span") if _SYMBOL_PRICE.search(_text(span))),
                None,
            )
            price = _text(price_span)
            link = self._absolute(_attr(item.select_one("a"), "href"))
            image = _attr(item.select_one("img"), "src")

            if not (title and price and link):
                continue
            listings.append(RawListing(
                title=title,
                price=price,
                link=link,
                image=image,
                source=self.name,
                description=title,
            ))
        return listings


class CashConvertersSource(MarketplaceSource):
    """CashConverters UK store stock."""

    name = "cashconverters"
    base_url = "https://www.cashconverters.co.uk"

    def build_url(self, term: str, location: str, page: int) -> str:
        url = f"{self.base_url}/search?q={quote_plus(term)}"
        if page > 1:
            url += f"&page={page}"
        return url

    def parse(self, html: str) -> list[RawListing]:
        soup = BeautifulSoup(html, "html.parser")
        listings = []
        for item in self._limit(soup.select(".product-tile, .product")):
            title = _text(item.select_one(".product-title, .product-name"))
            price = _text(item.select_one(".product-price, .price"))
            link = self._absolute(_attr(item.select_one("a"), "href"))
            img = item.select_one("img")
            image = _attr(img, "src") or _attr(img, "data-src")

            if not (title and price and link):
                continue
            listings.append(RawListing(
                title=title,
                price=price,
                link=link,
                image=image,
                source=self.name,
                description=title,
            ))
        return listings


MARKETPLACE_SOURCES = (EbaySource, GumtreeSource, FacebookSource, CashConvertersSource)
