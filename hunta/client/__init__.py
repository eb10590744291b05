"""Marketplace source clients and the default source registry."""
import logging
from typing import Optional

from ..config import Config, get_config
from .base import SourceCapability, select_sources
from .marketplaces import (
    MARKETPLACE_SOURCES,
    CashConvertersSource,
    EbaySource,
    FacebookSource,
    GumtreeSource,
    MarketplaceSource,
)
from .mock import MockSource
from .scrapingbee import ScrapingBeeFetcher

logger = logging.getLogger(__name__)


def build_default_sources(config: Optional[Config] = None) -> dict[str, SourceCapability]:
    """All registered marketplaces by name; mocks when ScrapingBee is not configured."""
    config = config or get_config()

    if config.mock_sources_enabled:
        logger.warning("Using mock marketplace sources")
        return {cls.name: MockSource(cls.name) for cls in MARKETPLACE_SOURCES}

    fetcher = ScrapingBeeFetcher(config.scrapingbee)
    return {cls.name: cls(fetcher=fetcher, config=config.scrapingbee) for cls in MARKETPLACE_SOURCES}


__all__ = [
    "SourceCapability",
    "select_sources",
    "build_default_sources",
    "MarketplaceSource",
    "EbaySource",
    "GumtreeSource",
    "FacebookSource",
    "CashConvertersSource",
    "MockSource",
    "ScrapingBeeFetcher",
]
