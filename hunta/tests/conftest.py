"""
Shared fixtures: fake sources and a clean config per test.
"""
import asyncio
from typing import Any, Optional

import pytest

from hunta.config import reset_config
from hunta.models.listing import RawListing


class FakeSource:
    """In-memory source recording every call it receives."""

    def __init__(
        self,
        name: str,
        listings: Optional[list[Any]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        result: Any = None,
    ):
        self.name = name
        self.listings = listings or []
        self.error = error
        self.delay = delay
        self.result = result
        self.calls: list[tuple[str, str, int]] = []

    async def fetch(self, term: str, location: str, max_pages: int) -> list[RawListing]:
        self.calls.append((term, location, max_pages))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.result is not None:
            return self.result
        return list(self.listings)


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Each test starts without API keys and with an uncached config."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("SCRAPINGBEE_API_KEY", raising=False)
    monkeypatch.delenv("HUNTA_USE_MOCK_SOURCES", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_source():
    """Factory for FakeSource instances."""
    return FakeSource
