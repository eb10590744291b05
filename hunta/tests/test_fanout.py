"""
Tests for concurrent source fan-out.
"""
import asyncio
import logging

import pytest

from hunta.models.listing import RawListing
from hunta.pipeline.expander import expand
from hunta.pipeline.fanout import build_terms, fetch_with_status, search, search_with_status


def raw(title: str, source: str) -> RawListing:
    return RawListing(title=title, price="£280", link=f"https://{source}.example/{title}", source=source)


class TestBuildTerms:
    """Tests for the working term list."""

    def test_original_first_and_capped(self):
        terms = build_terms("strymon ob1", expand("strymon ob1"), max_terms=3)

        assert terms == ["strymon ob1", "used strymon ob1", "strymon ob1 second hand"]

    def test_original_not_repeated(self):
        terms = build_terms("strymon ob1", expand("strymon ob1"))

        assert terms.count("strymon ob1") == 1
        assert len(terms) == 5


class TestFetchWithStatus:
    """Tests for a single isolated source call."""

    @pytest.mark.asyncio
    async def test_ok(self, make_source):
        source = make_source("ebay", listings=[raw("a", "ebay")])

        listings, status = await fetch_with_status(source, "strymon ob1", "UK", 2)

        assert len(listings) == 1
        assert status.status == "ok"
        assert status.result_count == 1
        assert source.calls == [("strymon ob1", "UK", 2)]

    @pytest.mark.asyncio
    async def test_empty(self, make_source):
        _, status = await fetch_with_status(make_source("ebay"), "strymon ob1", "UK", 1)

        assert status.status == "empty"

    @pytest.mark.asyncio
    async def test_error_isolated(self, make_source):
        source = make_source("ebay", error=RuntimeError("blocked"))

        listings, status = await fetch_with_status(source, "strymon ob1", "UK", 1)

        assert listings == []
        assert status.status == "error"
        assert "blocked" in status.message

    @pytest.mark.asyncio
    async def test_timeout(self, make_source):
        source = make_source("facebook", delay=1.0)

        listings, status = await fetch_with_status(source, "strymon ob1", "UK", 1, timeout_seconds=0.05)

        assert listings == []
        assert status.status == "timeout"

    @pytest.mark.asyncio
    async def test_non_list_result(self, make_source):
        source = make_source("gumtree", result={"title": "not a list"})

        listings, status = await fetch_with_status(source, "strymon ob1", "UK", 1)

        assert listings == []
        assert status.status == "invalid"

    @pytest.mark.asyncio
    async def test_dict_items_coerced(self, make_source):
        source = make_source(
            "gumtree",
            result=[{"title": "Strymon OB.1", "price": 280, "source": "gumtree"}, "junk", raw("b", "gumtree")],
        )

        listings, status = await fetch_with_status(source, "strymon ob1", "UK", 1)

        assert [l.title for l in listings] == ["Strymon OB.1", "b"]
        assert listings[0].price == "280"
        assert status.result_count == 2


class TestSearchWithStatus:
    """Tests for the full fan-out."""

    @pytest.mark.asyncio
    async def test_every_term_hits_every_source(self, make_source):
        ebay = make_source("ebay", listings=[raw("a", "ebay")])
        gumtree = make_source("gumtree", listings=[raw("b", "gumtree")])

        result = await search_with_status("strymon ob1", "UK", expand("strymon ob1"), [ebay, gumtree], 1)

        assert len(result.terms) == 5
        assert [c[0] for c in ebay.calls] == result.terms
        assert [c[0] for c in gumtree.calls] == result.terms
        assert len(result.listings) == 10
        assert len(result.statuses) == 10

    @pytest.mark.asyncio
    async def test_failures_do_not_affect_other_sources(self, make_source):
        good = make_source("ebay", listings=[raw("a", "ebay")])
        broken = make_source("gumtree", error=ConnectionError("refused"))
        slow = make_source("facebook", delay=1.0)

        result = await search_with_status(
            "strymon ob1", "UK", expand("strymon ob1"), [good, broken, slow], 1,
            max_terms=2, timeout_seconds=0.05,
        )

        assert {l.source for l in result.listings} == {"ebay"}
        assert len(result.listings) == 2
        assert sorted(s.status for s in result.statuses) == ["error", "error", "ok", "ok", "timeout", "timeout"]
        assert result.all_failed is False

    @pytest.mark.asyncio
    async def test_all_sources_fail(self, make_source, caplog):
        caplog.set_level(logging.WARNING, logger="hunta.pipeline.fanout")
        sources = [make_source(name, error=RuntimeError("down")) for name in ("ebay", "gumtree")]

        result = await search_with_status("strymon ob1", "UK", expand("strymon ob1"), sources, 1)

        assert result.listings == []
        assert result.all_failed is True
        assert "All 10 source calls failed" in caplog.text

    @pytest.mark.asyncio
    async def test_empty_results_are_not_failures(self, make_source, caplog):
        caplog.set_level(logging.WARNING, logger="hunta.pipeline.fanout")

        result = await search_with_status("strymon ob1", "UK", expand("strymon ob1"), [make_source("ebay")], 1)

        assert result.all_failed is False
        assert "No results from any marketplace" in caplog.text
        assert "source calls failed" not in caplog.text

    @pytest.mark.asyncio
    async def test_calls_run_concurrently(self):
        """Test that all (term, source) calls are in flight together."""
        in_flight = 0
        peak = 0

        class CountingSource:
            def __init__(self, name):
                self.name = name

            async def fetch(self, term, location, max_pages):
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1
                return []

        sources = [CountingSource("ebay"), CountingSource("gumtree")]

        await search_with_status("strymon ob1", "UK", expand("strymon ob1"), sources, 1)

        assert peak == 10

    @pytest.mark.asyncio
    async def test_search_returns_listings_only(self, make_source):
        source = make_source("ebay", listings=[raw("a", "ebay")])

        listings = await search("strymon ob1", "UK", expand("strymon ob1"), [source], 1, max_terms=1)

        assert listings == [raw("a", "ebay")]
