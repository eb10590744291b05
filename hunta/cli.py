"""
Command-line entry point.
Use: hunta "strymon ob1" --currency USD
Or: python -m hunta "strymon ob1"
"""
import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from .ai.query_enhancer import QueryEnhancer
from .client import build_default_sources
from .config import get_config
from .exceptions import InvalidSearchError, SearchError
from .logging_config import configure_logging
from .models.export import SearchRun
from .service import SearchOptions, SearchService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search second-hand marketplaces and rank the results")
    parser.add_argument("term", help="What to search for, e.g. 'strymon ob1'")
    parser.add_argument("--location", default=None, help="Location passed to the sources (default: UK)")
    parser.add_argument("--currency", default=None, help="Display currency: GBP, USD or EUR")
    parser.add_argument("--sources", default=None, help="Comma-separated source names (default: all)")
    parser.add_argument("--max-pages", type=int, default=None, help="Result pages per source and term")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    parser.add_argument("--no-llm", action="store_true", help="Skip the LLM and use offline expansion")
    return parser


def render_table(run: SearchRun) -> str:
    """Short human-readable summary of a run."""
    lines = [
        f"{len(run.items)} results for '{run.search_term}' "
        f"({run.enhancement_source} terms, {run.unique_count} unique of {run.raw_count})",
    ]
    for rank, item in enumerate(run.items, 1):
        lines.append(f"{rank:>3}. {item.score:.2f}  {item.price:>10}  [{item.source}] {item.title}")
        lines.append(f"     {item.link}")
    return "\n".join(lines)


async def run(args: argparse.Namespace) -> SearchRun:
    config = get_config()
    sources = build_default_sources(config)
    enhancer = None if args.no_llm else QueryEnhancer()
    service = SearchService(sources, enhancer=enhancer, config=config)

    options = SearchOptions(
        sources={s.strip() for s in args.sources.split(",") if s.strip()} if args.sources else None,
        max_pages=args.max_pages,
    )
    return await service.run_search(args.term, args.location, args.currency, options)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.max_pages is not None and args.max_pages < 1:
        parser.error("--max-pages must be at least 1")
    config = get_config()
    configure_logging(config.log_level, config.log_json)

    try:
        result = asyncio.run(run(args))
    except InvalidSearchError as e:
        print(f"Invalid search: {e}", file=sys.stderr)
        return 2
    except SearchError as e:
        logger.error(f"Search request failed: {e}")
        return 1

    if args.json:
        print(json.dumps(result.to_minimal_export(), indent=2, ensure_ascii=False))
    else:
        print(render_table(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
