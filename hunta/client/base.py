"""
Source capability contract and source selection.
"""
import logging
from typing import Iterable, Mapping, Optional, Protocol, runtime_checkable

from ..models.listing import RawListing

logger = logging.getLogger(__name__)


@runtime_checkable
class SourceCapability(Protocol):
    """One marketplace that can be searched for listings."""

    name: str

    async def fetch(self, term: str, location: str, max_pages: int) -> list[RawListing]:
        ...


def select_sources(
    registry: Mapping[str, SourceCapability],
    allow: Optional[Iterable[str]] = None,
) -> list[SourceCapability]:
    """
    Pick the active sources for a search.

    Args:
        registry: All registered sources by name
        allow: Optional allow-list of source names; empty means all

    Returns:
        Sources in registry order
    """
    allowed = {str(name).strip().lower() for name in (allow or []) if str(name).strip()}
    if not allowed:
        return list(registry.values())

    unknown = allowed - {name.lower() for name in registry}
    if unknown:
        logger.warning(f"Ignoring unknown sources: {sorted(unknown)}")

    return [source for name, source in registry.items() if name.lower() in allowed]
