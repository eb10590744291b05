"""
Exception hierarchy for Hunta.

    HuntaError (base)
    ├── SearchError            surfaced to the caller of perform_search
    │   └── InvalidSearchError
    ├── EnhancementError       always recovered with the fallback expander
    └── SourceError            always recovered by the fan-out
"""
from typing import Any, Optional


class HuntaError(Exception):
    """
    Base exception for all Hunta errors.

    Attributes:
        message: Human-readable error message
        detail: Optional dict with additional error context
    """

    def __init__(self, message: str, *, detail: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def __str__(self) -> str:
        return self.message


class SearchError(HuntaError):
    """Unrecoverable failure of a search (no sources, internal pipeline error)."""


class InvalidSearchError(SearchError):
    """The search request itself is unusable, e.g. a blank search term."""


class EnhancementError(HuntaError):
    """The enhancement collaborator failed or returned an unusable response."""


class SourceError(HuntaError):
    """A marketplace source could not produce listings."""

    def __init__(
        self,
        message: str,
        *,
        source: str = "unknown",
        status_code: Optional[int] = None,
        detail: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, detail=detail)
        self.source = source
        self.status_code = status_code
