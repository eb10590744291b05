"""
Term helpers shared by expansion, deduplication and scoring.
"""
import re

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lower-case and collapse runs of whitespace."""
    return _WHITESPACE.sub(" ", (text or "").lower()).strip()


def tokenize(text: str) -> list[str]:
    """Split text into lower-cased whitespace-separated tokens."""
    return normalize_text(text).split()
