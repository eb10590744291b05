"""
Query models - the enhanced search query shared by expansion, fan-out and scoring.
"""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_SEARCH_TERMS = 8


def unique_texts(values: list[Any]) -> list[str]:
    """Stringify, strip, drop blanks and duplicates; order is preserved."""
    seen: set[str] = set()
    out: list[str] = []
    for value in values:
        if value is None:
            continue
        text = str(value).strip()
        if not text or text in seen:
            continue
        seen.add(text)
        out.append(text)
    return out


class QueryFlags(BaseModel):
    """Risk and discovery hints for a query."""
    model_config = ConfigDict(frozen=True)

    high_value_item: bool = False
    common_scam_target: bool = False
    likely_on_forums: bool = False
    reseller_friendly: bool = False


class EnhancedQuery(BaseModel):
    """
    A search query expanded into term variants, categories, forums and flags.
    Produced once per search and never modified afterwards.
    """
    model_config = ConfigDict(frozen=True)

    original: str
    search_terms: list[str] = Field(default_factory=list, description="At most 8, deduplicated")
    categories: list[str] = Field(default_factory=list)
    forums: list[str] = Field(default_factory=list)
    flags: QueryFlags = Field(default_factory=QueryFlags)

    @field_validator("search_terms", mode="before")
    @classmethod
    def clean_search_terms(cls, v: Any) -> list[str]:
        # A missing or non-list term list makes the whole response unusable
        if not isinstance(v, (list, tuple)):
            raise ValueError("search_terms must be a list")
        return unique_texts(list(v))[:MAX_SEARCH_TERMS]

    @field_validator("categories", "forums", mode="before")
    @classmethod
    def clean_labels(cls, v: Any) -> list[str]:
        if not isinstance(v, (list, tuple, set)):
            return []
        return unique_texts(list(v))

    @field_validator("flags", mode="before")
    @classmethod
    def coerce_flags(cls, v: Any) -> Any:
        if isinstance(v, QueryFlags):
            return v
        if not isinstance(v, dict):
            return {}
        # Only reported flags are set, so merging can tell them from defaults
        return {name: bool(v[name]) for name in QueryFlags.model_fields if name in v}
