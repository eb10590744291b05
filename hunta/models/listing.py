"""
Listing models - raw and normalized listing representations.
"""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RawListing(BaseModel):
    """
    Listing as reported by a marketplace source.
    Any field may be missing; normalization decides what survives.
    """
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    price: Optional[str] = None
    link: Optional[str] = None
    image: Optional[str] = None
    source: str = "unknown"
    description: Optional[str] = None
    posted_at: Optional[str] = None

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> Optional[str]:
        """Sources sometimes hand back bare numbers."""
        if v is None:
            return None
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @field_validator("posted_at", mode="before")
    @classmethod
    def coerce_posted_at(cls, v: Any) -> Optional[str]:
        if isinstance(v, datetime):
            return v.isoformat()
        return v


class NormalizedListing(BaseModel):
    """
    Normalized listing with cleaned fields and a numeric price.
    This is the internal representation used throughout the pipeline.
    """
    title: str = Field(min_length=1, max_length=200)
    price: str = Field(default="", description="Display price, e.g. '£280'")
    price_amount: Optional[float] = Field(default=None, description="Parsed magnitude, None if unparsable")
    link: str = Field(min_length=1)
    image: Optional[str] = None
    source: str = "unknown"
    description: Optional[str] = None
    posted_at: Optional[datetime] = None
