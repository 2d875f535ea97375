"""
Marketplace listing model - a best-effort aggregate of scraped/fetched data.
"""
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


def parse_price(value: Any) -> Optional[float]:
    """Parse price from various formats: 19.99, "$19.99", "1,299 €", "Free"."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = value
        for token in ("$", "€", "£", ",", " ", "USD", "EUR"):
            cleaned = cleaned.replace(token, "")
        cleaned = cleaned.strip().lower()
        if cleaned == "free":
            return 0.0
        try:
            return float(cleaned)
        except ValueError:
            return None
    return None


class MarketplaceListing(BaseModel):
    """
    A marketplace product record.
    Every field is optional: extraction sources are inconsistent and nothing is invented.
    """
    id: Optional[str] = None
    slug: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    technical_details: Optional[str] = None
    seller: Optional[str] = None
    categories: list[str] = Field(default_factory=list)
    supported_versions: list[str] = Field(default_factory=list)
    gallery_images: list[str] = Field(default_factory=list)
    rating_average: Optional[float] = None
    rating_count: Optional[int] = None
    price: Optional[float] = None
    release_date: Optional[str] = None
    last_modified: Optional[str] = None
    raw_source: Optional[Any] = Field(default=None, description="Decoded source document, for audit")
    source_url: Optional[str] = None
    thumbnail_url: Optional[str] = None

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, v: Any) -> Optional[float]:
        return parse_price(v)

    @property
    def has_content(self) -> bool:
        """True when at least one identifying text field was extracted."""
        return bool(self.title or self.description or self.technical_details)
