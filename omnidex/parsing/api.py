"""
Product API response parsing.
"""
import json
import logging
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import ListingParseError
from ..models.listing import MarketplaceListing


logger = logging.getLogger(__name__)


class _Block(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class EngineBlock(_Block):
    min: Optional[str] = None
    max: Optional[str] = None


class MediaBlock(_Block):
    thumbnail: Optional[str] = None
    images: list[str] = Field(default_factory=list)

    @field_validator("images", mode="before")
    @classmethod
    def null_images(cls, v: Any) -> Any:
        return [] if v is None else v


class OwnerBlock(_Block):
    name: Optional[str] = None


class PriceBlock(_Block):
    value: Optional[float] = Field(default=None, description="Price in minor currency units")


class ReviewBlock(_Block):
    count: int = 0
    rating: Optional[float] = None

    @field_validator("count", mode="before")
    @classmethod
    def null_count(cls, v: Any) -> Any:
        return 0 if v is None else v


class DescriptionBlock(_Block):
    long: Optional[str] = None
    technical: Optional[str] = None


class ProductEnvelope(_Block):
    """Product API payload. Only title and slug are required."""
    id: Optional[str] = Field(default=None, alias="_id")
    title: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    category: Optional[str] = None
    engine: EngineBlock = Field(default_factory=EngineBlock)
    media: MediaBlock = Field(default_factory=MediaBlock)
    owner: OwnerBlock = Field(default_factory=OwnerBlock)
    price: PriceBlock = Field(default_factory=PriceBlock)
    release_date: Optional[str] = Field(default=None, alias="releaseDate")
    review: ReviewBlock = Field(default_factory=ReviewBlock)
    description: DescriptionBlock = Field(default_factory=DescriptionBlock)

    @field_validator("engine", "media", "owner", "price", "review", "description", mode="before")
    @classmethod
    def null_block(cls, v: Any) -> Any:
        """An explicit null block reads as an empty one."""
        return {} if v is None else v

    def normalized_rating(self) -> Optional[float]:
        # The API reports either 4.5 or 45 for four and a half stars
        if self.review.count <= 0 or self.review.rating is None:
            return None
        raw = self.review.rating
        return raw / 10.0 if raw > 5.0 else raw

    def to_listing(self, base_url: str, raw: Any = None) -> MarketplaceListing:
        rating = self.normalized_rating()
        return MarketplaceListing(
            id=self.id,
            slug=self.slug,
            title=self.title,
            description=self.description.long,
            technical_details=self.description.technical,
            seller=self.owner.name,
            categories=[self.category] if self.category else [],
            supported_versions=[v for v in (self.engine.min, self.engine.max) if v],
            gallery_images=list(self.media.images),
            rating_average=rating,
            rating_count=self.review.count if rating is not None else None,
            price=self.price.value / 100.0 if self.price.value is not None else None,
            release_date=self.release_date,
            raw_source=raw,
            source_url=f"{base_url.rstrip('/')}/product/{self.slug}",
            thumbnail_url=self.media.thumbnail,
        )


def parse_product_json(
    body: Union[str, bytes, dict[str, Any]],
    base_url: str,
    source: str = "product API",
) -> MarketplaceListing:
    """
    Parse a product API body into a listing.

    Raises:
        ListingParseError: invalid JSON, not an object, or missing title/slug
    """
    if isinstance(body, (str, bytes)):
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise ListingParseError(source, f"invalid JSON: {e}") from e
    else:
        payload = body

    if not isinstance(payload, dict):
        raise ListingParseError(source, f"expected a JSON object, got {type(payload).__name__}")

    try:
        envelope = ProductEnvelope.model_validate(payload)
    except ValidationError as e:
        raise ListingParseError(source, f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}") from e

    listing = envelope.to_listing(base_url, raw=payload)
    logger.debug(f"Parsed product '{listing.title}' from {source}")
    return listing
