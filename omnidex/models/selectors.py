"""
CSS selector configuration for scraped marketplace HTML.
"""
import logging
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError


logger = logging.getLogger(__name__)


class SelectorConfiguration(BaseModel):
    """
    Where to find titles, prices, descriptions and ratings in marketplace HTML.
    Loaded once, read-only afterwards, passed explicitly to the parsers.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    # Search results page
    search_result_item_selector: str = ".listing-card, .product-card, .asset-card, [class*='card']"
    search_result_link_selector: str = "a[href*='/listings/'], a[href*='/product/'], a[href*='/products/']"
    search_result_title_selector: str = "h3, h2, .title, .name, [class*='title'], [class*='name']"
    search_result_price_selector: str = ".price, [class*='price']"
    search_result_seller_selector: str = ".seller, .author, [class*='seller'], [class*='author']"
    search_result_image_selector: str = "img"

    # Product page
    product_title_selector: str = "h1, .product-title, [class*='product-title']"
    product_price_selector: str = ".product-price, [class*='product-price']"
    product_description_selector: str = "#description, [class*='description'], #overview, [class*='overview']"
    product_technical_details_selector: str = (
        "#tech-details, [class*='tech-details'], #technical-details, [class*='technical-details']"
    )
    tab_label_selector: str = ".tabs-bar .tab"
    tab_panel_selector: str = ".tabs-content > div"

    # Ratings, each list tried in order
    rating_star_selectors: tuple[str, ...] = (
        ".rating.hasRatings.stars .star .front",
        ".product-header__rating .rating .star .front",
        ".rating .star .front",
        "[class*='rating'] [class*='star'] .front",
        ".stars .star .front",
    )
    rating_text_selectors: tuple[str, ...] = (
        ".rating-value",
        ".average-rating",
        ".product-rating",
        "[class*='rating'] [class*='value']",
    )
    rating_count_selectors: tuple[str, ...] = (
        ".product-header__rating .total",
        ".rating-count",
        ".review-count",
        "[class*='rating'] [class*='count']",
        "[class*='review'] [class*='count']",
    )


DEFAULT_SELECTORS = SelectorConfiguration()


def load_selectors(payload: Union[str, bytes, dict[str, Any], None]) -> SelectorConfiguration:
    """
    Build a selector configuration from an external payload.

    Keys absent from the payload keep their defaults. A malformed payload
    (bad JSON, wrong types) falls back to the hard-coded defaults entirely.
    """
    if payload is None:
        return DEFAULT_SELECTORS
    try:
        if isinstance(payload, dict):
            selectors = SelectorConfiguration.model_validate(payload)
        else:
            selectors = SelectorConfiguration.model_validate_json(payload)
    except ValidationError as e:
        logger.warning(f"Failed to parse selector configuration: {e.error_count()} error(s). Using default selectors.")
        return DEFAULT_SELECTORS
    logger.info("Loaded marketplace selectors from configuration")
    return selectors


@lru_cache(maxsize=None)
def load_default_selectors(path: Optional[Path] = None) -> SelectorConfiguration:
    """Load selectors from `path`, or from the bundled data/selectors.json."""
    try:
        if path is not None:
            payload = Path(path).read_text(encoding="utf-8")
        else:
            payload = (resources.files("omnidex") / "data" / "selectors.json").read_text(encoding="utf-8")
    except OSError as e:
        logger.warning(f"Could not read selector configuration ({e}). Using default selectors.")
        return DEFAULT_SELECTORS
    return load_selectors(payload)
