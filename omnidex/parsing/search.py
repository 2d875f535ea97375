"""
Search results page parsing.
"""
import logging
from typing import Optional
from urllib.parse import urljoin, urlsplit

from ..models.listing import MarketplaceListing
from ..models.selectors import SelectorConfiguration
from ._soup import make_soup, safe_select, select_attr, select_text


logger = logging.getLogger(__name__)

PRODUCT_LINK_SELECTOR = "a[href*='/product/']"


def slug_from_url(url: str) -> Optional[str]:
    """Last non-empty path segment of `url`, if any."""
    path = urlsplit(url).path
    segments = [segment for segment in path.split("/") if segment]
    return segments[-1] if segments else None


def parse_search_results(
    html: str,
    selectors: SelectorConfiguration,
    base_url: str,
) -> list[MarketplaceListing]:
    """One summary listing per result card that carries a title."""
    soup = make_soup(html)
    listings = []

    for card in safe_select(soup, selectors.search_result_item_selector):
        title = select_text(card, selectors.search_result_title_selector)
        if title is None:
            continue

        slug = None
        source_url = None
        href = select_attr(card, selectors.search_result_link_selector, "href")
        if href:
            source_url = urljoin(base_url.rstrip("/") + "/", href)
            slug = slug_from_url(source_url)

        listings.append(MarketplaceListing(
            slug=slug,
            title=title,
            price=select_text(card, selectors.search_result_price_selector),
            seller=select_text(card, selectors.search_result_seller_selector),
            thumbnail_url=select_attr(card, selectors.search_result_image_selector, "src"),
            source_url=source_url,
        ))

    logger.info(f"Parsed {len(listings)} search results")
    return listings


def first_product_link(
    html: str,
    selectors: SelectorConfiguration,
    base_url: str,
) -> Optional[str]:
    """Absolute URL of the product link inside the first result card."""
    soup = make_soup(html)
    cards = safe_select(soup, selectors.search_result_item_selector)
    if not cards:
        return None
    href = select_attr(cards[0], PRODUCT_LINK_SELECTOR, "href")
    if not href:
        return None
    return urljoin(base_url.rstrip("/") + "/", href)
