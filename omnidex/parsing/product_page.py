"""
Product page HTML parsing.
"""
import logging
import re
from typing import Optional

from bs4 import BeautifulSoup

from ..models.listing import MarketplaceListing
from ..models.selectors import SelectorConfiguration
from ._soup import inner_html, make_soup, safe_select, select_attr, select_text


logger = logging.getLogger(__name__)

DESCRIPTION_TAB = "detailed description"
TECHNICAL_TAB = "technical description"

_WIDTH_PATTERN = re.compile(r"width\s*:\s*([0-9]*\.?[0-9]+)\s*%")
_RATING_TOKEN_SPLIT = re.compile(r"[ :/\t\n]")


def extract_width_percentage(style: str) -> Optional[float]:
    """`width: 80%` -> 0.8"""
    if not style:
        return None
    match = _WIDTH_PATTERN.search(style)
    if not match:
        return None
    return float(match.group(1)) / 100.0


def extract_rating_from_text(text: str) -> Optional[float]:
    """First token that parses as a number in [0, 5]: "4.7/5", "Rating: 4.7"."""
    for token in _RATING_TOKEN_SPLIT.split(text.strip().lower()):
        try:
            value = float(token)
        except ValueError:
            continue
        if 0.0 <= value <= 5.0:
            return value
    return None


def _tab_panels(soup: BeautifulSoup, selectors: SelectorConfiguration) -> dict[str, str]:
    """Tab label (lowercased) -> inner HTML of the panel at the same index."""
    labels = [tab.get_text().strip().lower() for tab in safe_select(soup, selectors.tab_label_selector)]
    panels = safe_select(soup, selectors.tab_panel_selector)

    content = {}
    for index, label in enumerate(labels):
        if label in content or index >= len(panels):
            continue
        content[label] = inner_html(panels[index])
    return content


def _star_rating(soup: BeautifulSoup, selectors: SelectorConfiguration) -> Optional[float]:
    for selector in selectors.rating_star_selectors:
        widths = []
        for star in safe_select(soup, selector):
            width = extract_width_percentage(star.get("style", ""))
            if width is not None:
                widths.append(width)
        if widths:
            rating = sum(widths)
            logger.info(f"Extracted star rating {rating:.2f} from {len(widths)} stars using '{selector}'")
            return rating
    return None


def _text_rating(soup: BeautifulSoup, selectors: SelectorConfiguration) -> Optional[float]:
    for selector in selectors.rating_text_selectors:
        text = select_text(soup, selector)
        if text is None:
            continue
        rating = extract_rating_from_text(text)
        if rating is not None:
            logger.info(f"Extracted rating from text: {rating:.2f}")
            return rating
    return None


def _rating_count(soup: BeautifulSoup, selectors: SelectorConfiguration) -> Optional[int]:
    for selector in selectors.rating_count_selectors:
        text = select_text(soup, selector)
        if text is None:
            continue
        digits = re.sub(r"\D", "", text)
        if digits:
            return int(digits)
    return None


def parse_product_page(html: str, selectors: SelectorConfiguration) -> MarketplaceListing:
    """
    Extract whatever the page offers. Missing elements stay None; this never
    raises on odd markup.
    """
    soup = make_soup(html)
    tabs = _tab_panels(soup, selectors)

    description = tabs.get(DESCRIPTION_TAB) or None
    technical_details = tabs.get(TECHNICAL_TAB) or None

    # Pages without tabs
    if description is None:
        description = select_text(soup, selectors.product_description_selector)
    if technical_details is None:
        technical_details = select_text(soup, selectors.product_technical_details_selector)

    rating = _star_rating(soup, selectors)
    if rating is None:
        rating = _text_rating(soup, selectors)

    title = None
    title_matches = safe_select(soup, selectors.product_title_selector)
    if title_matches:
        title = title_matches[0].get_text().strip() or None

    return MarketplaceListing(
        title=title,
        description=description,
        technical_details=technical_details,
        price=select_text(soup, selectors.product_price_selector),
        rating_average=rating,
        rating_count=_rating_count(soup, selectors),
        thumbnail_url=select_attr(soup, "meta[property='og:image']", "content"),
    )
