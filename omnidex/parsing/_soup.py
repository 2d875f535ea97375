"""
BeautifulSoup helpers. A selector that fails to compile or matches nothing
yields None / [] instead of raising.
"""
import logging
from typing import Optional, Union

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError


logger = logging.getLogger(__name__)

Node = Union[BeautifulSoup, Tag]


def make_soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def safe_select(node: Node, selector: str) -> list[Tag]:
    """All elements under `node` matching `selector`."""
    if not selector:
        return []
    try:
        return node.select(selector)
    except (SelectorSyntaxError, NotImplementedError, ValueError) as e:
        logger.debug(f"Invalid selector '{selector}': {e}")
        return []


def select_text(node: Node, selector: str) -> Optional[str]:
    """Concatenated, trimmed text of every match; None when there is none."""
    text = "".join(el.get_text() for el in safe_select(node, selector)).strip()
    return text or None


def select_attr(node: Node, selector: str, attr: str) -> Optional[str]:
    """Attribute of the first match."""
    matches = safe_select(node, selector)
    if not matches:
        return None
    value = matches[0].get(attr)
    if isinstance(value, list):
        value = " ".join(value)
    return value or None


def inner_html(tag: Tag) -> str:
    return "".join(str(child) for child in tag.contents)
