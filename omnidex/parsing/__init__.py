"""
Marketplace response parsers: product API JSON, product pages, search pages.
"""

from .api import ProductEnvelope, parse_product_json
from .product_page import extract_rating_from_text, extract_width_percentage, parse_product_page
from .search import first_product_link, parse_search_results, slug_from_url

__all__ = [
    "ProductEnvelope",
    "parse_product_json",
    "parse_product_page",
    "extract_rating_from_text",
    "extract_width_percentage",
    "parse_search_results",
    "first_product_link",
    "slug_from_url",
]
