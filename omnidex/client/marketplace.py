"""
Marketplace client - product API, product pages and search, parsed into listings.
"""
import logging
from typing import Optional
from urllib.parse import quote_plus

from ..config import HttpConfig, MarketplaceConfig, get_config
from ..errors import FetchError
from ..models.listing import MarketplaceListing
from ..models.selectors import SelectorConfiguration, load_default_selectors
from ..parsing import (
    first_product_link,
    parse_product_json,
    parse_product_page,
    parse_search_results,
    slug_from_url,
)
from .http import MarketplaceHttpClient


logger = logging.getLogger(__name__)

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

# Any of these on the home page means we reached the real marketplace
CONTENT_MARKERS = (
    "orbital-market.com",
    "Orbital Market",
    "Epic Games",
    "Unreal Engine",
    "marketplace",
    "asset",
)
MIN_CONTENT_LENGTH = 1000


class MarketplaceClient:
    """
    Thin layer over the HTTP client: builds marketplace URLs and hands the
    bodies to the parsers. Fetch and parse errors propagate to the caller.
    """

    def __init__(
        self,
        http: MarketplaceHttpClient,
        selectors: Optional[SelectorConfiguration] = None,
        marketplace: Optional[MarketplaceConfig] = None,
        http_config: Optional[HttpConfig] = None,
    ):
        config = get_config()
        self.http = http
        self.selectors = selectors or load_default_selectors(config.selectors_path)
        self.marketplace = marketplace or config.marketplace
        self.http_config = http_config or config.http
        logger.info("MarketplaceClient initialized")

    @property
    def base_url(self) -> str:
        return self.marketplace.base_url

    @staticmethod
    def extract_product_slug(url: str) -> Optional[str]:
        return slug_from_url(url)

    def search_url(self, query: str) -> str:
        return f"{self.marketplace.search_url}?q={quote_plus(query)}"

    async def fetch_product_json(self, slug: str) -> MarketplaceListing:
        """
        Product API lookup for one slug.

        Raises:
            FetchError: request failed
            ListingParseError: body is not a product envelope
        """
        url = self.marketplace.product_api_url(slug)
        logger.info(f"Attempting direct product API URL: {url}")
        body = await self.http.fetch(url, max_attempts=self.http_config.slug_api_attempts)
        return parse_product_json(body, self.base_url, source=url)

    async def fetch_product_page(
        self,
        slug: Optional[str] = None,
        url: Optional[str] = None,
    ) -> MarketplaceListing:
        """Scrape a product page, by slug or by full URL."""
        if url is None:
            if not slug:
                raise ValueError("Either slug or url is required")
            url = self.marketplace.product_page_url(slug)

        logger.info(f"Fetching product page: {url}")
        html = await self.http.fetch(url, max_attempts=self.http_config.page_attempts, accept=HTML_ACCEPT)
        listing = parse_product_page(html, self.selectors)
        return listing.model_copy(update={"slug": slug or slug_from_url(url), "source_url": url})

    async def fetch_search_page(self, query: str) -> str:
        url = self.search_url(query)
        logger.info(f"Searching marketplace: {url}")
        return await self.http.fetch(url, max_attempts=self.http_config.search_attempts, accept=HTML_ACCEPT)

    async def search(self, query: str) -> list[MarketplaceListing]:
        html = await self.fetch_search_page(query)
        return parse_search_results(html, self.selectors, self.base_url)

    async def find_first_product_url(self, query: str) -> Optional[str]:
        html = await self.fetch_search_page(query)
        return first_product_link(html, self.selectors, self.base_url)

    async def check_public_access(self) -> bool:
        """Fetch the home page once and look for marketplace content."""
        logger.info("Testing public access to marketplace base URL...")
        try:
            html = await self.http.fetch(self.base_url, max_attempts=1, accept=HTML_ACCEPT)
        except FetchError as e:
            logger.warning(f"Public access test failed: {e}")
            return False

        is_valid = any(marker in html for marker in CONTENT_MARKERS) or len(html) > MIN_CONTENT_LENGTH
        logger.info(f"Public access test result: valid content = {is_valid}")
        return is_valid

    def close(self) -> None:
        self.http.close()
