"""
Candidate resolution - ordered fallback strategies from folder name to listings.

    product API by slug  ->  product page scrape  ->  full-text search

Each strategy reports found / not found / failed; the resolver moves on until
one finds something. Running out of strategies is an empty result, not an error.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..client.marketplace import MarketplaceClient
from ..errors import ClientFetchError, FetchError, ListingParseError
from ..models.listing import MarketplaceListing
from ..parsing import slug_from_url
from .slugs import clean_for_search, generate_slug_variations


logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class StrategyOutcome:
    kind: OutcomeKind
    listings: tuple[MarketplaceListing, ...] = ()
    detail: str = ""
    error: Optional[Exception] = None

    @classmethod
    def found(cls, listings: list[MarketplaceListing]) -> "StrategyOutcome":
        return cls(OutcomeKind.FOUND, listings=tuple(listings), detail=f"{len(listings)} candidate(s)")

    @classmethod
    def not_found(cls, detail: str) -> "StrategyOutcome":
        return cls(OutcomeKind.NOT_FOUND, detail=detail)

    @classmethod
    def failed(cls, error: Exception) -> "StrategyOutcome":
        return cls(OutcomeKind.FAILED, detail=str(error), error=error)

    @property
    def is_found(self) -> bool:
        return self.kind is OutcomeKind.FOUND


def _outcome_for_fetch_error(error: FetchError) -> StrategyOutcome:
    # A 4xx is a definite "not there"; anything else means we could not tell.
    if isinstance(error, ClientFetchError):
        return StrategyOutcome.not_found(str(error))
    return StrategyOutcome.failed(error)


class ResolutionStrategy:
    """One step of the fallback chain."""
    name = "strategy"

    def __init__(self, client: MarketplaceClient):
        self.client = client

    async def attempt(self, folder_name: str, slugs: list[str]) -> StrategyOutcome:
        raise NotImplementedError


class ProductApiStrategy(ResolutionStrategy):
    """Product API lookup for each slug variation; first hit wins."""
    name = "product_api"

    async def attempt(self, folder_name: str, slugs: list[str]) -> StrategyOutcome:
        if not slugs:
            return StrategyOutcome.not_found("No slug variations")

        definitive = False
        last_error: Optional[Exception] = None
        for index, slug in enumerate(slugs, start=1):
            logger.info(f"Trying slug variation {index}: '{slug}'")
            try:
                listing = await self.client.fetch_product_json(slug)
            except ClientFetchError as e:
                definitive = True
                last_error = e
                logger.info(f"Direct API fetch found nothing for slug '{slug}': {e}")
                continue
            except ListingParseError as e:
                definitive = True
                last_error = e
                logger.warning(f"Failed to parse product JSON for '{slug}': {e}")
                continue
            except FetchError as e:
                last_error = e
                logger.warning(f"Direct API fetch failed for slug '{slug}': {e}")
                continue

            logger.info(f"Found direct product match with variation {index}: '{listing.title}'")
            return StrategyOutcome.found([listing])

        if definitive or last_error is None:
            return StrategyOutcome.not_found(f"No product API entry for {len(slugs)} slug variation(s)")
        return StrategyOutcome.failed(last_error)


class ProductPageStrategy(ResolutionStrategy):
    """Scrape the product page of the primary slug."""
    name = "product_page"

    async def attempt(self, folder_name: str, slugs: list[str]) -> StrategyOutcome:
        if not slugs:
            return StrategyOutcome.not_found("No slug variations")

        slug = slugs[0]
        try:
            listing = await self.client.fetch_product_page(slug)
        except FetchError as e:
            logger.warning(f"Failed to fetch or parse product page for {slug}: {e}")
            return _outcome_for_fetch_error(e)

        if not listing.has_content:
            return StrategyOutcome.not_found(f"Product page for '{slug}' had no product content")
        return StrategyOutcome.found([listing])


class SearchStrategy(ResolutionStrategy):
    """Full-text search with a loosely cleaned folder name."""
    name = "search"

    async def attempt(self, folder_name: str, slugs: list[str]) -> StrategyOutcome:
        query = clean_for_search(folder_name)
        logger.info(f"No direct match found, falling back to web search for: {query}")
        try:
            listings = await self.client.search(query)
        except FetchError as e:
            logger.warning(f"Failed to search for '{query}': {e}")
            return _outcome_for_fetch_error(e)

        if not listings:
            return StrategyOutcome.not_found(f"No search results for '{query}'")
        return StrategyOutcome.found(listings)


@dataclass
class Resolution:
    listings: list[MarketplaceListing]
    strategy: Optional[str] = None
    attempts: list[tuple[str, StrategyOutcome]] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.listings)


class CandidateResolver:
    """
    Runs the strategy chain for a folder name. Never raises for marketplace
    trouble: the worst case is an empty candidate list.
    """

    def __init__(
        self,
        client: MarketplaceClient,
        strategies: Optional[list[ResolutionStrategy]] = None,
    ):
        self.client = client
        self.strategies = strategies or [
            ProductApiStrategy(client),
            ProductPageStrategy(client),
            SearchStrategy(client),
        ]

    async def resolve_detailed(self, folder_name: str) -> Resolution:
        logger.info(f"Attempting to find match for folder: {folder_name}")
        slugs = generate_slug_variations(folder_name)
        logger.info(f"Generated {len(slugs)} slug variations: {slugs}")

        attempts: list[tuple[str, StrategyOutcome]] = []
        for strategy in self.strategies:
            outcome = await strategy.attempt(folder_name, slugs)
            attempts.append((strategy.name, outcome))
            if outcome.is_found:
                logger.info(f"Strategy '{strategy.name}' found {len(outcome.listings)} candidate(s) for '{folder_name}'")
                return Resolution(list(outcome.listings), strategy.name, attempts)
            if outcome.kind is OutcomeKind.FAILED:
                logger.warning(f"Strategy '{strategy.name}' failed for '{folder_name}': {outcome.detail}")
            else:
                logger.info(f"Strategy '{strategy.name}' found nothing for '{folder_name}': {outcome.detail}")

        logger.info(f"No marketplace candidates for '{folder_name}'")
        return Resolution([], None, attempts)

    async def resolve(self, folder_name: str) -> list[MarketplaceListing]:
        resolution = await self.resolve_detailed(folder_name)
        return resolution.listings

    async def fetch_details(self, slug_or_url: str) -> MarketplaceListing:
        """
        Full details for one known product.

        Raises:
            FetchError: no source produced the product
        """
        slug = slug_from_url(slug_or_url) or slug_or_url
        logger.info(f"Fetching details for slug: {slug}")

        try:
            return await self.client.fetch_product_json(slug)
        except (FetchError, ListingParseError) as e:
            logger.warning(f"Product API lookup failed for '{slug}': {e}")

        try:
            listing = await self.client.fetch_product_page(slug)
            if listing.has_content:
                return listing
            logger.warning(f"Product page for '{slug}' had no product content")
        except FetchError as e:
            logger.warning(f"Failed to fetch product page for '{slug}': {e}")

        try:
            product_url = await self.client.find_first_product_url(clean_for_search(slug))
            if product_url:
                logger.info(f"Found product link on search page: {product_url}")
                listing = await self.client.fetch_product_page(url=product_url)
                if listing.has_content:
                    return listing
        except FetchError as e:
            logger.warning(f"Search fallback failed for '{slug}': {e}")

        raise FetchError(slug_or_url, f"Failed to fetch asset details for {slug_or_url}")
