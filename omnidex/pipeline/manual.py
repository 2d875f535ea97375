"""
Manual matching - the user supplies the marketplace URL for an asset.
"""
import logging
from typing import Optional
from urllib.parse import urlsplit

from ..config import MarketplaceConfig, get_config
from ..errors import FetchError, ManualMatchError, StorageError
from ..models.matching import MatchOutcome, MatchType
from ..parsing import slug_from_url
from ..storage.base import AssetStore
from .resolution import CandidateResolver


logger = logging.getLogger(__name__)


class ManualMatcher:
    """Bypasses scoring: a confirmed URL is always confidence 1.0, type Manual."""

    def __init__(
        self,
        resolver: CandidateResolver,
        store: AssetStore,
        marketplace: Optional[MarketplaceConfig] = None,
    ):
        self.resolver = resolver
        self.store = store
        self.marketplace = marketplace or get_config().marketplace

    def parse_product_url(self, url: str) -> str:
        """Validate the URL and return its product slug."""
        parts = urlsplit(url.strip())
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ManualMatchError(f"Invalid URL: {url}")

        host = (parts.hostname or "").lower()
        if host != self.marketplace.host.lower():
            raise ManualMatchError(f"Invalid marketplace URL: host must be {self.marketplace.host}, got {host}")

        slug = slug_from_url(url.strip())
        if not slug:
            raise ManualMatchError(f"Could not extract product slug from URL: {url}")
        return slug

    async def match(self, asset_id: int, url: str) -> MatchOutcome:
        slug = self.parse_product_url(url)

        try:
            asset = self.store.get_asset(asset_id)
        except StorageError as e:
            raise ManualMatchError(f"Could not load asset {asset_id}: {e}") from e
        if asset is None:
            raise ManualMatchError(f"Asset {asset_id} not found")

        logger.info(f"Manual match for asset {asset_id} ('{asset.name}') with slug '{slug}'")
        try:
            listing = await self.resolver.fetch_details(slug)
        except FetchError as e:
            raise ManualMatchError(f"Failed to fetch marketplace details for '{slug}': {e}") from e

        listing = listing.model_copy(update={"slug": listing.slug or slug})
        try:
            self.store.update_listing_details(asset_id, listing)
            self.store.update_match_metadata(asset_id, slug, 1.0, MatchType.MANUAL)
        except StorageError as e:
            raise ManualMatchError(f"Failed to save manual match for asset {asset_id}: {e}") from e

        logger.info(f"Asset {asset_id} manually matched to '{listing.title or slug}'")
        return MatchOutcome.manual(asset_id, listing)
