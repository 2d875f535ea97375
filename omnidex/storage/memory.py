"""
In-memory asset store for dry runs and tests.
"""
import itertools
import logging
import threading
from datetime import datetime
from typing import Optional

from ..errors import StorageError
from ..models.asset import AssetRecord
from ..models.listing import MarketplaceListing
from ..models.matching import MatchType


logger = logging.getLogger(__name__)


class InMemoryAssetStore:
    def __init__(self, assets: Optional[list[AssetRecord]] = None):
        self._assets: dict[int, AssetRecord] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        for asset in assets or []:
            self.insert_asset(asset)

    def get_asset(self, asset_id: int) -> Optional[AssetRecord]:
        with self._lock:
            asset = self._assets.get(asset_id)
            return asset.model_copy(deep=True) if asset else None

    def get_asset_by_path(self, file_path: str) -> Optional[AssetRecord]:
        with self._lock:
            for asset in self._assets.values():
                if asset.file_path == file_path:
                    return asset.model_copy(deep=True)
        return None

    def insert_asset(self, record: AssetRecord) -> int:
        with self._lock:
            if any(a.file_path == record.file_path for a in self._assets.values()):
                raise StorageError("insert_asset", record.file_path, ValueError("duplicate file_path"))
            asset_id = next(self._ids)
            self._assets[asset_id] = record.model_copy(update={"id": asset_id}, deep=True)
        logger.debug(f"Inserted asset {asset_id}: {record.name}")
        return asset_id

    def _require(self, operation: str, asset_id: int) -> AssetRecord:
        asset = self._assets.get(asset_id)
        if asset is None:
            raise StorageError(operation, f"asset {asset_id}", LookupError("no such asset"))
        return asset

    def update_listing_details(self, asset_id: int, listing: MarketplaceListing) -> None:
        with self._lock:
            asset = self._require("update_listing_details", asset_id)
            asset.listing = listing.model_copy(deep=True)
            asset.listing_checked_at = datetime.now()

    def update_match_metadata(
        self,
        asset_id: int,
        slug: Optional[str],
        confidence: Optional[float],
        match_type: Optional[MatchType],
    ) -> None:
        with self._lock:
            asset = self._require("update_match_metadata", asset_id)
            asset.matched_slug = slug
            asset.match_confidence = confidence
            asset.match_type = match_type

    def list_assets_with_cached_listing(self) -> list[AssetRecord]:
        with self._lock:
            return [
                asset.model_copy(deep=True)
                for asset in self._assets.values()
                if asset.listing is not None and asset.listing.raw_source is not None
            ]

    def __len__(self) -> int:
        return len(self._assets)
