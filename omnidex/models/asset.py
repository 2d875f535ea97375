"""
Local asset models - what the folder scan produces and the store keeps.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .listing import MarketplaceListing
from .matching import MatchType


class LocalAssetDescriptor(BaseModel):
    """Read-only view of a local asset, as consumed by the matcher."""
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    name: str = Field(description="Display name, derived from the folder name")
    category: str
    size: int = 0
    content_hash: Optional[str] = None


class ScanLocation(BaseModel):
    """A root directory registered for scanning."""
    id: int
    name: str
    path: str
    recursive: bool = False


class AssetRecord(BaseModel):
    """An asset row as held by the storage collaborator."""
    id: Optional[int] = None
    name: str
    file_path: str
    asset_type: str = "uncategorized"
    file_size: int = 0
    created_date: Optional[datetime] = None
    modified_date: Optional[datetime] = None
    first_indexed_at: datetime = Field(default_factory=datetime.now)
    file_hash: Optional[str] = None
    scan_location_id: Optional[int] = None

    # Marketplace enrichment
    listing: Optional[MarketplaceListing] = None
    listing_checked_at: Optional[datetime] = None

    # Match metadata
    matched_slug: Optional[str] = None
    match_confidence: Optional[float] = None
    match_type: Optional[MatchType] = None

    @property
    def descriptor(self) -> LocalAssetDescriptor:
        return LocalAssetDescriptor(
            id=self.id,
            name=self.name,
            category=self.asset_type,
            size=self.file_size,
            content_hash=self.file_hash,
        )

    @property
    def needs_listing_refresh(self) -> bool:
        """Title or description still missing from the marketplace data."""
        if self.listing is None:
            return True
        return not self.listing.title or not self.listing.description
