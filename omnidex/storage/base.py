"""
Collaborator interfaces: asset storage and scan progress reporting.
"""
import logging
from typing import Optional, Protocol

from ..models.asset import AssetRecord
from ..models.listing import MarketplaceListing
from ..models.matching import MatchType
from ..models.progress import ScanProgress


logger = logging.getLogger(__name__)


class AssetStore(Protocol):
    """
    Asset persistence. Implementations bind every value as a parameter and
    raise StorageError naming the operation and asset on failure.
    """

    def get_asset(self, asset_id: int) -> Optional[AssetRecord]:
        ...

    def get_asset_by_path(self, file_path: str) -> Optional[AssetRecord]:
        ...

    def insert_asset(self, record: AssetRecord) -> int:
        ...

    def update_listing_details(self, asset_id: int, listing: MarketplaceListing) -> None:
        ...

    def update_match_metadata(
        self,
        asset_id: int,
        slug: Optional[str],
        confidence: Optional[float],
        match_type: Optional[MatchType],
    ) -> None:
        ...

    def list_assets_with_cached_listing(self) -> list[AssetRecord]:
        ...


class ProgressSink(Protocol):
    def emit(self, progress: ScanProgress) -> None:
        ...


class LoggingProgressSink:
    """Writes progress events to the log."""

    def emit(self, progress: ScanProgress) -> None:
        logger.info(
            f"[{progress.status}] location={progress.location_id} "
            f"{progress.processed_count}/{progress.total_count} {progress.current_path}",
            extra={"scan_progress": progress.model_dump()},
        )
        if progress.error:
            logger.warning(f"Scan {progress.location_id}: {progress.error}")


class CollectingProgressSink:
    """Keeps every event in memory, in order."""

    def __init__(self):
        self.events: list[ScanProgress] = []

    def emit(self, progress: ScanProgress) -> None:
        self.events.append(progress)

    @property
    def statuses(self) -> list[str]:
        return [event.status for event in self.events]
