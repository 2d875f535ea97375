"""
Scan orchestration - walk a scan location, index each folder, enrich it.
"""
import asyncio
import logging
import threading
import time
from pathlib import Path
from typing import Awaitable, Callable, Optional

from ..config import get_config
from ..errors import OmnidexError, ScanAlreadyRunning, ScanCancelled, StorageError
from ..models.asset import AssetRecord, ScanLocation
from ..models.progress import ScanProgress, ScanStatus, ScanSummary
from ..scanner.folders import describe_folder, list_asset_folders
from ..storage.base import AssetStore, LoggingProgressSink, ProgressSink
from .enrichment import AssetEnricher


logger = logging.getLogger(__name__)

FolderLister = Callable[[str, bool], list[Path]]
FolderDescriber = Callable[[Path, Optional[int]], AssetRecord]


class CancellationToken:
    """Cooperative stop flag, polled between units of work."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


class ScanRegistry:
    """Active scans by location id. The lock is never held across an await."""

    def __init__(self):
        self._tokens: dict[int, CancellationToken] = {}
        self._lock = threading.Lock()

    def register(self, location_id: int) -> CancellationToken:
        with self._lock:
            if location_id in self._tokens:
                raise ScanAlreadyRunning(location_id)
            token = CancellationToken()
            self._tokens[location_id] = token
        return token

    def unregister(self, location_id: int) -> None:
        with self._lock:
            self._tokens.pop(location_id, None)

    def is_active(self, location_id: int) -> bool:
        with self._lock:
            return location_id in self._tokens

    def cancel(self, location_id: int) -> bool:
        with self._lock:
            token = self._tokens.get(location_id)
        if token is None:
            return False
        token.cancel()
        logger.info(f"Cancellation requested for scan {location_id}")
        return True

    def cancel_all(self) -> int:
        with self._lock:
            tokens = list(self._tokens.values())
        for token in tokens:
            token.cancel()
        logger.info(f"Cancellation requested for {len(tokens)} active scan(s)")
        return len(tokens)


class ScanOrchestrator:
    """
    Drives one scan per call to `run`. Several scans may run at once; they
    share the store, the registry and (through the enricher) the HTTP pacer.
    """

    def __init__(
        self,
        store: AssetStore,
        enricher: Optional[AssetEnricher] = None,
        progress: Optional[ProgressSink] = None,
        registry: Optional[ScanRegistry] = None,
        list_folders: FolderLister = list_asset_folders,
        describe: FolderDescriber = describe_folder,
        pause_between_assets: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.enricher = enricher
        self.progress = progress or LoggingProgressSink()
        self.registry = registry or ScanRegistry()
        self.list_folders = list_folders
        self.describe = describe
        self.pause_between_assets = (
            pause_between_assets if pause_between_assets is not None else get_config().scan.pause_between_assets
        )
        self._sleep = sleep

    def _emit(self, summary: ScanSummary, status: str, current_path: str = "", **kwargs) -> None:
        self.progress.emit(ScanProgress(
            location_id=summary.location_id,
            status=status,
            current_path=current_path,
            processed_count=summary.processed_count,
            total_count=summary.total_count,
            **kwargs,
        ))

    async def run(self, location: ScanLocation) -> ScanSummary:
        """
        Scan `location`.

        Raises:
            ScanAlreadyRunning: a scan for this location is active
            ScanCancelled: the scan was cancelled between folders
            FileNotFoundError: the location does not exist
        """
        token = self.registry.register(location.id)
        try:
            return await self._scan(location, token)
        finally:
            self.registry.unregister(location.id)

    async def _scan(self, location: ScanLocation, token: CancellationToken) -> ScanSummary:
        started = time.monotonic()
        summary = ScanSummary(location_id=location.id)
        logger.info(f"Starting folder scan of location: {location.path}")

        try:
            folders = self.list_folders(location.path, location.recursive)
        except OSError as e:
            self._emit(summary, ScanStatus.FAILED, location.path, error=str(e))
            raise

        summary.total_count = len(folders)
        logger.info(f"Found {len(folders)} folders to process in {location.path}")
        self._emit(summary, ScanStatus.INITIALIZING, location.path)

        for folder in folders:
            if token.is_cancelled:
                logger.info(f"Scan cancelled for location: {location.path}")
                summary.cancelled = True
                self._emit(summary, ScanStatus.CANCELLED)
                raise ScanCancelled(location.id)

            try:
                asset = await self._process_folder(folder, location, token, summary)
            except (StorageError, OSError) as e:
                error_msg = f"Failed to process folder {folder}: {e}"
                logger.warning(error_msg)
                summary.errors.append(error_msg)
            except Exception as e:
                logger.error(f"Scan of {location.path} aborted at folder {folder}: {e}")
                self._emit(summary, ScanStatus.FAILED, str(folder), error=str(e))
                raise
            else:
                summary.assets.append(asset)

            summary.processed_count += 1
            self._emit(summary, ScanStatus.SCANNING, str(folder))

        self._emit(
            summary,
            ScanStatus.COMPLETED,
            error="; ".join(summary.errors) if summary.errors else None,
            completed_successfully=not summary.errors,
        )
        logger.info(
            f"Scan of {location.path} completed in {time.monotonic() - started:.1f}s. "
            f"Processed {summary.processed_count}/{summary.total_count} folders. "
            f"Enriched {summary.enriched_count}. Errors: {len(summary.errors)}"
        )
        return summary

    async def _process_folder(
        self,
        folder: Path,
        location: ScanLocation,
        token: CancellationToken,
        summary: ScanSummary,
    ) -> AssetRecord:
        existing = self.store.get_asset_by_path(str(folder))
        if existing is not None:
            if existing.needs_listing_refresh:
                logger.info(f"Asset {existing.name} found, attempting to refresh metadata.")
                return await self._enrich(existing, token, summary)
            return existing

        record = self.describe(folder, location.id)
        asset_id = self.store.insert_asset(record)
        saved = record.model_copy(update={"id": asset_id})
        return await self._enrich(saved, token, summary)

    async def _enrich(self, asset: AssetRecord, token: CancellationToken, summary: ScanSummary) -> AssetRecord:
        """Enrichment failures are logged and never fail the folder."""
        if self.enricher is None:
            return asset
        if token.is_cancelled:
            logger.info(f"Skipping enrichment of {asset.name}: scan cancelled")
            return asset

        try:
            outcome = await self.enricher.enrich(asset)
        except (OmnidexError, ValueError) as e:
            logger.warning(f"Failed to fetch marketplace metadata for asset {asset.name} (id {asset.id}): {e}")
            return asset
        finally:
            if self.pause_between_assets > 0:
                await self._sleep(self.pause_between_assets)

        if outcome.listing is None:
            return asset
        summary.enriched_count += 1
        try:
            return self.store.get_asset(asset.id) or asset
        except StorageError as e:
            logger.warning(f"Could not reload asset {asset.id} after enrichment: {e}")
            return asset
