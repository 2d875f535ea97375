"""
Tests for scan orchestration, cancellation and the scan registry.
"""
import asyncio
from pathlib import Path

import pytest

from omnidex.errors import ScanAlreadyRunning, ScanCancelled, StorageError
from omnidex.models import AssetRecord, MarketplaceListing, MatchOutcome, ScanLocation, ScanStatus
from omnidex.pipeline import ScanOrchestrator, ScanRegistry
from omnidex.scanner import describe_folder
from omnidex.storage import CollectingProgressSink, InMemoryAssetStore


class FakeEnricher:
    """Records calls; optionally runs a hook or raises."""

    def __init__(self, store, on_enrich=None, error=None):
        self.store = store
        self.on_enrich = on_enrich
        self.error = error
        self.calls = []

    async def enrich(self, asset):
        self.calls.append(asset.name)
        if self.on_enrich:
            self.on_enrich(asset)
        if self.error:
            raise self.error
        listing = MarketplaceListing(title=asset.name, description="found", slug="slug")
        self.store.update_listing_details(asset.id, listing)
        return MatchOutcome.from_score(asset.id, listing, 1.0, ["test"])


@pytest.fixture
def location(tmp_path):
    for name in ("Alpha", "Bravo", "Charlie"):
        (tmp_path / name).mkdir()
        (tmp_path / name / "file.bin").write_bytes(b"x" * 10)
    return ScanLocation(id=1, name="assets", path=str(tmp_path))


@pytest.fixture
def store():
    return InMemoryAssetStore()


@pytest.fixture
def sink():
    return CollectingProgressSink()


@pytest.fixture
def registry():
    return ScanRegistry()


@pytest.fixture
def build(store, sink, registry):
    def make(enricher=None, **kwargs):
        return ScanOrchestrator(
            store,
            enricher,
            progress=sink,
            registry=registry,
            pause_between_assets=0,
            **kwargs,
        )
    return make


class TestScan:
    """Tests for a full scan run."""

    def test_indexes_every_folder(self, build, location, store, sink, registry):
        summary = asyncio.run(build().run(location))

        assert summary.total_count == 3
        assert summary.processed_count == 3
        assert summary.completed_successfully
        assert len(store) == 3
        assert [asset.name for asset in summary.assets] == ["Alpha", "Bravo", "Charlie"]
        assert not registry.is_active(1)

    def test_progress_events(self, build, location, sink):
        asyncio.run(build().run(location))

        assert sink.statuses == [
            ScanStatus.INITIALIZING,
            ScanStatus.SCANNING,
            ScanStatus.SCANNING,
            ScanStatus.SCANNING,
            ScanStatus.COMPLETED,
        ]
        assert [event.processed_count for event in sink.events[1:4]] == [1, 2, 3]
        assert sink.events[1].current_path.endswith("Alpha")
        assert sink.events[-1].completed_successfully

    def test_enrichment_results_are_counted(self, build, location, store):
        enricher = FakeEnricher(store)
        summary = asyncio.run(build(enricher).run(location))

        assert enricher.calls == ["Alpha", "Bravo", "Charlie"]
        assert summary.enriched_count == 3
        assert summary.assets[0].listing.title == "Alpha"

    def test_enrichment_failure_is_not_fatal(self, build, location, store):
        enricher = FakeEnricher(store, error=StorageError("update_listing_details", "asset"))
        summary = asyncio.run(build(enricher).run(location))

        assert summary.processed_count == 3
        assert summary.errors == []
        assert summary.enriched_count == 0
        assert len(store) == 3

    def test_pause_between_lookups(self, store, sink, location):
        pauses = []

        async def record_sleep(seconds):
            pauses.append(seconds)

        orchestrator = ScanOrchestrator(
            store, FakeEnricher(store), progress=sink, pause_between_assets=0.5, sleep=record_sleep
        )
        asyncio.run(orchestrator.run(location))
        assert pauses == [0.5, 0.5, 0.5]

    def test_storage_errors_are_collected(self, build, location, store, sink, monkeypatch):
        original = store.insert_asset

        def insert(record):
            if record.name == "Bravo":
                raise StorageError("insert_asset", record.file_path)
            return original(record)

        monkeypatch.setattr(store, "insert_asset", insert)
        summary = asyncio.run(build().run(location))

        assert summary.processed_count == 3
        assert len(summary.errors) == 1
        assert summary.errors[0].startswith("Failed to process folder")
        assert "Bravo" in summary.errors[0]
        assert not summary.completed_successfully
        assert sink.events[-1].status == ScanStatus.COMPLETED
        assert not sink.events[-1].completed_successfully
        assert "Bravo" in sink.events[-1].error

    def test_unexpected_error_reports_failure(self, build, location, store, sink, registry, monkeypatch):
        def lookup(path):
            if path.endswith("Bravo"):
                raise ValueError("'Sideways' is not a valid MatchType")
            return None

        monkeypatch.setattr(store, "get_asset_by_path", lookup)
        with pytest.raises(ValueError):
            asyncio.run(build().run(location))

        assert sink.statuses[-1] == ScanStatus.FAILED
        assert sink.events[-1].current_path.endswith("Bravo")
        assert "MatchType" in sink.events[-1].error
        assert ScanStatus.COMPLETED not in sink.statuses
        assert not registry.is_active(location.id)

    def test_existing_complete_asset_is_not_enriched(self, build, location, store):
        path = str(Path(location.path) / "Alpha")
        listing = MarketplaceListing(title="Alpha", description="done")
        store.insert_asset(AssetRecord(name="Alpha", file_path=path, listing=listing))

        enricher = FakeEnricher(store)
        asyncio.run(build(enricher).run(location))
        assert enricher.calls == ["Bravo", "Charlie"]

    def test_existing_incomplete_asset_is_refreshed(self, build, location, store):
        path = str(Path(location.path) / "Alpha")
        store.insert_asset(AssetRecord(name="Alpha", file_path=path, listing=MarketplaceListing(title="Alpha")))

        enricher = FakeEnricher(store)
        asyncio.run(build(enricher).run(location))
        assert enricher.calls == ["Alpha", "Bravo", "Charlie"]
        assert len(store) == 3

    def test_missing_location(self, build, tmp_path, sink, registry):
        location = ScanLocation(id=5, name="gone", path=str(tmp_path / "gone"))
        with pytest.raises(FileNotFoundError):
            asyncio.run(build().run(location))
        assert sink.statuses == [ScanStatus.FAILED]
        assert not registry.is_active(5)


class TestCancellation:
    """Cancellation is observed between folders."""

    def test_cancel_stops_before_next_folder(self, build, location, store, sink, registry):
        enricher = FakeEnricher(store, on_enrich=lambda asset: registry.cancel(1))
        with pytest.raises(ScanCancelled):
            asyncio.run(build(enricher).run(location))

        assert sink.statuses == [ScanStatus.INITIALIZING, ScanStatus.SCANNING, ScanStatus.CANCELLED]
        assert enricher.calls == ["Alpha"]
        assert len(store) == 1
        assert not registry.is_active(1)

    def test_cancel_skips_pending_enrichment(self, build, location, store, registry):
        def describe(folder, location_id):
            registry.cancel(1)
            return describe_folder(folder, location_id)

        enricher = FakeEnricher(store)
        with pytest.raises(ScanCancelled):
            asyncio.run(build(enricher, describe=describe).run(location))
        assert enricher.calls == []
        assert len(store) == 1

    def test_concurrent_scan_of_same_location(self, build, location, registry):
        registry.register(1)
        with pytest.raises(ScanAlreadyRunning):
            asyncio.run(build().run(location))
        # the rejected run must not unregister the active one
        assert registry.is_active(1)


class TestScanRegistry:
    def test_register_and_cancel(self):
        registry = ScanRegistry()
        token = registry.register(1)
        assert registry.is_active(1)
        assert registry.cancel(1)
        assert token.is_cancelled

    def test_cancel_unknown(self):
        assert not ScanRegistry().cancel(42)

    def test_cancel_all(self):
        registry = ScanRegistry()
        tokens = [registry.register(i) for i in range(3)]
        assert registry.cancel_all() == 3
        assert all(token.is_cancelled for token in tokens)

    def test_unregister_allows_new_scan(self):
        registry = ScanRegistry()
        registry.register(1)
        registry.unregister(1)
        assert not registry.register(1).is_cancelled
