"""
Tests for per-asset enrichment and cached listing reprocessing.
"""
import asyncio
from types import SimpleNamespace

import pytest

from omnidex.config import MatchingConfig
from omnidex.models import AssetRecord, MarketplaceListing, MatchType
from omnidex.pipeline import AssetEnricher, CandidateResolver, MatchConfidenceEngine, NameSimilarityMatcher
from omnidex.storage import InMemoryAssetStore


SEARCH_HTML = """
<div class="product-card">
  <a href="/product/mage-animation-set"><h3>Mage Animation Set</h3></a>
  <span class="price">$19.99</span>
</div>
"""


class FakeResolver:
    def __init__(self, listings):
        self.listings = listings
        self.client = SimpleNamespace(base_url="https://orbital-market.com")
        self.names = []

    async def resolve(self, folder_name):
        self.names.append(folder_name)
        return list(self.listings)


@pytest.fixture
def store():
    return InMemoryAssetStore([AssetRecord(name="Mage Animation Set (4 18)", file_path="/assets/mage")])


def make_enricher(resolver, store):
    config = MatchingConfig()
    return AssetEnricher(resolver, store, MatchConfidenceEngine(config), NameSimilarityMatcher(config))


class TestEnrich:
    """Tests for AssetEnricher.enrich."""

    def test_best_candidate_is_persisted(self, store):
        resolver = FakeResolver([
            MarketplaceListing(title="Forest Trees", slug="forest-trees"),
            MarketplaceListing(title="Mage Animation Set", slug="mage-animation-set"),
        ])
        outcome = asyncio.run(make_enricher(resolver, store).enrich(store.get_asset(1)))

        assert outcome.listing.slug == "mage-animation-set"
        assert outcome.match_type is MatchType.HIGH_CONFIDENCE

        asset = store.get_asset(1)
        assert asset.listing.title == "Mage Animation Set"
        assert asset.matched_slug == "mage-animation-set"
        assert asset.match_type is MatchType.HIGH_CONFIDENCE
        assert asset.match_confidence == pytest.approx(outcome.confidence)
        assert resolver.names == ["Mage Animation Set (4 18)"]

    def test_no_candidates(self, store):
        outcome = asyncio.run(make_enricher(FakeResolver([]), store).enrich(store.get_asset(1)))

        assert outcome.match_type is MatchType.NO_MATCH
        assert store.get_asset(1).listing is None

    def test_no_candidate_passes_name_check(self, store):
        resolver = FakeResolver([MarketplaceListing(title="Zzzz Qqqq Xxxx Yyyy Wwww Vvvv")])
        outcome = asyncio.run(make_enricher(resolver, store).enrich(store.get_asset(1)))

        assert outcome.match_type is MatchType.NO_MATCH
        assert outcome.reasons == ("No suitable matches found",)
        assert store.get_asset(1).matched_slug is None

    def test_unsaved_asset(self, store):
        enricher = make_enricher(FakeResolver([]), store)
        with pytest.raises(ValueError):
            asyncio.run(enricher.enrich(AssetRecord(name="New", file_path="/assets/new")))

    def test_with_search_fallback(self, store, make_client, response):
        def route(url):
            if "/search?q=" in url:
                return response(200, SEARCH_HTML)
            return response(404)

        client, _ = make_client(route)
        outcome = asyncio.run(make_enricher(CandidateResolver(client), store).enrich(store.get_asset(1)))

        assert outcome.match_type in (MatchType.EXACT, MatchType.HIGH_CONFIDENCE)
        assert store.get_asset(1).listing.price == pytest.approx(19.99)


class TestReprocessCached:
    def test_reparses_raw_payloads(self):
        raw = {"title": "Mage Animation Set", "slug": "mage-animation-set", "review": {"count": 4, "rating": 45}}
        store = InMemoryAssetStore([
            AssetRecord(name="Mage", file_path="/a", listing=MarketplaceListing(title="Mage", raw_source=raw)),
            AssetRecord(name="Broken", file_path="/b", listing=MarketplaceListing(title="Broken", raw_source="oops")),
            AssetRecord(name="Scraped", file_path="/c", listing=MarketplaceListing(title="Scraped")),
            AssetRecord(name="Bare", file_path="/d"),
        ])
        summary = make_enricher(FakeResolver([]), store).reprocess_cached()

        assert summary.processed == 1
        assert summary.errors == 1
        listing = store.get_asset(1).listing
        assert listing.rating_average == pytest.approx(4.5)
        assert listing.rating_count == 4
        assert listing.source_url == "https://orbital-market.com/product/mage-animation-set"
        assert store.get_asset(2).listing.title == "Broken"
