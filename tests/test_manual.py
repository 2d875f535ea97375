"""
Tests for manual matching.
"""
import asyncio
import json

import pytest

from omnidex.errors import ManualMatchError, StorageError
from omnidex.models import AssetRecord, MatchType
from omnidex.pipeline import CandidateResolver, ManualMatcher
from omnidex.storage import InMemoryAssetStore


PRODUCT_URL = "https://orbital-market.com/en-US/product/mage-animation-set"


@pytest.fixture
def store():
    return InMemoryAssetStore([AssetRecord(name="Mage Pack (4 18)", file_path="/assets/Mage Pack (4 18)")])


@pytest.fixture
def build_matcher(make_client, marketplace_config, store):
    def build(route):
        client, session = make_client(route)
        return ManualMatcher(CandidateResolver(client), store, marketplace_config), session
    return build


def product_ok(response):
    body = json.dumps({"title": "Mage Animation Set", "slug": "mage-animation-set", "price": {"value": 2499}})
    return lambda url: response(200, body)


class TestUrlValidation:
    """Only product URLs on the marketplace host are accepted."""

    @pytest.mark.parametrize("url", [
        "not a url",
        "ftp://orbital-market.com/product/mage",
        "https://evil.example/product/mage-animation-set",
        "https://www.orbital-market.com/product/mage-animation-set",
        "https://orbital-market.com/",
    ])
    def test_rejected(self, build_matcher, response, url):
        matcher, _ = build_matcher(product_ok(response))
        with pytest.raises(ManualMatchError):
            matcher.parse_product_url(url)

    def test_slug_extracted(self, build_matcher, response):
        matcher, _ = build_matcher(product_ok(response))
        assert matcher.parse_product_url(PRODUCT_URL + "/") == "mage-animation-set"


class TestManualMatch:
    def test_success_persists_manual_match(self, build_matcher, response, store):
        matcher, _ = build_matcher(product_ok(response))
        outcome = asyncio.run(matcher.match(1, PRODUCT_URL))

        assert outcome.match_type is MatchType.MANUAL
        assert outcome.confidence == 1.0
        assert outcome.listing.title == "Mage Animation Set"

        asset = store.get_asset(1)
        assert asset.matched_slug == "mage-animation-set"
        assert asset.match_confidence == 1.0
        assert asset.match_type is MatchType.MANUAL
        assert asset.listing.price == pytest.approx(24.99)
        assert asset.listing_checked_at is not None

    def test_wrong_host_makes_no_requests(self, build_matcher, response):
        matcher, session = build_matcher(product_ok(response))
        with pytest.raises(ManualMatchError):
            asyncio.run(matcher.match(1, "https://evil.example/product/mage-animation-set"))
        assert session.calls == []

    def test_unknown_asset(self, build_matcher, response):
        matcher, session = build_matcher(product_ok(response))
        with pytest.raises(ManualMatchError, match="not found"):
            asyncio.run(matcher.match(99, PRODUCT_URL))
        assert session.calls == []

    def test_fetch_failure(self, build_matcher, response, store):
        matcher, _ = build_matcher(lambda url: response(404))
        with pytest.raises(ManualMatchError):
            asyncio.run(matcher.match(1, PRODUCT_URL))
        assert store.get_asset(1).match_type is None

    def test_storage_failure(self, build_matcher, response, store, monkeypatch):
        def fail(*args):
            raise StorageError("update_match_metadata", "asset 1")

        monkeypatch.setattr(store, "update_match_metadata", fail)
        matcher, _ = build_matcher(product_ok(response))
        with pytest.raises(ManualMatchError):
            asyncio.run(matcher.match(1, PRODUCT_URL))
