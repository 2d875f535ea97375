"""
Asset enrichment - find, pick and persist the marketplace listing for one asset.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import ListingParseError, StorageError
from ..models.asset import AssetRecord
from ..models.matching import MatchOutcome
from ..parsing import parse_product_json
from ..storage.base import AssetStore
from .matching import MatchConfidenceEngine, NameSimilarityMatcher
from .resolution import CandidateResolver


logger = logging.getLogger(__name__)


@dataclass
class ReprocessSummary:
    processed: int = 0
    errors: int = 0


class AssetEnricher:
    """
    Resolution, then the name matcher decides whether any candidate is
    close enough, then the confidence engine scores the chosen one.
    """

    def __init__(
        self,
        resolver: CandidateResolver,
        store: AssetStore,
        engine: Optional[MatchConfidenceEngine] = None,
        matcher: Optional[NameSimilarityMatcher] = None,
    ):
        self.resolver = resolver
        self.store = store
        self.engine = engine or MatchConfidenceEngine()
        self.matcher = matcher or NameSimilarityMatcher()

    async def enrich(self, asset: AssetRecord) -> MatchOutcome:
        """
        Returns the match outcome. Nothing is written when no candidate
        qualifies. Storage failures propagate as StorageError.
        """
        if asset.id is None:
            raise ValueError("Asset must be saved before it can be enriched")

        logger.info(f"Fetching marketplace data for asset: {asset.name}")
        candidates = await self.resolver.resolve(asset.name)
        if not candidates:
            logger.warning(f"Could not find a match for asset: {asset.name}")
            return MatchOutcome.no_match(asset.id, "No matching assets found on the marketplace")

        best = self.matcher.best_match(asset.name, candidates)
        if best is None:
            logger.warning(f"No candidate for '{asset.name}' passed the name check ({len(candidates)} candidate(s))")
            return MatchOutcome.no_match(asset.id, "No suitable matches found")

        logger.info(f"Found best match for {asset.name}: '{best.listing.title}' ({best.score:.3f})")
        outcome = self.engine.match(asset.descriptor, [best.listing])

        self.store.update_listing_details(asset.id, best.listing)
        self.store.update_match_metadata(asset.id, best.listing.slug, outcome.confidence, outcome.match_type)
        logger.info(
            f"Updated asset {asset.name} with marketplace data "
            f"({outcome.match_type.value}, {outcome.confidence:.3f})"
        )
        return outcome

    def reprocess_cached(self) -> ReprocessSummary:
        """Re-parse every cached raw product payload and write the result back."""
        summary = ReprocessSummary()
        base_url = self.resolver.client.base_url

        for asset in self.store.list_assets_with_cached_listing():
            raw = asset.listing.raw_source if asset.listing else None
            if raw is None:
                continue
            try:
                listing = parse_product_json(raw, base_url, source=f"cached JSON of asset {asset.id}")
                self.store.update_listing_details(asset.id, listing)
            except (ListingParseError, StorageError) as e:
                logger.error(f"Failed to reprocess asset {asset.id} ({asset.name}): {e}")
                summary.errors += 1
                continue
            summary.processed += 1

        logger.info(f"Reprocessed {summary.processed} cached listings with {summary.errors} error(s)")
        return summary
