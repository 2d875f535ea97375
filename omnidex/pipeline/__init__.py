"""
Pipeline package - slug generation, candidate resolution, matching and scans.
"""

from .slugs import generate_slug_variations, clean_for_search, extract_keywords
from .resolution import CandidateResolver, Resolution, StrategyOutcome, OutcomeKind
from .matching import MatchConfidenceEngine, NameSimilarityMatcher, CandidateMatch
from .manual import ManualMatcher
from .enrichment import AssetEnricher, ReprocessSummary
from .scan import CancellationToken, ScanRegistry, ScanOrchestrator

__all__ = [
    # Slugs
    "generate_slug_variations",
    "clean_for_search",
    "extract_keywords",
    # Resolution
    "CandidateResolver",
    "Resolution",
    "StrategyOutcome",
    "OutcomeKind",
    # Matching
    "MatchConfidenceEngine",
    "NameSimilarityMatcher",
    "CandidateMatch",
    "ManualMatcher",
    # Scans
    "AssetEnricher",
    "ReprocessSummary",
    "CancellationToken",
    "ScanRegistry",
    "ScanOrchestrator",
]
