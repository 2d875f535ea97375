"""
Pydantic models for Omnidex.
All data contracts are defined here for strict validation.
"""

from .listing import MarketplaceListing, parse_price
from .matching import MatchType, MatchOutcome, classify_confidence
from .asset import LocalAssetDescriptor, AssetRecord, ScanLocation
from .selectors import SelectorConfiguration, load_selectors, load_default_selectors
from .progress import ScanProgress, ScanStatus, ScanSummary

__all__ = [
    # Listing
    "MarketplaceListing",
    "parse_price",
    # Matching
    "MatchType",
    "MatchOutcome",
    "classify_confidence",
    # Assets
    "LocalAssetDescriptor",
    "AssetRecord",
    "ScanLocation",
    # Selectors
    "SelectorConfiguration",
    "load_selectors",
    "load_default_selectors",
    # Progress
    "ScanProgress",
    "ScanStatus",
    "ScanSummary",
]
