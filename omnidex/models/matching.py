"""
Match models - confidence tiers and match outcomes.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .listing import MarketplaceListing


class MatchType(str, Enum):
    """Discrete match-quality tier."""
    EXACT = "Exact"
    HIGH_CONFIDENCE = "HighConfidence"
    MEDIUM_CONFIDENCE = "MediumConfidence"
    LOW_CONFIDENCE = "LowConfidence"
    NO_MATCH = "NoMatch"
    MANUAL = "Manual"


# (lower bound, tier), checked top-down
CONFIDENCE_TIERS: tuple[tuple[float, MatchType], ...] = (
    (0.95, MatchType.EXACT),
    (0.85, MatchType.HIGH_CONFIDENCE),
    (0.70, MatchType.MEDIUM_CONFIDENCE),
    (0.50, MatchType.LOW_CONFIDENCE),
)


def classify_confidence(score: float) -> MatchType:
    """Map a continuous score onto the fixed five-tier scale."""
    for lower_bound, tier in CONFIDENCE_TIERS:
        if score >= lower_bound:
            return tier
    return MatchType.NO_MATCH


class MatchOutcome(BaseModel):
    """
    Result of one match attempt for one local asset.
    Immutable: a newer match supersedes it, nothing updates it.
    """
    model_config = ConfigDict(frozen=True)

    asset_id: Optional[int] = None
    listing: Optional[MarketplaceListing] = None
    confidence: float = Field(ge=0, le=1)
    match_type: MatchType
    reasons: tuple[str, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _tier_follows_confidence(self) -> "MatchOutcome":
        if self.match_type is MatchType.MANUAL:
            if self.confidence != 1.0:
                raise ValueError("Manual matches always carry confidence 1.0")
            return self
        expected = classify_confidence(self.confidence)
        if self.match_type is not expected:
            raise ValueError(
                f"match_type {self.match_type.value} does not fit confidence "
                f"{self.confidence:.4f} (expected {expected.value})"
            )
        return self

    @classmethod
    def from_score(
        cls,
        asset_id: Optional[int],
        listing: Optional[MarketplaceListing],
        confidence: float,
        reasons: list[str],
    ) -> "MatchOutcome":
        confidence = max(0.0, min(1.0, confidence))
        return cls(
            asset_id=asset_id,
            listing=listing,
            confidence=confidence,
            match_type=classify_confidence(confidence),
            reasons=tuple(reasons),
        )

    @classmethod
    def no_match(cls, asset_id: Optional[int], reason: str) -> "MatchOutcome":
        return cls(
            asset_id=asset_id,
            listing=None,
            confidence=0.0,
            match_type=MatchType.NO_MATCH,
            reasons=(reason,),
        )

    @classmethod
    def manual(cls, asset_id: int, listing: MarketplaceListing) -> "MatchOutcome":
        return cls(
            asset_id=asset_id,
            listing=listing,
            confidence=1.0,
            match_type=MatchType.MANUAL,
            reasons=("Manually matched by user",),
        )

    @property
    def is_match(self) -> bool:
        return self.match_type is not MatchType.NO_MATCH
