"""
Match engines - confidence scoring of marketplace candidates against local assets.
"""
import logging
from typing import NamedTuple, Optional, Sequence

from rapidfuzz.distance import JaroWinkler, Levenshtein

from ..config import MatchingConfig, get_config
from ..models.asset import LocalAssetDescriptor
from ..models.listing import MarketplaceListing
from ..models.matching import MatchOutcome, MatchType, classify_confidence
from .slugs import extract_keywords


logger = logging.getLogger(__name__)

HIGH_NAME_SIMILARITY = 0.8


def clean_name(name: str) -> str:
    """Lowercase, '_' and '-' as spaces, single spaces."""
    return " ".join(name.lower().replace("_", " ").replace("-", " ").split())


class MatchConfidenceEngine:
    """
    Weighted composite score in [0, 1] for (local asset, candidate).

    Each signal contributes only when its input exists on the candidate, and
    the total is divided by the weights that contributed.
    """

    def __init__(self, config: Optional[MatchingConfig] = None):
        config = config or get_config().matching
        self.name_weight = config.name_weight
        self.category_weight = config.category_weight
        self.description_weight = config.description_weight

    def name_similarity(self, local_name: str, title: str) -> float:
        a, b = clean_name(local_name), clean_name(title)
        if not a or not b:
            return 0.0
        return JaroWinkler.similarity(a, b)

    @staticmethod
    def category_compatible(local_category: str, categories: Sequence[str]) -> bool:
        local = local_category.lower()
        return any(local in category.lower() for category in categories)

    @staticmethod
    def description_overlap(local_name: str, description: str) -> float:
        """Fraction of the name's keywords found in the description."""
        keywords = extract_keywords(local_name)
        if not keywords:
            return 0.0
        text = description.lower()
        return sum(1 for keyword in keywords if keyword in text) / len(keywords)

    def score(self, local_name: str, local_category: str, candidate: MarketplaceListing) -> float:
        total = 0.0
        weight_sum = 0.0

        if candidate.title:
            total += self.name_similarity(local_name, candidate.title) * self.name_weight
            weight_sum += self.name_weight

        # Category weight counts only when the candidate lists categories.
        # Search summaries carry none, and an always-counted weight would
        # cap a perfect title match at Medium.
        if candidate.categories:
            if self.category_compatible(local_category, candidate.categories):
                total += self.category_weight
            weight_sum += self.category_weight

        if candidate.description:
            total += self.description_overlap(local_name, candidate.description) * self.description_weight
            weight_sum += self.description_weight

        if weight_sum <= 0:
            return 0.0
        return total / weight_sum

    def reasons(
        self,
        local_name: str,
        local_category: str,
        candidate: MarketplaceListing,
        confidence: float,
    ) -> list[str]:
        reasons = []
        if candidate.title:
            similarity = self.name_similarity(local_name, candidate.title)
            if similarity > HIGH_NAME_SIMILARITY:
                reasons.append(f"High name similarity: {similarity * 100:.1f}%")
        if self.category_compatible(local_category, candidate.categories):
            reasons.append("Compatible asset type")
        reasons.append(f"Overall confidence: {confidence * 100:.1f}%")
        return reasons

    def match(
        self,
        asset: LocalAssetDescriptor,
        candidates: Sequence[MarketplaceListing],
    ) -> MatchOutcome:
        """Best-scoring candidate. Ties keep the earlier candidate."""
        if not candidates:
            return MatchOutcome.no_match(asset.id, "No matching assets found on the marketplace")

        best: Optional[MarketplaceListing] = None
        best_score = 0.0
        for candidate in candidates:
            candidate_score = self.score(asset.name, asset.category, candidate)
            if best is None or candidate_score > best_score:
                best = candidate
                best_score = candidate_score

        outcome = MatchOutcome.from_score(
            asset.id,
            best,
            best_score,
            self.reasons(asset.name, asset.category, best, best_score),
        )
        logger.debug(
            f"Best candidate for '{asset.name}': '{best.title}' "
            f"({outcome.confidence:.3f}, {outcome.match_type.value})"
        )
        return outcome


class CandidateMatch(NamedTuple):
    listing: MarketplaceListing
    score: float
    match_type: MatchType


class NameSimilarityMatcher:
    """
    Title-only matcher used by the scan loop to pick which candidate, if any,
    gets written to the asset.
    """

    def __init__(self, config: Optional[MatchingConfig] = None):
        config = config or get_config().matching
        self.jaro_winkler_weight = config.jaro_winkler_weight
        self.levenshtein_weight = config.levenshtein_weight
        self.common_prefix_bonus = config.common_prefix_bonus
        self.common_prefix_words = config.common_prefix_words

    def similarity(self, name1: str, name2: str) -> tuple[float, MatchType]:
        a, b = clean_name(name1), clean_name(name2)
        if not a or not b:
            return 0.0, MatchType.NO_MATCH

        jw_score = JaroWinkler.similarity(a, b)
        max_len = max(len(a), len(b))
        lev_similarity = (max_len - Levenshtein.distance(a, b)) / max_len

        score = jw_score * self.jaro_winkler_weight + lev_similarity * self.levenshtein_weight

        words1, words2 = a.split(), b.split()
        prefix_len = min(len(words1), len(words2), self.common_prefix_words)
        if prefix_len > 0 and words1[:prefix_len] == words2[:prefix_len]:
            score += self.common_prefix_bonus

        score = min(score, 1.0)
        return score, classify_confidence(score)

    def best_match(
        self,
        local_name: str,
        candidates: Sequence[MarketplaceListing],
    ) -> Optional[CandidateMatch]:
        best: Optional[CandidateMatch] = None
        highest = 0.0
        for candidate in candidates:
            if not candidate.title:
                continue
            score, match_type = self.similarity(local_name, candidate.title)
            if score > highest and match_type is not MatchType.NO_MATCH:
                highest = score
                best = CandidateMatch(candidate, score, match_type)
        return best
