"""
Tests for the match confidence engine and the scan-loop name matcher.
"""
import pytest

from omnidex.config import MatchingConfig
from omnidex.models import LocalAssetDescriptor, MarketplaceListing, MatchType
from omnidex.pipeline.matching import MatchConfidenceEngine, NameSimilarityMatcher, clean_name


@pytest.fixture
def engine():
    return MatchConfidenceEngine(MatchingConfig())


@pytest.fixture
def matcher():
    return NameSimilarityMatcher(MatchingConfig())


@pytest.fixture
def mage():
    return LocalAssetDescriptor(id=1, name="Mage Animation Set", category="animation")


def listing(title=None, slug=None, **kwargs):
    return MarketplaceListing(title=title, slug=slug, **kwargs)


class TestCleanName:
    def test_normalizes_separators_and_case(self):
        assert clean_name("  Mage_Animation--Set ") == "mage animation set"


class TestMatchConfidenceEngine:
    """Tests for the weighted composite score."""

    def test_identical_title_is_exact(self, engine, mage):
        outcome = engine.match(mage, [listing("Mage Animation Set")])
        assert outcome.confidence == pytest.approx(1.0)
        assert outcome.match_type is MatchType.EXACT
        assert outcome.asset_id == 1

    def test_score_is_deterministic(self, engine):
        candidate = listing("Mage Spells", categories=["Animations"], description="Fire and ice")
        first = engine.score("Mage Animation Set", "animation", candidate)
        assert engine.score("Mage Animation Set", "animation", candidate) == first

    def test_order_does_not_change_winner(self, engine, mage):
        candidates = [
            listing("Forest Trees", slug="forest"),
            listing("Mage Animation Set", slug="mage"),
            listing("Mage FX", slug="mage-fx"),
        ]
        forward = engine.match(mage, candidates)
        backward = engine.match(mage, list(reversed(candidates)))
        assert forward.listing.slug == backward.listing.slug == "mage"
        assert forward.confidence == backward.confidence

    def test_tie_keeps_first_candidate(self, engine, mage):
        candidates = [listing("Mage Animation Set", slug="first"), listing("Mage Animation Set", slug="second")]
        assert engine.match(mage, candidates).listing.slug == "first"

    def test_no_candidates(self, engine, mage):
        outcome = engine.match(mage, [])
        assert outcome.match_type is MatchType.NO_MATCH
        assert outcome.confidence == 0.0
        assert outcome.listing is None
        assert outcome.reasons == ("No matching assets found on the marketplace",)

    def test_category_mismatch_lowers_score(self, engine):
        candidate = listing("Mage Animation Set", categories=["Environments"])
        # 0.6 name, 0 of 0.2 category
        assert engine.score("Mage Animation Set", "animation", candidate) == pytest.approx(0.75)

    def test_category_is_substring_match(self, engine):
        assert engine.category_compatible("animation", ["Characters", "Animations"])
        assert not engine.category_compatible("animation", [])

    def test_missing_signals_are_skipped(self, engine):
        untitled = listing(categories=["Animations"])
        assert engine.score("Mage Animation Set", "animation", untitled) == pytest.approx(1.0)
        assert engine.score("Mage Animation Set", "animation", listing()) == 0.0

    def test_category_weight_needs_candidate_categories(self, engine):
        # Left out instead of counted as a miss
        assert engine.score("Mage Animation Set", "animation", listing("Mage Animation Set")) == pytest.approx(1.0)
        assert engine.score("Mage Animation Set", "animation", listing("Mage Animation Set", categories=[])) == (
            pytest.approx(1.0)
        )

    def test_description_overlap(self, engine):
        assert engine.description_overlap("Mage Animation Set", "A set of mage animations") == pytest.approx(1.0)
        assert engine.description_overlap("Mage Animation Set", "Only a mage") == pytest.approx(1 / 3)
        assert engine.description_overlap("UE", "anything") == 0.0

    def test_description_contributes(self, engine):
        candidate = listing("Mage Animation Set", description="Nothing relevant here")
        # (0.6 * 1.0 + 0.2 * 0) / 0.8
        assert engine.score("Mage Animation Set", "animation", candidate) == pytest.approx(0.75)

    def test_empty_names(self, engine):
        assert engine.name_similarity("", "Mage") == 0.0
        assert engine.name_similarity("Mage", "  ") == 0.0

    def test_reasons(self, engine, mage):
        outcome = engine.match(mage, [listing("Mage Animation Set", categories=["Animations"])])
        assert outcome.reasons == (
            "High name similarity: 100.0%",
            "Compatible asset type",
            "Overall confidence: 100.0%",
        )

    def test_search_summary_scores_high(self, engine):
        asset = LocalAssetDescriptor(name="Mage Animation Set (4 18)", category="animation")
        outcome = engine.match(asset, [listing("Mage Animation Set", slug="mage-animation-set")])
        assert outcome.match_type in (MatchType.EXACT, MatchType.HIGH_CONFIDENCE)


class TestNameSimilarityMatcher:
    """Tests for the title-only matcher."""

    def test_identical_after_cleaning(self, matcher):
        score, match_type = matcher.similarity("Mage Animation Set", "mage_animation-set")
        assert score == pytest.approx(1.0)
        assert match_type is MatchType.EXACT

    def test_decorated_folder_name(self, matcher):
        score, match_type = matcher.similarity("Mage Animation Set (4 18)", "Mage Animation Set")
        assert score == pytest.approx(0.927, abs=0.01)
        assert match_type is MatchType.HIGH_CONFIDENCE

    def test_empty_name(self, matcher):
        assert matcher.similarity("", "Mage") == (0.0, MatchType.NO_MATCH)

    def test_score_capped(self, matcher):
        score, _ = matcher.similarity("Forest", "Forest")
        assert score <= 1.0

    def test_best_match_picks_highest(self, matcher):
        candidates = [
            listing(slug="untitled"),
            listing("Totally Different Thing", slug="other"),
            listing("Mage Animation Set", slug="mage"),
        ]
        best = matcher.best_match("Mage Animation Set", candidates)
        assert best.listing.slug == "mage"
        assert best.match_type is MatchType.EXACT

    def test_best_match_none_when_nothing_qualifies(self, matcher):
        assert matcher.best_match("Mage", [listing("Zzzz Qqqq Xxxx Yyyy Wwww")]) is None
        assert matcher.best_match("Mage", []) is None
