"""
Tests for slug variation generation.
"""
import pytest

from omnidex.pipeline.slugs import (
    clean_for_search,
    extract_keywords,
    generate_slug_variations,
    keyword_variations,
    normalize_name,
    remove_version_patterns,
    slugify,
)


FOLDER_NAMES = [
    "MC Skydive (5 0 )",
    "Character Pack UE5.3",
    "Mage Animation Set (4 18)",
    "Medieval_Props-Vol 2",
    "Viking_Village_v2.1",
    "UE5",
    "Forest Pack 3",
    "a",
]


class TestSlugify:
    """Tests for the basic slug transform."""

    def test_lowercases_and_hyphenates(self):
        assert slugify("Mage Animation Set") == "mage-animation-set"

    def test_separators_become_word_breaks(self):
        assert slugify("Medieval_Props--Vol 2") == "medieval-props-vol-2"

    def test_punctuation_dropped(self):
        assert slugify("MC Skydive (5 0 )") == "mc-skydive-5-0"

    def test_empty_after_cleaning(self):
        assert slugify("!!! ???") == ""


class TestNormalizeName:
    """Tests for engine-token and counter stripping."""

    def test_strips_engine_token(self):
        assert normalize_name("Character Pack UE5.3") == "character pack"

    def test_strips_trailing_counter(self):
        assert normalize_name("Forest Pack 3") == "forest pack"

    def test_keeps_vol_number(self):
        assert normalize_name("Medieval Props Vol 2") == "medieval props vol 2"

    def test_collapses_separators(self):
        assert normalize_name("Forest__Pack - UE4.27") == "forest pack"


class TestRemoveVersionPatterns:
    def test_parenthesised_numbers(self):
        assert "MC Skydive" in remove_version_patterns("MC Skydive (5 0 )")

    def test_engine_tag_in_parentheses(self):
        assert "Forest" in remove_version_patterns("Forest (UE5.1)")

    def test_version_token(self):
        assert "Viking Village" in remove_version_patterns("Viking Village v2.1")

    def test_undecorated_name_yields_nothing(self):
        assert remove_version_patterns("Mage Animation Set") == []


class TestKeywordVariations:
    def test_drops_stop_words_numbers_and_versions(self):
        variations = keyword_variations("Viking_Village_Pack_v2 4.27")
        assert variations[0] == "viking-village"

    def test_words_starting_with_v_survive(self):
        assert keyword_variations("Viking Village")[0] == "viking-village"

    def test_without_last_and_without_first(self):
        assert keyword_variations("Mage Animation Set") == [
            "mage-animation-set",
            "mage-animation",
            "animation-set",
        ]

    def test_only_noise(self):
        assert keyword_variations("UE5 Pack 2") == []


class TestGenerateSlugVariations:
    """Tests for the full generator."""

    def test_mc_skydive_includes_stripped_slug(self):
        assert "mc-skydive" in generate_slug_variations("MC Skydive (5 0 )")

    def test_engine_version_token_removed(self):
        assert "character-pack" in generate_slug_variations("Character Pack UE5.3")

    def test_most_literal_first(self):
        assert generate_slug_variations("Mage Animation Set (4 18)")[0] == "mage-animation-set-4-18"

    @pytest.mark.parametrize("name", FOLDER_NAMES)
    def test_no_duplicates_and_no_empties(self, name):
        variations = generate_slug_variations(name)
        assert len(variations) == len(set(variations))
        assert all(variations)

    @pytest.mark.parametrize("name", FOLDER_NAMES)
    def test_order_is_stable(self, name):
        assert generate_slug_variations(name) == generate_slug_variations(name)

    def test_unsluggable_name(self):
        assert generate_slug_variations("!!!") == []


class TestSearchHelpers:
    def test_clean_for_search(self):
        assert clean_for_search("Mage_Animation-Set") == "Mage Animation Set"

    def test_extract_keywords(self):
        assert extract_keywords("The Mage-Animation (Set) of UE") == ["the", "mage-animation", "set"]
