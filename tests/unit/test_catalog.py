"""
Unit tests for the static learning catalog.
"""

import pytest

from src.core.catalog import (
    ACTIVITY_CATEGORIES,
    Activity,
    ContentItem,
    Difficulty,
    SkillCategory,
    activities_for_category,
    category_for_activity,
)


class TestActivityTable:
    def test_every_activity_is_mapped(self):
        assert set(ACTIVITY_CATEGORIES) == set(Activity)

    def test_every_category_has_an_activity(self):
        for category in SkillCategory:
            assert activities_for_category(category), category

    def test_activities_for_category_keeps_catalog_order(self):
        assert activities_for_category("alphabet") == [
            Activity.AKSHARA_POP,
            Activity.LETTER_TRACING,
            Activity.ALPHABET_RAIN,
            Activity.LETTER_MATCH,
            Activity.SPINNING_WHEEL,
        ]

    def test_category_for_scene_key(self):
        assert category_for_activity("FruitBasketScene") is SkillCategory.VOCABULARY
        assert category_for_activity(Activity.ECHO_GAME) is SkillCategory.LISTENING

    def test_unknown_activity_has_no_category(self):
        assert category_for_activity("TreasureHuntScene") is None

    @pytest.mark.parametrize(
        "scene,category",
        [
            ("CompoundWordsScene", SkillCategory.WORDS),
            ("MissingLetterScene", SkillCategory.WORDS),
            ("ActionVerbsScene", SkillCategory.SENTENCES),
            ("StorySequencerScene", SkillCategory.SENTENCES),
            ("MarketShoppingScene", SkillCategory.VOCABULARY),
            ("FestivalFunScene", SkillCategory.SENTENCES),
        ],
    )
    def test_word_sentence_and_culture_scenes(self, scene, category):
        assert category_for_activity(scene) is category

    def test_unknown_category_raises(self):
        with pytest.raises(ValueError):
            activities_for_category("cooking")


class TestEnumerations:
    def test_item_noun(self):
        assert SkillCategory.ALPHABET.item_noun == "letter"
        assert SkillCategory.READING.item_noun == "word"


class TestContentItem:
    def test_from_mapping_prefers_letter_key(self):
        item = ContentItem.from_mapping({"letter": "ಅ", "kannada": "ಅ", "difficulty": "beginner"})
        assert item.item_id == "ಅ"
        assert item.difficulty is Difficulty.BEGINNER

    def test_from_mapping_word_record(self):
        item = ContentItem.from_mapping({"kannada": "ಹಣ್ಣು", "english": "fruit", "difficulty": "intermediate"})
        assert item.item_id == "ಹಣ್ಣು"
        assert item.difficulty is Difficulty.INTERMEDIATE
        assert item.payload["english"] == "fruit"

    def test_from_mapping_defaults_to_beginner(self):
        assert ContentItem.from_mapping({"word": "ಮನೆ"}).difficulty is Difficulty.BEGINNER

    def test_from_mapping_without_identifier_raises(self):
        with pytest.raises(ValueError):
            ContentItem.from_mapping({"english": "house"})

    def test_string_difficulty_is_coerced(self):
        assert ContentItem("ಕ", "advanced").difficulty is Difficulty.ADVANCED

    def test_payload_ignored_for_equality(self):
        assert ContentItem("ಕ", payload={"a": 1}) == ContentItem("ಕ", payload={"b": 2})
