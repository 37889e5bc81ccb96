"""
Static Learning Catalog.

Closed sets shared by every component of the core:
- SkillCategory: the learning domains tracked on the profile
- Difficulty: content difficulty tiers
- Activity: playable activities and the category each one trains
- ContentItem: a learnable item offered by the presentation layer

The activity table is versioned with the content and checked for
exhaustiveness when this module is imported.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# =============================================================================
# Enumerations
# =============================================================================


class SkillCategory(str, Enum):
    """Learning domains, in curriculum order."""

    ALPHABET = "alphabet"
    VOCABULARY = "vocabulary"
    WORDS = "words"
    SENTENCES = "sentences"
    READING = "reading"
    LISTENING = "listening"

    @property
    def item_noun(self) -> str:
        """Noun used when talking to the learner about one item."""
        return "letter" if self is SkillCategory.ALPHABET else "word"


class Difficulty(str, Enum):
    """Content difficulty tiers, easiest first."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Activity(str, Enum):
    """Playable activities. Values are the scene keys used by the game."""

    # Alphabet
    AKSHARA_POP = "AksharaPopScene"
    LETTER_TRACING = "LetterTracingScene"
    ALPHABET_RAIN = "AlphabetRainScene"
    LETTER_MATCH = "LetterMatchScene"
    SPINNING_WHEEL = "SpinningWheelScene"
    # Vocabulary
    FRUIT_BASKET = "FruitBasketScene"
    ANIMAL_SAFARI = "AnimalSafariScene"
    COLOR_SPLASH = "ColorSplashScene"
    NUMBER_ROCKETS = "NumberRocketsScene"
    VEGETABLE_GARDEN = "VegetableGardenScene"
    FAMILY_TREE = "FamilyTreeScene"
    BODY_PARTS_ROBOT = "BodyPartsRobotScene"
    # Words
    LETTER_BRIDGE = "LetterBridgeScene"
    WORD_FACTORY = "WordFactoryScene"
    SPELL_PICTURE = "SpellPictureScene"
    COMPOUND_WORDS = "CompoundWordsScene"
    MISSING_LETTER = "MissingLetterScene"
    # Sentences
    SENTENCE_TRAIN = "SentenceTrainScene"
    QUESTION_ANSWER = "QuestionAnswerScene"
    ACTION_VERBS = "ActionVerbsScene"
    STORY_SEQUENCER = "StorySequencerScene"
    # Reading
    STORY_BOOK = "StoryBookScene"
    READING_RACE = "ReadingRaceScene"
    RHYME_TIME = "RhymeTimeScene"
    DIALOGUE_DRAMA = "DialogueDramaScene"
    # Listening
    ECHO_GAME = "EchoGameScene"
    SOUND_SAFARI = "SoundSafariScene"
    TONGUE_TWISTER = "TongueTwisterScene"
    WHICH_WORD = "WhichWordScene"
    # Culture
    MARKET_SHOPPING = "MarketShoppingScene"
    CLASSROOM = "ClassroomScene"
    FESTIVAL_FUN = "FestivalFunScene"
    DAILY_ROUTINE = "DailyRoutineScene"


# =============================================================================
# Activity -> Category Table
# =============================================================================

ACTIVITY_CATEGORIES: dict[Activity, SkillCategory] = {
    Activity.AKSHARA_POP: SkillCategory.ALPHABET,
    Activity.LETTER_TRACING: SkillCategory.ALPHABET,
    Activity.ALPHABET_RAIN: SkillCategory.ALPHABET,
    Activity.LETTER_MATCH: SkillCategory.ALPHABET,
    Activity.SPINNING_WHEEL: SkillCategory.ALPHABET,
    Activity.FRUIT_BASKET: SkillCategory.VOCABULARY,
    Activity.ANIMAL_SAFARI: SkillCategory.VOCABULARY,
    Activity.COLOR_SPLASH: SkillCategory.VOCABULARY,
    Activity.NUMBER_ROCKETS: SkillCategory.VOCABULARY,
    Activity.VEGETABLE_GARDEN: SkillCategory.VOCABULARY,
    Activity.FAMILY_TREE: SkillCategory.VOCABULARY,
    Activity.BODY_PARTS_ROBOT: SkillCategory.VOCABULARY,
    Activity.LETTER_BRIDGE: SkillCategory.WORDS,
    Activity.WORD_FACTORY: SkillCategory.WORDS,
    Activity.SPELL_PICTURE: SkillCategory.WORDS,
    Activity.COMPOUND_WORDS: SkillCategory.WORDS,
    Activity.MISSING_LETTER: SkillCategory.WORDS,
    Activity.SENTENCE_TRAIN: SkillCategory.SENTENCES,
    Activity.QUESTION_ANSWER: SkillCategory.SENTENCES,
    Activity.ACTION_VERBS: SkillCategory.SENTENCES,
    Activity.STORY_SEQUENCER: SkillCategory.SENTENCES,
    Activity.STORY_BOOK: SkillCategory.READING,
    Activity.READING_RACE: SkillCategory.READING,
    Activity.RHYME_TIME: SkillCategory.READING,
    Activity.DIALOGUE_DRAMA: SkillCategory.READING,
    Activity.ECHO_GAME: SkillCategory.LISTENING,
    Activity.SOUND_SAFARI: SkillCategory.LISTENING,
    Activity.TONGUE_TWISTER: SkillCategory.LISTENING,
    Activity.WHICH_WORD: SkillCategory.LISTENING,
    Activity.MARKET_SHOPPING: SkillCategory.VOCABULARY,
    Activity.CLASSROOM: SkillCategory.SENTENCES,
    Activity.FESTIVAL_FUN: SkillCategory.SENTENCES,
    Activity.DAILY_ROUTINE: SkillCategory.SENTENCES,
}


def _check_activity_table() -> None:
    """Fail at import if an activity or a category is left unmapped."""
    unmapped = [a.value for a in Activity if a not in ACTIVITY_CATEGORIES]
    if unmapped:
        raise RuntimeError(f"Activities without a skill category: {unmapped}")

    uncovered = [c.value for c in SkillCategory if c not in ACTIVITY_CATEGORIES.values()]
    if uncovered:
        raise RuntimeError(f"Skill categories without activities: {uncovered}")


_check_activity_table()


def activities_for_category(category: SkillCategory | str) -> list[Activity]:
    """Activities training a category, in catalog order."""
    category = SkillCategory(category)
    return [a for a, c in ACTIVITY_CATEGORIES.items() if c is category]


def category_for_activity(activity_id: Activity | str) -> SkillCategory | None:
    """
    Look up the category an activity trains.

    Args:
        activity_id: Activity member or its scene key

    Returns:
        The mapped SkillCategory, or None for activities outside the catalog
    """
    try:
        return ACTIVITY_CATEGORIES[Activity(activity_id)]
    except ValueError:
        return None


# =============================================================================
# Content Items
# =============================================================================

# Keys the content files use to identify an item, in lookup order
ITEM_KEYS = ("letter", "kannada", "word")


@dataclass(frozen=True)
class ContentItem:
    """A learnable item (letter, word or phrase) offered for selection."""

    item_id: str
    difficulty: Difficulty = Difficulty.BEGINNER
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "difficulty", Difficulty(self.difficulty))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ContentItem:
        """
        Build a ContentItem from a content-file record.

        Args:
            data: Record carrying one of ITEM_KEYS and an optional difficulty

        Returns:
            ContentItem wrapping the record

        Raises:
            ValueError: If the record has no identifying key
        """
        item_id = next((data[k] for k in ITEM_KEYS if data.get(k)), None)
        if item_id is None:
            raise ValueError(f"Content record has none of {ITEM_KEYS}: {dict(data)}")

        return cls(
            item_id=str(item_id),
            difficulty=Difficulty(data.get("difficulty", Difficulty.BEGINNER)),
            payload=dict(data),
        )
