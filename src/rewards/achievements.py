"""
Achievement and badge catalogs.

Achievements are tagged data: display metadata plus a pure predicate over
a profile snapshot. Badges carry metadata only and are granted explicitly.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from src.core.catalog import SkillCategory
from src.progress.models import LearnerProfile

Predicate = Callable[[LearnerProfile], bool]


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    name: str
    name_kannada: str
    description: str
    icon: str
    condition: Predicate


@dataclass(frozen=True)
class BadgeDefinition:
    id: str
    name: str
    name_kannada: str
    description: str
    icon: str
    color: str


# =============================================================================
# Predicates
# =============================================================================


def games_played(minimum: int) -> Predicate:
    return lambda profile: profile.progress.games_played >= minimum


def items_mastered(category: SkillCategory, minimum: int) -> Predicate:
    return lambda profile: profile.mastered_count(category) >= minimum


def total_score(minimum: int) -> Predicate:
    return lambda profile: profile.progress.total_score >= minimum


def total_stars(minimum: int) -> Predicate:
    return lambda profile: profile.progress.total_stars >= minimum


def categories_at_accuracy(accuracy: float, count: int, min_attempts: int = 10) -> Predicate:
    """At least `count` categories with `min_attempts` attempts at `accuracy` or better."""

    def check(profile: LearnerProfile) -> bool:
        qualifying = [
            skill
            for skill in profile.skills.values()
            if skill.total_attempts >= min_attempts and skill.accuracy >= accuracy
        ]
        return len(qualifying) >= count

    return check


# =============================================================================
# Catalogs
# =============================================================================

_ACHIEVEMENTS = [
    # First steps
    AchievementDefinition(
        "first_game", "First Steps", "ಮೊದಲ ಹೆಜ್ಜೆಗಳು",
        "Complete your first game", "🎮", games_played(1),
    ),
    AchievementDefinition(
        "first_letter", "Letter Learner", "ಅಕ್ಷರ ಕಲಿಯುವವರು",
        "Learn your first Kannada letter", "🔤", items_mastered(SkillCategory.ALPHABET, 1),
    ),
    AchievementDefinition(
        "first_word", "Word Wizard", "ಪದ ವಿಜಾರ್ಡ್",
        "Learn your first Kannada word", "📝", items_mastered(SkillCategory.VOCABULARY, 1),
    ),
    # Games
    AchievementDefinition(
        "five_games", "Getting Started", "ಪ್ರಾರಂಭಿಸುವುದು",
        "Complete 5 games", "🌟", games_played(5),
    ),
    AchievementDefinition(
        "ten_games", "Dedicated Learner", "ಸಮರ್ಪಿತ ಕಲಿಯುವವರು",
        "Complete 10 games", "⭐", games_played(10),
    ),
    AchievementDefinition(
        "twenty_five_games", "Persistent Player", "ನಿರಂತರ ಆಟಗಾರ",
        "Complete 25 games", "🏅", games_played(25),
    ),
    # Letters
    AchievementDefinition(
        "five_letters", "Vowel Master", "ಸ್ವರ ಮಾಸ್ಟರ್",
        "Master 5 Kannada letters", "📚", items_mastered(SkillCategory.ALPHABET, 5),
    ),
    AchievementDefinition(
        "ten_letters", "Alphabet Explorer", "ವರ್ಣಮಾಲೆ ಪರಿಶೋಧಕ",
        "Master 10 Kannada letters", "🎓", items_mastered(SkillCategory.ALPHABET, 10),
    ),
    # Words
    AchievementDefinition(
        "ten_words", "Vocabulary Builder", "ಶಬ್ದಕೋಶ ನಿರ್ಮಾಪಕ",
        "Master 10 Kannada words", "📖", items_mastered(SkillCategory.VOCABULARY, 10),
    ),
    AchievementDefinition(
        "twenty_five_words", "Word Champion", "ಪದ ಚಾಂಪಿಯನ್",
        "Master 25 Kannada words", "🏆", items_mastered(SkillCategory.VOCABULARY, 25),
    ),
    # Score
    AchievementDefinition(
        "thousand_points", "Point Collector", "ಪಾಯಿಂಟ್ ಸಂಗ್ರಾಹಕ",
        "Score 1000 total points", "💯", total_score(1000),
    ),
    AchievementDefinition(
        "five_thousand_points", "High Scorer", "ಹೆಚ್ಚಿನ ಸ್ಕೋರರ್",
        "Score 5000 total points", "🎯", total_score(5000),
    ),
    # Stars
    AchievementDefinition(
        "ten_stars", "Rising Star", "ಏರುತ್ತಿರುವ ನಕ್ಷತ್ರ",
        "Earn 10 stars", "⭐", total_stars(10),
    ),
    AchievementDefinition(
        "thirty_stars", "Star Collector", "ನಕ್ಷತ್ರ ಸಂಗ್ರಾಹಕ",
        "Earn 30 stars", "🌟", total_stars(30),
    ),
    # Accuracy
    AchievementDefinition(
        "perfect_accuracy", "Perfect Performance", "ಪರಿಪೂರ್ಣ ಪ್ರದರ್ಶನ",
        "Achieve 100% accuracy in any category", "💎", categories_at_accuracy(1.0, 1),
    ),
    AchievementDefinition(
        "expert_learner", "Expert Learner", "ತಜ್ಞ ಕಲಿಯುವವರು",
        "Achieve 90%+ accuracy in 3 categories", "🎖️", categories_at_accuracy(0.9, 3),
    ),
]

ACHIEVEMENTS: dict[str, AchievementDefinition] = {a.id: a for a in _ACHIEVEMENTS}

_BADGES = [
    BadgeDefinition("vowel_novice", "Vowel Novice", "ಸ್ವರ ಹೊಸಬ", "Complete vowel learning", "🔰", "#4CAF50"),
    BadgeDefinition("consonant_learner", "Consonant Learner", "ವ್ಯಂಜನ ಕಲಿಯುವವರು", "Master consonants", "📘", "#2196F3"),
    BadgeDefinition("word_master", "Word Master", "ಪದ ಮಾಸ್ಟರ್", "Excel in vocabulary", "📕", "#F44336"),
    BadgeDefinition("sentence_builder", "Sentence Builder", "ವಾಕ್ಯ ನಿರ್ಮಾಣಕಾರ", "Master sentence formation", "📗", "#FF9800"),
    BadgeDefinition("reading_champion", "Reading Champion", "ಓದುವ ಚಾಂಪಿಯನ್", "Excellent reading skills", "📙", "#9C27B0"),
    BadgeDefinition("listening_expert", "Listening Expert", "ಕೇಳುವ ತಜ್ಞ", "Master pronunciation recognition", "👂", "#00BCD4"),
]

BADGES: dict[str, BadgeDefinition] = {b.id: b for b in _BADGES}

BADGE_PREFIX = "badge_"
