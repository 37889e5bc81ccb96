"""
Adaptive Recommendation Engine.

Decides what the learner sees next:
- Difficulty recommendation per category
- Content sampling (difficulty filtering, SRS review blending)
- Weak-area detection, next-activity suggestions, learning path
- Learning velocity, personalized hints, success prediction

Reads the ProfileStore and writes SRS results back through it.
"""

from __future__ import annotations

import random
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

from loguru import logger

from src.core.catalog import (
    ContentItem,
    Difficulty,
    SkillCategory,
    activities_for_category,
)
from src.progress.models import SkillRecord, SRSEntry
from src.progress.store import ProfileStore
from src.srs.scheduler import DueItem, SM2Scheduler

T = TypeVar("T")

# =============================================================================
# Configuration
# =============================================================================


@dataclass
class EngineConfig:
    """Thresholds for recommendations and analytics."""

    # (difficulty, minimum level, minimum accuracy), hardest first
    difficulty_rules: tuple[tuple[Difficulty, int, float], ...] = (
        (Difficulty.ADVANCED, 3, 0.85),
        (Difficulty.INTERMEDIATE, 2, 0.75),
    )
    mastery_level: int = 3

    weak_area_min_attempts: int = 5
    weak_area_accuracy: float = 0.6

    review_share: float = 0.3  # Share of selected content for due reviews
    velocity_window_days: int = 7
    improving_accuracy: float = 0.8

    # Success prediction
    neutral_probability: float = 0.5
    prior_attempts: int = 2
    difficulty_offsets: dict[Difficulty, float] = field(
        default_factory=lambda: {
            Difficulty.BEGINNER: 0.1,
            Difficulty.INTERMEDIATE: 0.0,
            Difficulty.ADVANCED: -0.1,
        }
    )

    # Hints
    familiar_mastery: float = 0.6


# =============================================================================
# Results
# =============================================================================


@dataclass
class WeakArea:
    category: SkillCategory
    accuracy: float
    attempts: int


@dataclass
class LearningPathStep:
    """One not-yet-mastered category on the learning path."""

    category: SkillCategory
    current_level: int
    accuracy: float
    recommended_games: list[str]
    difficulty: Difficulty


@dataclass
class LearningVelocity:
    attempts_per_day: float
    current_accuracy: float
    mastery_rate: float
    accuracy_trend: str  # stable | improving | needs-work


# =============================================================================
# Engine
# =============================================================================


class RecommendationEngine:
    """
    Adaptive difficulty and content selection over a learner profile.

    Key principles:
    1. New learners start at beginner difficulty
    2. Due reviews get a fixed share of every selection
    3. Sparse data never marks a category as weak
    4. Mastered categories drop out of the learning path
    """

    def __init__(
        self,
        store: ProfileStore,
        scheduler: SM2Scheduler | None = None,
        rng: random.Random | None = None,
        config: EngineConfig | None = None,
    ):
        """
        Initialize the engine.

        Args:
            store: ProfileStore holding the learner profile
            scheduler: SM2Scheduler (creates default if None)
            rng: Random source for sampling (seed it for reproducible picks)
            config: Thresholds (uses defaults if None)
        """
        self.store = store
        self.scheduler = scheduler or SM2Scheduler()
        self.rng = rng or random.Random()
        self.config = config or EngineConfig()

    def _skill(self, category: SkillCategory | str) -> SkillRecord | None:
        return self.store.get_skill(category)

    # =========================================================================
    # Difficulty
    # =========================================================================

    def recommended_difficulty(self, category: SkillCategory | str) -> Difficulty:
        """Difficulty tier matching the learner's level and accuracy in a category."""
        skill = self._skill(category)
        if skill is None or skill.total_attempts == 0:
            return Difficulty.BEGINNER

        for difficulty, min_level, min_accuracy in self.config.difficulty_rules:
            if skill.level >= min_level and skill.accuracy >= min_accuracy:
                return difficulty
        return Difficulty.BEGINNER

    # =========================================================================
    # Content Selection
    # =========================================================================

    def select_random(self, pool: Sequence[T], count: int) -> list[T]:
        """Uniform sample without replacement; the whole pool if count exceeds it."""
        items = list(pool)
        if count <= 0:
            return []
        if count >= len(items):
            return items
        return self.rng.sample(items, count)

    def select_by_difficulty(
        self,
        pool: Sequence[ContentItem],
        difficulty: Difficulty | str,
        count: int,
    ) -> list[ContentItem]:
        """
        Sample items of one difficulty.

        Returns every match when fewer than `count` exist; never pads
        with items of another difficulty.
        """
        difficulty = Difficulty(difficulty)
        matches = [item for item in pool if item.difficulty == difficulty]
        return self.select_random(matches, count)

    def select_content_for_student(
        self,
        category: SkillCategory | str,
        pool: Sequence[ContentItem],
        count: int,
    ) -> list[ContentItem]:
        """
        Build the next batch of content for a category.

        Order of preference:
        1. Due SRS reviews, most overdue first (up to the review share,
           never less than one slot)
        2. Unmastered items at the recommended difficulty
        3. Any remaining items at the recommended difficulty
        4. Unmastered items at other difficulties
        5. Anything left

        Returns:
            Exactly min(count, len(pool)) items, none repeated
        """
        items = list(pool)
        target = min(max(count, 0), len(items))
        if target == 0:
            return []

        skill = self._skill(category)
        mastered = set(skill.mastered_items) if skill else set()
        difficulty = self.recommended_difficulty(category)

        remaining = list(range(len(items)))
        chosen: list[int] = []

        def take(indexes: list[int]) -> None:
            for i in indexes:
                chosen.append(i)
                remaining.remove(i)

        def fill(candidates: list[int]) -> None:
            take(self.select_random(candidates, target - len(chosen)))

        # 1. Due reviews, at least one slot in any batch
        review_slots = int(target * self.config.review_share)
        if self.config.review_share > 0:
            review_slots = max(1, review_slots)
        due = self.get_due_items(category, [items[i].item_id for i in remaining])
        for due_item in due:
            if len(chosen) >= review_slots:
                break
            index = next((i for i in remaining if items[i].item_id == due_item.item), None)
            if index is not None:
                take([index])

        # 2-5. Fresh content, widening the net until the batch is full
        fill([i for i in remaining if items[i].item_id not in mastered and items[i].difficulty == difficulty])
        fill([i for i in remaining if items[i].difficulty == difficulty])
        fill([i for i in remaining if items[i].item_id not in mastered])
        fill(list(remaining))

        name = category.value if isinstance(category, SkillCategory) else category
        logger.debug(
            f"Selected {len(chosen)} {name} items at {difficulty.value} "
            f"({min(len(due), review_slots)} reviews)"
        )
        return [items[i] for i in chosen]

    # =========================================================================
    # Spaced Repetition
    # =========================================================================

    def review_item(self, item_id: str, quality: int) -> SRSEntry:
        """
        Grade a review of an item and persist its new SRS state.

        Args:
            item_id: Letter, word or phrase reviewed
            quality: SM-2 grade (0-5)

        Returns:
            The stored SRSEntry
        """
        now = self.store.now()
        entry = self.store.get_srs_entry(item_id)

        if entry is None:
            updated = self.scheduler.initialize(item_id, quality, now)
        else:
            updated = self.scheduler.review(entry, quality, now)

        self.store.update_srs_entry(item_id, updated)
        logger.debug(
            f"Reviewed {item_id}: quality={quality}, interval={updated.interval}d, "
            f"ease={updated.ease_factor:.2f}"
        )
        return updated

    def review_response(self, item_id: str, correct: bool, response_ms: int) -> SRSEntry:
        """Grade a timed answer and schedule the item's next review."""
        quality = self.scheduler.grade_from_response(correct, response_ms)
        return self.review_item(item_id, quality)

    def get_due_items(self, category: SkillCategory | str, item_ids: Collection[str]) -> list[DueItem]:
        """Due reviews among the given items of a category."""
        if self._skill(category) is None:
            return []
        return self.scheduler.due_items(self.store.srs_data, item_ids, self.store.now())

    def calculate_mastery(self, item_id: str) -> float:
        return self.scheduler.mastery(item_id, self.store.srs_data)

    # =========================================================================
    # Analytics
    # =========================================================================

    def identify_weak_areas(self) -> list[WeakArea]:
        """Categories with enough attempts and low accuracy, weakest first."""
        weak = [
            WeakArea(category=category, accuracy=skill.accuracy, attempts=skill.total_attempts)
            for category, skill in self.store.profile.skills.items()
            if skill.total_attempts >= self.config.weak_area_min_attempts
            and skill.accuracy < self.config.weak_area_accuracy
        ]
        weak.sort(key=lambda w: w.accuracy)
        return weak

    def get_games_for_category(self, category: SkillCategory | str) -> list[str]:
        """Scene keys training a category; empty for unknown categories."""
        if self._skill(category) is None:
            return []
        return [activity.value for activity in activities_for_category(category)]

    def suggest_next_game(self) -> list[str]:
        """
        Activities to play next.

        Targets the weakest category; without weak areas, the category
        with the fewest attempts.
        """
        weak = self.identify_weak_areas()
        if weak:
            return self.get_games_for_category(weak[0].category)

        skills = self.store.profile.skills
        least_practiced = min(SkillCategory, key=lambda c: skills[c].total_attempts)
        return self.get_games_for_category(least_practiced)

    def generate_learning_path(self) -> list[LearningPathStep]:
        """Curriculum-ordered steps for every category below mastery level."""
        path = []
        for category in SkillCategory:
            skill = self.store.profile.skills[category]
            if skill.level >= self.config.mastery_level:
                continue
            path.append(
                LearningPathStep(
                    category=category,
                    current_level=skill.level,
                    accuracy=skill.accuracy,
                    recommended_games=self.get_games_for_category(category),
                    difficulty=self.recommended_difficulty(category),
                )
            )
        return path

    def analyze_learning_velocity(
        self,
        category: SkillCategory | str,
        window_days: int | None = None,
    ) -> LearningVelocity:
        """
        Practice rate and progress in a category.

        Args:
            category: Category to analyze
            window_days: Days the attempts are spread over (at least 1)

        Returns:
            LearningVelocity; all zeros before the first attempt
        """
        skill = self._skill(category)
        if skill is None or skill.total_attempts == 0:
            return LearningVelocity(0.0, 0.0, 0.0, "stable")

        if window_days is None:
            window_days = self.config.velocity_window_days
        window = max(1, window_days)
        known = len(skill.known_items)
        mastery_rate = len(skill.mastered_items) / known if known else 0.0

        return LearningVelocity(
            attempts_per_day=skill.total_attempts / window,
            current_accuracy=skill.accuracy,
            mastery_rate=mastery_rate,
            accuracy_trend="improving" if skill.accuracy >= self.config.improving_accuracy else "needs-work",
        )

    def get_personalized_hint(self, category: SkillCategory | str, item_id: str) -> str:
        """Hint text reflecting how familiar the learner is with an item."""
        try:
            noun = SkillCategory(category).item_noun
        except ValueError:
            noun = "word"

        if self.store.get_srs_entry(item_id) is None:
            return f"This is a new {noun}. Listen carefully to the pronunciation."

        if self.calculate_mastery(item_id) < self.config.familiar_mastery:
            return "You've seen this before. Try to remember the pronunciation."
        return "You're doing great with this one! Keep it up!"

    def predict_success_probability(
        self,
        category: SkillCategory | str,
        difficulty: Difficulty | str,
    ) -> float:
        """
        Chance of succeeding at the next activity.

        Accuracy is shrunk toward 0.5 by a small prior so a handful of
        attempts cannot produce a certain prediction, then shifted by the
        target difficulty.

        Returns:
            Probability in [0, 1]; 0.5 with no attempts
        """
        skill = self._skill(category)
        if skill is None or skill.total_attempts == 0:
            return self.config.neutral_probability

        k = self.config.prior_attempts
        estimate = (skill.correct_attempts + self.config.neutral_probability * k) / (
            skill.total_attempts + k
        )
        estimate += self.config.difficulty_offsets[Difficulty(difficulty)]
        return max(0.0, min(1.0, estimate))
