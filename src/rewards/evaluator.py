"""
Reward Evaluator.

Re-checks achievement predicates after progress changes, grades plays
with stars and grants badges. All writes go through the ProfileStore.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from loguru import logger

from src.core.events import ProgressEvent
from src.progress.store import ProfileStore
from src.rewards.achievements import (
    ACHIEVEMENTS,
    BADGE_PREFIX,
    BADGES,
    AchievementDefinition,
    BadgeDefinition,
)


@dataclass
class AchievementProgress:
    unlocked: int
    total: int
    percentage: float


class RewardEvaluator:
    """
    Unlocks achievements whose predicates hold for the current profile.

    Example:
        evaluator = RewardEvaluator(store)
        store.record_activity_completion("AksharaPopScene", 120)
        for achievement in evaluator.check_achievements():
            print(achievement.name)
    """

    # (stars, minimum score ratio, minimum accuracy), highest first
    STAR_RULES: tuple[tuple[int, float, float], ...] = (
        (3, 0.9, 0.95),
        (2, 0.7, 0.8),
        (1, 0.5, 0.6),
    )

    def __init__(
        self,
        store: ProfileStore,
        achievements: Mapping[str, AchievementDefinition] | None = None,
        badges: Mapping[str, BadgeDefinition] | None = None,
    ):
        self.store = store
        self.achievements = dict(ACHIEVEMENTS if achievements is None else achievements)
        self.badges = dict(BADGES if badges is None else badges)

    # =========================================================================
    # Achievements
    # =========================================================================

    def check_achievements(self) -> list[AchievementDefinition]:
        """
        Evaluate every catalog predicate against the current profile.

        Returns:
            Achievements unlocked by this call, in catalog order
        """
        profile = self.store.profile
        newly_unlocked = []

        for achievement in self.achievements.values():
            if self.store.has_achievement(achievement.id):
                continue
            if achievement.condition(profile) and self.store.unlock_achievement(achievement.id):
                logger.info(f"Achievement unlocked: {achievement.id} ({achievement.name})")
                newly_unlocked.append(achievement)

        return newly_unlocked

    def unlock_achievement(self, achievement_id: str) -> bool:
        """
        Unlock a catalog achievement regardless of its predicate.

        Returns:
            False for unknown or already unlocked achievements
        """
        if achievement_id not in self.achievements:
            logger.warning(f"Unknown achievement: {achievement_id!r}")
            return False
        return self.store.unlock_achievement(achievement_id)

    def get_achievement(self, achievement_id: str) -> AchievementDefinition | None:
        return self.achievements.get(achievement_id)

    def get_unlocked_achievements(self) -> list[AchievementDefinition]:
        """Unlocked catalog achievements, in unlock order."""
        return [
            self.achievements[a_id]
            for a_id in self.store.profile.achievement_ids
            if a_id in self.achievements
        ]

    def get_locked_achievements(self) -> list[AchievementDefinition]:
        return [a for a in self.achievements.values() if not self.store.has_achievement(a.id)]

    def get_achievement_progress(self) -> AchievementProgress:
        total = len(self.achievements)
        unlocked = len(self.get_unlocked_achievements())
        percentage = unlocked / total * 100 if total else 0.0
        return AchievementProgress(unlocked=unlocked, total=total, percentage=percentage)

    # =========================================================================
    # Stars
    # =========================================================================

    @classmethod
    def calculate_stars(cls, score: int, max_score: int, accuracy: float) -> int:
        """
        Grade a play from its score ratio or its accuracy, whichever is better.

        Args:
            score: Points earned
            max_score: Points available (<= 0 grades on accuracy alone)
            accuracy: Fraction of correct answers

        Returns:
            Stars 0-3
        """
        ratio = score / max_score if max_score > 0 else 0.0
        for stars, min_ratio, min_accuracy in cls.STAR_RULES:
            if ratio >= min_ratio or accuracy >= min_accuracy:
                return stars
        return 0

    # =========================================================================
    # Badges
    # =========================================================================

    def get_badge(self, badge_id: str) -> BadgeDefinition | None:
        return self.badges.get(badge_id)

    def has_badge(self, badge_id: str) -> bool:
        return self.store.has_achievement(f"{BADGE_PREFIX}{badge_id}")

    def unlock_badge(self, badge_id: str) -> bool:
        """
        Grant a badge. Badges are stored in the achievements list as `badge_<id>`.

        Returns:
            False for unknown or already granted badges
        """
        badge = self.badges.get(badge_id)
        if badge is None:
            logger.warning(f"Unknown badge: {badge_id!r}")
            return False

        if not self.store.unlock_achievement(f"{BADGE_PREFIX}{badge_id}"):
            return False

        logger.info(f"Badge unlocked: {badge_id} ({badge.name})")
        self.store.events.emit(ProgressEvent.BADGE_UNLOCKED, {"badge_id": badge_id})
        return True
