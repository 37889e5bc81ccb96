"""Achievements, badges and star grading."""

from src.rewards.achievements import ACHIEVEMENTS, BADGES, AchievementDefinition, BadgeDefinition
from src.rewards.evaluator import AchievementProgress, RewardEvaluator

__all__ = [
    "ACHIEVEMENTS",
    "BADGES",
    "AchievementDefinition",
    "AchievementProgress",
    "BadgeDefinition",
    "RewardEvaluator",
]
