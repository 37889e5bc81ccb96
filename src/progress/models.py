"""
Learner Profile Models.

The persisted learner aggregate and its parts:
- SkillRecord: per-category counters and mastered items
- SRSEntry: spaced repetition state for one item
- ActivityRecord: per-activity play history
- LearnerProfile: the root aggregate, one per install

Field names are snake_case in Python and camelCase in the stored JSON.
Derived values (accuracy, average score) are computed from their counters
and never read back from storage.
"""

from __future__ import annotations

import random
import string
from datetime import datetime, timezone
from typing import Annotated

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from src.core.catalog import Difficulty, SkillCategory

SCHEMA_VERSION = "1.1.0"
VERSION_PATTERN = r"^\d+\.\d+\.\d+$"
DEFAULT_PLAYER_NAME = "Student"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_ensure_utc)]


class ProfileModel(BaseModel):
    """Base for every persisted model."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# Skill Ledger
# =============================================================================


class SkillRecord(ProfileModel):
    """Counters and mastered items for one skill category."""

    level: int = Field(default=0, ge=0)
    total_attempts: int = Field(default=0, ge=0)
    correct_attempts: int = Field(default=0, ge=0)
    mastered_items: list[str] = Field(default_factory=list)
    seen_items: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def accuracy(self) -> float:
        """Fraction of correct attempts (0 before the first attempt)."""
        if self.total_attempts == 0:
            return 0.0
        return self.correct_attempts / self.total_attempts

    @property
    def known_items(self) -> set[str]:
        """Items the learner has attempted or mastered."""
        return set(self.seen_items) | set(self.mastered_items)

    @field_validator("mastered_items", "seen_items")
    @classmethod
    def _dedupe(cls, items: list[str]) -> list[str]:
        return list(dict.fromkeys(items))

    @model_validator(mode="after")
    def _check_counts(self) -> SkillRecord:
        if self.correct_attempts > self.total_attempts:
            raise ValueError(
                f"correctAttempts ({self.correct_attempts}) cannot exceed "
                f"totalAttempts ({self.total_attempts})"
            )
        return self


# =============================================================================
# Spaced Repetition
# =============================================================================


class SRSEntry(ProfileModel):
    """SM-2 state for a single learnable item."""

    ease_factor: float = Field(default=2.5, ge=1.3)
    interval: int = Field(default=1, ge=1)  # days
    review_count: int = Field(default=0, ge=0)
    next_review: UtcDatetime
    last_review: UtcDatetime | None = None

    def is_due(self, now: datetime) -> bool:
        """Whether the item should be reviewed at `now`."""
        return _ensure_utc(now) >= self.next_review

    def days_due(self, now: datetime) -> int:
        """Whole days past the scheduled review (0 if not yet due)."""
        overdue = _ensure_utc(now) - self.next_review
        return max(0, int(overdue.total_seconds() // 86400))


# =============================================================================
# Activity History
# =============================================================================


class ActivityRecord(ProfileModel):
    """Play history for one activity."""

    plays: int = Field(default=0, ge=0)
    best_score: int = Field(default=0, ge=0)
    total_score: int = Field(default=0, ge=0)
    stars: int = Field(default=0, ge=0, le=3)
    last_played: UtcDatetime | None = None

    @computed_field
    @property
    def average_score(self) -> int:
        """Floored mean score per play."""
        if self.plays == 0:
            return 0
        return self.total_score // self.plays


class UnlockedAchievement(ProfileModel):
    """An achievement (or badge) the learner has earned."""

    id: str = Field(min_length=1)
    unlocked_at: UtcDatetime = Field(default_factory=utcnow)


# =============================================================================
# Profile
# =============================================================================


class ProgressTotals(ProfileModel):
    """Aggregate counters across all activities."""

    level: int = Field(default=1, ge=1)
    total_score: int = Field(default=0, ge=0)
    total_stars: int = Field(default=0, ge=0)
    games_played: int = Field(default=0, ge=0)
    total_play_time: int = Field(default=0, ge=0)  # seconds


class ProfileSettings(ProfileModel):
    """Learner-facing preferences."""

    difficulty: Difficulty = Difficulty.BEGINNER
    show_hints: bool = True
    language: str = "english"


def generate_profile_id() -> str:
    """Opaque id of the form player_<epoch-ms>_<9 base36 chars>."""
    millis = int(utcnow().timestamp() * 1000)
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"player_{millis}_{suffix}"


def _default_skills() -> dict[SkillCategory, SkillRecord]:
    return {category: SkillRecord() for category in SkillCategory}


class LearnerProfile(ProfileModel):
    """Root aggregate of everything the core knows about a learner."""

    version: str = Field(default=SCHEMA_VERSION, pattern=VERSION_PATTERN)
    profile_id: str = Field(default_factory=generate_profile_id, min_length=1)
    player_name: str = DEFAULT_PLAYER_NAME
    created_at: UtcDatetime = Field(default_factory=utcnow)
    last_played: UtcDatetime = Field(default_factory=utcnow)

    progress: ProgressTotals = Field(default_factory=ProgressTotals)
    skills: dict[SkillCategory, SkillRecord] = Field(default_factory=_default_skills)
    srs_data: dict[str, SRSEntry] = Field(default_factory=dict)
    game_history: dict[str, ActivityRecord] = Field(default_factory=dict)
    achievements: list[UnlockedAchievement] = Field(default_factory=list)
    settings: ProfileSettings = Field(default_factory=ProfileSettings)

    @field_validator("skills")
    @classmethod
    def _require_every_category(
        cls, skills: dict[SkillCategory, SkillRecord]
    ) -> dict[SkillCategory, SkillRecord]:
        missing = [c.value for c in SkillCategory if c not in skills]
        if missing:
            raise ValueError(f"skills missing: {', '.join(missing)}")
        return {c: skills[c] for c in SkillCategory}

    @field_validator("achievements")
    @classmethod
    def _one_per_id(cls, achievements: list[UnlockedAchievement]) -> list[UnlockedAchievement]:
        seen: set[str] = set()
        unique = []
        for achievement in achievements:
            if achievement.id not in seen:
                seen.add(achievement.id)
                unique.append(achievement)
        return unique

    @classmethod
    def create(cls, now: datetime | None = None) -> LearnerProfile:
        """Fresh profile for a new install."""
        now = _ensure_utc(now or utcnow())
        return cls(created_at=now, last_played=now)

    @property
    def achievement_ids(self) -> list[str]:
        return [a.id for a in self.achievements]

    def has_achievement(self, achievement_id: str) -> bool:
        return any(a.id == achievement_id for a in self.achievements)

    def mastered_count(self, category: SkillCategory) -> int:
        return len(self.skills[category].mastered_items)
