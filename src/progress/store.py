"""
Learner Profile Store.

Owns the single in-memory LearnerProfile and its persisted copy:
- Skill ledger (attempt counters, levels, mastered items)
- SM-2 spaced repetition state per item
- Activity history and aggregate progress
- Unlocked achievements

Every mutation validates the in-memory profile before writing it. A
failed write is reported and the session continues on the in-memory
state; corrupt stored data is replaced by a fresh profile on load.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from loguru import logger

from src.core.catalog import Activity, Difficulty, SkillCategory, category_for_activity
from src.core.events import EventBus, ProgressEvent
from src.core.storage import KeyValueStorage, StorageError
from src.core.telemetry import ErrorReporter
from src.progress.models import (
    DEFAULT_PLAYER_NAME,
    ActivityRecord,
    LearnerProfile,
    SkillRecord,
    SRSEntry,
    UnlockedAchievement,
    utcnow,
)
from src.progress.validation import (
    ProfileValidationError,
    migrate_profile,
    sanitize,
    sanitize_string,
    validate_profile,
)

# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class ActivityStats:
    """Per-play statistics reported alongside an activity score."""

    total_attempts: int = 0
    correct_attempts: int = 0
    play_time: int = 0  # seconds

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> ActivityStats:
        """Accept snake_case or camelCase keys; missing keys count as 0."""
        data = data or {}

        def pick(snake: str, camel: str) -> int:
            value = data.get(snake, data.get(camel, 0))
            try:
                return max(0, int(value or 0))
            except (TypeError, ValueError):
                logger.warning(f"Ignoring non-numeric activity stat {snake}={value!r}")
                return 0

        return cls(
            total_attempts=pick("total_attempts", "totalAttempts"),
            correct_attempts=pick("correct_attempts", "correctAttempts"),
            play_time=pick("play_time", "playTime"),
        )


@dataclass
class SkillStanding:
    """A category's standing for strengths/weaknesses reports."""

    category: SkillCategory
    accuracy: float
    level: int


@dataclass
class StrengthsWeaknesses:
    strengths: list[SkillStanding] = field(default_factory=list)
    weaknesses: list[SkillStanding] = field(default_factory=list)


@dataclass
class ProfileSummary:
    """Headline numbers for the profile screen."""

    player_name: str
    level: int
    total_score: int
    total_stars: int
    games_played: int
    letters_learned: int
    words_learned: int
    created_at: datetime
    last_played: datetime


# =============================================================================
# Profile Store
# =============================================================================


class ProfileStore:
    """
    Persistence and invariant enforcement for the learner profile.

    The recommendation engine and reward evaluator read `profile` and go
    through the mutation methods here; they never change fields directly.
    """

    DEFAULT_STORAGE_KEY = "kannada_learning_progress"

    # (level, minimum accuracy, minimum attempts), highest first
    LEVEL_THRESHOLDS: tuple[tuple[int, float, int], ...] = (
        (3, 0.9, 50),
        (2, 0.8, 30),
        (1, 0.7, 10),
    )

    # (stars, minimum score), highest first
    STAR_THRESHOLDS: tuple[tuple[int, int], ...] = (
        (3, 150),
        (2, 100),
        (1, 50),
    )

    STRENGTH_MIN_ATTEMPTS = 10
    STRENGTH_ACCURACY = 0.8
    WEAKNESS_ACCURACY = 0.6

    def __init__(
        self,
        storage: KeyValueStorage,
        events: EventBus | None = None,
        reporter: ErrorReporter | None = None,
        storage_key: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the store and load the persisted profile.

        Args:
            storage: Key-value persistence backend
            events: Notification channel (private bus if None)
            reporter: Telemetry sink for recovered failures
            storage_key: Key the profile is stored under
            clock: Source of the current UTC time
        """
        self.storage = storage
        self.events = events or EventBus()
        self.reporter = reporter or ErrorReporter()
        self.storage_key = storage_key or self.DEFAULT_STORAGE_KEY
        self.clock = clock or utcnow

        self._lock = threading.RLock()
        self.profile = self.load()

        logger.info(f"ProfileStore loaded profile {self.profile.profile_id}")

    def now(self) -> datetime:
        return self.clock()

    # =========================================================================
    # Load / Save / Reset
    # =========================================================================

    def load(self) -> LearnerProfile:
        """
        Read the stored profile.

        Missing, unparsable, unmigratable or invalid data yields a fresh
        default profile; the failure is reported, never raised.

        Returns:
            The stored profile or a new default one
        """
        context = {"key": self.storage_key, "operation": "load"}

        try:
            raw = self.storage.get(self.storage_key)
        except StorageError as e:
            self.reporter.report(e, context)
            return self._default_profile()

        if raw is None:
            logger.debug(f"No stored profile under {self.storage_key}, creating one")
            return self._default_profile()

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            self.reporter.report(ProfileValidationError(f"Invalid JSON in storage: {e}"), context)
            return self._default_profile()

        if not isinstance(data, dict):
            self.reporter.report(ProfileValidationError("Profile must be an object"), context)
            return self._default_profile()

        try:
            data = migrate_profile(data)
        except ProfileValidationError as e:
            self.reporter.report(e, context)
            return self._default_profile()

        result = validate_profile(sanitize(data))
        if not result.valid:
            self.reporter.report(
                ProfileValidationError(f"Invalid profile data: {result.error}"), context
            )
            return self._default_profile()

        return result.profile

    def save(self) -> bool:
        """
        Validate and persist the in-memory profile.

        Returns:
            True if written; False if refused or the write failed (reported)
        """
        with self._lock:
            context = {"key": self.storage_key, "operation": "save"}
            self.profile.last_played = self.now()

            result = validate_profile(self.profile)
            if not result.valid:
                self.reporter.report(
                    ProfileValidationError(f"Cannot save invalid profile: {result.error}"),
                    context,
                )
                return False

            payload = json.dumps(sanitize(result.profile), ensure_ascii=False)
            try:
                self.storage.set(self.storage_key, payload)
            except StorageError as e:
                self.reporter.report(e, context)
                return False

            self.events.emit(
                ProgressEvent.SAVED,
                {"profile_id": self.profile.profile_id, "bytes": len(payload.encode("utf-8"))},
            )
            return True

    def reset(self) -> LearnerProfile:
        """Replace the profile with a fresh default and persist it."""
        with self._lock:
            old_id = self.profile.profile_id
            self.profile = self._default_profile()
            self.save()

            logger.info(f"Profile {old_id} reset to {self.profile.profile_id}")
            self.events.emit(ProgressEvent.RESET, {"profile_id": self.profile.profile_id})
            return self.profile

    def _default_profile(self) -> LearnerProfile:
        return LearnerProfile.create(now=self.now())

    def _checkpoint(self) -> LearnerProfile:
        return self.profile.model_copy(deep=True)

    def _commit(self, checkpoint: LearnerProfile, operation: str) -> bool:
        """
        Validate a mutation and persist it.

        An invalid profile is replaced by the checkpoint taken before the
        mutation, so one bad update cannot block later saves.

        Args:
            checkpoint: Copy of the profile taken before mutating
            operation: Name of the mutator, for the error report

        Returns:
            False if the mutation was rolled back
        """
        result = validate_profile(self.profile)
        if not result.valid:
            self.reporter.report(
                ProfileValidationError(f"Rejected {operation}: {result.error}"),
                {"key": self.storage_key, "operation": operation},
            )
            self.profile = checkpoint
            return False

        self.save()
        return True

    # =========================================================================
    # Skill Ledger
    # =========================================================================

    def _resolve_category(self, category: SkillCategory | str) -> SkillCategory | None:
        try:
            return SkillCategory(category)
        except ValueError:
            logger.warning(f"Unknown skill category: {category!r}")
            return None

    def get_skill(self, category: SkillCategory | str) -> SkillRecord | None:
        """Skill record for a category, None for unknown categories."""
        resolved = self._resolve_category(category)
        return self.profile.skills[resolved] if resolved else None

    def record_attempt(
        self,
        category: SkillCategory | str,
        item_id: str,
        correct: bool,
    ) -> SkillRecord | None:
        """
        Record one answer in a category.

        Args:
            category: Skill category the item belongs to
            item_id: Letter, word or phrase attempted
            correct: Whether the answer was right

        Returns:
            Updated SkillRecord, or None for an unknown category
        """
        with self._lock:
            resolved = self._resolve_category(category)
            if resolved is None:
                return None

            checkpoint = self._checkpoint()
            skill = self.profile.skills[resolved]
            skill.total_attempts += 1
            if correct:
                skill.correct_attempts += 1
            if item_id and item_id not in skill.seen_items:
                skill.seen_items.append(item_id)

            self._update_level(resolved, skill)
            if not self._commit(checkpoint, "record_attempt"):
                return None

            logger.debug(
                f"Attempt {resolved.value}/{item_id}: correct={correct}, "
                f"accuracy={skill.accuracy:.2f} ({skill.correct_attempts}/{skill.total_attempts})"
            )
            return skill

    def _update_level(self, category: SkillCategory, skill: SkillRecord) -> bool:
        """Raise the level when thresholds are met. Levels never drop."""
        for level, min_accuracy, min_attempts in self.LEVEL_THRESHOLDS:
            if skill.accuracy >= min_accuracy and skill.total_attempts >= min_attempts:
                if level > skill.level:
                    logger.info(f"{category.value} leveled up: {skill.level} -> {level}")
                    skill.level = level
                    return True
                return False
        return False

    def mark_item_mastered(self, category: SkillCategory | str, item_id: str) -> bool:
        """
        Add an item to a category's mastered set.

        Returns:
            True if newly mastered, False if already mastered or category unknown
        """
        with self._lock:
            resolved = self._resolve_category(category)
            if resolved is None or not item_id:
                return False

            skill = self.profile.skills[resolved]
            if item_id in skill.mastered_items:
                return False

            checkpoint = self._checkpoint()
            skill.mastered_items.append(item_id)
            if not self._commit(checkpoint, "mark_item_mastered"):
                return False

            event = (
                ProgressEvent.LETTER_MASTERED
                if resolved is SkillCategory.ALPHABET
                else ProgressEvent.WORD_MASTERED
            )
            self.events.emit(
                event,
                {
                    "item": item_id,
                    "category": resolved.value,
                    "total_mastered": len(skill.mastered_items),
                },
            )
            return True

    # =========================================================================
    # Activity History
    # =========================================================================

    @classmethod
    def calculate_stars(cls, score: int) -> int:
        """Star grade for a single play."""
        for stars, min_score in cls.STAR_THRESHOLDS:
            if score >= min_score:
                return stars
        return 0

    def record_activity_completion(
        self,
        activity_id: Activity | str,
        score: int,
        stats: ActivityStats | Mapping[str, Any] | None = None,
    ) -> ActivityRecord | None:
        """
        Record a finished play of an activity.

        Updates the activity's history, the aggregate progress and, for
        catalog activities, the counters of the category it trains.

        Args:
            activity_id: Activity member or scene key
            score: Points earned in this play
            stats: Attempt counts and play time for this play

        Returns:
            The updated ActivityRecord, or None if the update was rejected
        """
        with self._lock:
            if not isinstance(stats, ActivityStats):
                stats = ActivityStats.from_mapping(stats)

            try:
                score = int(score)
            except (TypeError, ValueError, OverflowError):
                logger.warning(f"Non-numeric score {score!r} for {activity_id}, recording 0")
                score = 0
            if score < 0:
                logger.warning(f"Negative score {score} for {activity_id}, recording 0")
                score = 0

            key = activity_id.value if isinstance(activity_id, Activity) else str(activity_id)
            now = self.now()
            checkpoint = self._checkpoint()

            history = self.profile.game_history.setdefault(key, ActivityRecord())
            history.plays += 1
            history.total_score += score
            history.best_score = max(history.best_score, score)
            history.last_played = now

            stars = self.calculate_stars(score)
            history.stars = max(history.stars, stars)

            progress = self.profile.progress
            progress.games_played += 1
            progress.total_score += score
            progress.total_stars += stars
            progress.total_play_time += stats.play_time

            category = category_for_activity(key)
            if category is None:
                logger.warning(f"Activity {key} has no skill category; skill counters unchanged")
            else:
                self._fold_stats(category, stats)

            if not self._commit(checkpoint, "record_activity_completion"):
                return None

            self.events.emit(
                ProgressEvent.GAME_RECORDED,
                {
                    "activity_id": key,
                    "score": score,
                    "stars": stars,
                    "plays": history.plays,
                    "best_score": history.best_score,
                },
            )
            return history

    def _fold_stats(self, category: SkillCategory, stats: ActivityStats) -> None:
        skill = self.profile.skills[category]
        skill.total_attempts += stats.total_attempts
        skill.correct_attempts = min(
            skill.correct_attempts + stats.correct_attempts,
            skill.total_attempts,
        )
        self._update_level(category, skill)

    def get_activity_stats(self, activity_id: Activity | str) -> ActivityRecord | None:
        key = activity_id.value if isinstance(activity_id, Activity) else str(activity_id)
        return self.profile.game_history.get(key)

    # =========================================================================
    # Achievements
    # =========================================================================

    def has_achievement(self, achievement_id: str) -> bool:
        return self.profile.has_achievement(achievement_id)

    def unlock_achievement(self, achievement_id: str) -> bool:
        """
        Append an achievement id to the profile.

        Returns:
            True if newly unlocked, False if it was already present
        """
        with self._lock:
            if self.profile.has_achievement(achievement_id):
                return False

            checkpoint = self._checkpoint()
            self.profile.achievements.append(
                UnlockedAchievement(id=achievement_id, unlocked_at=self.now())
            )
            if not self._commit(checkpoint, "unlock_achievement"):
                return False

            self.events.emit(ProgressEvent.ACHIEVEMENT_UNLOCKED, {"achievement_id": achievement_id})
            return True

    # =========================================================================
    # Spaced Repetition State
    # =========================================================================

    @property
    def srs_data(self) -> Mapping[str, SRSEntry]:
        return self.profile.srs_data

    def get_srs_entry(self, item_id: str) -> SRSEntry | None:
        return self.profile.srs_data.get(item_id)

    def update_srs_entry(self, item_id: str, entry: SRSEntry) -> bool:
        """
        Store the new SM-2 state of an item and persist.

        Returns:
            False if the entry was invalid and not stored
        """
        with self._lock:
            checkpoint = self._checkpoint()
            self.profile.srs_data[item_id] = entry
            return self._commit(checkpoint, "update_srs_entry")

    # =========================================================================
    # Reports
    # =========================================================================

    def get_strengths_weaknesses(self) -> StrengthsWeaknesses:
        """Split well-practiced categories into strengths and weaknesses."""
        report = StrengthsWeaknesses()

        for category, skill in self.profile.skills.items():
            if skill.total_attempts <= self.STRENGTH_MIN_ATTEMPTS:
                continue
            standing = SkillStanding(category, skill.accuracy, skill.level)
            if skill.accuracy >= self.STRENGTH_ACCURACY:
                report.strengths.append(standing)
            elif skill.accuracy < self.WEAKNESS_ACCURACY:
                report.weaknesses.append(standing)

        return report

    def get_profile_summary(self) -> ProfileSummary:
        profile = self.profile
        return ProfileSummary(
            player_name=profile.player_name,
            level=profile.progress.level,
            total_score=profile.progress.total_score,
            total_stars=profile.progress.total_stars,
            games_played=profile.progress.games_played,
            letters_learned=profile.mastered_count(SkillCategory.ALPHABET),
            words_learned=profile.mastered_count(SkillCategory.VOCABULARY),
            created_at=profile.created_at,
            last_played=profile.last_played,
        )

    # =========================================================================
    # Settings
    # =========================================================================

    def set_player_name(self, name: str) -> str:
        """Store a sanitized display name and return it."""
        with self._lock:
            checkpoint = self._checkpoint()
            self.profile.player_name = sanitize_string(name) or DEFAULT_PLAYER_NAME
            self._commit(checkpoint, "set_player_name")
            return self.profile.player_name

    def set_difficulty(self, difficulty: Difficulty | str) -> bool:
        """Store the preferred difficulty. Unknown values are ignored."""
        with self._lock:
            try:
                difficulty = Difficulty(difficulty)
            except ValueError:
                logger.warning(f"Unknown difficulty: {difficulty!r}")
                return False

            checkpoint = self._checkpoint()
            self.profile.settings.difficulty = difficulty
            return self._commit(checkpoint, "set_difficulty")

    # =========================================================================
    # Export / Import
    # =========================================================================

    def export_profile(self) -> str:
        """Profile as pretty-printed JSON."""
        with self._lock:
            return json.dumps(sanitize(self.profile), indent=2, ensure_ascii=False)

    def import_profile(self, text: str) -> bool:
        """
        Replace the profile with exported JSON.

        The current profile is kept if the text cannot be parsed,
        migrated or validated.

        Returns:
            True if the import was applied
        """
        with self._lock:
            context = {"operation": "import"}
            try:
                data = json.loads(text)
                if not isinstance(data, dict):
                    raise ProfileValidationError("Profile must be an object")
                data = migrate_profile(data)
            except (json.JSONDecodeError, ProfileValidationError) as e:
                self.reporter.report(e, context)
                return False

            result = validate_profile(sanitize(data))
            if not result.valid:
                self.reporter.report(
                    ProfileValidationError(f"Invalid profile data: {result.error}"), context
                )
                return False

            self.profile = result.profile
            self.save()

            self.events.emit(ProgressEvent.IMPORTED, {"profile_id": self.profile.profile_id})
            return True
