"""
SM-2 Spaced Repetition Scheduler.

Pure functions over SRSEntry values; nothing here reads or writes the
profile. The current time is always passed in.

SM-2 Grade Scale:
0 - Complete blackout, wrong response
1 - Incorrect, but upon seeing answer remembered
2 - Incorrect, but answer seemed easy to recall
3 - Correct, but with significant difficulty
4 - Correct, with some hesitation
5 - Correct, with perfect recall
"""

from __future__ import annotations

import math
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta

from loguru import logger

from src.progress.models import SRSEntry, utcnow

# =============================================================================
# SM-2 Algorithm
# =============================================================================


@dataclass
class SM2Config:
    """Configuration for SM-2 algorithm."""

    initial_ease: float = 2.5
    minimum_ease: float = 1.3
    passing_quality: int = 3  # Grades below this are lapses
    lapse_interval: int = 1  # Days after a lapse

    # Timed answers: quick below expected * quick_ratio, hesitant below expected
    expected_response_ms: int = 8000
    quick_response_ratio: float = 0.5

    # Mastery curve: weight of the ease component and the saturation scales
    mastery_ease_weight: float = 0.4
    mastery_ease_scale: float = 0.6
    mastery_interval_scale: float = 10.0  # ~95% of the interval credit at 30 days


@dataclass(frozen=True)
class DueItem:
    """An item whose review date has passed."""

    item: str
    entry: SRSEntry
    days_due: int


class SM2Scheduler:
    """
    Implements the SM-2 spaced repetition algorithm.

    Each item has:
    - Ease Factor: interval growth multiplier (2.5 default, floor 1.3)
    - Interval: days until the next review
    - Review count: reviews so far

    Consistent recall grows the interval geometrically, a lapse resets it
    to one day, and the ease factor drifts slowly with recall quality.
    """

    def __init__(self, config: SM2Config | None = None):
        """
        Initialize SM-2 scheduler.

        Args:
            config: Custom configuration (uses defaults if None)
        """
        self.config = config or SM2Config()

    @staticmethod
    def _check_quality(quality: int) -> None:
        if isinstance(quality, bool) or not isinstance(quality, int) or not 0 <= quality <= 5:
            raise ValueError(f"SM-2 quality must be an integer 0-5, got {quality!r}")

    @staticmethod
    def ease_delta(quality: int) -> float:
        """EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))"""
        miss = 5 - quality
        return 0.1 - miss * (0.08 + miss * 0.02)

    def initialize(self, item_id: str, quality: int, now: datetime | None = None) -> SRSEntry:
        """
        Create the SRS entry for an item's first review.

        Args:
            item_id: Letter, word or phrase being reviewed
            quality: Grade of the first review (0-5)
            now: Review time (defaults to current UTC time)

        Returns:
            New SRSEntry; a lapse starts at one day, a pass at `quality` days
        """
        self._check_quality(quality)
        now = now or utcnow()

        if quality < self.config.passing_quality:
            interval = self.config.lapse_interval
        else:
            interval = max(self.config.lapse_interval, quality)

        logger.debug(f"Initialized SRS for {item_id}: quality={quality}, interval={interval}d")

        return SRSEntry(
            ease_factor=self.config.initial_ease,
            interval=interval,
            review_count=1,
            next_review=now + timedelta(days=interval),
            last_review=now,
        )

    def review(self, entry: SRSEntry, quality: int, now: datetime | None = None) -> SRSEntry:
        """
        Calculate the next review from a graded review.

        Args:
            entry: Current SRS state of the item
            quality: Grade (0-5)
            now: Review time (defaults to current UTC time)

        Returns:
            Updated SRSEntry (the input is not modified)
        """
        self._check_quality(quality)
        now = now or utcnow()

        new_ease = max(self.config.minimum_ease, entry.ease_factor + self.ease_delta(quality))

        if quality < self.config.passing_quality:
            # Lapse - restart the cycle
            new_interval = self.config.lapse_interval
        else:
            new_interval = max(entry.interval, round(entry.interval * entry.ease_factor))

        return SRSEntry(
            ease_factor=new_ease,
            interval=new_interval,
            review_count=entry.review_count + 1,
            next_review=now + timedelta(days=new_interval),
            last_review=now,
        )

    def due_items(
        self,
        srs_data: Mapping[str, SRSEntry],
        item_ids: Collection[str],
        now: datetime | None = None,
    ) -> list[DueItem]:
        """
        Items from `item_ids` that are due for review.

        Args:
            srs_data: All SRS entries of the learner
            item_ids: Items belonging to the category being studied
            now: Reference time (defaults to current UTC time)

        Returns:
            DueItems, most overdue first (ties by item id)
        """
        now = now or utcnow()
        wanted = set(item_ids)

        due = [
            DueItem(item=item, entry=entry, days_due=entry.days_due(now))
            for item, entry in srs_data.items()
            if item in wanted and entry.is_due(now)
        ]
        due.sort(key=lambda d: (d.entry.next_review, d.item))
        return due

    def mastery(self, item_id: str, srs_data: Mapping[str, SRSEntry]) -> float:
        """
        Retention score of an item in [0, 1].

        0 without an entry. Otherwise a weighted blend of two saturating
        curves, one in the ease factor and one in the interval, so the
        score rises with either while the other is held fixed.
        """
        entry = srs_data.get(item_id)
        if entry is None:
            return 0.0

        cfg = self.config
        ease_offset = entry.ease_factor - (cfg.minimum_ease - 0.1)
        ease_score = 1 - math.exp(-ease_offset / cfg.mastery_ease_scale)
        interval_score = 1 - math.exp(-entry.interval / cfg.mastery_interval_scale)

        score = cfg.mastery_ease_weight * ease_score + (1 - cfg.mastery_ease_weight) * interval_score
        return min(1.0, score)

    def grade_from_response(
        self,
        correct: bool,
        response_ms: int,
        expected_ms: int | None = None,
    ) -> int:
        """
        SM-2 quality for a timed answer.

        Right answers land in the passing band (3-5), wrong ones in the
        lapse band (0-2); within a band a quick answer scores two above
        its floor and a hesitant one a single point.

        Args:
            correct: Whether the answer was right
            response_ms: Time the learner took to answer
            expected_ms: Typical answer time (config default if None)
        """
        cfg = self.config
        expected = expected_ms or cfg.expected_response_ms

        if response_ms < expected * cfg.quick_response_ratio:
            speed = 2
        elif response_ms < expected:
            speed = 1
        else:
            speed = 0

        floor = cfg.passing_quality if correct else 0
        return min(5, floor + speed)
