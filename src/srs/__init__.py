"""SM-2 spaced repetition scheduling."""

from src.srs.scheduler import DueItem, SM2Config, SM2Scheduler

__all__ = ["DueItem", "SM2Config", "SM2Scheduler"]
