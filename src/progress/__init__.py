"""
Learner profile: models, validation and the persistent store.
"""

from src.progress.models import (
    SCHEMA_VERSION,
    ActivityRecord,
    LearnerProfile,
    SkillRecord,
    SRSEntry,
)
from src.progress.store import ActivityStats, ProfileStore
from src.progress.validation import (
    ProfileValidationError,
    UnsupportedVersionError,
    migrate_profile,
    sanitize,
    validate_profile,
)

__all__ = [
    "SCHEMA_VERSION",
    "ActivityRecord",
    "ActivityStats",
    "LearnerProfile",
    "ProfileStore",
    "ProfileValidationError",
    "SkillRecord",
    "SRSEntry",
    "UnsupportedVersionError",
    "migrate_profile",
    "sanitize",
    "validate_profile",
]
