"""
Core Module - Shared catalog, persistence and notification primitives.

Components:
- catalog: Skill categories, difficulties, activities and content items
- storage: Key-value persistence backends (memory, file)
- events: Progress notifications (EventBus)
- telemetry: Recoverable error reporting (ErrorReporter)

Design Principle:
Domain modules (src/progress/, src/srs/, src/recommendation/, src/rewards/)
import from src/core/ rather than defining their own catalogs.
"""

from src.core.catalog import (
    ACTIVITY_CATEGORIES,
    Activity,
    ContentItem,
    Difficulty,
    SkillCategory,
    activities_for_category,
    category_for_activity,
)
from src.core.events import EventBus, ProgressEvent
from src.core.storage import (
    FileStorage,
    KeyValueStorage,
    MemoryStorage,
    StorageError,
    StorageQuotaError,
)
from src.core.telemetry import ErrorRecord, ErrorReporter

__all__ = [
    # Catalog
    "ACTIVITY_CATEGORIES",
    "Activity",
    "ContentItem",
    "Difficulty",
    "SkillCategory",
    "activities_for_category",
    "category_for_activity",
    # Events
    "EventBus",
    "ProgressEvent",
    # Storage
    "FileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "StorageError",
    "StorageQuotaError",
    # Telemetry
    "ErrorRecord",
    "ErrorReporter",
]
