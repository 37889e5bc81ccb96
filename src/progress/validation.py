"""
Profile Validator - guards data crossing the storage boundary.

Philosophy:
- Nothing malformed is written, nothing malformed is loaded
- Loading never fails the caller; the store substitutes a fresh profile
- Older schema versions are migrated forward, unknown ones are rejected
"""

from __future__ import annotations

import copy
import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

from loguru import logger
from pydantic import BaseModel, ValidationError

from src.progress.models import SCHEMA_VERSION, VERSION_PATTERN, LearnerProfile


class ProfileValidationError(Exception):
    """Raised when profile data violates the schema or its invariants."""


class UnsupportedVersionError(ProfileValidationError):
    """Raised when stored data has a version with no migration path."""


@dataclass
class ValidationResult:
    """Outcome of validating profile data."""

    valid: bool
    error: str | None = None
    profile: LearnerProfile | None = None


# =============================================================================
# Validation
# =============================================================================


def validate_profile(data: LearnerProfile | Mapping[str, Any]) -> ValidationResult:
    """
    Validate profile data against the current schema.

    Checks field presence, types, numeric ranges, the version format and
    `correctAttempts <= totalAttempts` for every skill.

    Args:
        data: A LearnerProfile (re-validated after in-place mutation) or raw JSON data

    Returns:
        ValidationResult carrying the parsed profile when valid
    """
    if isinstance(data, LearnerProfile):
        data = data.model_dump(by_alias=True)
    if not isinstance(data, Mapping):
        return ValidationResult(valid=False, error="Profile must be an object")

    try:
        profile = LearnerProfile.model_validate(data)
    except ValidationError as e:
        return ValidationResult(valid=False, error=_describe(e))

    return ValidationResult(valid=True, profile=profile)


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    message = first["msg"]
    extra = error.error_count() - 1
    suffix = f" (+{extra} more)" if extra else ""
    return f"{location}: {message}{suffix}" if location else f"{message}{suffix}"


# =============================================================================
# Sanitization
# =============================================================================

_JSON_SAFE = (
    BaseModel,
    Enum,
    datetime,
    date,
    Mapping,
    list,
    tuple,
    set,
    frozenset,
    str,
    int,
    float,
    bool,
    type(None),
)


def _keep(value: Any) -> bool:
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return isinstance(value, _JSON_SAFE)


def sanitize(value: Any) -> Any:
    """
    Deep-copy a value into plain JSON types.

    Models are dumped with their stored (camelCase) names, enums become
    their values, datetimes become ISO strings and sets become lists.
    Anything not representable in JSON (callables, arbitrary objects,
    NaN) is dropped from its container.
    """
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {_key(k): sanitize(v) for k, v in value.items() if _keep(v)}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [sanitize(v) for v in value if _keep(v)]
    if _keep(value):
        return value
    return None


def _key(key: Any) -> str:
    return key.value if isinstance(key, Enum) else str(key)


_TAG = re.compile(r"<[^>]*>")


def sanitize_string(text: Any, max_length: int = 100) -> str:
    """Strip markup, trim whitespace and cap the length of user-entered text."""
    if not isinstance(text, str):
        return ""
    return _TAG.sub("", text).strip()[:max_length]


# =============================================================================
# Migration
# =============================================================================


def _migrate_1_0_0(data: dict[str, Any]) -> dict[str, Any]:
    """1.0.0 -> 1.1.0: per-category mastered lists, derived accuracy, interval >= 1."""
    for skill in (data.get("skills") or {}).values():
        if not isinstance(skill, dict):
            continue
        letters = skill.pop("masteredLetters", None) or []
        words = skill.pop("masteredWords", None) or []
        skill.setdefault("masteredItems", [*letters, *words])
        skill.pop("accuracy", None)

    for entry in (data.get("srsData") or {}).values():
        if not isinstance(entry, dict):
            continue
        interval = entry.get("interval")
        if isinstance(interval, (int, float)) and interval < 1:
            entry["interval"] = 1
        if entry.get("nextReview") is None:
            entry["nextReview"] = entry.get("lastReview")

    data["version"] = "1.1.0"
    return data


MIGRATIONS: dict[str, Callable[[dict[str, Any]], dict[str, Any]]] = {
    "1.0.0": _migrate_1_0_0,
}


def migrate_profile(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Bring stored profile data up to SCHEMA_VERSION.

    Args:
        data: Raw profile JSON

    Returns:
        A migrated copy (the input is not modified)

    Raises:
        UnsupportedVersionError: Missing, malformed or unknown version
    """
    migrated = copy.deepcopy(dict(data))
    version = migrated.get("version")

    if not isinstance(version, str) or not re.match(VERSION_PATTERN, version):
        raise UnsupportedVersionError(f"Invalid version format: {version!r}")

    while version != SCHEMA_VERSION:
        step = MIGRATIONS.get(version)
        if step is None:
            raise UnsupportedVersionError(f"No migration path from version {version}")
        migrated = step(migrated)
        logger.info(f"Migrated profile {version} -> {migrated['version']}")
        version = migrated["version"]

    return migrated
