# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Retention Classifier - Decide which unreferenced objects are real orphans.

Uploads land in the store before their database row is written, so an
unreferenced object is not necessarily garbage. Objects under a scoped
path (``<owner>/<name>``) are protected for a grace period after creation;
objects at the bucket root are never part of an upload flow and are
orphans as soon as nothing references them.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, UTC
from typing import AbstractSet, Iterable, List, Tuple

from filegc.config import CleanupConfig
from filegc.storage import StorageObject

SEPARATOR = "/"


@dataclass(frozen=True)
class RetentionPolicy:
    """Grace period and exclusions applied to unreferenced objects."""

    grace_period: timedelta = timedelta(hours=24)
    exclude_prefixes: Tuple[str, ...] = ()

    @classmethod
    def from_config(cls, config: CleanupConfig) -> "RetentionPolicy":
        return cls(
            grace_period=config.grace_period,
            exclude_prefixes=tuple(config.exclude_prefixes),
        )


@dataclass
class Classification:
    """Outcome of diffing a listing against the reference set."""

    total_files: int
    orphans: List[StorageObject] = field(default_factory=list)
    protected: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def orphan_paths(self) -> List[str]:
        return [obj.path for obj in self.orphans]


def is_scoped_path(path: str) -> bool:
    """True when the path has a separator that is not its first character."""
    return SEPARATOR in path and not path.startswith(SEPARATOR)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def classify_object(
    obj: StorageObject,
    references: AbstractSet[str],
    policy: RetentionPolicy,
    now: datetime,
) -> Tuple[bool, str]:
    """
    Classify a single object.

    Returns:
        Tuple of (is_orphan, reason)
    """
    if obj.path in references:
        return (False, "referenced")

    for prefix in policy.exclude_prefixes:
        if obj.path.startswith(prefix):
            return (False, f"excluded_prefix={prefix}")

    if not is_scoped_path(obj.path):
        return (True, "unscoped_orphan")

    # Without a timestamp the object might still be mid-upload
    if obj.created_at is None:
        return (False, "age_unknown")

    age = _as_utc(now) - _as_utc(obj.created_at)
    if age < policy.grace_period:
        hours = age.total_seconds() / 3600
        return (False, f"grace_period_age={hours:.1f}h")

    return (True, "orphan")


def identify_orphans(
    objects: Iterable[StorageObject],
    references: AbstractSet[str],
    policy: RetentionPolicy,
    now: datetime | None = None,
) -> Classification:
    """
    Split a listing into confirmed orphans and protected objects.

    Orphans keep the order of the listing.
    """
    now = now or datetime.now(UTC)
    objects = list(objects)
    result = Classification(total_files=len(objects))

    for obj in objects:
        is_orphan, reason = classify_object(obj, references, policy, now)
        if is_orphan:
            result.orphans.append(obj)
        else:
            result.protected.append((obj.path, reason))

    return result
