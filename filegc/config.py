# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
File GC Configuration - Immutable configuration data structures.

All configuration is frozen (immutable) after creation to prevent
accidental modification during a run.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import List
import re

from filegc.errors import explain_invalid_database_backend, explain_invalid_mode


class CleanupMode(str, Enum):
    """Cleanup execution mode."""

    DRY_RUN = "dry_run"  # Classify and report, no deletions
    EXECUTE = "execute"  # Delete confirmed orphans


class DatabaseBackend(str, Enum):
    """Database holding the reference table."""

    POSTGRES = "postgres"
    MYSQL = "mysql"


_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def _validate_bucket_name(bucket: str) -> bool:
    """
    Validate a bucket name according to S3 rules.

    Rules:
    - 3-63 characters
    - Lowercase letters, numbers, hyphens
    - Must start and end with letter or number
    - No consecutive periods
    - Not formatted as IP address
    """
    if not bucket or len(bucket) < 3 or len(bucket) > 63:
        return False

    if not re.match(r"^[a-z0-9][a-z0-9.-]*[a-z0-9]$", bucket):
        return False

    if ".." in bucket:
        return False

    if re.match(r"^\d+\.\d+\.\d+\.\d+$", bucket):
        return False

    return True


def validate_identifier(name: str) -> bool:
    """Check that a table or column name is safe to interpolate into SQL."""
    return bool(name) and bool(_IDENTIFIER_RE.match(name))


def _validate_cron_time(time_str: str) -> bool:
    """Validate HH:MM time format."""
    if not time_str:
        return False
    try:
        parts = time_str.split(":")
        if len(parts) != 2:
            return False
        hour, minute = int(parts[0]), int(parts[1])
        return 0 <= hour <= 23 and 0 <= minute <= 59
    except (ValueError, AttributeError):
        return False


def infer_database_backend(url: str) -> DatabaseBackend | None:
    """Best-effort backend inference from a database URL."""

    lower = url.lower()
    if lower.startswith(("postgres://", "postgresql://")):
        return DatabaseBackend.POSTGRES
    if lower.startswith(("mysql://", "mariadb://")):
        return DatabaseBackend.MYSQL
    return None


@dataclass(frozen=True)
class CleanupConfig:
    """
    Immutable configuration for a file cleanup run.

    The config is frozen after creation so that a run in progress always
    sees the same policy.
    """

    # Required: bucket holding the files
    bucket: str

    # Region of the bucket (default: us-east-1)
    region: str = "us-east-1"

    # Custom endpoint for S3-compatible stores (Supabase Storage, MinIO, ...)
    endpoint_url: str | None = None

    # Only objects under this prefix are listed
    list_prefix: str = ""

    # Reference table and the column holding object paths
    reference_table: str = "file"
    reference_column: str = "storage_path"

    # Database holding the reference table
    database_backend: DatabaseBackend | None = None
    database_url: str | None = None

    # Execution mode
    mode: CleanupMode = CleanupMode.EXECUTE

    # Unreferenced scoped objects younger than this are assumed mid-upload
    grace_period_hours: float = 24.0

    # Key prefixes that are never deleted
    exclude_prefixes: List[str] = field(default_factory=list)

    # Page size for store listing
    list_page_size: int = 1000

    # Maximum concurrent delete calls
    max_concurrent_deletes: int = 10

    # Timeouts in seconds (None disables the timeout)
    list_timeout_seconds: float | None = 30.0
    query_timeout_seconds: float | None = 30.0
    delete_timeout_seconds: float | None = 10.0

    # Overall deadline for a run; when reached the run stops and reports partial progress
    run_timeout_seconds: float | None = None

    # Schedule time in HH:MM format (UTC)
    schedule_cron: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        # Plain strings are accepted and normalized; unknown values never fall back to a mode
        if not isinstance(self.mode, CleanupMode):
            try:
                object.__setattr__(self, "mode", CleanupMode(str(self.mode).lower()))
            except ValueError:
                errors.append(explain_invalid_mode(self.mode))

        if self.database_backend is not None and not isinstance(
            self.database_backend, DatabaseBackend
        ):
            try:
                object.__setattr__(
                    self,
                    "database_backend",
                    DatabaseBackend(str(self.database_backend).lower()),
                )
            except ValueError:
                errors.append(explain_invalid_database_backend(self.database_backend))

        if not _validate_bucket_name(self.bucket):
            errors.append(f"Invalid bucket name: {self.bucket}")

        if not validate_identifier(self.reference_table):
            errors.append(f"Invalid reference_table: {self.reference_table!r}")

        if not validate_identifier(self.reference_column) or "." in self.reference_column:
            errors.append(f"Invalid reference_column: {self.reference_column!r}")

        if self.grace_period_hours < 0:
            errors.append(
                f"grace_period_hours must be >= 0, got {self.grace_period_hours}"
            )

        if self.list_page_size < 1 or self.list_page_size > 1000:
            errors.append(
                f"list_page_size must be between 1 and 1000, got {self.list_page_size}"
            )

        if self.max_concurrent_deletes < 1:
            errors.append(
                f"max_concurrent_deletes must be >= 1, got {self.max_concurrent_deletes}"
            )

        for name in (
            "list_timeout_seconds",
            "query_timeout_seconds",
            "delete_timeout_seconds",
            "run_timeout_seconds",
        ):
            value = getattr(self, name)
            if value is not None and value <= 0:
                errors.append(f"{name} must be > 0 or None, got {value}")

        if self.schedule_cron and not _validate_cron_time(self.schedule_cron):
            errors.append(f"Invalid schedule_cron format: {self.schedule_cron}, expected HH:MM")

        if self.database_backend and not self.database_url:
            errors.append("database_url required when database_backend is set")

        if errors:
            from filegc.exceptions import ConfigurationError

            raise ConfigurationError(
                "Configuration validation failed",
                details={"errors": errors},
            )

    @property
    def grace_period(self) -> timedelta:
        return timedelta(hours=self.grace_period_hours)

    @property
    def resolved_database_backend(self) -> DatabaseBackend | None:
        """The configured backend, or the one implied by database_url."""
        if self.database_backend is not None:
            return self.database_backend
        if self.database_url:
            return infer_database_backend(self.database_url)
        return None

    def with_updates(self, **kwargs) -> "CleanupConfig":
        """
        Create a new config with updated values.

        Since the config is frozen, this creates a new instance.
        """
        from dataclasses import asdict

        current = asdict(self)
        current.update(kwargs)
        return CleanupConfig(**current)
