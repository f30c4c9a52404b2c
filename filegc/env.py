# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment-based configuration helpers and safety profiles.

These helpers are small wrappers around create_config() and
CleanupConfig.with_updates(). They make it easy to:

- Build a configuration from environment variables
- Apply a ready-made safety profile
"""

from __future__ import annotations

import os
from typing import List

from filegc.builder import create_config
from filegc.config import CleanupConfig, CleanupMode, DatabaseBackend
from filegc.errors import (
    explain_invalid_database_backend_env,
    explain_invalid_integer_env,
    explain_invalid_mode_env,
    explain_invalid_number_env,
    explain_missing_bucket_env,
    explain_missing_database_url_env,
)
from filegc.exceptions import ConfigurationError


def _parse_mode(value: str | None) -> CleanupMode:
    if not value:
        return CleanupMode.EXECUTE
    try:
        return CleanupMode(value.lower())
    except ValueError as exc:
        raise ConfigurationError(explain_invalid_mode_env(value)) from exc


def _parse_positive(name: str, value: str | None, default: float) -> float:
    if not value:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_number_env(name, value)) from exc
    if number <= 0:
        raise ConfigurationError(explain_invalid_number_env(name, value))
    return number


def _parse_positive_int(name: str, value: str | None, default: int) -> int:
    if not value:
        return default
    try:
        number = int(value.strip())
    except ValueError as exc:
        raise ConfigurationError(explain_invalid_integer_env(name, value)) from exc
    if number < 1:
        raise ConfigurationError(explain_invalid_integer_env(name, value))
    return number


def _parse_exclude_prefixes(value: str | None) -> List[str]:
    if not value:
        return []
    return [p.strip() for p in value.split(",") if p.strip()]


def _parse_database_backend(value: str | None) -> DatabaseBackend | None:
    if not value:
        return None
    try:
        return DatabaseBackend(value.lower())
    except ValueError as exc:
        raise ConfigurationError(explain_invalid_database_backend_env(value)) from exc


def create_config_from_env() -> CleanupConfig:
    """
    Create a CleanupConfig from environment variables.

    Required:
        - FILEGC_BUCKET: Name of the bucket to clean
        - DATABASE_URL: Postgres/MySQL URL of the database holding the reference table

    Optional environment variables:
        - AWS_REGION: Bucket region (default: us-east-1)
        - FILEGC_ENDPOINT_URL: S3-compatible endpoint (e.g. Supabase Storage)
        - FILEGC_LIST_PREFIX: Only list keys under this prefix
        - FILEGC_REFERENCE_TABLE: Reference table (default: file)
        - FILEGC_REFERENCE_COLUMN: Path column (default: storage_path)
        - FILEGC_DATABASE_BACKEND: 'postgres' | 'mysql' (default: inferred from DATABASE_URL)
        - FILEGC_MODE: 'dry_run' | 'execute' (default: execute)
        - FILEGC_GRACE_PERIOD_HOURS: Positive number (default: 24)
        - FILEGC_EXCLUDE_PREFIXES: Comma-separated prefixes, e.g. "public/,system/"
        - FILEGC_MAX_CONCURRENT_DELETES: Positive integer (default: 10)
        - FILEGC_SCHEDULE_CRON: Daily schedule in HH:MM (UTC)
    """

    bucket = os.getenv("FILEGC_BUCKET")
    if not bucket:
        raise ConfigurationError(explain_missing_bucket_env())

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise ConfigurationError(explain_missing_database_url_env())

    max_deletes = _parse_positive_int(
        "FILEGC_MAX_CONCURRENT_DELETES", os.getenv("FILEGC_MAX_CONCURRENT_DELETES"), 10
    )

    return create_config(
        bucket=bucket,
        region=os.getenv("AWS_REGION", "us-east-1"),
        endpoint_url=os.getenv("FILEGC_ENDPOINT_URL") or None,
        reference_table=os.getenv("FILEGC_REFERENCE_TABLE", "file"),
        reference_column=os.getenv("FILEGC_REFERENCE_COLUMN", "storage_path"),
        database_url=database_url,
        database_backend=_parse_database_backend(os.getenv("FILEGC_DATABASE_BACKEND")),
        mode=_parse_mode(os.getenv("FILEGC_MODE")),
        grace_period_hours=_parse_positive(
            "FILEGC_GRACE_PERIOD_HOURS", os.getenv("FILEGC_GRACE_PERIOD_HOURS"), 24.0
        ),
        exclude_prefixes=_parse_exclude_prefixes(os.getenv("FILEGC_EXCLUDE_PREFIXES")),
        schedule_cron=os.getenv("FILEGC_SCHEDULE_CRON") or None,
        list_prefix=os.getenv("FILEGC_LIST_PREFIX", ""),
        max_concurrent_deletes=max_deletes,
    )


# ============================================================================
# Profiles
# ============================================================================

def safe_defaults(config: CleanupConfig) -> CleanupConfig:
    """
    Apply conservative, safety-first defaults.

    - Always use DRY_RUN mode
    - Ensure at least a 24 hour grace period
    - Delete one object at a time
    """

    return config.with_updates(
        mode=CleanupMode.DRY_RUN,
        grace_period_hours=max(config.grace_period_hours, 24.0),
        max_concurrent_deletes=1,
    )
