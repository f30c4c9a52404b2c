# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Configuration Tests for filegc.

Covers the frozen config, the functional builder, and environment loading.
"""

from datetime import timedelta

import pytest

from filegc.builder import (
    build_config,
    build_from_steps,
    create_config,
    create_empty_config,
    dry_run_mode,
    exclude_prefix,
    with_bucket,
    with_database,
    with_grace_period,
    with_list_page_size,
    with_max_concurrent_deletes,
    with_reference_column,
    with_timeouts,
)
from filegc.config import CleanupConfig, CleanupMode, DatabaseBackend
from filegc.env import create_config_from_env, safe_defaults
from filegc.exceptions import ConfigurationError


# ============================================================================
# CleanupConfig
# ============================================================================

def test_defaults_match_reference_behaviour():
    config = CleanupConfig(bucket="attachments")

    assert config.mode == CleanupMode.EXECUTE
    assert config.grace_period == timedelta(hours=24)
    assert config.reference_table == "file"
    assert config.reference_column == "storage_path"
    assert config.list_page_size == 1000


def test_invalid_config_reports_every_error():
    with pytest.raises(ConfigurationError) as exc_info:
        CleanupConfig(
            bucket="Bad_Bucket",
            reference_table="file; --",
            grace_period_hours=-1,
            list_page_size=5000,
            max_concurrent_deletes=0,
            delete_timeout_seconds=0,
        )

    errors = exc_info.value.details["errors"]
    assert len(errors) == 6


@pytest.mark.parametrize("column", ["bad column", "schema.column", ""])
def test_reference_column_must_be_plain_identifier(column):
    with pytest.raises(ConfigurationError):
        CleanupConfig(bucket="attachments", reference_column=column)


def test_database_backend_requires_url():
    with pytest.raises(ConfigurationError):
        CleanupConfig(bucket="attachments", database_backend=DatabaseBackend.POSTGRES)


@pytest.mark.parametrize(
    "url, backend",
    [
        ("postgresql://u:p@db:5432/app", DatabaseBackend.POSTGRES),
        ("postgres://db/app", DatabaseBackend.POSTGRES),
        ("mysql://root@db/app", DatabaseBackend.MYSQL),
        ("sqlite:///app.db", None),
    ],
)
def test_backend_inferred_from_url(url, backend):
    config = CleanupConfig(bucket="attachments", database_url=url)
    assert config.resolved_database_backend == backend


def test_with_updates_returns_new_validated_config():
    config = CleanupConfig(bucket="attachments")
    updated = config.with_updates(grace_period_hours=48)

    assert updated.grace_period_hours == 48
    assert config.grace_period_hours == 24.0

    with pytest.raises(ConfigurationError):
        config.with_updates(max_concurrent_deletes=0)


def test_invalid_schedule_rejected():
    with pytest.raises(ConfigurationError):
        CleanupConfig(bucket="attachments", schedule_cron="25:00")


@pytest.mark.parametrize(
    "mode, expected",
    [
        ("dry_run", CleanupMode.DRY_RUN),
        ("DRY_RUN", CleanupMode.DRY_RUN),
        ("execute", CleanupMode.EXECUTE),
        (CleanupMode.DRY_RUN, CleanupMode.DRY_RUN),
    ],
)
def test_mode_strings_are_normalized(mode, expected):
    config = CleanupConfig(bucket="attachments", mode=mode)

    assert config.mode is expected
    assert CleanupConfig(bucket="attachments").with_updates(mode=mode).mode is expected


@pytest.mark.parametrize("mode", ["dry-run", "dryrun", "DRY RUN", "delete"])
def test_unknown_mode_is_rejected(mode):
    """CRITICAL: A mistyped mode must never turn into a deleting run."""
    with pytest.raises(ConfigurationError) as exc_info:
        CleanupConfig(bucket="attachments", mode=mode)

    assert "Invalid mode" in exc_info.value.details["errors"][0]


def test_database_backend_string_is_normalized():
    config = CleanupConfig(
        bucket="attachments",
        database_url="mysql://root@db/app",
        database_backend="MYSQL",
    )
    assert config.database_backend is DatabaseBackend.MYSQL

    with pytest.raises(ConfigurationError):
        CleanupConfig(
            bucket="attachments",
            database_url="mysql://root@db/app",
            database_backend="oracle",
        )


# ============================================================================
# Builder
# ============================================================================

def test_build_from_steps():
    config = build_from_steps(
        lambda c: with_bucket(c, "attachments"),
        lambda c: with_reference_column(c, "public.file", "storage_path"),
        lambda c: with_database(c, "postgresql://db/app"),
        lambda c: with_grace_period(c, 48),
        lambda c: exclude_prefix(c, "public/"),
        lambda c: with_max_concurrent_deletes(c, 4),
        lambda c: with_list_page_size(c, 250),
        lambda c: with_timeouts(c, delete_seconds=2, run_seconds=60),
        dry_run_mode,
    )

    assert config.reference_table == "public.file"
    assert config.resolved_database_backend == DatabaseBackend.POSTGRES
    assert config.grace_period_hours == 48
    assert config.exclude_prefixes == ["public/"]
    assert config.max_concurrent_deletes == 4
    assert config.list_page_size == 250
    assert config.delete_timeout_seconds == 2
    assert config.list_timeout_seconds == 30.0
    assert config.run_timeout_seconds == 60
    assert config.mode == CleanupMode.DRY_RUN


def test_empty_config_cannot_be_built():
    with pytest.raises(ConfigurationError):
        build_config(create_empty_config())


@pytest.mark.parametrize(
    "step",
    [
        lambda c: with_grace_period(c, -1),
        lambda c: with_max_concurrent_deletes(c, 0),
        lambda c: with_list_page_size(c, 1001),
    ],
)
def test_builder_rejects_invalid_values(step):
    with pytest.raises(ValueError):
        step(create_empty_config())


def test_create_config():
    config = create_config(
        "attachments",
        endpoint_url="https://abc.supabase.co/storage/v1/s3",
        database_url="mysql://root@db/app",
        database_backend="MYSQL",
        mode="dry_run",
        grace_period_hours=12,
        exclude_prefixes=["public/", "system/"],
        schedule_cron="03:15",
        max_concurrent_deletes=2,
        not_a_field=True,
    )

    assert config.endpoint_url == "https://abc.supabase.co/storage/v1/s3"
    assert config.database_backend == DatabaseBackend.MYSQL
    assert config.mode == CleanupMode.DRY_RUN
    assert config.grace_period_hours == 12
    assert config.exclude_prefixes == ["public/", "system/"]
    assert config.schedule_cron == "03:15"
    assert config.max_concurrent_deletes == 2


@pytest.mark.parametrize("mode", ["dry-run", "dryrun", "DRY RUN", "delete"])
def test_create_config_rejects_unknown_mode(mode):
    """CRITICAL: create_config never falls back to deleting."""
    with pytest.raises(ConfigurationError, match="Invalid mode"):
        create_config("attachments", mode=mode)


def test_create_config_rejects_unknown_database_backend():
    with pytest.raises(ConfigurationError, match="database_backend"):
        create_config(
            "attachments",
            database_url="postgresql://db/app",
            database_backend="oracle",
        )


# ============================================================================
# Environment
# ============================================================================

@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "FILEGC_BUCKET",
        "DATABASE_URL",
        "AWS_REGION",
        "FILEGC_ENDPOINT_URL",
        "FILEGC_LIST_PREFIX",
        "FILEGC_REFERENCE_TABLE",
        "FILEGC_REFERENCE_COLUMN",
        "FILEGC_DATABASE_BACKEND",
        "FILEGC_MODE",
        "FILEGC_GRACE_PERIOD_HOURS",
        "FILEGC_EXCLUDE_PREFIXES",
        "FILEGC_MAX_CONCURRENT_DELETES",
        "FILEGC_SCHEDULE_CRON",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_config_from_env(clean_env):
    clean_env.setenv("FILEGC_BUCKET", "attachments")
    clean_env.setenv("DATABASE_URL", "postgresql://db/app")
    clean_env.setenv("FILEGC_MODE", "DRY_RUN")
    clean_env.setenv("FILEGC_GRACE_PERIOD_HOURS", "36")
    clean_env.setenv("FILEGC_EXCLUDE_PREFIXES", "public/, system/ ,")
    clean_env.setenv("FILEGC_MAX_CONCURRENT_DELETES", "3")
    clean_env.setenv("FILEGC_LIST_PREFIX", "uploads/")

    config = create_config_from_env()

    assert config.bucket == "attachments"
    assert config.mode == CleanupMode.DRY_RUN
    assert config.grace_period_hours == 36
    assert config.exclude_prefixes == ["public/", "system/"]
    assert config.max_concurrent_deletes == 3
    assert config.list_prefix == "uploads/"
    assert config.resolved_database_backend == DatabaseBackend.POSTGRES


def test_config_from_env_requires_bucket_and_database(clean_env):
    with pytest.raises(ConfigurationError, match="FILEGC_BUCKET"):
        create_config_from_env()

    clean_env.setenv("FILEGC_BUCKET", "attachments")
    with pytest.raises(ConfigurationError, match="DATABASE_URL"):
        create_config_from_env()


@pytest.mark.parametrize(
    "name, value",
    [
        ("FILEGC_MODE", "audit"),
        ("FILEGC_GRACE_PERIOD_HOURS", "a day"),
        ("FILEGC_GRACE_PERIOD_HOURS", "-5"),
        ("FILEGC_DATABASE_BACKEND", "oracle"),
        ("FILEGC_MAX_CONCURRENT_DELETES", "2.5"),
        ("FILEGC_MAX_CONCURRENT_DELETES", "0.5"),
        ("FILEGC_MAX_CONCURRENT_DELETES", "0"),
        ("FILEGC_MAX_CONCURRENT_DELETES", "many"),
    ],
)
def test_config_from_env_rejects_invalid_values(clean_env, name, value):
    clean_env.setenv("FILEGC_BUCKET", "attachments")
    clean_env.setenv("DATABASE_URL", "postgresql://db/app")
    clean_env.setenv(name, value)

    with pytest.raises(ConfigurationError, match=name):
        create_config_from_env()


def test_safe_defaults_profile():
    config = CleanupConfig(bucket="attachments", grace_period_hours=6, max_concurrent_deletes=8)

    safe = safe_defaults(config)

    assert safe.mode == CleanupMode.DRY_RUN
    assert safe.grace_period_hours == 24.0
    assert safe.max_concurrent_deletes == 1
