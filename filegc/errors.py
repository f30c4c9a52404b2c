# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for filegc.

These helpers centralize wording for common configuration errors so that
all modules present consistent, actionable messages.
"""


def explain_missing_bucket_env() -> str:
    """
    Explain that the storage bucket environment variable is missing.
    """

    return (
        "Storage bucket is not configured. "
        "Set the FILEGC_BUCKET environment variable or pass bucket=... to create_config()."
    )


def explain_missing_database_url_env() -> str:
    """
    Explain that the reference database URL is missing.
    """

    return (
        "Reference database is not configured. "
        "Set DATABASE_URL so filegc can load the referenced paths. "
        "Without it every object would look orphaned, so filegc refuses to start."
    )


def explain_invalid_mode_env(value: str | None) -> str:
    """
    Explain that FILEGC_MODE is invalid.
    """

    return (
        f"Invalid FILEGC_MODE value: {value!r}. "
        "Expected one of: 'dry_run' or 'execute'."
    )


def explain_invalid_number_env(name: str, value: str | None) -> str:
    """
    Explain that a numeric environment variable could not be parsed.
    """

    return (
        f"Invalid {name} value: {value!r}. "
        "It must be a positive number."
    )


def explain_invalid_database_backend_env(value: str | None) -> str:
    """
    Explain that the database backend env is invalid.
    """

    return (
        f"Invalid FILEGC_DATABASE_BACKEND value: {value!r}. "
        "Expected 'postgres' or 'mysql', or leave unset to infer it from DATABASE_URL."
    )


def explain_invalid_identifier(kind: str, value: str) -> str:
    """
    Explain that a table or column name cannot be used in a query.
    """

    return (
        f"Invalid {kind} name: {value!r}. "
        "Use letters, digits and underscores only, optionally qualified as schema.name."
    )


def explain_invalid_mode(value: object) -> str:
    """
    Explain that a cleanup mode passed in code is invalid.
    """

    return (
        f"Invalid mode: {value!r}. "
        "Expected one of: 'dry_run' or 'execute'. "
        "Unknown modes are rejected rather than treated as 'execute'."
    )


def explain_invalid_database_backend(value: object) -> str:
    """
    Explain that a database backend passed in code is invalid.
    """

    return f"Invalid database_backend: {value!r}. Expected 'postgres' or 'mysql'."


def explain_invalid_integer_env(name: str, value: str | None) -> str:
    """
    Explain that an integer environment variable could not be parsed.
    """

    return (
        f"Invalid {name} value: {value!r}. "
        "It must be a positive whole number."
    )
