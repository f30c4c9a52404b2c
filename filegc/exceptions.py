# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
File GC Exceptions - Custom exceptions for the filegc package.

ListError and QueryError are fatal: they abort a run before anything is
deleted. DeleteError is per-object and never aborts a run.
"""


class FileGCError(Exception):
    """Base exception for all filegc errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(FileGCError):
    """Raised when configuration is invalid."""

    pass


class ListError(FileGCError):
    """Raised when the object store cannot be listed completely."""

    pass


class QueryError(FileGCError):
    """Raised when the reference set cannot be loaded."""

    pass


class DeleteError(FileGCError):
    """Raised by a store backend when a single object cannot be deleted."""

    pass


class UnexpectedCleanupError(FileGCError):
    """Raised when a run fails for a reason outside the known taxonomy."""

    pass
