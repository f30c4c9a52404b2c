# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
File GC - Reconcile an object store with the table that references it.

Lists every object in a bucket, loads the set of paths the database still
references, and deletes the objects nothing points at. Scoped uploads get
a grace period so files whose database row is still being written are
never mistaken for garbage. Package name: filegc.
"""

__version__ = "0.1.0"

# Configuration creation (user-facing API)
from filegc.builder import create_config
from filegc.config import CleanupConfig, CleanupMode

# Core orchestration
from filegc.core import run_cleanup
from filegc.report import CleanupResult, DeleteFailure

# Collaborators
from filegc.storage import S3ObjectStore, StorageObject, open_s3_store
from filegc.references import (
    MySQLReferenceSource,
    PostgresReferenceSource,
    open_reference_source,
)

# Environment-based configuration and profiles
from filegc.env import create_config_from_env, safe_defaults

from filegc.exceptions import (
    ConfigurationError,
    FileGCError,
    ListError,
    QueryError,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "create_config",
    "create_config_from_env",
    "safe_defaults",
    "CleanupConfig",
    "CleanupMode",
    # Core
    "run_cleanup",
    "CleanupResult",
    "DeleteFailure",
    # Collaborators
    "StorageObject",
    "S3ObjectStore",
    "open_s3_store",
    "PostgresReferenceSource",
    "MySQLReferenceSource",
    "open_reference_source",
    # Errors
    "FileGCError",
    "ConfigurationError",
    "ListError",
    "QueryError",
]
