# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Framework Integrations - FastAPI trigger for cleanup runs.
"""

from filegc.integrations.fastapi import (
    CleanupEnvelope,
    cleanup_lifespan,
    register_cleanup_routes,
)

__all__ = [
    "CleanupEnvelope",
    "cleanup_lifespan",
    "register_cleanup_routes",
]
