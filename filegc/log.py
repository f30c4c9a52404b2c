# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Logging setup for filegc.

filegc logs through structlog with snake_case event names. Context bound
with ``structlog.contextvars`` (the HTTP request id, the run id) is merged
into every line.
"""

import logging

import structlog


def configure_logging(*, json: bool = True, level: str = "INFO") -> None:
    """
    Configure structlog for filegc.

    Args:
        json: Render one JSON object per line (for log collectors). When
            False, use the human-friendly console renderer.
        level: Minimum level to emit
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        cache_logger_on_first_use=False,
    )
