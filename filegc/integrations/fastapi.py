# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
File GC FastAPI Integration - HTTP trigger for cleanup runs.

This module provides:
- A POST endpoint that runs one cleanup and returns a JSON envelope
- A lifespan that owns the store client and database pool
- An optional daily schedule
"""

import asyncio
from contextlib import asynccontextmanager, suppress
from typing import Any, Dict

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from ulid import ULID

from filegc.config import CleanupConfig, CleanupMode
from filegc.core import run_cleanup
from filegc.exceptions import FileGCError
from filegc.references import ReferenceSource, open_reference_source
from filegc.storage import ObjectStore, open_s3_store

logger = structlog.get_logger()

DISCONNECT_POLL_SECONDS = 1.0


class CleanupEnvelope(BaseModel):
    """Response body of the cleanup endpoint."""

    success: bool
    message: str
    result: Dict[str, Any] | None = None
    error: str | None = None
    requestId: str


def _request_id(request: Request) -> str:
    return request.headers.get("X-Request-ID") or str(ULID())


async def _watch_disconnect(request: Request, cancel_event: asyncio.Event) -> None:
    """Set the cancel event once the caller goes away."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.warning("cleanup_caller_disconnected")
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


def _respond(envelope: CleanupEnvelope, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(exclude_none=True),
    )


def register_cleanup_routes(
    app: FastAPI,
    config: CleanupConfig,
    store: ObjectStore,
    references: ReferenceSource,
    path: str = "/cleanup-files",
) -> None:
    """
    Register the cleanup endpoint on a FastAPI app.

    Authentication and CORS are left to the hosting application.

    Args:
        app: FastAPI application
        config: Cleanup configuration
        store: Object store to clean
        references: Source of referenced paths
        path: URL path of the endpoint (default: /cleanup-files)
    """

    @app.post(path, response_model=CleanupEnvelope, response_model_exclude_none=True)
    async def trigger_cleanup(request: Request, dry_run: bool = False) -> JSONResponse:
        """
        Run one cleanup.

        Returns the cleanup result, or HTTP 500 when the store cannot be
        listed or the referenced files cannot be loaded.
        """
        request_id = _request_id(request)
        run_config = config.with_updates(mode=CleanupMode.DRY_RUN) if dry_run else config
        cancel_event = asyncio.Event()

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            logger.info("cleanup_requested", dry_run=dry_run)
            watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
            try:
                result = await run_cleanup(
                    run_config, store, references, cancel_event=cancel_event
                )
            except FileGCError as e:
                return _respond(
                    CleanupEnvelope(
                        success=False,
                        message="Cleanup failed",
                        error=e.message,
                        requestId=request_id,
                    ),
                    500,
                )
            finally:
                watcher.cancel()
                with suppress(asyncio.CancelledError):
                    await watcher

        message = "Cleanup cancelled" if result.cancelled else "Cleanup completed"
        return _respond(
            CleanupEnvelope(
                success=True,
                message=message,
                result=result.to_dict(),
                requestId=request_id,
            ),
            200,
        )


def _setup_scheduled_task(
    config: CleanupConfig,
    store: ObjectStore,
    references: ReferenceSource,
) -> Any:
    """Set up APScheduler for the daily cleanup run."""
    from apscheduler.schedulers.asyncio import AsyncIOScheduler
    from apscheduler.triggers.cron import CronTrigger

    scheduler = AsyncIOScheduler()

    # Parse HH:MM format
    hour, minute = map(int, config.schedule_cron.split(":"))

    async def scheduled_cleanup():
        """Run scheduled cleanup."""
        logger.info("scheduled_cleanup_starting")
        try:
            result = await run_cleanup(config, store, references)
        except FileGCError as e:
            # The next scheduled run is the retry
            logger.error("scheduled_cleanup_failed", error=str(e))
            return
        logger.info(
            "scheduled_cleanup_completed",
            deleted=result.deleted_files,
            errors=len(result.errors),
        )

    scheduler.add_job(
        scheduled_cleanup,
        trigger=CronTrigger(hour=hour, minute=minute, timezone="UTC"),
        id="filegc_scheduled",
        replace_existing=True,
    )
    scheduler.start()

    logger.info(
        "scheduler_started",
        schedule=config.schedule_cron,
        next_run=scheduler.get_job("filegc_scheduled").next_run_time.isoformat(),
    )
    return scheduler


@asynccontextmanager
async def cleanup_lifespan(app: FastAPI, config: CleanupConfig):
    """
    Lifespan context manager for FastAPI.

        app = FastAPI(lifespan=lambda app: cleanup_lifespan(app, config))

    Opens the S3 client and the reference database pool, registers the
    cleanup endpoint, and starts the daily schedule when configured.

    Args:
        app: FastAPI application
        config: Cleanup configuration
    """
    logger.info("filegc_lifespan_starting", bucket=config.bucket, mode=config.mode.value)

    async with open_s3_store(config) as store, open_reference_source(config) as references:
        app.state.filegc_config = config
        register_cleanup_routes(app, config, store, references)

        scheduler = None
        if config.schedule_cron:
            scheduler = _setup_scheduled_task(config, store, references)

        logger.info("filegc_lifespan_started")
        try:
            yield
        finally:
            logger.info("filegc_lifespan_stopping")
            if scheduler is not None:
                scheduler.shutdown(wait=False)
            logger.info("filegc_lifespan_stopped")
