# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
File GC Core - Orchestrates one cleanup run.

A run is strictly linear:

1. List every object in the bucket
2. Load the set of referenced paths
3. Classify unreferenced objects (grace period for scoped paths)
4. Delete confirmed orphans, isolating failures per object
5. Report

Listing and reference loading fail closed: if either fails nothing is
deleted. The run holds no state beyond its own execution; the store and
the reference source are injected by the caller.
"""

import asyncio
import time
from datetime import datetime, UTC
from typing import Callable

import structlog

from filegc.classifier import RetentionPolicy, identify_orphans
from filegc.config import CleanupConfig, CleanupMode
from filegc.deleter import delete_orphans
from filegc.exceptions import FileGCError, UnexpectedCleanupError
from filegc.references import ReferenceSource, load_reference_set
from filegc.report import CleanupResult, ReportBuilder
from filegc.storage import ObjectStore, StorageLister


def _stop_checker(
    cancel_event: asyncio.Event | None,
    deadline: float | None,
) -> Callable[[], bool]:
    def should_stop() -> bool:
        if cancel_event is not None and cancel_event.is_set():
            return True
        return deadline is not None and time.monotonic() >= deadline

    return should_stop


async def run_cleanup(
    config: CleanupConfig,
    store: ObjectStore,
    references: ReferenceSource,
    *,
    cancel_event: asyncio.Event | None = None,
    now: datetime | None = None,
) -> CleanupResult:
    """
    Run one reconciliation of the store against the reference table.

    Args:
        config: Cleanup configuration
        store: Object store to list and delete from
        references: Source of referenced paths
        cancel_event: When set, the run stops at the next listing page or
            delete and returns what it has completed so far
        now: Reference time for the grace period (defaults to the current time)

    Returns:
        CleanupResult. A cancelled run returns a valid partial result with
        ``cancelled`` set.

    Raises:
        ListError: If the store cannot be listed (nothing is deleted)
        QueryError: If the reference set cannot be loaded (nothing is deleted)
        UnexpectedCleanupError: For any other failure
    """
    from ulid import ULID

    run_id = str(ULID())
    logger = structlog.get_logger().bind(run_id=run_id)
    start = time.monotonic()
    deadline = (
        start + config.run_timeout_seconds
        if config.run_timeout_seconds is not None
        else None
    )
    should_stop = _stop_checker(cancel_event, deadline)
    report = ReportBuilder()

    try:
        logger.info(
            "cleanup_started",
            bucket=config.bucket,
            mode=config.mode.value,
            grace_period_hours=config.grace_period_hours,
        )

        # Step 1: List all objects
        lister = StorageLister(
            store,
            prefix=config.list_prefix,
            page_size=config.list_page_size,
            timeout=config.list_timeout_seconds,
        )
        objects, cancelled = await lister.list_all(should_stop)
        report.record_listing(len(objects))
        logger.info("objects_listed", total=len(objects))

        if cancelled:
            report.mark_cancelled()
            logger.warning("cleanup_cancelled", stage="listing", listed=len(objects))
            return report.build()

        if not objects:
            logger.info("cleanup_completed", reason="bucket_empty")
            return report.build()

        # Step 2: Load the reference set
        referenced = await load_reference_set(
            references, timeout=config.query_timeout_seconds
        )
        logger.info("references_loaded", count=len(referenced))

        # Step 3: Classify
        classification = identify_orphans(
            objects,
            referenced,
            RetentionPolicy.from_config(config),
            now or datetime.now(UTC),
        )
        report.record_orphans(len(classification.orphans))
        for path, reason in classification.protected:
            logger.debug("object_kept", path=path, reason=reason)
        logger.info(
            "orphans_identified",
            orphaned=len(classification.orphans),
            kept=len(classification.protected),
        )

        # Step 4: Delete
        orphan_paths = classification.orphan_paths
        if config.mode == CleanupMode.DRY_RUN:
            logger.info("dry_run_would_delete", paths=orphan_paths)
        elif orphan_paths:
            outcomes = await delete_orphans(
                store,
                orphan_paths,
                max_concurrency=config.max_concurrent_deletes,
                timeout=config.delete_timeout_seconds,
                should_stop=should_stop,
            )
            for outcome in outcomes:
                if outcome.deleted:
                    report.record_deleted(outcome.path)
                else:
                    report.record_failure(outcome.path, outcome.cause or "unknown error")
            if len(outcomes) < len(orphan_paths):
                report.mark_cancelled()
                logger.warning(
                    "cleanup_cancelled",
                    stage="deleting",
                    attempted=len(outcomes),
                    orphaned=len(orphan_paths),
                )

        # Step 5: Report
        result = report.build()
        logger.info(
            "cleanup_completed",
            total=result.total_files,
            orphaned=result.orphaned_files,
            deleted=result.deleted_files,
            errors=len(result.errors),
            duration=round(time.monotonic() - start, 3),
        )
        return result

    except FileGCError as e:
        logger.error("cleanup_failed", error=str(e), error_type=type(e).__name__)
        raise
    except Exception as e:
        logger.exception("cleanup_failed", error=str(e), error_type=type(e).__name__)
        raise UnexpectedCleanupError(f"Cleanup failed: {e}") from e
