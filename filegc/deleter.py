# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Orphan Deleter - Remove confirmed orphans one object at a time.

Every delete is isolated: a failure (missing object, permission error,
network fault, timeout) is recorded against that path and the remaining
deletes carry on. Nothing is retried here; an object that failed to
delete is still orphaned on the next run and will be attempted again.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, List, Sequence

import structlog

from filegc.storage import ObjectStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class DeleteOutcome:
    """Result of one delete attempt."""

    path: str
    deleted: bool
    cause: str | None = None


async def _delete_one(
    store: ObjectStore,
    path: str,
    timeout: float | None,
) -> DeleteOutcome:
    try:
        await asyncio.wait_for(store.delete(path), timeout)
    except asyncio.TimeoutError:
        cause = f"timed out after {timeout}s"
        logger.error("orphan_delete_failed", path=path, error=cause)
        return DeleteOutcome(path=path, deleted=False, cause=cause)
    except Exception as e:
        logger.error("orphan_delete_failed", path=path, error=str(e))
        return DeleteOutcome(path=path, deleted=False, cause=str(e) or type(e).__name__)

    logger.info("orphan_deleted", path=path)
    return DeleteOutcome(path=path, deleted=True)


async def delete_orphans(
    store: ObjectStore,
    paths: Sequence[str],
    *,
    max_concurrency: int = 10,
    timeout: float | None = None,
    should_stop: Callable[[], bool] | None = None,
) -> List[DeleteOutcome]:
    """
    Delete each path independently.

    Args:
        store: Object store to delete from
        paths: Confirmed orphan paths, in classification order
        max_concurrency: Maximum deletes in flight at once
        timeout: Seconds allowed for each delete (None waits forever)
        should_stop: Checked before each delete starts; once it reports
            true, remaining deletes are skipped

    Returns:
        Outcomes in the order of ``paths``. Skipped paths have no outcome.
    """
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")

    semaphore = asyncio.Semaphore(max_concurrency)

    async def attempt(path: str) -> DeleteOutcome | None:
        async with semaphore:
            if should_stop is not None and should_stop():
                return None
            return await _delete_one(store, path, timeout)

    if max_concurrency == 1:
        outcomes = [await attempt(path) for path in paths]
    else:
        outcomes = await asyncio.gather(*(attempt(path) for path in paths))

    skipped = sum(1 for outcome in outcomes if outcome is None)
    if skipped:
        logger.warning("orphan_deletes_skipped", skipped=skipped)

    return [outcome for outcome in outcomes if outcome is not None]
