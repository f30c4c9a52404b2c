# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Object Store Listing - Enumerate every object in the bucket.

The store is consumed through the small ObjectStore protocol so the
orchestrator never depends on a particular SDK. S3ObjectStore implements
it over an aiobotocore client, which also covers S3-compatible stores such
as Supabase Storage via ``endpoint_url``.

Listing is fail-closed: any page that cannot be fetched raises ListError
and the run must not delete anything.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Any, AsyncIterator, Callable, List, Protocol, Tuple

import structlog

from filegc.config import CleanupConfig
from filegc.exceptions import DeleteError, ListError

logger = structlog.get_logger()

_EPOCH = datetime.min.replace(tzinfo=UTC)


@dataclass(frozen=True)
class StorageObject:
    """One physical object in the store."""

    path: str
    created_at: datetime | None = None


class ObjectStore(Protocol):
    """Capabilities the cleanup job needs from an object store."""

    def iter_pages(self, prefix: str, page_size: int) -> AsyncIterator[List[StorageObject]]:
        """Yield the bucket contents one listing page at a time."""
        ...

    async def delete(self, path: str) -> None:
        """Delete a single object. Raise on failure."""
        ...


class S3ObjectStore:
    """ObjectStore backed by an aiobotocore S3 client."""

    def __init__(self, client: Any, bucket: str):
        self._client = client
        self._bucket = bucket

    @property
    def bucket(self) -> str:
        return self._bucket

    async def iter_pages(
        self, prefix: str, page_size: int
    ) -> AsyncIterator[List[StorageObject]]:
        paginator = self._client.get_paginator("list_objects_v2")

        async for page in paginator.paginate(
            Bucket=self._bucket,
            Prefix=prefix,
            MaxKeys=page_size,
        ):
            yield [
                StorageObject(path=obj["Key"], created_at=obj.get("LastModified"))
                for obj in page.get("Contents", [])
            ]

    async def delete(self, path: str) -> None:
        try:
            await self._client.delete_object(Bucket=self._bucket, Key=path)
        except Exception as e:
            raise DeleteError(
                str(e),
                details={"bucket": self._bucket, "path": path},
            ) from e


@asynccontextmanager
async def open_s3_store(config: CleanupConfig) -> AsyncIterator[S3ObjectStore]:
    """
    Open an S3 client for the configured bucket.

    The client lives for the duration of the context; callers decide
    whether that is one request or the whole application.
    """
    from aiobotocore.session import get_session

    session = get_session()
    async with session.create_client(
        "s3",
        region_name=config.region,
        endpoint_url=config.endpoint_url,
    ) as client:
        yield S3ObjectStore(client, config.bucket)


async def _next_page(pages: AsyncIterator[List[StorageObject]]) -> List[StorageObject] | None:
    try:
        return await anext(pages)
    except StopAsyncIteration:
        return None


def _sort_key(obj: StorageObject) -> datetime:
    created = obj.created_at
    if created is None:
        return _EPOCH
    if created.tzinfo is None:
        return created.replace(tzinfo=UTC)
    return created


class StorageLister:
    """
    Lazy, restartable listing of a bucket.

    Every ``async for`` over a lister starts a fresh pagination, so the
    same lister can be consumed more than once. Each page fetch is bounded
    by ``timeout`` seconds.
    """

    def __init__(
        self,
        store: ObjectStore,
        *,
        prefix: str = "",
        page_size: int = 1000,
        timeout: float | None = None,
    ):
        self._store = store
        self._prefix = prefix
        self._page_size = page_size
        self._timeout = timeout

    def __aiter__(self) -> AsyncIterator[List[StorageObject]]:
        return self._pages()

    async def _pages(self) -> AsyncIterator[List[StorageObject]]:
        pages = self._store.iter_pages(self._prefix, self._page_size)
        page_number = 0
        try:
            while True:
                try:
                    page = await asyncio.wait_for(_next_page(pages), self._timeout)
                except asyncio.TimeoutError as e:
                    raise ListError(
                        f"Timed out listing storage after {self._timeout}s",
                        details={"prefix": self._prefix, "page": page_number},
                    ) from e
                except ListError:
                    raise
                except Exception as e:
                    raise ListError(
                        f"Failed to list storage files: {e}",
                        details={"prefix": self._prefix, "page": page_number},
                    ) from e
                if page is None:
                    return
                page_number += 1
                yield page
        finally:
            aclose = getattr(pages, "aclose", None)
            if aclose is not None:
                await aclose()

    async def list_all(
        self, should_stop: Callable[[], bool] | None = None
    ) -> Tuple[List[StorageObject], bool]:
        """
        Drain every page.

        Returns:
            Tuple of (objects ordered by created_at ascending, cancelled).
            When ``should_stop`` reports true between pages the listing is
            abandoned and ``cancelled`` is True.
        """
        objects: List[StorageObject] = []
        cancelled = False

        pages = self._pages()
        try:
            async for page in pages:
                objects.extend(page)
                logger.debug("storage_page_listed", count=len(page), total=len(objects))
                if should_stop is not None and should_stop():
                    cancelled = True
                    break
        finally:
            await pages.aclose()

        objects.sort(key=_sort_key)
        return objects, cancelled
