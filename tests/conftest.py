# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Test fixtures for filegc tests.

Provides an in-memory object store, an in-memory reference source, and
configuration helpers.
"""

import asyncio
from datetime import datetime, timedelta, UTC
from typing import Dict, Iterable, List

import pytest

from filegc.config import CleanupConfig
from filegc.exceptions import DeleteError
from filegc.storage import StorageObject

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def make_object(path: str, age: timedelta, now: datetime = NOW) -> StorageObject:
    """Build a StorageObject created ``age`` before ``now``."""
    return StorageObject(path=path, created_at=now - age)


def hours(n: float) -> timedelta:
    return timedelta(hours=n)


class FakeObjectStore:
    """
    In-memory ObjectStore.

    Listing serves objects in insertion order, ``page_size`` at a time.
    Deletes of unknown paths fail the way a real store reports a missing
    object.
    """

    def __init__(
        self,
        objects: Iterable[StorageObject] = (),
        *,
        fail_list_on_page: int | None = None,
        fail_deletes: Dict[str, str] | None = None,
        list_delay: float = 0.0,
        delete_delay: float = 0.0,
    ):
        self.objects: Dict[str, StorageObject] = {obj.path: obj for obj in objects}
        self.fail_list_on_page = fail_list_on_page
        self.fail_deletes = dict(fail_deletes or {})
        self.list_delay = list_delay
        self.delete_delay = delete_delay
        self.pages_served = 0
        self.delete_calls: List[str] = []
        self.deleted: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def iter_pages(self, prefix: str, page_size: int):
        items = [obj for obj in self.objects.values() if obj.path.startswith(prefix)]
        pages = [items[i:i + page_size] for i in range(0, len(items), page_size)]

        for number, page in enumerate(pages):
            if number == self.fail_list_on_page:
                raise RuntimeError("storage unavailable")
            if self.list_delay:
                await asyncio.sleep(self.list_delay)
            self.pages_served += 1
            yield page

        if self.fail_list_on_page is not None and self.fail_list_on_page >= len(pages):
            raise RuntimeError("storage unavailable")

    async def delete(self, path: str) -> None:
        self.delete_calls.append(path)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delete_delay:
                await asyncio.sleep(self.delete_delay)
            if path in self.fail_deletes:
                raise DeleteError(self.fail_deletes[path])
            if path not in self.objects:
                raise DeleteError("Object not found")
            del self.objects[path]
            self.deleted.append(path)
        finally:
            self.in_flight -= 1


class FakeReferenceSource:
    """In-memory ReferenceSource."""

    def __init__(
        self,
        paths: Iterable[str | None] = (),
        *,
        error: Exception | None = None,
        delay: float = 0.0,
    ):
        self.paths = list(paths)
        self.error = error
        self.delay = delay
        self.calls = 0

    async def fetch_paths(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.paths)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def test_config() -> CleanupConfig:
    """Default execute-mode configuration."""
    return CleanupConfig(bucket="attachments")


@pytest.fixture
def sequential_config(test_config: CleanupConfig) -> CleanupConfig:
    """Configuration that deletes one object at a time."""
    return test_config.with_updates(max_concurrent_deletes=1)
