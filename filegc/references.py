# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Reference Set Loader - Load every object path the database considers in use.

The reference set is projected from a single column of the reference
table (``file.storage_path`` by default). Loading is fail-closed: an
incomplete set would make live objects look orphaned, so any failure
raises QueryError before anything is deleted.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, FrozenSet, Iterable, Protocol
from urllib.parse import unquote, urlparse

import structlog

from filegc.config import CleanupConfig, DatabaseBackend, validate_identifier
from filegc.errors import explain_invalid_identifier, explain_missing_database_url_env
from filegc.exceptions import ConfigurationError, QueryError

logger = structlog.get_logger()


class ReferenceSource(Protocol):
    """Capability to read the raw values of the reference column."""

    async def fetch_paths(self) -> Iterable[str | None]:
        ...


def quote_identifier(name: str, quote: str) -> str:
    """
    Quote a possibly schema-qualified identifier.

    Identifiers cannot be bound as query parameters, so they are validated
    and quoted instead.
    """
    if not validate_identifier(name):
        raise ConfigurationError(explain_invalid_identifier("identifier", name))
    return ".".join(f"{quote}{part}{quote}" for part in name.split("."))


def build_reference_query(table: str, column: str, backend: DatabaseBackend) -> str:
    """Build the SELECT DISTINCT query for a backend."""
    quote = '"' if backend == DatabaseBackend.POSTGRES else "`"
    return (
        f"SELECT DISTINCT {quote_identifier(column, quote)} "
        f"FROM {quote_identifier(table, quote)}"
    )


class PostgresReferenceSource:
    """Reference source over an asyncpg pool or connection."""

    def __init__(self, pool: Any, table: str = "file", column: str = "storage_path"):
        self._pool = pool
        self._query = build_reference_query(table, column, DatabaseBackend.POSTGRES)

    async def fetch_paths(self) -> Iterable[str | None]:
        rows = await self._pool.fetch(self._query)
        return [row[0] for row in rows]


class MySQLReferenceSource:
    """Reference source over an aiomysql pool."""

    def __init__(self, pool: Any, table: str = "file", column: str = "storage_path"):
        self._pool = pool
        self._query = build_reference_query(table, column, DatabaseBackend.MYSQL)

    async def fetch_paths(self) -> Iterable[str | None]:
        async with self._pool.acquire() as conn:
            async with conn.cursor() as cursor:
                await cursor.execute(self._query)
                rows = await cursor.fetchall()
        return [row[0] for row in rows]


async def load_reference_set(
    source: ReferenceSource,
    *,
    timeout: float | None = None,
) -> FrozenSet[str]:
    """
    Load the set of referenced paths.

    NULL and empty values are dropped; duplicates collapse.

    Args:
        source: Reference source to query
        timeout: Seconds to wait for the query (None waits forever)

    Returns:
        Frozen set of referenced paths

    Raises:
        QueryError: If the query fails or times out
    """
    try:
        values = await asyncio.wait_for(source.fetch_paths(), timeout)
    except asyncio.TimeoutError as e:
        raise QueryError(f"Timed out querying referenced files after {timeout}s") from e
    except QueryError:
        raise
    except Exception as e:
        raise QueryError(f"Failed to query database files: {e}") from e

    references = frozenset(value for value in values if value)
    logger.debug("reference_set_built", count=len(references))
    return references


def _mysql_connect_kwargs(url: str) -> dict:
    parsed = urlparse(url)
    return {
        "host": parsed.hostname or "localhost",
        "port": parsed.port or 3306,
        "user": unquote(parsed.username) if parsed.username else "root",
        "password": unquote(parsed.password) if parsed.password else "",
        "db": parsed.path.lstrip("/") or None,
    }


@asynccontextmanager
async def open_reference_source(config: CleanupConfig) -> AsyncIterator[ReferenceSource]:
    """
    Open a connection pool for the configured reference database.

    Raises:
        ConfigurationError: If no database is configured or the backend is unknown
    """
    if not config.database_url:
        raise ConfigurationError(explain_missing_database_url_env())

    backend = config.resolved_database_backend
    if backend == DatabaseBackend.POSTGRES:
        import asyncpg

        pool = await asyncpg.create_pool(config.database_url, min_size=1, max_size=2)
        try:
            yield PostgresReferenceSource(
                pool, config.reference_table, config.reference_column
            )
        finally:
            await pool.close()
    elif backend == DatabaseBackend.MYSQL:
        import aiomysql

        pool = await aiomysql.create_pool(
            minsize=1, maxsize=2, **_mysql_connect_kwargs(config.database_url)
        )
        try:
            yield MySQLReferenceSource(
                pool, config.reference_table, config.reference_column
            )
        finally:
            pool.close()
            await pool.wait_closed()
    else:
        raise ConfigurationError(
            "Cannot determine database backend from database_url",
            details={"hint": "set database_backend to 'postgres' or 'mysql'"},
        )
