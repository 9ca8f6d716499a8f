"""Supabase Postgres access with RLS context.

Every query runs inside a transaction where ``request.jwt.claim.sub`` is
set with ``set_config(..., true)``, so Supabase Row-Level Security policies
using ``auth.uid()`` see the calling user.

Uses ``asyncpg`` for direct database access.  The pool is owned by an
explicit ``Database`` handle created at app startup and passed to whatever
needs it; there is no module-level pool.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import asyncpg

from cycle_tracker.config import Settings

logger = logging.getLogger("cycle_tracker.db")


class Database:
    """Handle around an asyncpg pool.

    Usage::

        db = await Database.connect(settings)
        rows = await db.fetch("SELECT * FROM cycle_data WHERE user_id = $1", uid, user_id=uid)
        await db.close()
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    @classmethod
    async def connect(
        cls,
        settings: Settings,
        min_size: int = 1,
        max_size: int = 10,
    ) -> "Database":
        """Create the connection pool.  Call once at process start."""
        pool = await asyncpg.create_pool(
            settings.supabase_db_url,
            min_size=min_size,
            max_size=max_size,
            command_timeout=30,
        )
        logger.info("Database pool initialized (min=%d, max=%d)", min_size, max_size)
        return cls(pool)

    async def close(self) -> None:
        """Drain the pool.  Call at shutdown."""
        await self._pool.close()
        logger.info("Database pool closed")

    @asynccontextmanager
    async def connection(
        self, user_id: uuid.UUID | None = None
    ) -> AsyncGenerator[asyncpg.Connection, None]:
        """Acquire a connection with the RLS user claim set.

        The setting is transaction-local, so it disappears when the
        connection goes back to the pool.
        """
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                if user_id:
                    await conn.execute(
                        "SELECT set_config('request.jwt.claim.sub', $1, true)",
                        str(user_id),
                    )
                yield conn

    async def execute(self, query: str, *args: Any, user_id: uuid.UUID | None = None) -> str:
        """Execute a single statement with RLS context and return status."""
        async with self.connection(user_id=user_id) as conn:
            return await conn.execute(query, *args)

    async def fetch(
        self, query: str, *args: Any, user_id: uuid.UUID | None = None
    ) -> list[asyncpg.Record]:
        async with self.connection(user_id=user_id) as conn:
            return await conn.fetch(query, *args)

    async def fetchrow(
        self, query: str, *args: Any, user_id: uuid.UUID | None = None
    ) -> asyncpg.Record | None:
        async with self.connection(user_id=user_id) as conn:
            return await conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any, user_id: uuid.UUID | None = None) -> Any:
        async with self.connection(user_id=user_id) as conn:
            return await conn.fetchval(query, *args)
