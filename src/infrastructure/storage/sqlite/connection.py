"""
Async SQLite access for the workshop ledger.

Reads share a small pool of aiosqlite connections. Ledger writes go through
``transaction()``, which serialises writers inside the process and takes the
database write lock up front (BEGIN IMMEDIATE), so a version check and the
writes that depend on it never interleave with another writer.
"""

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

import aiosqlite

from src.config import get_logger, get_settings

logger = get_logger(__name__)

CONNECTION_PRAGMAS = (
    "synchronous=NORMAL",
    "foreign_keys=ON",
)


@dataclass
class PoolStats:
    """Counters for the health endpoint."""

    size: int
    idle: int
    commits: int
    rollbacks: int


class ConnectionPool:
    """Fixed-size pool of SQLite connections with a single in-process writer."""

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
        journal_mode: str = "WAL",
    ):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout
        self.journal_mode = journal_mode

        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=pool_size)
        self._open: list[aiosqlite.Connection] = []
        self._ready = False
        self._setup_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()
        self._commits = 0
        self._rollbacks = 0

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def initialize(self) -> None:
        """Open every connection. Safe to call more than once."""
        async with self._setup_lock:
            if self._ready:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            for _ in range(self.pool_size):
                conn = await self._open_connection()
                self._open.append(conn)
                self._idle.put_nowait(conn)

            self._ready = True
            logger.info(
                "sqlite_pool_ready",
                db_path=str(self.db_path),
                pool_size=self.pool_size,
                journal_mode=self.journal_mode,
            )

    async def _open_connection(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        conn.row_factory = aiosqlite.Row
        await conn.execute(f"PRAGMA journal_mode={self.journal_mode}")
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
        for pragma in CONNECTION_PRAGMAS:
            await conn.execute(f"PRAGMA {pragma}")
        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection for reads.

        Usage:
            async with pool.acquire() as conn:
                cursor = await conn.execute(...)
        """
        if not self._ready:
            await self.initialize()

        conn = await self._idle.get()
        try:
            yield conn
        finally:
            self._idle.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self, label: str = "write") -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection inside an immediate write transaction.

        Commits when the block exits normally; any exception rolls the whole
        block back and propagates.
        """
        async with self._write_lock, self.acquire() as conn:
            await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException as e:
                await conn.rollback()
                self._rollbacks += 1
                logger.debug(
                    "sqlite_transaction_rolled_back",
                    label=label,
                    error=str(e) or type(e).__name__,
                )
                raise
            await conn.commit()
            self._commits += 1

    async def ping(self) -> float:
        """Run a trivial query and return its latency in milliseconds."""
        start = time.perf_counter()
        async with self.acquire() as conn:
            await conn.execute("SELECT 1")
        return (time.perf_counter() - start) * 1000

    def stats(self) -> PoolStats:
        return PoolStats(
            size=len(self._open),
            idle=self._idle.qsize(),
            commits=self._commits,
            rollbacks=self._rollbacks,
        )

    async def close(self) -> None:
        """Close every connection; the pool can be initialized again."""
        async with self._setup_lock:
            for conn in self._open:
                await conn.close()
            self._open.clear()
            self._idle = asyncio.Queue(maxsize=self.pool_size)
            self._ready = False
            logger.info("sqlite_pool_closed", commits=self._commits, rollbacks=self._rollbacks)


# Process-wide pool
_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Get or create the process-wide pool from storage settings."""
    global _pool
    if _pool is None:
        storage = get_settings().storage
        _pool = ConnectionPool(
            db_path=storage.db_path,
            pool_size=storage.pool_size,
            busy_timeout=storage.busy_timeout,
            journal_mode=storage.journal_mode,
        )
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    """Read connection from the process-wide pool."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction(label: str = "write") -> AsyncIterator[aiosqlite.Connection]:
    """Write transaction on the process-wide pool."""
    pool = await get_pool()
    async with pool.transaction(label) as conn:
        yield conn
