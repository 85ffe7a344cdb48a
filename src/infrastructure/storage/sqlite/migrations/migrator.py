"""
Versioned schema migrations for the workshop database.

Migrations are ``vNNN_name.sql`` files beside this module, applied in order
and recorded with a checksum in ``schema_migrations``. An existing database
is copied aside first and put back if a migration raises.

Also provides integrity checks that go beyond SQLite's own: every stock
item's cached total must equal the sum of its batches, and every job card
line must belong to a card.
"""

import asyncio
import hashlib
import re
import shutil
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from src.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent
MIGRATION_FILE = re.compile(r"v(\d+)_(.+)\.sql")
BACKUP_DIR_NAME = "backups"

# Tolerance when comparing cached quantities against batch sums
LEDGER_EPSILON = 1e-6

REQUIRED_TABLES = (
    "schema_migrations",
    "workshop_settings",
    "assets",
    "stock_items",
    "stock_batches",
    "stock_usage",
    "stock_writeoffs",
    "job_cards",
    "job_card_items",
)


@dataclass
class MigrationInfo:
    """A migration file on disk."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = MIGRATION_FILE.fullmatch(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=digest[:16])


@dataclass
class MigrationResult:
    """Outcome of applying one migration."""

    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


@dataclass
class MigrationStatus:
    """Where a database stands against the migrations on disk."""

    exists: bool
    current_version: str | None = None
    applied: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)

    @property
    def is_current(self) -> bool:
        return self.exists and not self.pending


@dataclass
class IntegrityCheck:
    """One schema or ledger integrity check."""

    name: str
    passed: bool
    details: dict[str, Any] = field(default_factory=dict)


def _resolve_db_path(db_path: Path | None) -> Path:
    return db_path or get_settings().storage.db_path


@asynccontextmanager
async def _connect(db_path: Path) -> AsyncIterator[aiosqlite.Connection]:
    async with aiosqlite.connect(db_path) as conn:
        await conn.execute("PRAGMA foreign_keys=ON")
        yield conn


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied migration versions mapped to their checksums."""
    try:
        cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    except aiosqlite.OperationalError:
        # Fresh database
        return {}
    return {row[0]: row[1] for row in await cursor.fetchall()}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    applied = await get_applied_migrations(conn)
    return max(applied) if applied else None


def discover_migrations() -> list[MigrationInfo]:
    """Migration files in version order; misnamed files are skipped."""
    migrations = []
    for path in sorted(MIGRATIONS_DIR.glob("v*.sql")):
        try:
            migrations.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return migrations


async def apply_migration(
    conn: aiosqlite.Connection,
    migration: MigrationInfo,
) -> MigrationResult:
    """Run one migration script and record it."""
    start = time.perf_counter()
    try:
        await conn.executescript(migration.path.read_text(encoding="utf-8"))
        elapsed = int((time.perf_counter() - start) * 1000)
        await conn.execute(
            """
            INSERT OR REPLACE INTO schema_migrations (version, name, checksum, execution_time_ms)
            VALUES (?, ?, ?, ?)
            """,
            (migration.version, migration.name, migration.checksum, elapsed),
        )
        await conn.commit()
    except aiosqlite.Error as e:
        await conn.rollback()
        logger.error("migration_failed", version=migration.version, error=str(e))
        return MigrationResult(
            version=migration.version,
            name=migration.name,
            success=False,
            execution_time_ms=int((time.perf_counter() - start) * 1000),
            error=str(e),
        )

    logger.info(
        "migration_applied",
        version=migration.version,
        name=migration.name,
        execution_time_ms=elapsed,
    )
    return MigrationResult(
        version=migration.version,
        name=migration.name,
        success=True,
        execution_time_ms=elapsed,
    )


def backup_dir_for(db_path: Path) -> Path:
    return db_path.parent / BACKUP_DIR_NAME


def create_backup(db_path: Path) -> Path:
    """Copy the database into the backups directory beside it."""
    backup_dir = backup_dir_for(db_path)
    backup_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = backup_dir / f"{db_path.stem}.backup_{stamp}{db_path.suffix}"
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


def restore_backup(db_path: Path, backup_path: Path) -> None:
    shutil.copy2(backup_path, db_path)
    logger.warning("database_restored_from_backup", backup_path=str(backup_path))


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool | None = None,
) -> list[MigrationResult]:
    """
    Apply every pending migration.

    Args:
        db_path: Database file (default from settings)
        create_backup_before: Copy an existing database aside first
            (default ``storage.backup_before_migrate``)

    Returns:
        Results for the migrations attempted this run; empty when the
        database was already current.
    """
    db_path = _resolve_db_path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    if create_backup_before is None:
        create_backup_before = get_settings().storage.backup_before_migrate

    migrations = discover_migrations()
    if not migrations:
        logger.warning("no_migrations_found", directory=str(MIGRATIONS_DIR))
        return []

    backup_path = create_backup(db_path) if create_backup_before and db_path.exists() else None
    results: list[MigrationResult] = []

    try:
        async with _connect(db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            applied = await get_applied_migrations(conn)

            for migration in migrations:
                if migration.version in applied:
                    if applied[migration.version] != migration.checksum:
                        logger.warning("migration_checksum_changed", version=migration.version)
                    continue

                result = await apply_migration(conn, migration)
                results.append(result)
                if not result.success:
                    break

                cursor = await conn.execute("PRAGMA foreign_key_check")
                if await cursor.fetchall():
                    logger.error("post_migration_foreign_keys_broken", version=migration.version)
                    break
    except Exception as e:
        logger.error("database_initialization_failed", db_path=str(db_path), error=str(e))
        if backup_path is not None:
            restore_backup(db_path, backup_path)
        raise

    if backup_path is not None and all(r.success for r in results):
        backup_path.unlink()

    logger.info("database_ready", db_path=str(db_path), applied=len(results))
    return results


# Entry point used by the application lifespan
run_migrations = initialize_database


async def get_migration_status(db_path: Path | None = None) -> MigrationStatus:
    """Compare the database with the migrations on disk."""
    db_path = _resolve_db_path(db_path)
    discovered = discover_migrations()

    if not db_path.exists():
        return MigrationStatus(exists=False, pending=[m.version for m in discovered])

    async with _connect(db_path) as conn:
        applied = await get_applied_migrations(conn)

    return MigrationStatus(
        exists=True,
        current_version=max(applied) if applied else None,
        applied=sorted(applied),
        pending=[m.version for m in discovered if m.version not in applied],
    )


async def _ledger_total_mismatches(conn: aiosqlite.Connection) -> list[str]:
    cursor = await conn.execute(
        """
        SELECT s.id
        FROM stock_items s
        LEFT JOIN stock_batches b ON b.stock_id = s.id
        GROUP BY s.id
        HAVING ABS(s.total_quantity - COALESCE(SUM(b.quantity), 0)) > ?
        """,
        (LEDGER_EPSILON,),
    )
    return [row[0] for row in await cursor.fetchall()]


async def verify_schema_integrity(db_path: Path | None = None) -> list[IntegrityCheck]:
    """Run SQLite and ledger integrity checks."""
    db_path = _resolve_db_path(db_path)
    checks: list[IntegrityCheck] = []

    async with _connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA foreign_key_check")
        violations = await cursor.fetchall()
        checks.append(
            IntegrityCheck("foreign_keys", not violations, {"violations": len(violations)})
        )

        cursor = await conn.execute("PRAGMA integrity_check")
        result = (await cursor.fetchone())[0]
        checks.append(IntegrityCheck("integrity", result == "ok", {"result": result}))

        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        tables = {row[0] for row in await cursor.fetchall()}
        missing = [t for t in REQUIRED_TABLES if t not in tables]
        checks.append(IntegrityCheck("required_tables", not missing, {"missing": missing}))

        if not missing:
            mismatched = await _ledger_total_mismatches(conn)
            checks.append(
                IntegrityCheck("ledger_totals", not mismatched, {"stock_ids": mismatched})
            )

    return checks


def main() -> None:
    """CLI entry point: migrate, or report status / integrity."""
    import argparse

    parser = argparse.ArgumentParser(description="Workshop database migrator")
    parser.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--status", action="store_true", help="Show migration status")
    group.add_argument("--verify", action="store_true", help="Run integrity checks")
    parser.add_argument("--no-backup", action="store_true", help="Skip the pre-migration backup")
    args = parser.parse_args()

    async def run() -> int:
        if args.status:
            status = await get_migration_status(args.db_path)
            print(f"Database exists:  {status.exists}")
            print(f"Current version:  {status.current_version or '-'}")
            print(f"Pending:          {', '.join(status.pending) or 'none'}")
            return 0

        if args.verify:
            checks = await verify_schema_integrity(args.db_path)
            for check in checks:
                print(f"[{'PASS' if check.passed else 'FAIL'}] {check.name} {check.details}")
            return 0 if all(c.passed for c in checks) else 1

        results = await initialize_database(
            args.db_path,
            create_backup_before=False if args.no_backup else None,
        )
        for result in results:
            outcome = "OK" if result.success else "FAILED"
            print(f"[{outcome}] v{result.version} {result.name} ({result.execution_time_ms}ms)")
            if result.error:
                print(f"      {result.error}")
        return 0 if all(r.success for r in results) else 1

    raise SystemExit(asyncio.run(run()))


if __name__ == "__main__":
    main()
