"""Database migrations module."""

from src.infrastructure.storage.sqlite.migrations.migrator import (
    IntegrityCheck,
    MigrationInfo,
    MigrationResult,
    MigrationStatus,
    create_backup,
    discover_migrations,
    get_current_version,
    get_migration_status,
    initialize_database,
    restore_backup,
    run_migrations,
    verify_schema_integrity,
)

__all__ = [
    "IntegrityCheck",
    "MigrationInfo",
    "MigrationResult",
    "MigrationStatus",
    "create_backup",
    "discover_migrations",
    "get_current_version",
    "get_migration_status",
    "initialize_database",
    "restore_backup",
    "run_migrations",
    "verify_schema_integrity",
]
