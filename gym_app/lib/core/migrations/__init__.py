"""
Schema migration system for the SQLite store.

Provides per-table versioned migrations with automatic backup and rollback:
- Automatic database backups before pending migrations
- One transaction per table, rolled back on failure
- Version tracking in the schema_versions ledger
- Idempotent migration operations

Usage:
    from gym_app.lib.core.migrations import MigrationManager
    from gym_app.lib.core.migrations.versions import ALL_MIGRATIONS

    manager = MigrationManager(db_path, logger)
    manager.register_migrations([m(logger) for m in ALL_MIGRATIONS])
    manager.ensure_table(table)
"""

from .manager import MigrationManager
from .base import Migration

__all__ = ["MigrationManager", "Migration"]
