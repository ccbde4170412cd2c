"""Tests for the migration runner."""

from pathlib import Path

import aiosqlite
import pytest

from stockledger.infrastructure.storage.sqlite.migrations.migrator import (
    REQUIRED_TABLES,
    MigrationInfo,
    discover_migrations,
    get_migration_status,
    initialize_database,
    verify_schema_integrity,
)


class TestMigrationInfo:
    def test_from_file(self, tmp_path: Path):
        path = tmp_path / "v002_add_things.sql"
        path.write_text("SELECT 1;", encoding="utf-8")
        info = MigrationInfo.from_file(path)
        assert info.version == "002"
        assert info.name == "add_things"
        assert len(info.checksum) == 16

    def test_invalid_name(self, tmp_path: Path):
        path = tmp_path / "add_things.sql"
        path.write_text("SELECT 1;", encoding="utf-8")
        with pytest.raises(ValueError):
            MigrationInfo.from_file(path)

    def test_discover_bundled(self):
        versions = [m.version for m in discover_migrations()]
        assert versions[0] == "001"
        assert versions == sorted(versions)


class TestInitializeDatabase:
    async def test_fresh_database(self, temp_db_path: Path):
        results = await initialize_database(temp_db_path, create_backup_before=False)
        assert results
        assert all(r.success for r in results)

        async with aiosqlite.connect(temp_db_path) as conn:
            cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row[0] for row in await cursor.fetchall()}
        assert set(REQUIRED_TABLES) <= tables

    async def test_second_run_applies_nothing(self, initialized_db: Path):
        results = await initialize_database(initialized_db, create_backup_before=True)
        assert results == []
        assert list(initialized_db.parent.glob("*.backup_*")) == []

    async def test_status(self, temp_db_path: Path):
        status = await get_migration_status(temp_db_path)
        assert status["exists"] is False
        assert status["pending_migrations"]

        await initialize_database(temp_db_path, create_backup_before=False)
        status = await get_migration_status(temp_db_path)
        assert status["exists"] is True
        assert status["pending_migrations"] == []
        assert status["current_version"] == status["applied_migrations"][-1]


class TestVerifySchemaIntegrity:
    async def test_clean_database_passes(self, initialized_db: Path):
        checks = await verify_schema_integrity(initialized_db)
        assert {c["check"] for c in checks} >= {
            "foreign_keys",
            "integrity",
            "required_tables",
            "inventory_invariants",
        }
        assert all(c["status"] == "PASS" for c in checks)
