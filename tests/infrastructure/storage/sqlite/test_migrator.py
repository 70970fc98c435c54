"""Tests for the database migrator."""

from pathlib import Path

import aiosqlite
import pytest

from possync.infrastructure.storage.sqlite.migrations import (
    MigrationInfo,
    discover_migrations,
    get_migration_status,
    initialize_database,
    verify_schema_integrity,
)
from possync.infrastructure.storage.sqlite.migrations.migrator import (
    create_backup,
    get_applied_migrations,
    restore_backup,
)


class TestMigrationInfo:
    """Tests for MigrationInfo.from_file()."""

    def test_from_file_parses_filename(self, tmp_path: Path):
        path = tmp_path / "v007_add_column.sql"
        path.write_text("SELECT 1;")

        info = MigrationInfo.from_file(path)

        assert info.version == "007"
        assert info.name == "add_column"
        assert len(info.checksum) == 16

    def test_checksum_follows_content(self, tmp_path: Path):
        a = tmp_path / "v001_a.sql"
        b = tmp_path / "v002_b.sql"
        a.write_text("SELECT 1;")
        b.write_text("SELECT 2;")

        assert MigrationInfo.from_file(a).checksum != MigrationInfo.from_file(b).checksum

    def test_invalid_filename_raises(self, tmp_path: Path):
        path = tmp_path / "initial.sql"
        path.write_text("SELECT 1;")

        with pytest.raises(ValueError, match="Invalid migration filename"):
            MigrationInfo.from_file(path)


class TestDiscoverMigrations:
    def test_bundled_migrations_found(self):
        versions = [m.version for m in discover_migrations()]
        assert versions[0] == "001"
        assert versions == sorted(versions)

    def test_sorted_and_invalid_skipped(self, tmp_path: Path):
        (tmp_path / "v002_second.sql").write_text("SELECT 2;")
        (tmp_path / "v001_first.sql").write_text("SELECT 1;")
        (tmp_path / "vbad.sql").write_text("SELECT 3;")

        migrations = discover_migrations(tmp_path)

        assert [m.name for m in migrations] == ["first", "second"]


class TestInitializeDatabase:
    """Tests for initialize_database()."""

    @pytest.mark.asyncio
    async def test_creates_schema(self, tmp_path: Path):
        db_path = tmp_path / "nested" / "pos.db"

        results = await initialize_database(db_path, create_backup_before=False)

        assert results and all(r.success for r in results)
        checks = await verify_schema_integrity(db_path)
        assert all(c["status"] == "PASS" for c in checks)

    @pytest.mark.asyncio
    async def test_second_run_is_noop(self, temp_db_path: Path):
        await initialize_database(temp_db_path, create_backup_before=False)

        results = await initialize_database(temp_db_path, create_backup_before=False)

        assert results == []

    @pytest.mark.asyncio
    async def test_backup_removed_after_success(self, initialized_db: Path):
        await initialize_database(initialized_db, create_backup_before=True)

        assert list(initialized_db.parent.glob("*.backup_*")) == []

    @pytest.mark.asyncio
    async def test_records_applied_versions(self, initialized_db: Path):
        async with aiosqlite.connect(initialized_db) as conn:
            applied = await get_applied_migrations(conn)

        assert "001" in applied


class TestGetMigrationStatus:
    @pytest.mark.asyncio
    async def test_missing_database(self, tmp_path: Path):
        status = await get_migration_status(tmp_path / "missing.db")

        assert status["exists"] is False
        assert status["current_version"] is None
        assert "001" in status["pending_migrations"]

    @pytest.mark.asyncio
    async def test_up_to_date(self, initialized_db: Path):
        status = await get_migration_status(initialized_db)

        assert status["exists"] is True
        assert status["pending_migrations"] == []
        assert status["current_version"] == max(status["applied_migrations"])


class TestVerifySchemaIntegrity:
    @pytest.mark.asyncio
    async def test_missing_tables_reported(self, temp_db_path: Path):
        async with aiosqlite.connect(temp_db_path) as conn:
            await conn.execute("CREATE TABLE unrelated (id INTEGER)")
            await conn.commit()

        checks = {c["check"]: c for c in await verify_schema_integrity(temp_db_path)}

        assert checks["integrity"]["status"] == "PASS"
        assert checks["required_tables"]["status"] == "FAIL"
        assert "pending_operations" in checks["required_tables"]["missing"]


class TestMigrationFailure:
    """A broken migration leaves the schema at the previous version."""

    @pytest.fixture
    def migrations_dir(self, tmp_path: Path) -> Path:
        directory = tmp_path / "migrations"
        directory.mkdir()
        (directory / "v001_base.sql").write_text("CREATE TABLE base (id INTEGER);")
        (directory / "v002_broken.sql").write_text(
            "CREATE TABLE partial (id INTEGER);\nINSERT INTO missing_table VALUES (1);"
        )
        (directory / "v003_after.sql").write_text("CREATE TABLE after (id INTEGER);")
        return directory

    @pytest.mark.asyncio
    async def test_stops_and_rolls_back(self, temp_db_path: Path, migrations_dir: Path):
        results = await initialize_database(
            temp_db_path, create_backup_before=False, directory=migrations_dir
        )

        assert [(r.version, r.success) for r in results] == [("001", True), ("002", False)]
        assert "missing_table" in results[1].error
        async with aiosqlite.connect(temp_db_path) as conn:
            applied = await get_applied_migrations(conn)
            cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row[0] for row in await cursor.fetchall()}

        assert list(applied) == ["001"]
        assert "base" in tables
        assert "partial" not in tables
        assert "after" not in tables

    @pytest.mark.asyncio
    async def test_backup_kept_on_failure(self, temp_db_path: Path, migrations_dir: Path):
        async with aiosqlite.connect(temp_db_path) as conn:
            await conn.execute("CREATE TABLE existing (id INTEGER)")
            await conn.commit()

        await initialize_database(temp_db_path, directory=migrations_dir)

        assert len(list(temp_db_path.parent.glob("test.backup_*.db"))) == 1


class TestOperationLogCheck:
    @pytest.mark.asyncio
    async def test_counts_by_status(self, initialized_db: Path):
        async with aiosqlite.connect(initialized_db) as conn:
            for op_id, status in [("a", "PENDING"), ("b", "PENDING"), ("c", "DEAD")]:
                await conn.execute(
                    """
                    INSERT INTO pending_operations
                        (id, kind, entity_kind, payload, idempotency_key, created_at, status)
                    VALUES (?, 'CREATE', 'SALE', '{}', ?, '2026-01-01T00:00:00+00:00', ?)
                    """,
                    (op_id, f"key-{op_id}", status),
                )
            await conn.commit()

        checks = {c["check"]: c for c in await verify_schema_integrity(initialized_db)}

        assert checks["operation_log"]["counts"] == {"PENDING": 2, "DEAD": 1}


class TestBackup:
    @pytest.mark.asyncio
    async def test_snapshot_includes_uncheckpointed_commits(self, temp_db_path: Path):
        """Rows still in the WAL make it into the snapshot."""
        async with aiosqlite.connect(temp_db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("CREATE TABLE queued (id TEXT)")
            await conn.execute("INSERT INTO queued VALUES ('op-1')")
            await conn.commit()

            backup = await create_backup(temp_db_path)

        async with aiosqlite.connect(backup) as conn:
            cursor = await conn.execute("SELECT id FROM queued")
            assert [row[0] for row in await cursor.fetchall()] == ["op-1"]
        assert backup.name.startswith("test.backup_")

    @pytest.mark.asyncio
    async def test_restore_overwrites(self, temp_db_path: Path):
        async with aiosqlite.connect(temp_db_path) as conn:
            await conn.execute("CREATE TABLE queued (id TEXT)")
            await conn.execute("INSERT INTO queued VALUES ('op-1')")
            await conn.commit()
        backup = await create_backup(temp_db_path)
        async with aiosqlite.connect(temp_db_path) as conn:
            await conn.execute("DELETE FROM queued")
            await conn.commit()

        await restore_backup(temp_db_path, backup)

        async with aiosqlite.connect(temp_db_path) as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM queued")
            assert (await cursor.fetchone())[0] == 1
