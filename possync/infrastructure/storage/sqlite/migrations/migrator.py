"""
Versioned schema migrations for the terminal's local store.

Files named ``vNNN_name.sql`` beside this module are applied in version
order. Each file runs in one transaction together with its row in
``schema_migrations``, so a failing file leaves the schema at the previous
version.

The store can hold operations that never reached the remote, so snapshots
go through SQLite's online backup. A plain file copy would miss commits
still sitting in the WAL.
"""

import hashlib
import re
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import aiosqlite

from possync.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

_FILENAME = re.compile(r"^v(\d+)_(\w+)\.sql$")

REQUIRED_TABLES = (
    "pending_operations",
    "cash_sessions",
    "sales",
    "cached_state",
    "schema_migrations",
)

SCHEMA_MIGRATIONS_DDL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    checksum TEXT NOT NULL,
    execution_time_ms INTEGER NOT NULL DEFAULT 0,
    applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""


@dataclass
class MigrationInfo:
    """One migration file on disk."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = _FILENAME.match(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")

        checksum = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=checksum)

    @property
    def label(self) -> str:
        return f"{self.version}_{self.name}"

    def script(self) -> str:
        """The file's SQL wrapped in a transaction that also records it."""
        # version, name and checksum are \w-only, safe to inline
        return (
            "BEGIN IMMEDIATE;\n"
            f"{self.path.read_text(encoding='utf-8')}\n;\n"
            "INSERT INTO schema_migrations (version, name, checksum) "
            f"VALUES ('{self.version}', '{self.name}', '{self.checksum}');\n"
            "COMMIT;"
        )


@dataclass
class MigrationResult:
    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied versions mapped to the checksum they were applied with."""
    try:
        cursor = await conn.execute(
            "SELECT version, checksum FROM schema_migrations ORDER BY version"
        )
    except aiosqlite.OperationalError:
        return {}
    return {row[0]: row[1] for row in await cursor.fetchall()}


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[MigrationInfo]:
    """Migration files in ``directory`` in version order; bad names are skipped."""
    migrations = []
    for path in directory.glob("v*.sql"):
        try:
            migrations.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return sorted(migrations, key=lambda m: int(m.version))


async def apply_migration(
    conn: aiosqlite.Connection,
    migration: MigrationInfo,
) -> MigrationResult:
    """Run one migration atomically. Failures are returned, not raised."""
    start = time.perf_counter()
    try:
        await conn.executescript(migration.script())
    except aiosqlite.Error as e:
        if conn.in_transaction:
            await conn.rollback()
        logger.error("migration_failed", migration=migration.label, error=str(e))
        return MigrationResult(
            version=migration.version,
            name=migration.name,
            success=False,
            execution_time_ms=int((time.perf_counter() - start) * 1000),
            error=str(e),
        )

    elapsed = int((time.perf_counter() - start) * 1000)
    await conn.execute(
        "UPDATE schema_migrations SET execution_time_ms = ? WHERE version = ?",
        (elapsed, migration.version),
    )
    logger.info("migration_applied", migration=migration.label, execution_time_ms=elapsed)
    return MigrationResult(
        version=migration.version,
        name=migration.name,
        success=True,
        execution_time_ms=elapsed,
    )


async def create_backup(db_path: Path) -> Path:
    """Snapshot the database, WAL content included, next to the original."""
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_name(f"{db_path.stem}.backup_{stamp}{db_path.suffix}")
    async with aiosqlite.connect(db_path) as source, aiosqlite.connect(backup_path) as target:
        await source.backup(target)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


async def restore_backup(db_path: Path, backup_path: Path) -> None:
    """Overwrite the database with a snapshot taken by ``create_backup``."""
    async with aiosqlite.connect(backup_path) as source, aiosqlite.connect(db_path) as target:
        await source.backup(target)
    logger.warning("database_restored_from_backup", backup_path=str(backup_path))


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
    directory: Path = MIGRATIONS_DIR,
) -> list[MigrationResult]:
    """
    Bring the local store up to the newest schema.

    Stops at the first failing migration. That migration is rolled back and
    the snapshot, if one was taken, is kept for the operator. An unexpected
    error restores the snapshot and propagates.

    Args:
        db_path: Database file (default from settings)
        create_backup_before: Snapshot an existing database before changing it
        directory: Where the ``vNNN_name.sql`` files live

    Returns:
        Results for the migrations that ran; empty when already up to date
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    existed = db_path.exists()

    results: list[MigrationResult] = []
    backup_path: Path | None = None
    try:
        async with aiosqlite.connect(db_path, isolation_level=None) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute(SCHEMA_MIGRATIONS_DDL)

            applied = await get_applied_migrations(conn)
            pending = []
            for migration in discover_migrations(directory):
                if migration.version not in applied:
                    pending.append(migration)
                elif applied[migration.version] != migration.checksum:
                    logger.warning("migration_checksum_changed", migration=migration.label)
            if not pending:
                return results

            if create_backup_before and existed:
                backup_path = await create_backup(db_path)

            logger.info("migrating_database", db_path=str(db_path), pending=len(pending))
            for migration in pending:
                result = await apply_migration(conn, migration)
                results.append(result)
                if not result.success:
                    break
    except Exception as e:
        logger.error("database_initialization_failed", error=str(e))
        if backup_path is not None:
            await restore_backup(db_path, backup_path)
        raise

    if backup_path is not None:
        if all(r.success for r in results):
            backup_path.unlink()
        else:
            logger.warning("migration_backup_kept", backup_path=str(backup_path))
    return results


async def get_migration_status(db_path: Path | None = None) -> dict:
    """Current schema version plus applied and pending migration versions."""
    db_path = db_path or get_settings().storage.db_path
    discovered = discover_migrations()

    applied: dict[str, str] = {}
    if db_path.exists():
        async with aiosqlite.connect(db_path) as conn:
            applied = await get_applied_migrations(conn)

    return {
        "exists": db_path.exists(),
        "current_version": max(applied, key=int) if applied else None,
        "applied_migrations": list(applied),
        "pending_migrations": [m.version for m in discovered if m.version not in applied],
        "total_migrations": len(discovered),
    }


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """
    Check the store before trusting its queue.

    Returns one dict per check with ``check`` and ``status`` (PASS, FAIL or
    SKIP) plus check-specific fields.
    """
    db_path = db_path or get_settings().storage.db_path
    checks = []

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA integrity_check")
        (integrity,) = await cursor.fetchone()
        checks.append({
            "check": "integrity",
            "status": "PASS" if integrity == "ok" else "FAIL",
            "result": integrity,
        })

        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        tables = {row[0] for row in await cursor.fetchall()}
        missing = [t for t in REQUIRED_TABLES if t not in tables]
        checks.append({
            "check": "required_tables",
            "status": "PASS" if not missing else "FAIL",
            "missing": missing,
        })

        if "pending_operations" in tables:
            cursor = await conn.execute(
                "SELECT status, COUNT(*) FROM pending_operations GROUP BY status"
            )
            counts = {row[0]: row[1] for row in await cursor.fetchall()}
            checks.append({"check": "operation_log", "status": "PASS", "counts": counts})
        else:
            checks.append({"check": "operation_log", "status": "SKIP", "counts": {}})

    return checks
