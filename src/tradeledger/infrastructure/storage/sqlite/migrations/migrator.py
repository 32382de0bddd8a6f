"""
Versioned SQL migrations for the ledger database.

Migration files are named ``v001_name.sql`` and applied in version order.
Each applied file is recorded in ``schema_migrations`` with a short
checksum so edits to an already-applied file show up in ``verify``.
An existing database is copied aside before migrating and restored if
SQLite raises part way through.
"""

import hashlib
import re
import shutil
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import aiosqlite

from tradeledger.config import get_logger, get_settings
from tradeledger.core.interfaces.record_store import TABLES

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent
LEDGER_TRIGGERS = ("account_transactions_no_update", "account_transactions_no_delete")

_FILENAME = re.compile(r"v(\d+)_(.+)\.sql")


@dataclass(frozen=True)
class MigrationInfo:
    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = _FILENAME.fullmatch(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=digest)


@dataclass
class MigrationResult:
    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[MigrationInfo]:
    """Migration files in version order; badly named files are skipped."""
    found = []
    for path in sorted(directory.glob("v*.sql")):
        try:
            found.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return found


async def _applied(conn: aiosqlite.Connection) -> dict[str, str]:
    try:
        cursor = await conn.execute(
            "SELECT version, checksum FROM schema_migrations ORDER BY version"
        )
    except aiosqlite.OperationalError:
        # Fresh database, no bookkeeping table yet
        return {}
    return {version: checksum for version, checksum in await cursor.fetchall()}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    applied = await _applied(conn)
    return max(applied) if applied else None


async def _names(conn: aiosqlite.Connection, kind: str) -> set[str]:
    cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type = ?", (kind,))
    return {row[0] for row in await cursor.fetchall()}


def create_backup(db_path: Path) -> Path:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_suffix(f".backup_{stamp}.db")
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


def restore_backup(db_path: Path, backup_path: Path) -> None:
    shutil.copy2(backup_path, db_path)
    logger.info("database_restored_from_backup", backup_path=str(backup_path))


class LedgerMigrator:
    """Applies and inspects migrations for one database file."""

    def __init__(self, db_path: Path, directory: Path = MIGRATIONS_DIR):
        self.db_path = db_path
        self.directory = directory

    async def _apply_one(
        self, conn: aiosqlite.Connection, migration: MigrationInfo
    ) -> MigrationResult:
        logger.info("applying_migration", version=migration.version, name=migration.name)
        started = time.perf_counter()
        error: str | None = None
        try:
            await conn.executescript(migration.path.read_text(encoding="utf-8"))
            elapsed = int((time.perf_counter() - started) * 1000)
            await conn.execute(
                "INSERT OR REPLACE INTO schema_migrations "
                "(version, name, checksum, execution_time_ms) VALUES (?, ?, ?, ?)",
                (migration.version, migration.name, migration.checksum, elapsed),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            error = str(e)

        elapsed = int((time.perf_counter() - started) * 1000)
        if error is None:
            logger.info("migration_applied", version=migration.version, execution_time_ms=elapsed)
        else:
            logger.error("migration_failed", version=migration.version, error=error)
        return MigrationResult(
            version=migration.version,
            name=migration.name,
            success=error is None,
            execution_time_ms=elapsed,
            error=error,
        )

    async def migrate(self, create_backup_before: bool = True) -> list[MigrationResult]:
        """Apply pending migrations, stopping at the first failure."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("migrating_database", db_path=str(self.db_path))

        backup_path = None
        if create_backup_before and self.db_path.exists():
            backup_path = create_backup(self.db_path)

        results: list[MigrationResult] = []
        try:
            async with aiosqlite.connect(self.db_path) as conn:
                await conn.execute("PRAGMA journal_mode=WAL")
                await conn.execute("PRAGMA foreign_keys=ON")
                applied = await _applied(conn)

                for migration in discover_migrations(self.directory):
                    if migration.version in applied:
                        continue
                    result = await self._apply_one(conn, migration)
                    results.append(result)
                    if not result.success:
                        break
                    cursor = await conn.execute("PRAGMA foreign_key_check")
                    if await cursor.fetchall():
                        logger.error("foreign_key_violations_after", version=migration.version)
                        break
        except aiosqlite.Error as e:
            logger.error("database_migration_failed", error=str(e))
            if backup_path and backup_path.exists():
                restore_backup(self.db_path, backup_path)
            raise

        if backup_path and all(result.success for result in results):
            backup_path.unlink()
        return results

    async def status(self) -> dict:
        discovered = discover_migrations(self.directory)
        if not self.db_path.exists():
            return {
                "exists": False,
                "current_version": None,
                "applied_migrations": [],
                "pending_migrations": [m.version for m in discovered],
                "total_migrations": len(discovered),
            }
        async with aiosqlite.connect(self.db_path) as conn:
            applied = await _applied(conn)
            current = await get_current_version(conn)
        return {
            "exists": True,
            "current_version": current,
            "applied_migrations": list(applied),
            "pending_migrations": [m.version for m in discovered if m.version not in applied],
            "total_migrations": len(discovered),
        }

    async def verify(self) -> list[dict]:
        """
        Integrity report for the ledger database.

        Covers SQLite's own integrity and foreign key checks, the presence of
        every ledger table, the append-only triggers on the account ledger,
        and whether applied migration files were edited afterwards.
        """
        async with aiosqlite.connect(self.db_path) as conn:
            cursor = await conn.execute("PRAGMA integrity_check")
            integrity = (await cursor.fetchone())[0]
            cursor = await conn.execute("PRAGMA foreign_key_check")
            dangling = len(await cursor.fetchall())
            tables = await _names(conn, "table")
            triggers = await _names(conn, "trigger")
            applied = await _applied(conn)

        missing_tables = sorted((TABLES | {"schema_migrations"}) - tables)
        missing_triggers = [name for name in LEDGER_TRIGGERS if name not in triggers]
        edited = [
            m.version
            for m in discover_migrations(self.directory)
            if m.version in applied and applied[m.version] != m.checksum
        ]

        def verdict(ok: bool) -> str:
            return "PASS" if ok else "FAIL"

        return [
            {"check": "integrity", "status": verdict(integrity == "ok"), "result": integrity},
            {"check": "foreign_keys", "status": verdict(not dangling), "violations": dangling},
            {
                "check": "required_tables",
                "status": verdict(not missing_tables),
                "missing": missing_tables,
            },
            {
                "check": "ledger_append_only",
                "status": verdict(not missing_triggers),
                "missing": missing_triggers,
            },
            {"check": "migration_checksums", "status": verdict(not edited), "edited": edited},
        ]


def _migrator(db_path: Path | None) -> LedgerMigrator:
    return LedgerMigrator(db_path or get_settings().storage.db_path)


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    return await _migrator(db_path).migrate(create_backup_before)


# Name used by the app lifespan and manage.py
run_migrations = initialize_database


async def get_migration_status(db_path: Path | None = None) -> dict:
    return await _migrator(db_path).status()


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    return await _migrator(db_path).verify()
