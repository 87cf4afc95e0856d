"""Core migration functionality for the Supabase database."""

import os
from pathlib import Path

import asyncpg
import sqlparse

from src.utils.logging import get_logger

logger = get_logger(__name__)

MIGRATION_TABLE = "schema_migrations"


class MigrationError(Exception):
    """Custom exception for migration-related errors."""

    pass


def get_migrations_dir() -> Path:
    """Get the migrations directory path."""
    default_path = Path(__file__).parent.parent.parent / "migrations"
    return Path(os.getenv("MIGRATIONS_DIR", str(default_path)))


def get_migration_files(directory: Path) -> list[Path]:
    """Get all migration files from a directory, sorted by timestamp."""
    if not directory.exists():
        return []
    # Timestamp prefix gives chronological order
    return sorted(directory.glob("*.sql"))


def extract_version_from_filename(filename: str) -> str:
    """Extract version timestamp from migration filename."""
    return filename.split("_")[0]


def parse_sql_statements(sql_content: str) -> list[str]:
    """Parse SQL content into individual statements."""
    return [stmt.strip() for stmt in sqlparse.split(sql_content) if stmt.strip()]


async def ensure_migrations_table(conn: asyncpg.Connection) -> None:
    await conn.execute(f"""
        CREATE TABLE IF NOT EXISTS public.{MIGRATION_TABLE} (
            version VARCHAR(255) PRIMARY KEY,
            applied_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
        );
    """)


async def get_applied_migrations(conn: asyncpg.Connection) -> set[str]:
    """Get set of applied migration versions."""
    exists = await conn.fetchval(
        """
        SELECT EXISTS (
            SELECT FROM information_schema.tables
            WHERE table_name = $1
        )
        """,
        MIGRATION_TABLE,
    )
    if not exists:
        return set()

    rows = await conn.fetch(f"SELECT version FROM public.{MIGRATION_TABLE}")
    return {row["version"] for row in rows}


async def apply_migration_file(
    conn: asyncpg.Connection, migration_file: Path, timeout: int = 300
) -> None:
    """Apply one migration file and record it, in a single transaction.

    Raises:
        MigrationError: if any statement fails
    """
    version = extract_version_from_filename(migration_file.name)
    statements = parse_sql_statements(migration_file.read_text())

    try:
        async with conn.transaction():
            await conn.execute(f"SET LOCAL statement_timeout = '{timeout}s'")
            for statement in statements:
                await conn.execute(statement)
            await conn.execute(
                f"INSERT INTO public.{MIGRATION_TABLE} (version) VALUES ($1)", version
            )
    except asyncpg.PostgresError as e:
        raise MigrationError(f"Failed to apply {migration_file.name}: {e}") from e

    logger.info("Applied migration", migration=migration_file.name)


def get_pending_migrations(migrations_dir: Path, applied: set[str]) -> list[Path]:
    return [
        migration_file
        for migration_file in get_migration_files(migrations_dir)
        if extract_version_from_filename(migration_file.name) not in applied
    ]


async def migrate_database(
    db_url: str, migrations_dir: Path, timeout: int = 300, dry_run: bool = False
) -> list[str]:
    """Apply every pending migration in order, stopping at the first failure.

    Returns:
        Names of the migration files applied (or that would be, for a dry run)
    """
    conn = await asyncpg.connect(db_url)
    try:
        if not dry_run:
            await ensure_migrations_table(conn)
        pending = get_pending_migrations(migrations_dir, await get_applied_migrations(conn))

        applied: list[str] = []
        for migration_file in pending:
            if dry_run:
                logger.info("DRY RUN: would apply migration", migration=migration_file.name)
            else:
                await apply_migration_file(conn, migration_file, timeout)
            applied.append(migration_file.name)
        return applied
    finally:
        await conn.close()


async def mark_migration_as_applied(conn: asyncpg.Connection, version: str) -> bool:
    """Record a migration as applied without running it.

    Returns:
        False if it was already recorded
    """
    await ensure_migrations_table(conn)
    result = await conn.execute(
        f"INSERT INTO public.{MIGRATION_TABLE} (version) VALUES ($1) ON CONFLICT DO NOTHING",
        version,
    )
    if result == "INSERT 0 0":
        logger.warning("Migration already marked as applied", version=version)
        return False
    logger.info("Marked migration as applied", version=version)
    return True


async def unmark_migration_as_applied(conn: asyncpg.Connection, version: str) -> bool:
    """Remove a migration from schema_migrations. Returns False if it wasn't applied."""
    await ensure_migrations_table(conn)
    result = await conn.execute(f"DELETE FROM public.{MIGRATION_TABLE} WHERE version = $1", version)
    if result == "DELETE 0":
        logger.warning("Migration was not marked as applied", version=version)
        return False
    logger.info("Unmarked migration", version=version)
    return True


def validate_migration_exists(version: str, migrations_dir: Path) -> tuple[bool, str | None]:
    """Return (exists, filename) for the migration file with this version prefix."""
    for migration_file in get_migration_files(migrations_dir):
        if extract_version_from_filename(migration_file.name) == version:
            return True, migration_file.name
    return False, None
