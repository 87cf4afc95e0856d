#!/usr/bin/env python3
"""
GradeUp Database Migration CLI

Creates, lists and applies SQL migrations against the Supabase database.
"""

import asyncio
import re
from datetime import datetime

import asyncpg
import typer
from dotenv import load_dotenv
from rich import box
from rich.console import Console
from rich.table import Table

from src.migrations.core import (
    MigrationError,
    extract_version_from_filename,
    get_applied_migrations,
    get_migration_files,
    get_migrations_dir,
    mark_migration_as_applied,
    migrate_database,
    unmark_migration_as_applied,
    validate_migration_exists,
)
from src.utils.config import get_database_url

load_dotenv()

app = typer.Typer(
    name="migrations",
    help="Database migration management for GradeUp",
    add_completion=False,
)
console = Console()

MIGRATIONS_DIR = get_migrations_dir()


def log_info(message: str) -> None:
    console.print(f"ℹ️  {message}", style="blue")


def log_success(message: str) -> None:
    console.print(f"✅ {message}", style="green")


def log_warning(message: str) -> None:
    console.print(f"⚠️  {message}", style="yellow")


def log_error(message: str) -> None:
    console.print(f"❌ {message}", style="red")


def slugify(text: str) -> str:
    """Convert text to a slug suitable for filenames."""
    slug = re.sub(r"[^a-z0-9]+", "_", text.lower())
    return slug.strip("_")


def generate_timestamp() -> str:
    return datetime.now().strftime("%Y%m%d%H%M%S")


def _database_url() -> str:
    try:
        return get_database_url()
    except ValueError as e:
        log_error(str(e))
        raise typer.Exit(1)


@app.command()
def create(
    description: str = typer.Argument(..., help="Brief description of the migration"),
) -> None:
    """Create a new migration file with proper naming and template."""
    MIGRATIONS_DIR.mkdir(parents=True, exist_ok=True)

    filepath = MIGRATIONS_DIR / f"{generate_timestamp()}_{slugify(description)}.sql"
    if filepath.exists():
        log_error(f"File already exists: {filepath}")
        raise typer.Exit(1)

    filepath.write_text(
        f"-- Migration: {description}\n"
        f"-- Created: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n\n"
        "-- Add your migration SQL here\n"
    )
    log_success(f"Created migration file: {filepath}")


@app.command("list")
def list_command() -> None:
    """List available migration files."""
    files = get_migration_files(MIGRATIONS_DIR)
    if not files:
        console.print("  No migrations found")
        return
    for file in files:
        console.print(f"  {file.name}")


@app.command()
def migrate(
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would be done without executing"
    ),
    timeout: int = typer.Option(300, "--timeout", help="Migration timeout in seconds"),
) -> None:
    """Apply pending migrations."""
    db_url = _database_url()
    try:
        applied = asyncio.run(migrate_database(db_url, MIGRATIONS_DIR, timeout, dry_run))
    except MigrationError as e:
        log_error(str(e))
        raise typer.Exit(1)

    if not applied:
        log_info("Database is up to date")
        return
    verb = "Would apply" if dry_run else "Applied"
    for name in applied:
        log_success(f"{verb} {name}")


async def _show_status(db_url: str) -> None:
    conn = await asyncpg.connect(db_url)
    try:
        applied = await get_applied_migrations(conn)
    finally:
        await conn.close()

    table = Table(title="Migration Status", box=box.ROUNDED)
    table.add_column("Version", style="cyan")
    table.add_column("File")
    table.add_column("Status")
    for migration_file in get_migration_files(MIGRATIONS_DIR):
        version = extract_version_from_filename(migration_file.name)
        state = "[green]applied[/green]" if version in applied else "[yellow]pending[/yellow]"
        table.add_row(version, migration_file.name, state)
    console.print(table)


@app.command()
def status() -> None:
    """Show applied and pending migrations."""
    asyncio.run(_show_status(_database_url()))


async def _set_mark(db_url: str, version: str, applied: bool) -> bool:
    conn = await asyncpg.connect(db_url)
    try:
        if applied:
            return await mark_migration_as_applied(conn, version)
        return await unmark_migration_as_applied(conn, version)
    finally:
        await conn.close()


@app.command()
def mark(
    version: str = typer.Argument(..., help="Migration version (timestamp prefix)"),
    unmark: bool = typer.Option(False, "--unmark", help="Remove the applied record instead"),
) -> None:
    """Mark a migration as applied (or not) without running it."""
    exists, filename = validate_migration_exists(version, MIGRATIONS_DIR)
    if not exists:
        log_error(f"No migration file found for version {version}")
        raise typer.Exit(1)

    changed = asyncio.run(_set_mark(_database_url(), version, applied=not unmark))
    if changed:
        log_success(f"{'Unmarked' if unmark else 'Marked'} {filename}")
    else:
        log_warning(f"{filename} was already {'unmarked' if unmark else 'marked'}")


if __name__ == "__main__":
    app()
