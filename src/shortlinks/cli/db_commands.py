"""Record store maintenance commands."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from src.shortlinks.core.services.database.credential_cascade import (
    INIT_SCRIPT_PATH,
    StartupError,
    connect_record_store,
    create_record_store,
    sign_in_least_privileged,
)
from src.shortlinks.core.services.database.record_store import RecordStoreError
from src.shortlinks.entities.user import UserRepository
from src.shortlinks.runtime.context import get_config

console = Console()

db_app = typer.Typer(help="Inspect and initialize the record store")


async def _check() -> str:
    config = get_config().database
    store = create_record_store(config)
    try:
        await store.connect()
        scope = await sign_in_least_privileged(store, config)
        await store.use(config.namespace, config.database)
    finally:
        await store.close()
    return scope.value


@db_app.command("check")
def check() -> None:
    """Report which credential scope the configured user signs in at."""
    config = get_config().database
    try:
        scope = asyncio.run(_check())
    except (StartupError, RecordStoreError) as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=1) from e

    table = Table(title="Record store")
    table.add_column("Endpoint", style="cyan")
    table.add_column("Namespace", style="green")
    table.add_column("Database", style="green")
    table.add_column("Signed in as", style="yellow")
    table.add_row(config.endpoint, config.namespace, config.database, scope)
    console.print(table)


@db_app.command("init")
def init() -> None:
    """Apply the schema script (tables, fields and unique indexes)."""

    async def _init() -> None:
        store = await connect_record_store(get_config().database)
        await store.close()

    try:
        asyncio.run(_init())
    except StartupError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=1) from e
    console.print(f"[green]✅ Applied {INIT_SCRIPT_PATH.name}[/green]")


@db_app.command("user")
def show_user(
    subject: str = typer.Argument(..., help="Identity provider subject"),
) -> None:
    """Show the user row created for an identity provider subject."""

    async def _lookup():
        store = await connect_record_store(get_config().database)
        try:
            return await UserRepository(store).get_by_subject(subject)
        finally:
            await store.close()

    try:
        user = asyncio.run(_lookup())
    except (StartupError, RecordStoreError) as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=1) from e

    if user is None:
        console.print(f"[yellow]No user for subject '{subject}'[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title=f"User for subject '{subject}'")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Email", style="blue")
    table.add_row(user.id, user.name, user.email)
    console.print(table)
