"""User management commands."""

import asyncio
from typing import NoReturn

import typer
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from src.cli.services import open_services
from src.userhub.core.errors import ApiError
from src.userhub.core.services import ResolveMode

console = Console()

users_app = typer.Typer(help="Create, inspect and purge users")


def _fail(error: ApiError) -> NoReturn:
    console.print(f"[red]{error.error_name}: {error.message}[/red]")
    raise typer.Exit(code=1)


def _print_user(user: dict) -> None:
    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for name, value in user.items():
        table.add_row(name, "" if value is None else str(value))
    console.print(table)


@users_app.command("add")
def add_user(
    phone: str = typer.Option(None, "--phone", help="11 digit phone number"),
    email: str = typer.Option(None, "--email", "-e", help="Email address"),
    password: str = typer.Option(None, "--password", "-p", help="Password"),
    nickname: str = typer.Option(None, "--nickname", "-n", help="Display name"),
) -> None:
    """Create a user through the user directory."""

    async def run() -> dict:
        async with open_services() as services:
            password_hash = services.hasher.hash(password) if password else None
            params = {"phone": phone, "email": email, "nickname": nickname}
            return services.directory.create(
                {k: v for k, v in params.items() if v is not None},
                password_hash=password_hash,
            )

    try:
        user = asyncio.run(run())
    except ApiError as e:
        _fail(e)
    console.print("[green]User created[/green]")
    _print_user(user)


@users_app.command("show")
def show_user(
    identifier: str = typer.Argument(..., help="User id, phone or email"),
) -> None:
    """Look a user up by id, phone or email."""

    async def run() -> dict:
        async with open_services() as services:
            return services.directory.resolve(identifier, ResolveMode.ANY_TYPE).project()

    try:
        user = asyncio.run(run())
    except ApiError as e:
        _fail(e)
    _print_user(user)


@users_app.command("purge")
def purge_user(
    user_id: str = typer.Argument(..., help="User id"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Physically remove a user and revoke all of their sessions."""
    if not force and not Confirm.ask(f"Permanently remove user {user_id}?"):
        console.print("[yellow]Aborted[/yellow]")
        raise typer.Exit(code=0)

    async def run() -> tuple[bool, int]:
        async with open_services() as services:
            removed = services.directory.purge(user_id)
            killed = await services.sessions.delete_all_by_owner(user_id)
            return removed, killed

    try:
        removed, killed = asyncio.run(run())
    except ApiError as e:
        _fail(e)
    if not removed:
        console.print(f"[red]User {user_id} not found[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]User {user_id} removed, {killed} session(s) revoked[/green]")
