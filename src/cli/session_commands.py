import asyncio
import json

import typer
from rich.console import Console
from rich.table import Table

from src.cli.services import open_services
from src.userhub.core.errors import ApiError

console = Console()

sessions_app = typer.Typer(help="Inspect and revoke user sessions")


@sessions_app.command("list")
def list_sessions(user_id: str = typer.Argument(..., help="Owner user id")) -> None:
    """List the live sessions of a user."""

    async def run():
        async with open_services() as services:
            return await services.sessions.list_by_owner(user_id)

    try:
        sessions = asyncio.run(run())
    except ApiError as e:
        console.print(f"[red]{e.error_name}: {e.message}[/red]")
        raise typer.Exit(code=1) from e

    if not sessions:
        console.print(f"[yellow]No sessions for user {user_id}[/yellow]")
        return

    table = Table(title=f"Sessions of {user_id}")
    table.add_column("TTL", style="cyan")
    table.add_column("IP", style="magenta")
    table.add_column("Data", style="green")
    for session in sessions:
        table.add_row(str(session.ttl), session.ip or "-", json.dumps(session.data))
    console.print(table)


@sessions_app.command("revoke")
def revoke_sessions(user_id: str = typer.Argument(..., help="Owner user id")) -> None:
    """Revoke every session of a user."""

    async def run() -> int:
        async with open_services() as services:
            return await services.sessions.delete_all_by_owner(user_id)

    try:
        killed = asyncio.run(run())
    except ApiError as e:
        console.print(f"[red]{e.error_name}: {e.message}[/red]")
        raise typer.Exit(code=1) from e
    console.print(f"[green]{killed} session(s) revoked[/green]")
