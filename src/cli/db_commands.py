import typer
from rich.console import Console

from src.userhub.core.services import DbSessionService
from src.userhub.runtime.context import get_config

console = Console()

db_app = typer.Typer(help="Database maintenance")


@db_app.command("init")
def init_db() -> None:
    """Create the database tables if they do not exist."""
    config = get_config()
    database = DbSessionService()
    try:
        database.create_all()
    finally:
        database.dispose()
    console.print(f"[green]Tables created on {config.database.sanitized_url}[/green]")
