"""Administrative command line for the userhub service."""

import typer

from .db_commands import db_app
from .session_commands import sessions_app
from .user_commands import users_app

app = typer.Typer(
    help="userhub administration: database, users and sessions",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(db_app, name="db")
app.add_typer(users_app, name="users")
app.add_typer(sessions_app, name="sessions")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
