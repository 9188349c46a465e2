"""Main academy CLI application."""

import typer
from rich.console import Console

from academy import __version__
from academy.commands import admin, join, plan, profile, serve, session
from academy.core.logging import configure_logging


console = Console()

app = typer.Typer(
    name="academy",
    help="Manage your institute: plan, teachers and administration.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register commands
app.command(name="login")(session.login)
app.command(name="logout")(session.logout)
app.command(name="whoami")(session.whoami)
app.command(name="serve")(serve.serve)
app.add_typer(plan.app, name="plan")
app.add_typer(profile.app, name="profile")
app.add_typer(join.app, name="join")
app.add_typer(admin.app, name="admin")


@app.callback(invoke_without_command=True)
def version_callback(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit."
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log at debug level."),
) -> None:
    """Super Management CLI - institute plans, teachers and administration."""
    if version:
        console.print(f"[bold cyan]academy[/bold cyan] version {__version__}")
        raise typer.Exit()
    configure_logging(level="DEBUG" if verbose else "WARNING")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
