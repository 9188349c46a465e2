"""Commands: academy profile ..."""

import typer
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession

from academy.commands.common import console, current_principal, run_command
from academy.modules.accounts.models import TenantAccount
from academy.modules.accounts.schemas import ProfileUpdate
from academy.modules.accounts.services import ProfileService
from academy.modules.linking.services import LinkingService
from academy.runtime import Runtime


app = typer.Typer(help="View and edit your profile.", no_args_is_help=True)


def print_account(account: TenantAccount) -> None:
    table = Table(title=account.display_name, show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")
    table.add_row("Mobile", account.identity)
    table.add_row("Role", account.role.value)
    table.add_row("Email", account.email or "-")
    table.add_row("Address", account.address or "-")
    if account.linked_owner:
        table.add_row("Institute", account.linked_owner)
    if account.access_code:
        table.add_row("Access code", account.access_code)
    console.print()
    console.print(table)
    console.print()


@app.command("show")
def show() -> None:
    """Show your profile."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        principal = await current_principal(runtime)
        print_account(await ProfileService(db, runtime).get_profile(principal))

    run_command(action)


@app.command("edit")
def edit(
    name: str | None = typer.Option(None, "--name", "-n", help="Display name"),
    email: str | None = typer.Option(None, "--email", help="Email address"),
    address: str | None = typer.Option(None, "--address", help="Postal address"),
) -> None:
    """Edit name, email or address. Options left out are not changed."""
    fields = {
        key: value
        for key, value in (("display_name", name), ("email", email), ("address", address))
        if value is not None
    }
    if not fields:
        console.print("[yellow]Nothing to change.[/yellow]")
        raise typer.Exit(0)
    try:
        data = ProfileUpdate(**fields)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        principal = await current_principal(runtime)
        account = await ProfileService(db, runtime).update_profile(principal, data)
        console.print("[green]✓[/green] Profile updated")
        print_account(account)

    run_command(action)


@app.command("set-code")
def set_code(code: str = typer.Argument(..., help="Access code for your teachers")) -> None:
    """Set the access code teachers use to join your institute."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        principal = await current_principal(runtime)
        account = await LinkingService(db, runtime).set_access_code(principal, code)
        console.print(f"[green]✓[/green] Access code set to [bold]{account.access_code}[/bold]")

    run_command(action)


@app.command("share-link")
def share_link() -> None:
    """Build a teacher invite link and open it in WhatsApp."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        principal = await current_principal(runtime)
        result = await LinkingService(db, runtime).build_teacher_link(principal)
        console.print(f"Invite link: [cyan]{result.link}[/cyan]")
        console.print(f"Access code: [bold]{result.access_code}[/bold]")

    run_command(action)
