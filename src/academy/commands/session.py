"""Commands: academy login / logout / whoami."""

import typer
from sqlalchemy.ext.asyncio import AsyncSession

from academy.commands.common import console, current_principal, run_command
from academy.modules.accounts.models import Role
from academy.modules.identity.services import IdentityService
from academy.runtime import Runtime


def login(
    name: str = typer.Option(..., "--name", "-n", help="Institute name"),
    mobile: str = typer.Option(..., "--mobile", "-m", help="10-digit mobile number"),
    sync: bool = typer.Option(
        True, "--sync/--no-sync", help="Sync the plan with the remote authority"
    ),
) -> None:
    """Log in. A first login creates a FREE institute."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        principal = await IdentityService(db, runtime).login(name, mobile)
        await db.commit()
        console.print(
            f"[green]✓[/green] Logged in as [bold]{principal.display_name}[/bold] "
            f"({principal.role.value})"
        )
        if sync and principal.role == Role.OWNER:
            with console.status("[bold green]Syncing plan..."):
                result = await runtime.reconciler.reconcile(principal.identity)
            if result.synced:
                console.print(f"[green]✓[/green] Plan synced ({result.outcome.value})")
            else:
                console.print(
                    f"[yellow]Warning:[/yellow] Plan not synced ({result.outcome.value})"
                )

    run_command(action)


def logout() -> None:
    """Log out and forget the saved session."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        identity = await IdentityService(db, runtime).logout()
        if identity is None:
            console.print("[yellow]Nobody is logged in.[/yellow]")
        else:
            console.print(f"[green]✓[/green] Logged out {identity}")

    run_command(action)


def whoami() -> None:
    """Show the logged-in principal."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        principal = await current_principal(runtime)
        console.print(f"[bold]{principal.display_name}[/bold]")
        console.print(f"  Mobile:    {principal.identity}")
        console.print(f"  Role:      {principal.role.value}")
        if principal.partition_owner and principal.partition_owner != principal.identity:
            console.print(f"  Institute: {principal.partition_owner}")

    run_command(action)
