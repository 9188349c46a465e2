"""Commands: academy plan ..."""

import typer
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession

from academy.commands.common import console, current_principal, run_command, yes_no
from academy.core.constants import LIFETIME_TERM, MAX_TERM_MONTHS
from academy.modules.accounts.models import Role
from academy.modules.entitlements.schemas import PlanView
from academy.modules.entitlements.services import EntitlementService
from academy.runtime import Runtime


app = typer.Typer(help="View and upgrade the institute plan.", no_args_is_help=True)


def print_plan(view: PlanView) -> None:
    table = Table(title=f"Plan of {view.display_name}", show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")
    table.add_row("State", view.state.value)
    table.add_row("Plan", view.plan.value)
    table.add_row("Term", view.plan_type.value)
    table.add_row("Active", yes_no(view.subscription_active))
    if view.end_date is not None:
        table.add_row("Ends", view.end_date.date().isoformat())
    table.add_row("Students", f"{view.student_count} / {view.student_quota}")
    if view.pending_request is not None:
        table.add_row("Request", f"pending since {view.pending_request.created_at:%Y-%m-%d}")
    console.print()
    console.print(table)
    console.print()


@app.command("show")
def show(
    sync: bool = typer.Option(
        True, "--sync/--no-sync", help="Sync with the remote authority first"
    ),
) -> None:
    """Show the plan of your institute."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        principal = await current_principal(runtime)
        if sync and principal.role == Role.OWNER:
            with console.status("[bold green]Syncing plan..."):
                await runtime.reconciler.reconcile(principal.identity)
        print_plan(await EntitlementService(db, runtime).get_view(principal))

    run_command(action)


@app.command("sync")
def sync_now() -> None:
    """Sync the plan with the remote authority now."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        principal = await current_principal(runtime)
        service = EntitlementService(db, runtime)
        with console.status("[bold green]Syncing plan..."):
            result = await service.sync(principal)
        if result.synced:
            console.print(f"[green]✓[/green] {result.outcome.value}")
            for change in result.changes:
                console.print(f"  - {change}")
        else:
            console.print(f"[yellow]Warning:[/yellow] Not synced ({result.outcome.value})")
        print_plan(await service.get_view(principal))

    run_command(action)


@app.command("request")
def request(
    months: int = typer.Option(
        LIFETIME_TERM,
        "--months",
        min=0,
        max=MAX_TERM_MONTHS,
        help="Term in months, 0 for lifetime",
    ),
) -> None:
    """Ask the administrator to activate a paid plan."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        principal = await current_principal(runtime)
        result = await EntitlementService(db, runtime).request_activation(principal, months)
        if result.created:
            console.print("[green]✓[/green] Activation requested")
            if result.whatsapp_url:
                console.print(f"  Message the administrator: {result.whatsapp_url}")
        else:
            console.print("[yellow]A request is already pending.[/yellow]")

    run_command(action)


@app.command("activate")
def activate(code: str = typer.Argument(..., help="Activation code")) -> None:
    """Activate a lifetime plan with an activation code."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        principal = await current_principal(runtime)
        await EntitlementService(db, runtime).apply_activation_code(principal, code)
        console.print("[green]✓[/green] Lifetime plan activated")

    run_command(action)
