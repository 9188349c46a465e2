"""Commands: academy admin ..."""

import typer
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession

from academy.commands.common import admin_principal, console, run_command, yes_no
from academy.modules.accounts.models import RequestStatus
from academy.modules.admin.schemas import AccountTab
from academy.modules.admin.services import AdminService
from academy.runtime import Runtime


app = typer.Typer(help="Administrator dashboard.", no_args_is_help=True)


@app.command("stats")
def stats() -> None:
    """Show dashboard counters."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        await admin_principal(runtime)
        result = await AdminService(db, runtime).stats()
        table = Table(title="Dashboard", show_header=False)
        table.add_column("Counter", style="cyan")
        table.add_column("Value", justify="right")
        table.add_row("Institutes", str(result.institutes))
        table.add_row("Teachers", str(result.teachers))
        table.add_row("Active subscriptions", str(result.active_subscriptions))
        table.add_row("Pending requests", str(result.pending_requests))
        table.add_row("Students", str(result.total_students))
        console.print(table)

    run_command(action)


@app.command("requests")
def list_requests(
    pending: bool = typer.Option(False, "--pending", "-p", help="Only pending requests"),
) -> None:
    """List approval requests, pending first."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        await admin_principal(runtime)
        requests = await AdminService(db, runtime).list_requests(
            RequestStatus.PENDING if pending else None
        )
        if not requests:
            console.print("[yellow]No requests.[/yellow]")
            return
        table = Table(title="Requests", show_header=True)
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Institute")
        table.add_column("Mobile", no_wrap=True)
        table.add_column("Term", no_wrap=True)
        table.add_column("Status", no_wrap=True)
        table.add_column("Created", no_wrap=True)
        for r in requests:
            table.add_row(
                str(r.id),
                r.display_name,
                r.owner_identity,
                "lifetime" if r.is_lifetime else f"{r.months_requested} months",
                r.status.value,
                f"{r.created_at:%Y-%m-%d %H:%M}",
            )
        console.print(table)

    run_command(action)


@app.command("accept")
def accept(request_id: int = typer.Argument(..., help="Request ID")) -> None:
    """Accept a pending request."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        await admin_principal(runtime)
        account = await AdminService(db, runtime).accept_request(request_id)
        console.print(f"[green]✓[/green] {account.display_name} is now subscribed")

    run_command(action)


@app.command("decline")
def decline(request_id: int = typer.Argument(..., help="Request ID")) -> None:
    """Decline a pending request."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        await admin_principal(runtime)
        request = await AdminService(db, runtime).decline_request(request_id)
        console.print(f"[green]✓[/green] Declined request of {request.display_name}")

    run_command(action)


@app.command("accounts")
def accounts(
    subscribers: bool = typer.Option(
        False, "--subscribers", "-s", help="Only subscribed institutes"
    ),
    search: str | None = typer.Option(None, "--search", help="Name or phone prefix"),
) -> None:
    """List institutes."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        await admin_principal(runtime)
        tab = AccountTab.SUBSCRIBERS if subscribers else AccountTab.ALL
        rows = await AdminService(db, runtime).list_accounts(tab, search)
        if not rows:
            console.print("[yellow]No institutes found.[/yellow]")
            return
        table = Table(title="Institutes", show_header=True)
        table.add_column("Mobile", style="cyan", no_wrap=True)
        table.add_column("Name")
        table.add_column("State", no_wrap=True)
        table.add_column("Active", no_wrap=True)
        table.add_column("Quota", justify="right")
        for row in rows:
            table.add_row(
                row.account.identity,
                row.account.display_name,
                row.state.value,
                yes_no(row.account.subscription_active),
                str(row.account.student_quota),
            )
        console.print(table)

    run_command(action)


@app.command("pause")
def pause(identity: str = typer.Argument(..., help="Institute mobile number")) -> None:
    """Pause or resume a subscription."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        await admin_principal(runtime)
        account = await AdminService(db, runtime).toggle_pause(identity)
        state = "resumed" if account.subscription_active else "paused"
        console.print(f"[green]✓[/green] Subscription of {account.display_name} {state}")

    run_command(action)


@app.command("cancel")
def cancel(identity: str = typer.Argument(..., help="Institute mobile number")) -> None:
    """Cancel a subscription and return the institute to the free plan."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        await admin_principal(runtime)
        account = await AdminService(db, runtime).cancel(identity)
        console.print(f"[green]✓[/green] {account.display_name} is back on the free plan")

    run_command(action)


@app.command("delete")
def delete(
    identity: str = typer.Argument(..., help="Institute mobile number"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Delete an institute with all its students, records and teachers."""
    confirm = identity if yes else typer.prompt("Type the mobile number to confirm")

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        await admin_principal(runtime)
        report = await AdminService(db, runtime).delete_account(identity, confirm)
        console.print(
            f"[green]✓[/green] Deleted {identity}: {report.students} students, "
            f"{report.teachers} teachers, {report.receipts} receipts, "
            f"{report.attendance} attendance records, {report.requests} requests"
        )

    run_command(action)
