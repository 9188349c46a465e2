"""Commands: academy join ..."""

import typer
from sqlalchemy.ext.asyncio import AsyncSession

from academy.commands.common import console, run_command
from academy.modules.linking.services import LinkingService
from academy.runtime import Runtime


app = typer.Typer(help="Join an institute as a teacher.", no_args_is_help=True)


def _joined(display_name: str, owner: str | None) -> None:
    console.print(
        f"[green]✓[/green] Joined institute {owner} as teacher "
        f"[bold]{display_name}[/bold]"
    )


@app.command("code")
def join_with_code(
    code: str = typer.Argument(..., help="Access code from the institute owner"),
    name: str = typer.Option(..., "--name", "-n", help="Your name"),
    mobile: str = typer.Option(..., "--mobile", "-m", help="Your 10-digit mobile number"),
) -> None:
    """Join with an access code and log in as teacher."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        principal = await LinkingService(db, runtime).join(mobile, name, code)
        _joined(principal.display_name, principal.partition_owner)

    run_command(action)


@app.command("link")
def join_with_link(
    link: str = typer.Argument(..., help="Invite link shared by the owner"),
    name: str = typer.Option(..., "--name", "-n", help="Your name"),
    mobile: str = typer.Option(..., "--mobile", "-m", help="Your 10-digit mobile number"),
) -> None:
    """Join with an invite link and log in as teacher."""

    async def action(runtime: Runtime, db: AsyncSession) -> None:
        service = LinkingService(db, runtime)
        invite = await service.open_teacher_link(link)
        console.print(f"Invite from [bold]{invite.display_name}[/bold]")
        principal = await service.join(
            mobile, name, invite.access_code, invite.owner_identity
        )
        _joined(principal.display_name, principal.partition_owner)

    run_command(action)
