"""Shared plumbing for CLI commands.

Each invocation starts a runtime, opens one unit of work, runs the command
and closes everything again. Domain errors end the command with exit code 1.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import typer
from rich.console import Console
from sqlalchemy.ext.asyncio import AsyncSession

from academy.api.dependencies import get_current_principal, require_admin
from academy.core.database import session_scope
from academy.core.errors import AppException
from academy.core.notifications import MessagingHandoff
from academy.core.session import Principal
from academy.runtime import Runtime, open_runtime


T = TypeVar("T")

console = Console()


def launch_url(url: str) -> int:
    """Open a messaging URL in the user's browser or messaging app."""
    return typer.launch(url)


def runtime_kwargs() -> dict[str, Any]:
    """Keyword arguments for the runtime of one CLI invocation."""
    return {"notifier": MessagingHandoff(launcher=launch_url)}


def run_command(action: Callable[[Runtime, AsyncSession], Awaitable[T]]) -> T:
    """Run ``action`` inside a started runtime and one committed session."""

    async def _main() -> T:
        async with open_runtime(**runtime_kwargs()) as runtime:
            async with session_scope(runtime.session_factory) as db:
                return await action(runtime, db)

    try:
        return asyncio.run(_main())
    except AppException as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from None


async def current_principal(runtime: Runtime) -> Principal:
    return await get_current_principal(runtime)


async def admin_principal(runtime: Runtime) -> Principal:
    return await require_admin(await get_current_principal(runtime))


def yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "[dim]no[/dim]"
