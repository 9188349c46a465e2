"""Binding registry: picks the one active remote authority from settings."""

from collections.abc import Callable

import httpx
import structlog

from academy.config import Settings, settings
from academy.modules.remote.airtable import AirtableAuthority
from academy.modules.remote.base import RemoteAuthority
from academy.modules.remote.memory import DisabledAuthority, MemoryAuthority
from academy.modules.remote.sheets import SheetsAuthority
from academy.modules.remote.supabase import SupabaseAuthority


logger = structlog.get_logger()

BindingFactory = Callable[[Settings, httpx.AsyncClient | None], RemoteAuthority]


def _airtable(config: Settings, client: httpx.AsyncClient | None) -> RemoteAuthority:
    return AirtableAuthority(
        api_key=config.airtable_api_key,
        base_id=config.airtable_base_id,
        table_name=config.airtable_table_name,
        client=client,
        timeout=config.remote_timeout_seconds,
    )


def _supabase(config: Settings, client: httpx.AsyncClient | None) -> RemoteAuthority:
    return SupabaseAuthority(
        url=config.supabase_url,
        key=config.supabase_key,
        table=config.supabase_table,
        client=client,
        timeout=config.remote_timeout_seconds,
    )


def _sheets(config: Settings, client: httpx.AsyncClient | None) -> RemoteAuthority:
    return SheetsAuthority(
        script_url=config.google_script_url,
        client=client,
        timeout=config.remote_timeout_seconds,
    )


_bindings: dict[str, BindingFactory] = {
    "airtable": _airtable,
    "supabase": _supabase,
    "sheets": _sheets,
    "memory": lambda _config, _client: MemoryAuthority(),
    "disabled": lambda _config, _client: DisabledAuthority(),
}


def available_backends() -> list[str]:
    return sorted(_bindings)


def build_remote_authority(
    config: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> RemoteAuthority:
    """Build the configured binding.

    A binding missing its credentials degrades to the disabled one, which
    callers treat as an unreachable remote.
    """
    config = config or settings
    factory = _bindings.get(config.remote_backend, _bindings["disabled"])
    authority = factory(config, client)
    if not authority.is_configured:
        logger.warning("remote_authority_not_configured", backend=config.remote_backend)
        return DisabledAuthority()
    logger.info("remote_authority_selected", backend=authority.name)
    return authority
