"""Supabase binding over the PostgREST endpoint of a ``profiles`` table."""

import httpx

from academy.config import settings
from academy.core.errors import RemoteAuthorityError
from academy.modules.remote.base import HttpRemoteAuthority, RemoteStatus
from academy.modules.remote.flags import coerce_flag


class SupabaseAuthority(HttpRemoteAuthority):
    """PostgREST binding keyed by the ``mobile`` column.

    Upserts merge on ``mobile`` and only send name-bearing columns, so the
    ``acceptance`` and ``subscription_pause`` columns keep their values (or
    the table defaults on insert).
    """

    name = "supabase"

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        table: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(client, timeout)
        self.url = (url if url is not None else settings.supabase_url or "").rstrip("/")
        self.key = key if key is not None else settings.supabase_key
        self.table = table or settings.supabase_table

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.key)

    @property
    def headers(self) -> dict[str, str]:
        return {
            "apikey": self.key or "",
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
        }

    @property
    def table_url(self) -> str:
        return f"{self.url}/rest/v1/{self.table}"

    async def upsert_profile(self, identity: str, display_name: str) -> None:
        await self._request(
            "POST",
            self.table_url,
            params={"on_conflict": "mobile"},
            json={"mobile": identity, "institute_name": display_name},
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    async def submit_request(self, identity: str, display_name: str) -> None:
        await self._request(
            "PATCH",
            self.table_url,
            params={"mobile": f"eq.{identity}"},
            json={"request_sent": True},
            headers={"Prefer": "return=minimal"},
        )

    async def fetch_status(self, identity: str) -> RemoteStatus | None:
        response = await self._request(
            "GET",
            self.table_url,
            params={
                "mobile": f"eq.{identity}",
                "select": "acceptance,subscription_pause",
                "limit": 1,
            },
        )
        rows = self._json(response)
        if not isinstance(rows, list):
            raise RemoteAuthorityError("supabase returned no row list", backend=self.name)
        if not rows:
            return None
        row = rows[0]
        return RemoteStatus(
            accepted=coerce_flag(row.get("acceptance")),
            paused=coerce_flag(row.get("subscription_pause")),
        )
