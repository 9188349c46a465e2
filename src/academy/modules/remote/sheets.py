"""Google Apps Script binding (a spreadsheet published as a web app)."""

from typing import Any

import httpx

from academy.config import settings
from academy.core.constants import SHEETS_REQUEST_MARKER
from academy.core.errors import RemoteAuthorityError
from academy.modules.remote.base import HttpRemoteAuthority, RemoteStatus
from academy.modules.remote.flags import coerce_flag


class SheetsAuthority(HttpRemoteAuthority):
    """Apps Script web app binding.

    The script answers ``POST {action: syncUser | updateRequest}`` and
    ``GET ?action=getStatus&mobile=...``. Apps Script replies through a
    redirect, so redirects are followed.
    """

    name = "sheets"

    def __init__(
        self,
        script_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(client, timeout)
        self.script_url = (
            script_url if script_url is not None else settings.google_script_url
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.script_url)

    async def _post(self, payload: dict[str, Any]) -> None:
        await self._request(
            "POST", self.script_url or "", json=payload, follow_redirects=True
        )

    async def upsert_profile(self, identity: str, display_name: str) -> None:
        await self._post(
            {"action": "syncUser", "mobile": identity, "instituteName": display_name}
        )

    async def submit_request(self, identity: str, display_name: str) -> None:
        await self._post(
            {
                "action": "updateRequest",
                "mobile": identity,
                "instituteName": display_name,
                "requestStatus": SHEETS_REQUEST_MARKER,
            }
        )

    async def fetch_status(self, identity: str) -> RemoteStatus | None:
        response = await self._request(
            "GET",
            self.script_url or "",
            params={"action": "getStatus", "mobile": identity},
            follow_redirects=True,
        )
        data = self._json(response)
        if data is None or data == {}:
            return None
        if not isinstance(data, dict):
            raise RemoteAuthorityError("sheets returned a non-object", backend=self.name)
        if data.get("found") is False or "error" in data:
            return None
        return RemoteStatus(
            accepted=coerce_flag(data.get("acceptance")),
            paused=coerce_flag(data.get("pause")),
        )
