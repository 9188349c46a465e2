"""Airtable binding: one row per tenant in the ``Profiles`` table."""

from typing import Any

import httpx

from academy.config import settings
from academy.core.constants import AIRTABLE_REQUEST_MARKER
from academy.core.errors import RemoteAuthorityError
from academy.modules.remote.base import HttpRemoteAuthority, RemoteStatus
from academy.modules.remote.flags import coerce_flag


FIELD_NAME = "Institute / Academy Name"
FIELD_MOBILE = "Mobile Number"
FIELD_ACCEPTANCE = "Acceptance"
FIELD_PAUSE = "Subscription Pause"
FIELD_REQUEST = "Subscription Request"


class AirtableAuthority(HttpRemoteAuthority):
    """Airtable REST API binding.

    Rows are found with a ``filterByFormula`` on the mobile column. The
    acceptance and pause columns are only ever written on creation.
    """

    name = "airtable"
    api_url = "https://api.airtable.com/v0"

    def __init__(
        self,
        api_key: str | None = None,
        base_id: str | None = None,
        table_name: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(client, timeout)
        self.api_key = api_key if api_key is not None else settings.airtable_api_key
        self.base_id = base_id if base_id is not None else settings.airtable_base_id
        self.table_name = table_name or settings.airtable_table_name

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.base_id)

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    @property
    def table_url(self) -> str:
        return f"{self.api_url}/{self.base_id}/{self.table_name}"

    async def _find(self, identity: str) -> dict[str, Any] | None:
        escaped = identity.replace("'", "\\'")
        response = await self._request(
            "GET",
            self.table_url,
            params={
                "filterByFormula": f"{{{FIELD_MOBILE}}}='{escaped}'",
                "maxRecords": 1,
            },
        )
        payload = self._json(response)
        if not isinstance(payload, dict) or not isinstance(
            payload.get("records"), list
        ):
            raise RemoteAuthorityError(
                "airtable returned no record list", backend=self.name
            )
        records = payload["records"]
        return records[0] if records else None

    async def _create(self, fields: dict[str, Any]) -> None:
        await self._request("POST", self.table_url, json={"records": [{"fields": fields}]})

    async def _update(self, record_id: str, fields: dict[str, Any]) -> None:
        await self._request("PATCH", f"{self.table_url}/{record_id}", json={"fields": fields})

    def _new_row(self, identity: str, display_name: str) -> dict[str, Any]:
        return {
            FIELD_NAME: display_name,
            FIELD_MOBILE: identity,
            FIELD_ACCEPTANCE: "False",
            FIELD_PAUSE: "No",
        }

    async def upsert_profile(self, identity: str, display_name: str) -> None:
        record = await self._find(identity)
        if record is None:
            await self._create(self._new_row(identity, display_name))
        else:
            await self._update(record["id"], {FIELD_NAME: display_name})

    async def submit_request(self, identity: str, display_name: str) -> None:
        record = await self._find(identity)
        if record is None:
            fields = self._new_row(identity, display_name)
            fields[FIELD_REQUEST] = AIRTABLE_REQUEST_MARKER
            await self._create(fields)
        else:
            await self._update(record["id"], {FIELD_REQUEST: AIRTABLE_REQUEST_MARKER})

    async def fetch_status(self, identity: str) -> RemoteStatus | None:
        record = await self._find(identity)
        if record is None:
            return None
        fields = record.get("fields") or {}
        return RemoteStatus(
            accepted=coerce_flag(fields.get(FIELD_ACCEPTANCE)),
            paused=coerce_flag(fields.get(FIELD_PAUSE)),
        )
