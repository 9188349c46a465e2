"""Tests for the HTTP remote bindings, driven through httpx.MockTransport."""

import json

import httpx
import pytest

from academy.core.constants import AIRTABLE_REQUEST_MARKER, SHEETS_REQUEST_MARKER
from academy.core.errors import RemoteAuthorityError
from academy.modules.remote import RemoteStatus
from academy.modules.remote.airtable import AirtableAuthority
from academy.modules.remote.sheets import SheetsAuthority
from academy.modules.remote.supabase import SupabaseAuthority


MOBILE = "9000000001"


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def body(request: httpx.Request) -> dict:
    return json.loads(request.content)


# ============================================================
# Airtable
# ============================================================


class TestAirtableAuthority:
    def authority(self, recorder: Recorder) -> AirtableAuthority:
        return AirtableAuthority(
            api_key="key123", base_id="app42", table_name="Profiles", client=recorder.client()
        )

    async def test_fetch_status_coerces_string_flags(self):
        recorder = Recorder(
            httpx.Response(
                200,
                json={
                    "records": [
                        {
                            "id": "rec1",
                            "fields": {"Acceptance": "True", "Subscription Pause": "Yes"},
                        }
                    ]
                },
            )
        )

        status = await self.authority(recorder).fetch_status(MOBILE)

        assert status == RemoteStatus(accepted=True, paused=True)
        request = recorder.requests[0]
        assert request.url.path == "/v0/app42/Profiles"
        assert request.url.params["filterByFormula"] == "{Mobile Number}='9000000001'"
        assert request.url.params["maxRecords"] == "1"
        assert request.headers["Authorization"] == "Bearer key123"

    async def test_fetch_status_unknown_tenant(self):
        recorder = Recorder(httpx.Response(200, json={"records": []}))

        assert await self.authority(recorder).fetch_status(MOBILE) is None

    async def test_upsert_creates_row_with_cleared_flags(self):
        recorder = Recorder(
            httpx.Response(200, json={"records": []}),
            httpx.Response(200, json={"records": [{"id": "rec1"}]}),
        )

        await self.authority(recorder).upsert_profile(MOBILE, "Wisdom Academy")

        create = recorder.requests[1]
        assert create.method == "POST"
        fields = body(create)["records"][0]["fields"]
        assert fields["Mobile Number"] == MOBILE
        assert fields["Institute / Academy Name"] == "Wisdom Academy"
        assert fields["Acceptance"] == "False"
        assert fields["Subscription Pause"] == "No"

    async def test_upsert_existing_row_only_updates_name(self):
        recorder = Recorder(
            httpx.Response(200, json={"records": [{"id": "rec1", "fields": {}}]}),
            httpx.Response(200, json={"id": "rec1"}),
        )

        await self.authority(recorder).upsert_profile(MOBILE, "New Name")

        update = recorder.requests[1]
        assert update.method == "PATCH"
        assert update.url.path == "/v0/app42/Profiles/rec1"
        assert body(update) == {"fields": {"Institute / Academy Name": "New Name"}}

    async def test_submit_request_marks_existing_row(self):
        recorder = Recorder(
            httpx.Response(200, json={"records": [{"id": "rec1", "fields": {}}]}),
            httpx.Response(200, json={"id": "rec1"}),
        )

        await self.authority(recorder).submit_request(MOBILE, "Wisdom Academy")

        assert body(recorder.requests[1]) == {
            "fields": {"Subscription Request": AIRTABLE_REQUEST_MARKER}
        }

    async def test_http_error_becomes_remote_authority_error(self):
        recorder = Recorder(httpx.Response(500, json={"error": "boom"}))

        with pytest.raises(RemoteAuthorityError) as exc_info:
            await self.authority(recorder).fetch_status(MOBILE)
        assert exc_info.value.details["backend"] == "airtable"

    async def test_malformed_payload(self):
        recorder = Recorder(httpx.Response(200, json={"unexpected": True}))

        with pytest.raises(RemoteAuthorityError):
            await self.authority(recorder).fetch_status(MOBILE)

    def test_not_configured_without_credentials(self):
        assert not AirtableAuthority(api_key="", base_id="").is_configured


# ============================================================
# Supabase
# ============================================================


class TestSupabaseAuthority:
    def authority(self, recorder: Recorder) -> SupabaseAuthority:
        return SupabaseAuthority(
            url="https://proj.supabase.co/", key="anon", table="profiles",
            client=recorder.client(),
        )

    async def test_upsert_merges_on_mobile(self):
        recorder = Recorder(httpx.Response(201))

        await self.authority(recorder).upsert_profile(MOBILE, "Wisdom Academy")

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/rest/v1/profiles"
        assert request.url.params["on_conflict"] == "mobile"
        assert "merge-duplicates" in request.headers["Prefer"]
        assert request.headers["apikey"] == "anon"
        assert body(request) == {"mobile": MOBILE, "institute_name": "Wisdom Academy"}

    async def test_submit_request_patches_flag(self):
        recorder = Recorder(httpx.Response(204))

        await self.authority(recorder).submit_request(MOBILE, "Wisdom Academy")

        request = recorder.requests[0]
        assert request.method == "PATCH"
        assert request.url.params["mobile"] == f"eq.{MOBILE}"
        assert body(request) == {"request_sent": True}

    async def test_fetch_status(self):
        recorder = Recorder(
            httpx.Response(200, json=[{"acceptance": True, "subscription_pause": False}])
        )

        status = await self.authority(recorder).fetch_status(MOBILE)

        assert status == RemoteStatus(accepted=True, paused=False)
        assert recorder.requests[0].url.params["select"] == "acceptance,subscription_pause"

    async def test_fetch_status_unknown_tenant(self):
        recorder = Recorder(httpx.Response(200, json=[]))

        assert await self.authority(recorder).fetch_status(MOBILE) is None


# ============================================================
# Google Apps Script
# ============================================================


class TestSheetsAuthority:
    SCRIPT = "https://script.google.com/macros/s/abc/exec"

    def authority(self, recorder: Recorder) -> SheetsAuthority:
        return SheetsAuthority(script_url=self.SCRIPT, client=recorder.client())

    async def test_upsert_posts_sync_user(self):
        recorder = Recorder(httpx.Response(200, json={"ok": True}))

        await self.authority(recorder).upsert_profile(MOBILE, "Wisdom Academy")

        assert body(recorder.requests[0]) == {
            "action": "syncUser",
            "mobile": MOBILE,
            "instituteName": "Wisdom Academy",
        }

    async def test_submit_request_posts_marker(self):
        recorder = Recorder(httpx.Response(200, json={"ok": True}))

        await self.authority(recorder).submit_request(MOBILE, "Wisdom Academy")

        payload = body(recorder.requests[0])
        assert payload["action"] == "updateRequest"
        assert payload["requestStatus"] == SHEETS_REQUEST_MARKER

    async def test_fetch_status(self):
        recorder = Recorder(
            httpx.Response(200, json={"found": True, "acceptance": "TRUE", "pause": "No"})
        )

        status = await self.authority(recorder).fetch_status(MOBILE)

        assert status == RemoteStatus(accepted=True, paused=False)
        request = recorder.requests[0]
        assert request.method == "GET"
        assert request.url.params["action"] == "getStatus"
        assert request.url.params["mobile"] == MOBILE

    @pytest.mark.parametrize(
        "payload", [{"found": False}, {"error": "not found"}, {}]
    )
    async def test_fetch_status_unknown_tenant(self, payload):
        recorder = Recorder(httpx.Response(200, json=payload))

        assert await self.authority(recorder).fetch_status(MOBILE) is None

    async def test_non_json_reply(self):
        recorder = Recorder(httpx.Response(200, text="<html>login</html>"))

        with pytest.raises(RemoteAuthorityError):
            await self.authority(recorder).fetch_status(MOBILE)
