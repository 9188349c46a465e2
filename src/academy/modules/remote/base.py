"""Remote authority capability and the shared HTTP plumbing.

The remote authority is the external table in which a human administrator
records acceptance and pause decisions. Exactly one binding is active per
client instance; callers only see ``RemoteAuthority``.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar

import httpx
import structlog
from pydantic import BaseModel, ConfigDict

from academy.config import settings
from academy.core.errors import RemoteAuthorityError


logger = structlog.get_logger()


class RemoteStatus(BaseModel):
    """Human decisions recorded remotely for one tenant."""

    model_config = ConfigDict(frozen=True)

    accepted: bool = False
    paused: bool = False


class RemoteAuthority(ABC):
    """Capability interface every remote binding implements.

    Every call is idempotent and keyed by phone. Failures raise
    RemoteAuthorityError; nothing else escapes a binding.
    """

    name: ClassVar[str]

    @property
    def is_configured(self) -> bool:
        return True

    @abstractmethod
    async def upsert_profile(self, identity: str, display_name: str) -> None:
        """Create the tenant row with flags cleared, or update its name only."""

    @abstractmethod
    async def submit_request(self, identity: str, display_name: str) -> None:
        """Mark the tenant row as having requested activation."""

    @abstractmethod
    async def fetch_status(self, identity: str) -> RemoteStatus | None:
        """Current flags, or None if the tenant is not registered remotely."""

    async def aclose(self) -> None:
        """Release network resources."""
        return None


class HttpRemoteAuthority(RemoteAuthority):
    """Base for bindings that talk JSON over HTTP.

    The client can be injected (tests use ``httpx.MockTransport``); a client
    created here is owned and closed by ``aclose``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client
        self._timeout = timeout or settings.remote_timeout_seconds

    @property
    def client(self) -> httpx.AsyncClient:
        """HTTP client, created on first use when none was injected."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    @property
    def headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    async def _request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await self.client.request(
                method, url, headers={**self.headers, **(headers or {})}, **kwargs
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(
                "remote_request_failed",
                backend=self.name,
                method=method,
                error=str(e),
            )
            raise RemoteAuthorityError(
                f"{self.name} request failed", backend=self.name
            ) from e
        return response

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise RemoteAuthorityError(
                f"{self.name} returned a malformed response", backend=self.name
            ) from e

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
