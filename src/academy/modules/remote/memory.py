"""Local bindings: an in-process table and a disabled authority."""

from dataclasses import dataclass

from academy.core.errors import RemoteAuthorityError
from academy.modules.remote.base import RemoteAuthority, RemoteStatus


@dataclass
class MemoryRow:
    display_name: str
    accepted: bool = False
    paused: bool = False
    request_sent: bool = False


class MemoryAuthority(RemoteAuthority):
    """In-process table standing in for the remote one.

    The administrator's decisions are simulated with ``set_flags``. Setting
    ``unreachable`` makes every call fail like a dead network.
    """

    name = "memory"

    def __init__(self) -> None:
        self.rows: dict[str, MemoryRow] = {}
        self.unreachable = False
        self.calls: list[tuple[str, str]] = []

    def _check(self, operation: str, identity: str) -> None:
        self.calls.append((operation, identity))
        if self.unreachable:
            raise RemoteAuthorityError("memory authority unreachable", backend=self.name)

    async def upsert_profile(self, identity: str, display_name: str) -> None:
        self._check("upsert_profile", identity)
        row = self.rows.get(identity)
        if row is None:
            self.rows[identity] = MemoryRow(display_name=display_name)
        else:
            row.display_name = display_name

    async def submit_request(self, identity: str, display_name: str) -> None:
        self._check("submit_request", identity)
        row = self.rows.setdefault(identity, MemoryRow(display_name=display_name))
        row.request_sent = True

    async def fetch_status(self, identity: str) -> RemoteStatus | None:
        self._check("fetch_status", identity)
        row = self.rows.get(identity)
        if row is None:
            return None
        return RemoteStatus(accepted=row.accepted, paused=row.paused)

    def set_flags(
        self,
        identity: str,
        *,
        accepted: bool | None = None,
        paused: bool | None = None,
    ) -> None:
        """Record an administrator decision for ``identity``."""
        row = self.rows.setdefault(identity, MemoryRow(display_name=identity))
        if accepted is not None:
            row.accepted = accepted
        if paused is not None:
            row.paused = paused


class DisabledAuthority(RemoteAuthority):
    """Binding used when no remote is configured: always unreachable."""

    name = "disabled"

    async def upsert_profile(self, identity: str, display_name: str) -> None:
        raise RemoteAuthorityError("No remote authority configured", backend=self.name)

    async def submit_request(self, identity: str, display_name: str) -> None:
        raise RemoteAuthorityError("No remote authority configured", backend=self.name)

    async def fetch_status(self, identity: str) -> RemoteStatus | None:
        raise RemoteAuthorityError("No remote authority configured", backend=self.name)
