"""Remote authority bindings (external approval backends)."""

from academy.modules.remote.base import HttpRemoteAuthority, RemoteAuthority, RemoteStatus
from academy.modules.remote.memory import DisabledAuthority, MemoryAuthority
from academy.modules.remote.registry import available_backends, build_remote_authority


__all__ = [
    "DisabledAuthority",
    "HttpRemoteAuthority",
    "MemoryAuthority",
    "RemoteAuthority",
    "RemoteStatus",
    "available_backends",
    "build_remote_authority",
]
