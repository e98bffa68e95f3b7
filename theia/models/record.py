from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, computed_field

KEY_DELIMITER = "|"


class Protocol(StrEnum):
    TCP = "TCP"
    UDP = "UDP"


class AddressFamily(StrEnum):
    IPV4 = "IPv4"
    IPV6 = "IPv6"


class Kind(StrEnum):
    CONNECTIONS = "connections"
    PROCESSES = "processes"


class OsType(StrEnum):
    WINDOWS = "windows"
    MAC = "mac"
    UNIX = "unix"


class ConnectionRecord(BaseModel):
    """One active network conversation as reported by the OS tool."""

    protocol: Protocol
    local_address: str
    remote_address: str
    state: str = "N/A"
    process_name: str | None = None
    pid: str | None = None
    address_family: AddressFamily | None = None
    is_new: bool = False

    @computed_field
    @property
    def owning_process(self) -> str:
        if self.process_name and self.pid:
            return f"{self.process_name} ({self.pid})"
        return self.process_name or "Unknown"

    @computed_field
    @property
    def identity_key(self) -> str:
        parts = [
            self.protocol.value,
            self.local_address,
            self.remote_address,
            self.state,
        ]
        # Only lsof correlates a pid with the socket; elsewhere the
        # process column is too unstable to take part in identity.
        if self.pid:
            parts += [self.process_name or "", self.pid]
        return KEY_DELIMITER.join(parts)


class ProcessRecord(BaseModel):
    """One running process row. Every column is kept as reported text."""

    name: str
    pid: str
    user: str = "N/A"
    cpu_usage: str = "N/A"
    memory_usage: str = "N/A"
    is_new: bool = False

    @computed_field
    @property
    def identity_key(self) -> str:
        return f"{self.name}{KEY_DELIMITER}{self.pid}"


Record = ConnectionRecord | ProcessRecord
