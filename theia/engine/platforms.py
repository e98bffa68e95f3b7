from __future__ import annotations

import platform

from theia.models.record import Kind, OsType

COMMANDS: dict[OsType, dict[Kind, str]] = {
    OsType.WINDOWS: {
        Kind.CONNECTIONS: "netstat -ano",
        Kind.PROCESSES: "tasklist /v /fo csv",
    },
    OsType.MAC: {
        Kind.CONNECTIONS: "lsof -iTCP -sTCP:ESTABLISHED -n -P",
        Kind.PROCESSES: "ps aux",
    },
    OsType.UNIX: {
        Kind.CONNECTIONS: "ss -tunap 2>/dev/null || netstat -tunap 2>/dev/null",
        Kind.PROCESSES: "ps aux",
    },
}


def detect_os(system: str | None = None) -> OsType:
    system = system if system is not None else platform.system()
    if system == "Windows":
        return OsType.WINDOWS
    if system == "Darwin":
        return OsType.MAC
    return OsType.UNIX


def command_for(
    os_type: OsType,
    kind: Kind,
    overrides: dict[Kind, str | None] | None = None,
) -> str:
    """Native command string for ``kind`` on ``os_type``; overrides win when set."""
    if overrides and overrides.get(kind):
        return overrides[kind]
    return COMMANDS[OsType(os_type)][Kind(kind)]
