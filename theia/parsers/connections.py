"""Connection-table parsers for ``netstat -ano``, ``lsof`` and ``ss``/``netstat -tunap``."""

from __future__ import annotations

import re

from theia.models.record import AddressFamily, ConnectionRecord, Protocol
from theia.parsers.base import (
    ParseResult,
    collect,
    content_lines,
    ensure_text,
    is_unspecified_endpoint,
)

# lsof NAME column, e.g. "[::1]:54321->example.com:443 (ESTABLISHED)"
_LSOF_NAME_RE = re.compile(r"(?P<local>\S+?)->(?P<remote>\S+)\s*\(ESTABLISHED\)")

_FAMILIES = {f.value: f for f in AddressFamily}


# ── Windows: netstat -ano ─────────────────────────────


def parse_windows_connections(raw: str) -> ParseResult:
    return collect(content_lines(ensure_text(raw)), _windows_connection)


def _windows_connection(line: str) -> ConnectionRecord | None:
    parts = line.split()
    if len(parts) < 4 or parts[0] not in ("TCP", "UDP"):
        return None
    remote = parts[2]
    if is_unspecified_endpoint(remote):
        return None
    return ConnectionRecord(
        protocol=Protocol(parts[0]),
        local_address=parts[1],
        remote_address=remote,
        state=parts[3],
    )


# ── macOS: lsof -iTCP -sTCP:ESTABLISHED -n -P ─────────


def parse_macos_connections(raw: str) -> ParseResult:
    return collect(content_lines(ensure_text(raw)), _macos_connection)


def _macos_connection(line: str) -> ConnectionRecord | None:
    if "TCP" not in line or "ESTABLISHED" not in line:
        return None
    # COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME
    parts = line.split()
    if len(parts) < 9:
        return None
    match = _LSOF_NAME_RE.search(" ".join(parts[8:]))
    if not match:
        return None
    remote = match.group("remote").strip()
    if is_unspecified_endpoint(remote):
        return None
    return ConnectionRecord(
        protocol=Protocol.TCP,
        local_address=match.group("local").strip(),
        remote_address=remote,
        state="ESTABLISHED",
        process_name=parts[0],
        pid=parts[1],
        address_family=_FAMILIES.get(parts[4]),
    )


# ── Linux / other unix: ss -tunap or netstat -tunap ───


def parse_unix_connections(raw: str) -> ParseResult:
    lines = content_lines(ensure_text(raw))
    return collect(lines[1:], _unix_connection)


def _unix_protocol(token: str) -> Protocol | None:
    name = token.upper() or "TCP"
    if name.startswith("TCP"):
        return Protocol.TCP
    if name.startswith("UDP"):
        return Protocol.UDP
    return None


def _unix_connection(line: str) -> ConnectionRecord | None:
    if ":" not in line:
        return None
    parts = line.split()
    if len(parts) < 5:
        return None
    protocol = _unix_protocol(parts[0])
    if protocol is None:
        return None

    if parts[1].isdigit():
        # netstat: Proto Recv-Q Send-Q Local Foreign [State] [PID/Program]
        local, remote = parts[3], parts[4]
        state = parts[5] if len(parts) > 5 else "N/A"
    else:
        # ss: Netid State Recv-Q Send-Q Local Peer [Process]
        state = parts[1]
        local = parts[4]
        remote = parts[5] if len(parts) > 5 else parts[4]
    process = parts[6] if len(parts) > 6 else None

    if is_unspecified_endpoint(remote) or "*:*" in remote:
        return None
    return ConnectionRecord(
        protocol=protocol,
        local_address=local,
        remote_address=remote,
        state=state,
        process_name=process,
    )
