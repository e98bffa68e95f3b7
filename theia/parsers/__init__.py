from __future__ import annotations

from typing import Callable

from theia.models.record import Kind, OsType
from theia.parsers.base import PROCESS_LIMIT, ParseResult, is_unspecified_endpoint
from theia.parsers.connections import (
    parse_macos_connections,
    parse_unix_connections,
    parse_windows_connections,
)
from theia.parsers.processes import (
    parse_unix_processes,
    parse_windows_processes,
    split_quoted_csv,
)

Parser = Callable[[str], ParseResult]

_PARSERS: dict[tuple[OsType, Kind], Parser] = {
    (OsType.WINDOWS, Kind.CONNECTIONS): parse_windows_connections,
    (OsType.MAC, Kind.CONNECTIONS): parse_macos_connections,
    (OsType.UNIX, Kind.CONNECTIONS): parse_unix_connections,
    (OsType.WINDOWS, Kind.PROCESSES): parse_windows_processes,
    (OsType.MAC, Kind.PROCESSES): parse_unix_processes,
    (OsType.UNIX, Kind.PROCESSES): parse_unix_processes,
}


def get_parser(os_type: OsType, kind: Kind) -> Parser:
    return _PARSERS[(OsType(os_type), Kind(kind))]


def parse(raw: str, os_type: OsType, kind: Kind, process_limit: int = PROCESS_LIMIT) -> ParseResult:
    """Parse raw tool output for the given platform and data kind."""
    parser = get_parser(os_type, kind)
    if Kind(kind) is Kind.PROCESSES:
        return parser(raw, limit=process_limit)
    return parser(raw)


__all__ = [
    "PROCESS_LIMIT",
    "ParseResult",
    "Parser",
    "get_parser",
    "is_unspecified_endpoint",
    "parse",
    "parse_macos_connections",
    "parse_unix_connections",
    "parse_unix_processes",
    "parse_windows_connections",
    "parse_windows_processes",
    "split_quoted_csv",
]
