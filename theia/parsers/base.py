from __future__ import annotations

import logging
from typing import Callable, Iterable

from pydantic import BaseModel, Field

from theia.models.record import Record

logger = logging.getLogger(__name__)

PROCESS_LIMIT = 50

_ANY_HOSTS = {"", "*", "0.0.0.0", "::", "[::]"}
_ANY_PORTS = {"*", "0"}

LineParser = Callable[[str], Record | None]


class ParseResult(BaseModel):
    """Records parsed from one command output plus the count of dropped lines."""

    records: list[Record] = Field(default_factory=list)
    skipped: int = 0


def ensure_text(raw: object) -> str:
    if not isinstance(raw, str):
        raise TypeError(f"expected command output as str, got {type(raw).__name__}")
    return raw


def content_lines(raw: str) -> list[str]:
    """Split output into lines, dropping blank ones."""
    return [line for line in raw.splitlines() if line.strip()]


def is_unspecified_endpoint(address: str) -> bool:
    """True for the "any address / any port" forms tools print for listeners."""
    if address == "*":
        return True
    host, sep, port = address.rpartition(":")
    if not sep:
        return False
    return host in _ANY_HOSTS and port in _ANY_PORTS


def collect(lines: Iterable[str], parse_line: LineParser) -> ParseResult:
    """Run ``parse_line`` over each line; a ``None`` result counts as a skip."""
    result = ParseResult()
    for line in lines:
        record = parse_line(line)
        if record is None:
            result.skipped += 1
            continue
        result.records.append(record)
    if result.skipped:
        logger.debug("%s skipped %d line(s)", parse_line.__name__, result.skipped)
    return result
