"""Process-table parsers for ``tasklist /v /fo csv`` and ``ps aux``."""

from __future__ import annotations

from theia.models.record import ProcessRecord
from theia.parsers.base import (
    PROCESS_LIMIT,
    ParseResult,
    collect,
    content_lines,
    ensure_text,
)

# tasklist /v /fo csv column positions
_TASKLIST_MEM = 4
_TASKLIST_USER = 6
_TASKLIST_CPU = 7


def split_quoted_csv(line: str) -> list[str]:
    """Split one tasklist CSV row on commas that sit outside double quotes.

    Quote characters only toggle the in-quotes flag and are not kept.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    # the trailing comma flushes the last field
    for char in line + ",":
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    return fields


def _field(fields: list[str], index: int) -> str:
    if index < len(fields) and fields[index]:
        return fields[index]
    return "N/A"


def _unquote(value: str) -> str:
    return value.removeprefix('"').removesuffix('"')


# ── Windows: tasklist /v /fo csv ──────────────────────


def parse_windows_processes(raw: str, limit: int = PROCESS_LIMIT) -> ParseResult:
    lines = content_lines(ensure_text(raw))
    result = collect(lines[1:], _windows_process)
    result.records = result.records[:limit]
    return result


def _windows_process(line: str) -> ProcessRecord | None:
    fields = split_quoted_csv(line)
    if len(fields) < 2:
        return None
    return ProcessRecord(
        name=_unquote(fields[0]),
        pid=_unquote(fields[1]),
        user=_field(fields, _TASKLIST_USER),
        cpu_usage=_field(fields, _TASKLIST_CPU),
        memory_usage=_field(fields, _TASKLIST_MEM),
    )


# ── unix / macOS: ps aux ──────────────────────────────


def parse_unix_processes(raw: str, limit: int = PROCESS_LIMIT) -> ParseResult:
    lines = content_lines(ensure_text(raw))
    result = collect(lines[1:], _unix_process)
    result.records = result.records[:limit]
    return result


def _unix_process(line: str) -> ProcessRecord | None:
    # USER PID %CPU %MEM VSZ RSS TTY STAT START TIME COMMAND...
    parts = line.split()
    if len(parts) < 11:
        return None
    return ProcessRecord(
        name=" ".join(parts[10:]),
        pid=parts[1],
        user=parts[0],
        cpu_usage=parts[2],
        memory_usage=parts[3],
    )
