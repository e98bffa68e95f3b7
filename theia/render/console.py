from __future__ import annotations

import sys
from typing import TextIO

from theia.models.record import ConnectionRecord, Kind, ProcessRecord
from theia.models.snapshot import PollSnapshot

RESET = "\x1b[0m"
BRIGHT = "\x1b[1m"
CYAN = "\x1b[36m"
YELLOW = "\x1b[33m"
GREEN = "\x1b[32m"
RED = "\x1b[31m"
GRAY = "\x1b[90m"
BLUE = "\x1b[34m"
BG_YELLOW = "\x1b[43m\x1b[30m"

CLEAR_SCREEN = "\x1b[2J\x1b[H"

BANNER = r"""
        ___
      /     \
     | () () |     _____ _   _ _____ ___    _
      \  ^  /     |_   _| | | | ____|_ _|  / \
       |||||        | | | |_| |  _|  | |  / _ \
       |||||        | | |  _  | |___ | | / ___ \
                    |_| |_| |_|_____|___/_/   \_\
"""

MODE_LABELS = {Kind.CONNECTIONS: "Connections", Kind.PROCESSES: "Processes"}


class ConsoleRenderer:
    """Redraws the terminal with the latest snapshot on every cycle."""

    def __init__(self, stream: TextIO | None = None, clear: bool = True) -> None:
        self._stream = stream or sys.stdout
        self._clear = clear

    async def __call__(self, snapshot: PollSnapshot) -> None:
        self._stream.write(self.render(snapshot))
        self._stream.flush()

    def render(self, snapshot: PollSnapshot) -> str:
        lines: list[str] = []
        mode = " + ".join(MODE_LABELS[k] for k in snapshot.kinds)

        lines.append(f"{CYAN}{BRIGHT}{BANNER}{RESET}")
        lines.append(f"{GRAY}              Red Team Host Monitoring System{RESET}\n")
        lines.append(f"{GRAY}Monitoring: {GREEN}{mode}{RESET}\n")
        status = f"{GRAY}OS: {GREEN}{snapshot.os_type}{RESET} | {GRAY}Mode: {GREEN}Local{RESET}"
        if snapshot.poll_interval is not None:
            status += f" | {GRAY}Refresh: {GREEN}{snapshot.poll_interval:g}s{RESET}"
        status += f" | {GRAY}Cycle: {GREEN}{snapshot.cycle}{RESET}"
        lines.append(status)
        lines.append(
            f"{YELLOW}New items highlighted for {snapshot.highlight_window:.0f} seconds{RESET}\n"
        )

        for kind, error in snapshot.errors.items():
            lines.append(f"{RED}Error polling {kind}: {error}{RESET}\n")

        if snapshot.connections is not None:
            lines.extend(self._connections(snapshot.connections))
        if snapshot.processes is not None:
            lines.extend(self._processes(snapshot.processes))

        lines.append(f"{GRAY}Press Ctrl+C to exit{RESET}")
        body = "\n".join(lines) + "\n"
        return CLEAR_SCREEN + body if self._clear else body

    @staticmethod
    def _connections(connections: list[ConnectionRecord]) -> list[str]:
        out = [f"{BRIGHT}{BLUE}━━━ NETWORK CONNECTIONS ({len(connections)}) ━━━{RESET}\n"]
        if not connections:
            out.append(f"{GRAY}  No active connections detected{RESET}\n")
            return out
        for conn in connections:
            hl, end = (BG_YELLOW, RESET) if conn.is_new else ("", "")
            family = f" {conn.address_family}" if conn.address_family else ""
            out.append(
                f"  {hl}{CYAN}{conn.protocol}{family}{end} {conn.local_address}"
                f" {GRAY}→{RESET} {conn.remote_address}"
            )
            out.append(
                f"  {hl}{GRAY}State: {GREEN}{conn.state}{end}"
                f" | Process: {conn.owning_process}{end}\n"
            )
        return out

    @staticmethod
    def _processes(processes: list[ProcessRecord]) -> list[str]:
        out = [f"{BRIGHT}{BLUE}━━━ RUNNING PROCESSES ({len(processes)}) ━━━{RESET}\n"]
        if not processes:
            out.append(f"{GRAY}  No processes detected{RESET}\n")
            return out
        for proc in processes:
            hl, end = (BG_YELLOW, RESET) if proc.is_new else ("", "")
            out.append(
                f"  {hl}{BRIGHT}{proc.name}{RESET}{end} {GRAY}(PID: {proc.pid}){RESET}"
            )
            out.append(
                f"  {hl}{GRAY}User: {proc.user} | CPU: {proc.cpu_usage}"
                f" | MEM: {proc.memory_usage}{RESET}{end}\n"
            )
        return out
