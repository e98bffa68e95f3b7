from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Iterable

from theia.config import Settings
from theia.engine.change_tracker import DEFAULT_WINDOW, ChangeTracker
from theia.engine.executor import CommandExecutionError, CommandExecutor
from theia.engine.platforms import command_for, detect_os
from theia.models.record import Kind, OsType
from theia.models.snapshot import PollSnapshot
from theia.parsers import PROCESS_LIMIT, parse

logger = logging.getLogger(__name__)

Renderer = Callable[[PollSnapshot], Awaitable[None]]


class Poller:
    """Runs execute → parse → track → render cycles on a fixed period.

    Cycles never overlap: the next one is scheduled only after the previous
    one has finished, and ticks missed by an overrunning cycle are dropped.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        os_type: OsType,
        kinds: Iterable[Kind] = (Kind.CONNECTIONS, Kind.PROCESSES),
        renderers: Iterable[Renderer] = (),
        interval: float = 10.0,
        highlight_window: float = DEFAULT_WINDOW,
        process_limit: int = PROCESS_LIMIT,
        command_overrides: dict[Kind, str | None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.executor = executor
        self.os_type = OsType(os_type)
        self.kinds = [Kind(k) for k in kinds]
        if not self.kinds:
            raise ValueError("at least one kind must be monitored")
        if interval <= 0:
            raise ValueError(f"poll interval must be positive, got {interval}")
        if highlight_window <= 0:
            raise ValueError(f"highlight window must be positive, got {highlight_window}")
        self.interval = interval
        self.highlight_window = highlight_window
        self.process_limit = process_limit
        self.command_overrides = command_overrides or {}
        self._clock = clock
        self._renderers: list[Renderer] = list(renderers)
        self._trackers = {
            kind: ChangeTracker(window=highlight_window, clock=clock)
            for kind in self.kinds
        }
        self._cycle = 0
        self._running = False
        self._task: asyncio.Task | None = None
        self.last_snapshot: PollSnapshot | None = None

    @classmethod
    def from_settings(
        cls,
        cfg: Settings,
        os_type: OsType | None = None,
        kinds: Iterable[Kind] | None = None,
        renderers: Iterable[Renderer] = (),
    ) -> Poller:
        if kinds is None:
            kinds = [
                kind
                for kind, enabled in (
                    (Kind.CONNECTIONS, cfg.monitor_connections),
                    (Kind.PROCESSES, cfg.monitor_processes),
                )
                if enabled
            ]
        return cls(
            CommandExecutor(
                timeout=cfg.command_timeout,
                benign_stderr=cfg.benign_stderr_markers,
            ),
            os_type or detect_os(),
            kinds=kinds,
            renderers=renderers,
            interval=cfg.poll_interval,
            highlight_window=cfg.highlight_window,
            process_limit=cfg.process_limit,
            command_overrides={
                Kind.CONNECTIONS: cfg.connections_command,
                Kind.PROCESSES: cfg.processes_command,
            },
        )

    # ── lifecycle ────────────────────────────────────────

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "Poller started (os=%s, kinds=%s, interval=%.1fs)",
            self.os_type,
            ",".join(self.kinds),
            self.interval,
        )

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Poller stopped after %d cycle(s)", self._cycle)

    def add_renderer(self, renderer: Renderer) -> None:
        self._renderers.append(renderer)

    # ── one cycle ───────────────────────────────────────

    async def run_cycle(self) -> PollSnapshot:
        self._cycle += 1

        outputs: dict[Kind, str] = {}
        errors: dict[Kind, str] = {}
        for kind in self.kinds:
            command = command_for(self.os_type, kind, self.command_overrides)
            try:
                outputs[kind] = await self.executor.execute(command)
            except CommandExecutionError as exc:
                logger.warning("Cycle %d: %s poll failed: %s", self._cycle, kind, exc)
                errors[kind] = str(exc)

        now = self._clock()
        fields: dict[str, list] = {}
        skipped: dict[Kind, int] = {}
        for kind in self.kinds:
            if kind not in outputs:
                # a failed poll does not advance the tracker
                fields[kind.value] = []
                continue
            result = parse(outputs[kind], self.os_type, kind, self.process_limit)
            skipped[kind] = result.skipped
            fields[kind.value] = self._trackers[kind].update(result.records, now=now)

        snapshot = PollSnapshot(
            cycle=self._cycle,
            os_type=self.os_type,
            highlight_window=self.highlight_window,
            poll_interval=self.interval,
            errors=errors,
            skipped=skipped,
            **fields,
        )
        self.last_snapshot = snapshot
        await self._dispatch(snapshot)
        return snapshot

    # ── internals ───────────────────────────────────────

    async def _loop(self) -> None:
        while self._running:
            started = time.monotonic()
            try:
                await self.run_cycle()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Poller error during cycle %d", self._cycle)
            elapsed = time.monotonic() - started
            missed = int(elapsed // self.interval)
            if missed:
                logger.warning(
                    "Cycle %d took %.1fs (interval %.1fs); dropped %d tick(s)",
                    self._cycle,
                    elapsed,
                    self.interval,
                    missed,
                )
            await asyncio.sleep(self.interval - (elapsed % self.interval))

    async def _dispatch(self, snapshot: PollSnapshot) -> None:
        for renderer in self._renderers:
            try:
                await renderer(snapshot)
            except Exception:
                logger.exception("Renderer %s failed for cycle %d", renderer, snapshot.cycle)

    # ── introspection ───────────────────────────────────

    @property
    def running(self) -> bool:
        return self._running

    @property
    def cycles(self) -> int:
        return self._cycle

    def tracker(self, kind: Kind) -> ChangeTracker:
        return self._trackers[Kind(kind)]
