"""Tests for theia.engine.poller — cycle orchestration and scheduling."""

from __future__ import annotations

import asyncio

import pytest

from theia.config import Settings
from theia.engine.executor import CommandExecutionError
from theia.engine.platforms import COMMANDS
from theia.engine.poller import Poller
from theia.models.record import Kind, OsType
from theia.models.snapshot import PollSnapshot

SS_OUTPUT = """\
Netid State Recv-Q Send-Q Local Address:Port Peer Address:Port Process
tcp   ESTAB 0      0      10.0.0.5:22        10.0.0.9:51234
tcp   LISTEN 0     128    0.0.0.0:80         0.0.0.0:*
"""

PS_OUTPUT = """\
USER PID %CPU %MEM VSZ RSS TTY STAT START TIME COMMAND
root 1 0.0 0.1 1 1 ? Ss 09:00 0:01 /sbin/init
"""

PS_OUTPUT_2 = PS_OUTPUT + "bob 77 0.0 0.1 1 1 ? S 09:01 0:00 vim notes.txt\n"

CONN_CMD = COMMANDS[OsType.UNIX][Kind.CONNECTIONS]
PROC_CMD = COMMANDS[OsType.UNIX][Kind.PROCESSES]


class FakeExecutor:
    """Returns canned output per command; exceptions are raised instead."""

    def __init__(self, outputs: dict[str, str | Exception], delay: float = 0.0) -> None:
        self.outputs = outputs
        self.delay = delay
        self.calls: list[str] = []
        self.active = 0
        self.max_active = 0

    async def execute(self, command: str) -> str:
        self.calls.append(command)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            result = self.outputs[command]
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.active -= 1


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.reads = 0

    def __call__(self) -> float:
        self.reads += 1
        return self.now


def _poller(executor, clock=None, **kwargs) -> Poller:
    return Poller(executor, OsType.UNIX, clock=clock or FakeClock(), **kwargs)


# ── single cycle ──────────────────────────────────────


class TestRunCycle:
    @pytest.mark.asyncio
    async def test_cycle_parses_and_annotates(self):
        executor = FakeExecutor({CONN_CMD: SS_OUTPUT, PROC_CMD: PS_OUTPUT})
        snapshot = await _poller(executor).run_cycle()

        assert snapshot.cycle == 1
        assert snapshot.os_type == OsType.UNIX
        assert [c.remote_address for c in snapshot.connections] == ["10.0.0.9:51234"]
        assert [p.name for p in snapshot.processes] == ["/sbin/init"]
        assert all(r.is_new for r in snapshot.connections + snapshot.processes)
        assert snapshot.skipped == {Kind.CONNECTIONS: 1, Kind.PROCESSES: 0}
        assert snapshot.errors == {}
        assert executor.calls == [CONN_CMD, PROC_CMD]

    @pytest.mark.asyncio
    async def test_only_new_records_highlighted_on_later_cycle(self):
        clock = FakeClock()
        executor = FakeExecutor({CONN_CMD: SS_OUTPUT, PROC_CMD: PS_OUTPUT})
        poller = _poller(executor, clock)
        await poller.run_cycle()

        clock.now = 40.0
        executor.outputs[PROC_CMD] = PS_OUTPUT_2
        snapshot = await poller.run_cycle()
        assert {p.name: p.is_new for p in snapshot.processes} == {
            "/sbin/init": False,
            "vim notes.txt": True,
        }
        assert snapshot.connections[0].is_new is False

    @pytest.mark.asyncio
    async def test_clock_read_once_per_cycle(self):
        clock = FakeClock()
        executor = FakeExecutor({CONN_CMD: SS_OUTPUT, PROC_CMD: PS_OUTPUT})
        poller = _poller(executor, clock)
        await poller.run_cycle()
        await poller.run_cycle()
        assert clock.reads == 2

    @pytest.mark.asyncio
    async def test_only_selected_kinds_polled(self):
        executor = FakeExecutor({PROC_CMD: PS_OUTPUT})
        snapshot = await _poller(executor, kinds=[Kind.PROCESSES]).run_cycle()
        assert snapshot.connections is None
        assert snapshot.processes is not None
        assert executor.calls == [PROC_CMD]

    @pytest.mark.asyncio
    async def test_process_limit_applied(self):
        rows = [PS_OUTPUT.splitlines()[0]] + [
            f"root {i} 0.0 0.1 1 1 ? S 09:00 0:00 job{i}" for i in range(10)
        ]
        executor = FakeExecutor({PROC_CMD: "\n".join(rows)})
        snapshot = await _poller(executor, kinds=[Kind.PROCESSES], process_limit=4).run_cycle()
        assert len(snapshot.processes) == 4

    @pytest.mark.asyncio
    async def test_command_overrides(self):
        executor = FakeExecutor({"ps -ef": PS_OUTPUT})
        poller = _poller(
            executor,
            kinds=[Kind.PROCESSES],
            command_overrides={Kind.PROCESSES: "ps -ef"},
        )
        await poller.run_cycle()
        assert executor.calls == ["ps -ef"]

    def test_requires_a_kind(self):
        with pytest.raises(ValueError):
            _poller(FakeExecutor({}), kinds=[])


# ── failure isolation ─────────────────────────────────


class TestCommandFailure:
    @pytest.mark.asyncio
    async def test_failed_kind_does_not_block_other_kind(self, caplog):
        executor = FakeExecutor({
            CONN_CMD: CommandExecutionError(CONN_CMD, "exited with status 1", returncode=1),
            PROC_CMD: PS_OUTPUT,
        })
        snapshot = await _poller(executor).run_cycle()
        assert snapshot.connections == []
        assert [p.name for p in snapshot.processes] == ["/sbin/init"]
        assert Kind.CONNECTIONS in snapshot.errors
        assert Kind.CONNECTIONS not in snapshot.skipped
        assert any("connections poll failed" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_failed_kind_leaves_tracker_untouched(self):
        clock = FakeClock()
        executor = FakeExecutor({CONN_CMD: SS_OUTPUT, PROC_CMD: PS_OUTPUT})
        poller = _poller(executor, clock)
        await poller.run_cycle()
        before = poller.tracker(Kind.CONNECTIONS).state

        clock.now = 40.0
        executor.outputs[CONN_CMD] = CommandExecutionError(CONN_CMD, "timed out")
        await poller.run_cycle()
        assert poller.tracker(Kind.CONNECTIONS).state == before

        clock.now = 50.0
        executor.outputs[CONN_CMD] = SS_OUTPUT
        snapshot = await poller.run_cycle()
        assert snapshot.connections[0].is_new is False


# ── renderers ─────────────────────────────────────────


class TestRenderers:
    @pytest.mark.asyncio
    async def test_renderers_receive_snapshot(self):
        received: list[PollSnapshot] = []

        async def renderer(snapshot: PollSnapshot) -> None:
            received.append(snapshot)

        executor = FakeExecutor({CONN_CMD: SS_OUTPUT, PROC_CMD: PS_OUTPUT})
        poller = _poller(executor, renderers=[renderer])
        snapshot = await poller.run_cycle()
        assert received == [snapshot]
        assert poller.last_snapshot is snapshot

    @pytest.mark.asyncio
    async def test_failing_renderer_does_not_stop_others(self):
        received: list[int] = []

        async def broken(snapshot: PollSnapshot) -> None:
            raise RuntimeError("terminal gone")

        async def working(snapshot: PollSnapshot) -> None:
            received.append(snapshot.cycle)

        executor = FakeExecutor({PROC_CMD: PS_OUTPUT})
        poller = _poller(executor, kinds=[Kind.PROCESSES], renderers=[broken])
        poller.add_renderer(working)
        await poller.run_cycle()
        assert received == [1]


# ── scheduling loop ───────────────────────────────────


class TestLoop:
    @pytest.mark.asyncio
    async def test_start_stop_idempotent(self):
        poller = _poller(FakeExecutor({PROC_CMD: PS_OUTPUT}), kinds=[Kind.PROCESSES], interval=0.05)
        await poller.start()
        await poller.start()
        assert poller.running is True
        await asyncio.sleep(0.12)
        await poller.stop()
        await poller.stop()
        assert poller.running is False
        assert poller._task is None
        assert poller.cycles >= 2

    @pytest.mark.asyncio
    async def test_cycles_never_overlap(self):
        executor = FakeExecutor({PROC_CMD: PS_OUTPUT}, delay=0.08)
        poller = _poller(executor, kinds=[Kind.PROCESSES], interval=0.02)
        await poller.start()
        await asyncio.sleep(0.3)
        await poller.stop()
        assert executor.max_active == 1
        assert poller.cycles >= 2

    @pytest.mark.asyncio
    async def test_loop_survives_cycle_error(self):
        executor = FakeExecutor({PROC_CMD: RuntimeError("unexpected")})
        poller = _poller(executor, kinds=[Kind.PROCESSES], interval=0.02)
        await poller.start()
        await asyncio.sleep(0.1)
        await poller.stop()
        assert poller.cycles >= 2


# ── construction from settings ────────────────────────


class TestFromSettings:
    def test_kinds_follow_settings(self):
        cfg = Settings(monitor_connections=False, poll_interval=3.0, highlight_window=12.0)
        poller = Poller.from_settings(cfg, os_type=OsType.MAC)
        assert poller.kinds == [Kind.PROCESSES]
        assert poller.os_type == OsType.MAC
        assert poller.interval == 3.0
        assert poller.highlight_window == 12.0
        assert poller.tracker(Kind.PROCESSES).window == 12.0

    def test_explicit_kinds_and_executor_settings(self):
        cfg = Settings(command_timeout=7.0, processes_command="ps -ef")
        poller = Poller.from_settings(cfg, os_type=OsType.UNIX, kinds=[Kind.CONNECTIONS])
        assert poller.kinds == [Kind.CONNECTIONS]
        assert poller.executor.timeout == 7.0
        assert poller.command_overrides[Kind.PROCESSES] == "ps -ef"


# ── argument validation ───────────────────────────────


class TestValidation:
    @pytest.mark.parametrize("interval", [0.0, -5.0])
    def test_non_positive_interval_rejected(self, interval):
        with pytest.raises(ValueError, match="poll interval"):
            _poller(FakeExecutor({}), interval=interval)

    def test_non_positive_highlight_window_rejected(self):
        with pytest.raises(ValueError, match="highlight window"):
            _poller(FakeExecutor({}), highlight_window=0.0)

    @pytest.mark.parametrize("field", ["poll_interval", "highlight_window", "command_timeout"])
    def test_settings_reject_non_positive_durations(self, field):
        with pytest.raises(ValueError):
            Settings(**{field: 0})

    @pytest.mark.asyncio
    async def test_snapshot_carries_interval(self):
        executor = FakeExecutor({PROC_CMD: PS_OUTPUT})
        snapshot = await _poller(executor, kinds=[Kind.PROCESSES], interval=2.5).run_cycle()
        assert snapshot.poll_interval == 2.5
