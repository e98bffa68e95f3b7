from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from theia.models.record import ConnectionRecord, Kind, OsType, ProcessRecord


class PollSnapshot(BaseModel):
    """Annotated output of one poll cycle, handed to every renderer.

    ``connections``/``processes`` are ``None`` when that kind is not monitored.
    """

    cycle: int
    os_type: OsType
    highlight_window: float
    poll_interval: float | None = None
    connections: list[ConnectionRecord] | None = None
    processes: list[ProcessRecord] | None = None
    errors: dict[Kind, str] = Field(default_factory=dict)
    skipped: dict[Kind, int] = Field(default_factory=dict)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def kinds(self) -> list[Kind]:
        kinds: list[Kind] = []
        if self.connections is not None:
            kinds.append(Kind.CONNECTIONS)
        if self.processes is not None:
            kinds.append(Kind.PROCESSES)
        return kinds
