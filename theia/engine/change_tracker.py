from __future__ import annotations

import logging
import time
from typing import Callable, Sequence, TypeVar

from pydantic import BaseModel, Field

from theia.models.record import Record

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

DEFAULT_WINDOW = 30.0  # seconds


class TrackerState(BaseModel):
    """Identity keys from the last poll and when each new key was first seen."""

    previous_keys: frozenset[str] = frozenset()
    first_seen: dict[str, float] = Field(default_factory=dict)

    model_config = {"frozen": True}


def advance(
    state: TrackerState,
    records: Sequence[R],
    now: float,
    window: float = DEFAULT_WINDOW,
) -> tuple[TrackerState, list[R]]:
    """Fold one poll into ``state``.

    Returns the next state and copies of ``records`` with ``is_new`` set.
    ``now`` is read once by the caller and used for insertion, expiry and
    annotation alike.
    """
    current_keys = frozenset(r.identity_key for r in records)

    first_seen = dict(state.first_seen)
    for record in records:
        key = record.identity_key
        # an entry still inside the window keeps its first timestamp,
        # even when the key vanished for a poll and came back
        if key not in state.previous_keys and key not in first_seen:
            first_seen[key] = now

    first_seen = {
        key: seen for key, seen in first_seen.items() if now - seen < window
    }

    annotated = [
        r.model_copy(update={"is_new": r.identity_key in first_seen})
        for r in records
    ]
    return TrackerState(previous_keys=current_keys, first_seen=first_seen), annotated


class ChangeTracker:
    """Per-kind "newly seen" tracker. Owned by exactly one poller."""

    def __init__(
        self,
        window: float = DEFAULT_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window = window
        self._clock = clock
        self.state = TrackerState()

    def update(self, records: Sequence[R], now: float | None = None) -> list[R]:
        if now is None:
            now = self._clock()
        self.state, annotated = advance(self.state, records, now, self.window)
        logger.debug(
            "Tracker: %d current, %d highlighted",
            len(self.state.previous_keys),
            len(self.state.first_seen),
        )
        return annotated

    def reset(self) -> None:
        self.state = TrackerState()

    @property
    def highlighted(self) -> int:
        return len(self.state.first_seen)
