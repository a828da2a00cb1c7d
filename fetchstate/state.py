"""Immutable state records handed to tracker observers"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any

HANDLER_NAMES: tuple[str, ...] = (
    "on_stalled",
    "on_fetching",
    "on_finished",
    "on_state_change",
)


@dataclass(frozen=True)
class TrackerState:
    """Snapshot of a :class:`~fetchstate.tracker.RequestTracker` state.

    Trackers never mutate a snapshot: every transition builds a new one
    with :meth:`evolve`, so observers can keep the instance they receive.
    """

    id: str = ""
    is_fetching: bool = False
    is_stalled: bool = False
    is_finished: bool = False
    times_run: int = 0

    def evolve(self, **changes: Any) -> TrackerState:
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


INITIAL_REQUEST_STATE = TrackerState()
