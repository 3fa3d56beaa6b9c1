"""Replay history: the state after every turn of a plain sequential replay."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .entities import ParsedGraph
from .state import SimulationState, StateSnapshot
from .turn_index import TurnIndex, build_index


@dataclass
class ReplayHistory:
    start_room: str
    turn_numbers: List[int]
    snapshots: List[StateSnapshot] = field(default_factory=list)

    def add_snapshot(self, snapshot: StateSnapshot) -> None:
        self.snapshots.append(snapshot)

    def at(self, turn: int) -> StateSnapshot:
        """Snapshot for turn pointer ``turn`` (0 is the unmoved start)."""
        return self.snapshots[turn]

    def latest(self) -> StateSnapshot:
        if not self.snapshots:
            raise ValueError("No snapshots in history")
        return self.snapshots[-1]


def build_history(graph: ParsedGraph, index: TurnIndex | None = None) -> ReplayHistory:
    if index is None:
        index = build_index(graph.moves)
    state = SimulationState(graph.start_room.room_id, index.agent_ids())
    history = ReplayHistory(start_room=state.start_room, turn_numbers=list(index.turn_numbers))
    history.add_snapshot(state.snapshot())
    for position in range(len(index)):
        state.apply(index.moves_at(position))
        state.current_turn = position + 1
        history.add_snapshot(state.snapshot())
    return history
