"""Mutable simulation state owned by the controller."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Set, Tuple

from .entities import Move


@dataclass(frozen=True)
class StateSnapshot:
    turn: int
    positions: Mapping[int, str]
    moving: FrozenSet[int]

    def room_of(self, agent_id: int) -> str:
        return self.positions[agent_id]


class SimulationState:
    """Turn pointer, agent -> room assignment and the set of agents mid-move.

    Only the controller mutates this object. ``positions`` and ``moving`` hand
    out read-only views so renderers and UI code can observe without writing.
    """

    def __init__(self, start_room: str, agent_ids: Iterable[int]) -> None:
        self.start_room = start_room
        self._agent_ids = tuple(sorted(set(agent_ids)))
        self.current_turn = 0
        self._positions: Dict[int, str] = {}
        self._moving: Set[int] = set()
        self.reset()

    @property
    def positions(self) -> Mapping[int, str]:
        return MappingProxyType(self._positions)

    @property
    def moving(self) -> FrozenSet[int]:
        return frozenset(self._moving)

    @property
    def agent_ids(self) -> Tuple[int, ...]:
        return self._agent_ids

    def reset(self) -> None:
        self.current_turn = 0
        self._moving.clear()
        self._positions = {agent_id: self.start_room for agent_id in self._agent_ids}

    def apply(self, moves: Iterable[Move]) -> None:
        for move in moves:
            self._positions[move.agent_id] = move.room_id

    def mark_moving(self, agent_ids: Iterable[int]) -> None:
        self._moving.update(agent_ids)

    def clear_moving(self, agent_ids: Iterable[int] | None = None) -> None:
        if agent_ids is None:
            self._moving.clear()
        else:
            self._moving.difference_update(agent_ids)

    def room_occupancy(self) -> Dict[str, List[int]]:
        occupancy: Dict[str, List[int]] = {}
        for agent_id, room_id in self._positions.items():
            occupancy.setdefault(room_id, []).append(agent_id)
        return occupancy

    def snapshot(self) -> StateSnapshot:
        return StateSnapshot(
            turn=self.current_turn,
            positions=MappingProxyType(dict(self._positions)),
            moving=frozenset(self._moving),
        )
