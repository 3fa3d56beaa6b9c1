"""Ordered per-turn view over a parsed move list."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple

from .entities import Move


@dataclass(frozen=True)
class TurnIndex:
    turn_numbers: Tuple[int, ...]
    moves_by_turn: Mapping[int, Tuple[Move, ...]]

    def __len__(self) -> int:
        return len(self.turn_numbers)

    def moves_at(self, position: int) -> Tuple[Move, ...]:
        """Moves of the turn at 0-based ``position`` in playback order."""
        return self.moves_by_turn[self.turn_numbers[position]]

    def agent_ids(self) -> Tuple[int, ...]:
        return tuple(sorted({move.agent_id for moves in self.moves_by_turn.values() for move in moves}))


def build_index(moves: Iterable[Move]) -> TurnIndex:
    grouped: Dict[int, List[Move]] = {}
    for move in moves:
        grouped.setdefault(move.turn, []).append(move)
    # Input order is kept within a turn; turns themselves are sorted.
    turn_numbers = tuple(sorted(grouped))
    frozen = {turn: tuple(grouped[turn]) for turn in turn_numbers}
    return TurnIndex(turn_numbers=turn_numbers, moves_by_turn=MappingProxyType(frozen))
