"""Core value types produced by the parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Tuple


class RoomRole(str, Enum):
    START = "start"
    END = "end"
    NORMAL = "normal"


@dataclass(frozen=True)
class Room:
    room_id: str
    x: int
    y: int
    z: Optional[int] = None
    role: RoomRole = RoomRole.NORMAL
    line: int = 0

    def coordinates(self) -> Tuple[int, int, int]:
        return self.x, self.y, self.z if self.z is not None else 0


@dataclass(frozen=True)
class Tunnel:
    source: str
    target: str

    def endpoints(self) -> FrozenSet[str]:
        return frozenset((self.source, self.target))


@dataclass(frozen=True)
class Move:
    agent_id: int
    room_id: str
    turn: int


@dataclass(frozen=True)
class ParsedGraph:
    """Validated result of parsing one input file."""

    rooms: Tuple[Room, ...]
    tunnels: Tuple[Tunnel, ...]
    ant_count: int
    moves: Tuple[Move, ...]

    @property
    def start_room(self) -> Room:
        return self._single_room(RoomRole.START)

    @property
    def end_room(self) -> Room:
        return self._single_room(RoomRole.END)

    def room(self, room_id: str) -> Room:
        for room in self.rooms:
            if room.room_id == room_id:
                return room
        raise KeyError(room_id)

    def room_ids(self) -> FrozenSet[str]:
        return frozenset(room.room_id for room in self.rooms)

    def agent_ids(self) -> Tuple[int, ...]:
        return tuple(sorted({move.agent_id for move in self.moves}))

    def neighbours(self, room_id: str) -> Tuple[str, ...]:
        found = []
        for tunnel in self.tunnels:
            if tunnel.source == room_id:
                found.append(tunnel.target)
            elif tunnel.target == room_id:
                found.append(tunnel.source)
        return tuple(found)

    def _single_room(self, role: RoomRole) -> Room:
        for room in self.rooms:
            if room.role is role:
                return room
        raise ValueError(f"graph has no {role.value} room")
