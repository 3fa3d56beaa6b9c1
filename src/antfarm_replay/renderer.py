"""Renderer boundary and a headless layout implementation."""

from __future__ import annotations

import math
from typing import Dict, Mapping, Optional, Protocol, Sequence, Tuple

import numpy as np

from .animation import PathHint, PolylinePath
from .config import LayoutConfig
from .entities import ParsedGraph


class Renderer(Protocol):
    """What the controller needs from whatever draws the scene."""

    def room_position(self, room_id: str) -> Optional[np.ndarray]:
        ...

    def path_between(self, from_room: str, to_room: str) -> Optional[PathHint]:
        ...

    def place_agent(self, agent_id: int, position: np.ndarray) -> None:
        ...

    def place_at_rooms(self, occupancy: Mapping[str, Sequence[int]]) -> None:
        ...


class LayoutRenderer:
    """Keeps scaled room coordinates and the last drawn position of every agent.

    Used by the CLI and tests in place of a 3D scene.
    """

    def __init__(self, graph: ParsedGraph, layout: LayoutConfig | None = None):
        self.graph = graph
        self.layout = layout or LayoutConfig()
        self._rooms: Dict[str, np.ndarray] = {
            room.room_id: np.asarray(room.coordinates(), dtype=float) * self.layout.scale
            for room in graph.rooms
        }
        self._paths: Dict[frozenset, PolylinePath] = {}
        for tunnel in graph.tunnels:
            if tunnel.source == tunnel.target:
                continue
            self._paths[tunnel.endpoints()] = PolylinePath(
                [self._rooms[tunnel.source], self._rooms[tunnel.target]]
            )
        self.agent_positions: Dict[int, np.ndarray] = {}
        self.frames_drawn = 0

    def room_position(self, room_id: str) -> Optional[np.ndarray]:
        position = self._rooms.get(room_id)
        return None if position is None else position.copy()

    def path_between(self, from_room: str, to_room: str) -> Optional[PathHint]:
        path = self._paths.get(frozenset((from_room, to_room)))
        if path is None:
            return None
        if np.allclose(path.points[0], self._rooms[from_room]):
            return path
        return PolylinePath(path.points[::-1])

    def place_agent(self, agent_id: int, position: np.ndarray) -> None:
        self.agent_positions[agent_id] = np.asarray(position, dtype=float).copy()
        self.frames_drawn += 1

    def place_at_rooms(self, occupancy: Mapping[str, Sequence[int]]) -> None:
        """Fan agents that share a room out on rings around its centre."""
        ring = self.layout.ring_size
        for room_id, agent_ids in occupancy.items():
            centre = self._rooms.get(room_id)
            if centre is None:
                continue
            for slot, agent_id in enumerate(sorted(agent_ids)):
                angle = (slot * math.pi * 2) / ring
                radius = 3 + (slot // ring) * 2
                self.agent_positions[agent_id] = np.array(
                    [
                        centre[0] + math.cos(angle) * radius,
                        centre[1] + self.layout.agent_lift,
                        centre[2] + math.sin(angle) * radius,
                    ]
                )

    def bounds(self) -> Tuple[np.ndarray, float]:
        """Centre of the room layout and its largest extent."""
        if not self._rooms:
            return np.zeros(3), 0.0
        coords = np.stack(list(self._rooms.values()))
        low = coords.min(axis=0)
        high = coords.max(axis=0)
        return (low + high) / 2, float((high - low).max())
