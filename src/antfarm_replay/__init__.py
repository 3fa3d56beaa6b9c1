"""Ant farm replay: parse lem-in maps and replay their moves turn by turn."""

from .config import LayoutConfig, PlaybackConfig, ReplayRuntimeConfig
from .controller import PlaybackStatus, SimulationController, SimulationStats
from .entities import Move, ParsedGraph, Room, RoomRole, Tunnel
from .history import ReplayHistory, build_history
from .parser import FormatError, ParseError, ValidationError, parse, parse_file
from .state import SimulationState, StateSnapshot
from .turn_index import TurnIndex, build_index

__all__ = [
    "LayoutConfig",
    "PlaybackConfig",
    "ReplayRuntimeConfig",
    "PlaybackStatus",
    "SimulationController",
    "SimulationStats",
    "Move",
    "ParsedGraph",
    "Room",
    "RoomRole",
    "Tunnel",
    "ReplayHistory",
    "build_history",
    "FormatError",
    "ParseError",
    "ValidationError",
    "parse",
    "parse_file",
    "SimulationState",
    "StateSnapshot",
    "TurnIndex",
    "build_index",
]
