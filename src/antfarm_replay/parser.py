"""Parser for the lem-in text format.

The input describes an ant count, rooms (``id x y [z]``), tunnels (``a-b``)
and one moves line per turn (``L1-room L2-room``). ``##start`` and ``##end``
mark the next room line; every other ``#`` line is a comment.

Parsing is a single forward scan that threads an explicit accumulator through
the lines, followed by a validation pass over the collected data. Either a
complete ``ParsedGraph`` is returned or a ``ParseError`` is raised.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .entities import Move, ParsedGraph, Room, RoomRole, Tunnel

logger = logging.getLogger(__name__)

START_MARKER = "##start"
END_MARKER = "##end"
MOVE_TOKEN = re.compile(r"^L(\d+)-(\S+)$")


class ParseError(Exception):
    """Raised when input text cannot be turned into a graph."""

    def __init__(self, reason: str, line: Optional[int] = None) -> None:
        self.reason = reason
        self.line = line
        message = f"line {line}: {reason}" if line is not None else reason
        super().__init__(message)


class FormatError(ParseError):
    """A line does not match any shape of the format."""

    def __init__(self, line: int, reason: str) -> None:
        super().__init__(reason, line)


class ValidationError(ParseError):
    """The scan succeeded but the collected graph is inconsistent."""


@dataclass
class _ScanState:
    ant_count: Optional[int] = None
    pending_role: RoomRole = RoomRole.NORMAL
    pending_line: int = 0
    turn: int = 0
    rooms: List[Room] = field(default_factory=list)
    tunnels: List[Tuple[Tunnel, int]] = field(default_factory=list)
    moves: List[Tuple[Move, int]] = field(default_factory=list)


def parse(text: str) -> ParsedGraph:
    state = _ScanState()
    for line_no, raw in enumerate(text.split("\n"), start=1):
        _consume_line(state, line_no, raw.strip())

    if state.ant_count is None:
        raise ValidationError("input does not declare an ant count")
    if state.pending_role is not RoomRole.NORMAL:
        raise FormatError(state.pending_line, f"##{state.pending_role.value} is not followed by a room")

    _validate(state)
    graph = ParsedGraph(
        rooms=tuple(state.rooms),
        tunnels=tuple(tunnel for tunnel, _ in state.tunnels),
        ant_count=state.ant_count,
        moves=tuple(move for move, _ in state.moves),
    )
    logger.debug(
        "Parsed %d rooms, %d tunnels, %d moves over %d turns",
        len(graph.rooms),
        len(graph.tunnels),
        len(graph.moves),
        state.turn,
    )
    return graph


def parse_file(path: Path | str) -> ParsedGraph:
    path = Path(path)
    if not path.exists():
        raise ParseError(f"File not found: {path}")
    return parse(path.read_text(encoding="utf-8"))


# ----------------------------------------------------------------------
# Scan
def _consume_line(state: _ScanState, line_no: int, line: str) -> None:
    if not line:
        return
    if line.startswith("#"):
        if line == START_MARKER:
            state.pending_role = RoomRole.START
            state.pending_line = line_no
        elif line == END_MARKER:
            state.pending_role = RoomRole.END
            state.pending_line = line_no
        return

    if state.ant_count is None:
        state.ant_count = _parse_ant_count(line_no, line)
        return

    if line.startswith("L"):
        _require_no_pending_role(state, line_no)
        _consume_moves(state, line_no, line)
    elif _looks_like_tunnel(line):
        _require_no_pending_role(state, line_no)
        state.tunnels.append((_parse_tunnel(line_no, line), line_no))
    else:
        state.rooms.append(_parse_room(line_no, line, state.pending_role))
        state.pending_role = RoomRole.NORMAL


def _parse_ant_count(line_no: int, line: str) -> int:
    if not line.isdecimal():
        raise FormatError(line_no, f"expected the ant count, got {line!r}")
    try:
        count = int(line)
    except ValueError:
        raise FormatError(line_no, f"expected the ant count, got {line!r}") from None
    if count <= 0:
        raise FormatError(line_no, "ant count must be a positive integer")
    return count


def _require_no_pending_role(state: _ScanState, line_no: int) -> None:
    if state.pending_role is not RoomRole.NORMAL:
        raise FormatError(
            line_no,
            f"##{state.pending_role.value} on line {state.pending_line} must be followed by a room",
        )


def _looks_like_tunnel(line: str) -> bool:
    return "-" in line and len(line.split()) == 1


def _parse_tunnel(line_no: int, line: str) -> Tunnel:
    parts = line.split("-")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise FormatError(line_no, f"malformed tunnel {line!r}")
    return Tunnel(source=parts[0], target=parts[1])


def _parse_room(line_no: int, line: str, role: RoomRole) -> Room:
    tokens = line.split()
    if len(tokens) not in (3, 4):
        raise FormatError(line_no, f"unrecognised line {line!r}")
    room_id = tokens[0]
    try:
        coords = [int(token) for token in tokens[1:]]
    except ValueError:
        raise FormatError(line_no, f"room {room_id!r} has a non-integer coordinate") from None
    z = coords[2] if len(coords) == 3 else None
    return Room(room_id=room_id, x=coords[0], y=coords[1], z=z, role=role, line=line_no)


def _consume_moves(state: _ScanState, line_no: int, line: str) -> None:
    state.turn += 1
    seen: Dict[int, str] = {}
    for token in line.split():
        match = MOVE_TOKEN.match(token)
        if match is None:
            raise FormatError(line_no, f"malformed move {token!r}")
        agent_id = int(match.group(1))
        if agent_id <= 0:
            raise FormatError(line_no, f"agent ids start at 1, got {token!r}")
        if agent_id in seen:
            raise FormatError(line_no, f"agent {agent_id} moves more than once in turn {state.turn}")
        seen[agent_id] = match.group(2)
        state.moves.append((Move(agent_id=agent_id, room_id=match.group(2), turn=state.turn), line_no))


# ----------------------------------------------------------------------
# Validation
def _validate(state: _ScanState) -> None:
    known: Dict[str, Room] = {}
    for room in state.rooms:
        if room.room_id in known:
            raise ValidationError(
                f"room {room.room_id!r} already defined on line {known[room.room_id].line}",
                line=room.line,
            )
        known[room.room_id] = room

    for role in (RoomRole.START, RoomRole.END):
        marked = [room for room in state.rooms if room.role is role]
        if not marked:
            raise ValidationError(f"no ##{role.value} room")
        if len(marked) > 1:
            lines = ", ".join(str(room.line) for room in marked)
            raise ValidationError(f"more than one ##{role.value} room (lines {lines})", line=marked[1].line)

    for tunnel, line_no in state.tunnels:
        for endpoint in (tunnel.source, tunnel.target):
            if endpoint not in known:
                raise ValidationError(f"tunnel references unknown room {endpoint!r}", line=line_no)

    for move, line_no in state.moves:
        if move.room_id not in known:
            raise ValidationError(
                f"agent {move.agent_id} moves to unknown room {move.room_id!r}", line=line_no
            )
        if move.agent_id > state.ant_count:
            raise ValidationError(
                f"agent {move.agent_id} exceeds the declared ant count {state.ant_count}", line=line_no
            )
