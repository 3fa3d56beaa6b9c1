"""Unit tests for the lem-in text parser."""

import pytest

from antfarm_replay.entities import Move, RoomRole, Tunnel
from antfarm_replay.parser import FormatError, ParseError, ValidationError, parse, parse_file

SAMPLE = """3
##start
start 0 0
mid 1 0
##end
end 2 0
start-mid
mid-end
L1-mid
L1-end L2-mid
L2-end L3-mid
L3-end
"""


def test_minimal_example_parses():
    graph = parse("2\n##start\nA 0 0\n##end\nB 1 0\nA-B\nL1-B L2-B\n")
    assert graph.ant_count == 2
    assert [(room.room_id, room.role) for room in graph.rooms] == [
        ("A", RoomRole.START),
        ("B", RoomRole.END),
    ]
    assert graph.tunnels == (Tunnel("A", "B"),)
    assert graph.moves == (Move(1, "B", 1), Move(2, "B", 1))


def test_parsing_is_deterministic():
    assert parse(SAMPLE) == parse(SAMPLE)


def test_turns_count_moves_lines():
    graph = parse(SAMPLE)
    assert [move.turn for move in graph.moves] == [1, 2, 2, 3, 3, 4]
    assert graph.agent_ids() == (1, 2, 3)


def test_comments_blank_lines_and_third_coordinate():
    text = "# a farm\n\n1\n#note\n##start\n  s 0 0 5  \n\n##end\ne 3 4\ns-e\n# moves follow\nL1-e\n"
    graph = parse(text)
    assert graph.start_room.coordinates() == (0, 0, 5)
    assert graph.end_room.z is None
    assert graph.end_room.coordinates() == (3, 4, 0)
    assert graph.start_room.line == 6


def test_file_without_moves_is_valid():
    graph = parse("4\n##start\na 0 0\n##end\nb 1 1\na-b\n")
    assert graph.moves == ()
    assert graph.agent_ids() == ()


def test_neighbours_follow_tunnels_both_ways():
    graph = parse(SAMPLE)
    assert graph.neighbours("mid") == ("start", "end")
    assert graph.neighbours("end") == ("mid",)


@pytest.mark.parametrize(
    "text, line",
    [
        ("three\n##start\na 0 0\n##end\nb 1 1\n", 1),
        ("\u00b2\n##start\na 0 0\n##end\nb 1 1\n", 1),
        ("0\n##start\na 0 0\n##end\nb 1 1\n", 1),
        ("1\n##start\na 0 0\n##end\nb 1 1\nwhat is this\n", 6),
        ("1\n##start\na 0 x\n##end\nb 1 1\n", 3),
        ("1\n##start\na 0 0\n##end\nb 1 1\na-b-c\n", 6),
        ("1\n##start\na 0 0\n##end\nb 1 1\na-b\nL1b\n", 7),
        ("1\n##start\na 0 0\n##end\nb 1 1\na-b\nL0-b\n", 7),
        ("2\n##start\na 0 0\n##end\nb 1 1\na-b\nL1-b L1-a\n", 7),
        ("1\n##start\na-b\n##end\nb 1 1\n", 3),
    ],
)
def test_format_errors_report_the_line(text, line):
    with pytest.raises(FormatError) as excinfo:
        parse(text)
    assert excinfo.value.line == line
    assert str(excinfo.value).startswith(f"line {line}:")


def test_sentinel_without_room_at_end_of_input():
    with pytest.raises(FormatError) as excinfo:
        parse("1\n##start\na 0 0\nb 1 1\n##end\n")
    assert excinfo.value.line == 5


@pytest.mark.parametrize(
    "text, fragment",
    [
        ("1\na 0 0\n##end\nb 1 1\n", "no ##start"),
        ("1\n##start\na 0 0\nb 1 1\n", "no ##end"),
        ("1\n##start\na 0 0\n##end\nb 1 1\n##end\nc 2 2\n", "more than one ##end"),
        ("1\n##start\na 0 0\n##end\nb 1 1\na-zz\n", "unknown room 'zz'"),
        ("1\n##start\na 0 0\n##end\nb 1 1\nL1-zz\n", "unknown room 'zz'"),
        ("1\n##start\na 0 0\n##end\na 1 1\n", "already defined"),
        ("1\n##start\na 0 0\n##end\nb 1 1\nL2-b\n", "exceeds the declared ant count"),
    ],
)
def test_validation_errors(text, fragment):
    with pytest.raises(ValidationError) as excinfo:
        parse(text)
    assert fragment in str(excinfo.value)


def test_missing_ant_count():
    with pytest.raises(ValidationError):
        parse("# only a comment\n\n")


def test_errors_share_a_base_class():
    assert issubclass(FormatError, ParseError)
    assert issubclass(ValidationError, ParseError)


def test_parse_file_reads_utf8(tmp_path):
    path = tmp_path / "farm.txt"
    path.write_text(SAMPLE, encoding="utf-8")
    assert parse_file(path) == parse(SAMPLE)


def test_parse_file_missing(tmp_path):
    with pytest.raises(ParseError, match="File not found"):
        parse_file(tmp_path / "absent.txt")


def test_room_lookup():
    graph = parse(SAMPLE)
    assert graph.room("mid").x == 1
    assert graph.room_ids() == frozenset({"start", "mid", "end"})
    with pytest.raises(KeyError):
        graph.room("attic")
