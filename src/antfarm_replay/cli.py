"""Command-line interface for the ant farm replay."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional, Sequence

import pydantic
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import LayoutConfig, PlaybackConfig, ReplayRuntimeConfig
from .controller import SimulationController
from .entities import ParsedGraph
from .history import ReplayHistory, build_history
from .parser import ParseError, parse_file
from .state import StateSnapshot
from .turn_index import TurnIndex, build_index

console = Console()
logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay lem-in ant movements turn by turn")
    parser.add_argument("input", help="Map and moves file in lem-in format")
    parser.add_argument("--table", action="store_true", help="Print agent positions for every turn")
    parser.add_argument("--play", action="store_true", help="Run a headless timed playback")
    parser.add_argument("--seek", type=int, default=None, help="Jump to this turn before playing")
    parser.add_argument("--turn-duration", type=float, default=2.0, help="Seconds per turn")
    parser.add_argument("--move-duration", type=float, default=1.5, help="Seconds per move animation")
    parser.add_argument("--frame-rate", type=float, default=60.0, help="Animation samples per second")
    parser.add_argument("--scale", type=float, default=10.0, help="Room coordinate multiplier")
    parser.add_argument("--verbose", action="store_true", help="Log controller activity")
    return parser.parse_args(argv)


def build_runtime(args: argparse.Namespace) -> ReplayRuntimeConfig:
    return ReplayRuntimeConfig(
        playback=PlaybackConfig(
            turn_duration=args.turn_duration,
            move_duration=args.move_duration,
            frame_rate=args.frame_rate,
            loop=False,
        ),
        layout=LayoutConfig(scale=args.scale),
        verbose=args.verbose,
    )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def render_summary(graph: ParsedGraph, index: TurnIndex) -> Table:
    table = Table(title="Ant Farm", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Ants", str(graph.ant_count))
    table.add_row("Rooms", str(len(graph.rooms)))
    table.add_row("Tunnels", str(len(graph.tunnels)))
    table.add_row("Turns", str(len(index)))
    table.add_row("Moves", str(len(graph.moves)))
    table.add_row("Start", graph.start_room.room_id)
    table.add_row("End", graph.end_room.room_id)
    return table


def render_turn_table(history: ReplayHistory) -> Table:
    table = Table(title="Replay", show_lines=True)
    table.add_column("Turn", justify="right")
    table.add_column("Positions")
    for snapshot in history.snapshots:
        label = "start" if snapshot.turn == 0 else str(history.turn_numbers[snapshot.turn - 1])
        table.add_row(label, format_positions(snapshot))
    return table


def format_positions(snapshot: StateSnapshot) -> str:
    return " ".join(f"L{agent_id}@{room_id}" for agent_id, room_id in sorted(snapshot.positions.items()))


async def drive(
    graph: ParsedGraph,
    index: TurnIndex,
    runtime: ReplayRuntimeConfig,
    *,
    seek: Optional[int] = None,
    play: bool = False,
) -> SimulationController:
    controller = SimulationController(graph, index=index, playback=runtime.playback, layout=runtime.layout)

    if seek is not None:
        await controller.go_to_turn(seek)
        if controller.current_turn != seek:
            console.print(f"[yellow]Turn {seek} is outside 0..{len(index)}; staying at turn 0")
        console.print(f"[bold]Turn {controller.current_turn}:[/bold] {format_positions(controller.snapshot())}")

    if play:
        last_turn = controller.current_turn

        def report(snapshot: StateSnapshot) -> None:
            nonlocal last_turn
            if snapshot.moving or snapshot.turn == last_turn:
                return
            last_turn = snapshot.turn
            console.print(f"[green]Turn {snapshot.turn}/{len(index)}:[/green] {format_positions(snapshot)}")

        unsubscribe = controller.subscribe(report)
        await controller.play()
        await controller.wait_for_playback()
        unsubscribe()
    return controller


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        runtime = build_runtime(args)
    except pydantic.ValidationError as exc:
        console.print(f"[red]Invalid options: {escape(str(exc))}")
        return 2
    configure_logging(runtime.verbose)

    try:
        graph = parse_file(args.input)
    except ParseError as exc:
        console.print(f"[red]{escape(args.input)}: {escape(str(exc))}")
        return 1

    logger.info("Loaded %s", args.input)
    index = build_index(graph.moves)
    console.print(render_summary(graph, index))
    if args.table:
        console.print(render_turn_table(build_history(graph, index)))
    if args.seek is not None or args.play:
        asyncio.run(drive(graph, index, runtime, seek=args.seek, play=args.play))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
