"""Turn-based playback controller.

The controller is the only writer of ``SimulationState``. A turn launches one
animation per move, waits for every one of them to settle, and only then
applies the moves and advances the turn pointer. Resets bump an epoch counter
so a turn whose animations were cancelled never lands in the fresh state.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, FrozenSet, List, Mapping, Optional

from .animation import AnimationCoordinator, AnimationTask
from .config import LayoutConfig, PlaybackConfig
from .entities import Move, ParsedGraph
from .renderer import LayoutRenderer, Renderer
from .state import SimulationState, StateSnapshot
from .turn_index import TurnIndex, build_index

logger = logging.getLogger(__name__)

Listener = Callable[[StateSnapshot], None]


class PlaybackStatus(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    STEPPING = "stepping"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SimulationStats:
    total_turns: int
    current_turn: int
    total_agents: int
    moving_agents: int
    is_complete: bool
    progress: float
    turn_label: str
    can_play: bool
    can_step: bool
    can_stop: bool


class SimulationController:
    def __init__(
        self,
        graph: ParsedGraph,
        *,
        renderer: Optional[Renderer] = None,
        playback: Optional[PlaybackConfig] = None,
        layout: Optional[LayoutConfig] = None,
        index: Optional[TurnIndex] = None,
    ) -> None:
        self.graph = graph
        self.index = index if index is not None else build_index(graph.moves)
        self.playback = playback or PlaybackConfig()
        layout = layout or LayoutConfig()
        self.renderer: Renderer = renderer or LayoutRenderer(graph, layout)
        self.animator = AnimationCoordinator(
            self.renderer,
            frame_interval=self.playback.frame_interval,
            tube_radius=layout.tube_radius,
            arc_height=layout.arc_height,
        )
        self._state = SimulationState(graph.start_room.room_id, self.index.agent_ids())
        self._animating = False
        self._paused = False
        self._stepping = False
        self._epoch = 0
        self._playback_task: Optional[asyncio.Task] = None
        self._listeners: List[Listener] = []
        self.renderer.place_at_rooms(self._state.room_occupancy())

    # ------------------------------------------------------------------
    # Read-only views
    @property
    def current_turn(self) -> int:
        return self._state.current_turn

    @property
    def turn_count(self) -> int:
        return len(self.index)

    @property
    def positions(self) -> Mapping[int, str]:
        return self._state.positions

    @property
    def moving(self) -> FrozenSet[int]:
        return self._state.moving

    @property
    def is_animating(self) -> bool:
        return self._animating

    @property
    def is_complete(self) -> bool:
        return self._state.current_turn >= len(self.index)

    @property
    def playback_task(self) -> Optional[asyncio.Task]:
        return self._playback_task

    @property
    def status(self) -> PlaybackStatus:
        if self._animating and self._stepping:
            return PlaybackStatus.STEPPING
        if self._animating:
            # a turn in flight always settles before a pause takes hold
            return PlaybackStatus.PAUSED if self._paused else PlaybackStatus.PLAYING
        if self._playback_alive() and not self._halted():
            return PlaybackStatus.PLAYING
        if self._state.current_turn == 0:
            return PlaybackStatus.IDLE
        if self.is_complete:
            return PlaybackStatus.COMPLETE
        return PlaybackStatus.PAUSED

    def snapshot(self) -> StateSnapshot:
        return self._state.snapshot()

    def stats(self) -> SimulationStats:
        total = len(self.index)
        current = self._state.current_turn
        complete = self.is_complete
        if current == 0:
            label = "Start"
        elif complete:
            label = "Complete"
        else:
            label = str(self.index.turn_numbers[current - 1])
        return SimulationStats(
            total_turns=total,
            current_turn=current,
            total_agents=len(self._state.positions),
            moving_agents=len(self._state.moving),
            is_complete=complete,
            progress=0.0 if total == 0 else current / total * 100,
            turn_label=label,
            can_play=not self._animating and (self._paused or not complete),
            can_step=not self._animating,
            can_stop=current > 0 or self._animating,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with a snapshot after every state change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Commands
    async def play(self) -> None:
        if not len(self.index):
            logger.debug("play ignored: nothing to replay")
            return
        self._paused = False
        self._stepping = False
        if self._playback_alive() or self._animating:
            return
        if self.is_complete and not self.playback.loop:
            self._reset()
        self._playback_task = asyncio.get_running_loop().create_task(self._run_playback())

    def pause(self) -> None:
        if self._paused:
            return
        self._paused = True
        logger.debug("Playback paused at turn %d", self._state.current_turn)

    async def stop(self) -> None:
        task = self._playback_task
        self._playback_task = None
        if task is not None and not task.done():
            task.cancel()
        self._paused = False
        self._stepping = False
        self._reset()
        if task is not None and task is not asyncio.current_task():
            await asyncio.wait([task])

    async def step_forward(self) -> None:
        if self._animating:
            logger.debug("step ignored: turn %d still animating", self._state.current_turn)
            return
        self._stepping = True
        self._paused = False
        if self.is_complete:
            await self.stop()
            return
        await self.execute_turn(self._state.current_turn)

    async def step_backward(self) -> None:
        if self._state.current_turn > 0:
            await self.go_to_turn(self._state.current_turn - 1)

    async def go_to_turn(self, turn: int) -> None:
        if self._animating:
            logger.debug("seek to %d ignored: turn still animating", turn)
            return
        if turn < 0 or turn > len(self.index):
            logger.debug("seek to %d ignored: outside 0..%d", turn, len(self.index))
            return
        await self.stop()
        if turn == 0:
            return
        for position in range(turn):
            self._state.apply(self.index.moves_at(position))
        self._state.current_turn = turn
        logger.info("Seeked to turn %d", turn)
        self._publish()

    async def execute_turn(self, turn_index: int) -> bool:
        """Animate and apply one turn; returns ``True`` once its moves are applied."""
        if self._animating or turn_index < 0 or turn_index >= len(self.index):
            return False

        moves = self.index.moves_at(turn_index)
        agent_ids = [move.agent_id for move in moves]
        epoch = self._epoch
        self._animating = True
        self._state.mark_moving(agent_ids)
        logger.debug("Turn %d: animating %d move(s)", self.index.turn_numbers[turn_index], len(moves))

        tasks: List[AnimationTask] = []
        try:
            self._notify()
            for move in moves:
                task = self._animate_move(move)
                if task is not None:
                    tasks.append(task)
            await asyncio.gather(*(task.wait() for task in tasks))
        except (asyncio.CancelledError, Exception):
            if epoch == self._epoch:
                for task in tasks:
                    task.cancel()
                self._state.clear_moving(agent_ids)
                self._animating = False
            raise

        if epoch != self._epoch:
            logger.debug("Turn %d discarded after reset", self.index.turn_numbers[turn_index])
            return False

        self._state.apply(moves)
        self._state.clear_moving(agent_ids)
        self._state.current_turn = turn_index + 1
        self._animating = False
        self._publish()
        return True

    async def wait_for_playback(self) -> None:
        task = self._playback_task
        if task is not None:
            await asyncio.wait([task])
            if not task.cancelled():
                task.result()

    # ------------------------------------------------------------------
    # Internals
    async def _run_playback(self) -> None:
        while not self._halted():
            if self.is_complete:
                if not self.playback.loop:
                    logger.info("Playback complete after %d turn(s)", len(self.index))
                    return
                await asyncio.sleep(self.playback.loop_dwell)
                if self._halted():
                    return
                self._reset()
                await asyncio.sleep(self.playback.restart_delay)
                continue
            await self.execute_turn(self._state.current_turn)
            if self._halted():
                return
            await asyncio.sleep(self.playback.inter_turn_delay)

    def _animate_move(self, move: Move) -> Optional[AnimationTask]:
        from_room = self._state.positions.get(move.agent_id)
        if from_room is None:
            return None
        from_pos = self.renderer.room_position(from_room)
        to_pos = self.renderer.room_position(move.room_id)
        if from_pos is None or to_pos is None:
            return None
        path = self.renderer.path_between(from_room, move.room_id)
        return self.animator.animate(move.agent_id, from_pos, to_pos, path, self.playback.move_duration)

    def _reset(self) -> None:
        self._epoch += 1
        self.animator.cancel_all()
        self._animating = False
        self._state.reset()
        logger.info("State reset to turn 0")
        self._publish()

    def _publish(self) -> None:
        self.renderer.place_at_rooms(self._state.room_occupancy())
        self._notify()

    def _notify(self) -> None:
        snapshot = self._state.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def _halted(self) -> bool:
        return self._paused or self._stepping

    def _playback_alive(self) -> bool:
        return self._playback_task is not None and not self._playback_task.done()

