"""Cancellable per-agent move animations driven by the asyncio loop."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import TYPE_CHECKING, Dict, List, Optional, Protocol, Sequence

import numpy as np

if TYPE_CHECKING:
    from .renderer import Renderer

logger = logging.getLogger(__name__)


def ease_out_cubic(progress: float) -> float:
    return 1.0 - (1.0 - progress) ** 3


class PathHint(Protocol):
    def point_at(self, t: float) -> np.ndarray:
        ...


class PolylinePath:
    """Arc-length parameterised path through a sequence of 3D points."""

    def __init__(self, points: Sequence[Sequence[float]]):
        self.points = np.asarray(points, dtype=float)
        if self.points.ndim != 2 or self.points.shape[0] < 2 or self.points.shape[1] != 3:
            raise ValueError("a path needs at least two 3D points")
        segment_lengths = np.linalg.norm(np.diff(self.points, axis=0), axis=1)
        self._cumulative = np.concatenate(([0.0], np.cumsum(segment_lengths)))

    @property
    def length(self) -> float:
        return float(self._cumulative[-1])

    def point_at(self, t: float) -> np.ndarray:
        t = min(max(t, 0.0), 1.0)
        if self.length == 0.0:
            return self.points[0].copy()
        distance = t * self.length
        # Segment containing ``distance``; the last point belongs to the last segment.
        idx = int(np.searchsorted(self._cumulative, distance, side="right")) - 1
        idx = min(max(idx, 0), len(self.points) - 2)
        span = self._cumulative[idx + 1] - self._cumulative[idx]
        ratio = 0.0 if span == 0.0 else (distance - self._cumulative[idx]) / span
        p0 = self.points[idx]
        p1 = self.points[idx + 1]
        return p0 + (p1 - p0) * ratio


class AnimationTask:
    """Handle for one running move animation.

    ``wait()`` always resolves: ``True`` when the interpolation reached the
    destination, ``False`` when it was cancelled first.
    """

    def __init__(self, agent_id: int, task: asyncio.Task) -> None:
        self.agent_id = agent_id
        self._task = task
        self._cancel_requested = False

    @property
    def done(self) -> bool:
        return self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._cancel_requested

    def cancel(self) -> None:
        if self._cancel_requested or self._task.done():
            return
        self._cancel_requested = True
        self._task.cancel()

    async def wait(self) -> bool:
        # asyncio.wait does not raise when the inner task is cancelled.
        await asyncio.wait([self._task])
        if self._task.cancelled():
            return False
        self._task.result()
        return not self._cancel_requested


class AnimationCoordinator:
    def __init__(
        self,
        renderer: "Renderer",
        *,
        frame_interval: float = 1.0 / 60.0,
        tube_radius: float = 1.2,
        arc_height: float = 5.0,
    ) -> None:
        self.renderer = renderer
        self.frame_interval = frame_interval
        self.tube_radius = tube_radius
        self.arc_height = arc_height
        self._active: Dict[int, AnimationTask] = {}

    def animate(
        self,
        agent_id: int,
        from_pos: Sequence[float],
        to_pos: Sequence[float],
        path: Optional[PathHint] = None,
        duration: float = 1.5,
    ) -> AnimationTask:
        """Start moving ``agent_id``; must be called from a running event loop."""
        previous = self._active.get(agent_id)
        if previous is not None:
            previous.cancel()

        start = np.asarray(from_pos, dtype=float)
        end = np.asarray(to_pos, dtype=float)
        task = asyncio.get_running_loop().create_task(self._run(agent_id, start, end, path, duration))
        handle = AnimationTask(agent_id, task)
        self._active[agent_id] = handle
        task.add_done_callback(lambda _: self._forget(agent_id, handle))
        return handle

    def sample(
        self,
        agent_id: int,
        from_pos: np.ndarray,
        to_pos: np.ndarray,
        path: Optional[PathHint],
        progress: float,
    ) -> np.ndarray:
        eased = ease_out_cubic(progress)
        if path is not None:
            point = np.array(path.point_at(eased), dtype=float)
            angle = (agent_id * 0.5) % (2 * math.pi) + progress * 2 * math.pi
            offset = self.tube_radius * 0.3
            point[0] += math.cos(angle) * offset
            point[2] += math.sin(angle) * offset
            return point

        point = from_pos + (to_pos - from_pos) * eased
        point[1] += math.sin(eased * math.pi) * self.arc_height
        return point

    def cancel(self, agent_id: int) -> None:
        handle = self._active.pop(agent_id, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        handles = list(self._active.values())
        self._active.clear()
        for handle in handles:
            handle.cancel()
        if handles:
            logger.debug("Cancelled %d animation(s)", len(handles))

    def active_agents(self) -> List[int]:
        return sorted(self._active)

    # ------------------------------------------------------------------
    async def _run(
        self,
        agent_id: int,
        from_pos: np.ndarray,
        to_pos: np.ndarray,
        path: Optional[PathHint],
        duration: float,
    ) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()
        while True:
            elapsed = loop.time() - started
            progress = 1.0 if duration <= 0 else min(max(elapsed / duration, 0.0), 1.0)
            self.renderer.place_agent(agent_id, self.sample(agent_id, from_pos, to_pos, path, progress))
            if progress >= 1.0:
                return
            await asyncio.sleep(self.frame_interval)

    def _forget(self, agent_id: int, handle: AnimationTask) -> None:
        if self._active.get(agent_id) is handle:
            del self._active[agent_id]
