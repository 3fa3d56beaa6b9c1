"""Tests for the per-agent animation tasks."""

import asyncio
import math

import numpy as np
import pytest

from antfarm_replay.animation import AnimationCoordinator, PolylinePath, ease_out_cubic


class RecordingRenderer:
    def __init__(self):
        self.frames = []

    def place_agent(self, agent_id, position):
        self.frames.append((agent_id, np.asarray(position, dtype=float).copy()))

    def last(self, agent_id):
        return [pos for aid, pos in self.frames if aid == agent_id][-1]


def _coordinator(renderer, **kwargs):
    return AnimationCoordinator(renderer, frame_interval=0.002, **kwargs)


def test_ease_out_cubic_endpoints_and_shape():
    assert ease_out_cubic(0.0) == 0.0
    assert ease_out_cubic(1.0) == 1.0
    assert ease_out_cubic(0.5) == pytest.approx(0.875)


def test_polyline_is_parameterised_by_length():
    path = PolylinePath([(0, 0, 0), (10, 0, 0), (10, 0, 30)])
    assert path.length == pytest.approx(40.0)
    assert np.allclose(path.point_at(0.25), (10, 0, 0))
    assert np.allclose(path.point_at(0.5), (10, 0, 10))
    assert np.allclose(path.point_at(1.0), (10, 0, 30))
    assert np.allclose(path.point_at(2.0), (10, 0, 30))


def test_polyline_rejects_single_point():
    with pytest.raises(ValueError):
        PolylinePath([(0, 0, 0)])


def test_straight_line_sample_arcs_upward():
    coordinator = _coordinator(RecordingRenderer(), arc_height=5.0)
    start = np.array([0.0, 0.0, 0.0])
    end = np.array([10.0, 0.0, 0.0])
    assert np.allclose(coordinator.sample(1, start, end, None, 0.0), start)
    assert np.allclose(coordinator.sample(1, start, end, None, 1.0), end)
    middle = coordinator.sample(1, start, end, None, 1 - 0.5 ** (1 / 3))
    assert middle[0] == pytest.approx(5.0)
    assert middle[1] == pytest.approx(5.0)


def test_path_sample_offsets_agents_laterally():
    coordinator = _coordinator(RecordingRenderer(), tube_radius=1.0)
    path = PolylinePath([(0, 0, 0), (10, 0, 0)])
    point = coordinator.sample(2, np.zeros(3), np.zeros(3), path, 0.0)
    angle = 1.0
    assert point[0] == pytest.approx(math.cos(angle) * 0.3)
    assert point[1] == pytest.approx(0.0)
    assert point[2] == pytest.approx(math.sin(angle) * 0.3)


def test_animation_completes_at_destination():
    renderer = RecordingRenderer()

    async def scenario():
        coordinator = _coordinator(renderer)
        task = coordinator.animate(1, (0, 0, 0), (4, 0, 2), duration=0.02)
        assert coordinator.active_agents() == [1]
        completed = await task.wait()
        await asyncio.sleep(0)
        return completed, coordinator.active_agents()

    completed, active = asyncio.run(scenario())
    assert completed is True
    assert active == []
    assert np.allclose(renderer.last(1), (4, 0, 2))
    assert len(renderer.frames) > 1


def test_zero_duration_finishes_on_first_frame():
    renderer = RecordingRenderer()

    async def scenario():
        coordinator = _coordinator(renderer)
        return await coordinator.animate(7, (0, 0, 0), (1, 1, 1), duration=0).wait()

    assert asyncio.run(scenario()) is True
    assert len(renderer.frames) == 1


def test_cancel_resolves_the_wait_and_is_idempotent():
    async def scenario():
        coordinator = _coordinator(RecordingRenderer())
        task = coordinator.animate(1, (0, 0, 0), (1, 0, 0), duration=5.0)
        await asyncio.sleep(0.01)
        task.cancel()
        task.cancel()
        completed = await asyncio.wait_for(task.wait(), timeout=1.0)
        return completed, task.cancelled, task.done

    completed, cancelled, done = asyncio.run(scenario())
    assert completed is False
    assert cancelled is True
    assert done is True


def test_new_animation_replaces_previous_for_same_agent():
    async def scenario():
        coordinator = _coordinator(RecordingRenderer())
        first = coordinator.animate(1, (0, 0, 0), (1, 0, 0), duration=5.0)
        second = coordinator.animate(1, (1, 0, 0), (2, 0, 0), duration=0.01)
        results = await asyncio.wait_for(asyncio.gather(first.wait(), second.wait()), timeout=1.0)
        return results

    assert asyncio.run(scenario()) == [False, True]


def test_cancel_all_releases_every_waiter():
    async def scenario():
        coordinator = _coordinator(RecordingRenderer())
        tasks = [coordinator.animate(agent, (0, 0, 0), (1, 0, 0), duration=5.0) for agent in (1, 2, 3)]
        await asyncio.sleep(0.005)
        coordinator.cancel_all()
        assert coordinator.active_agents() == []
        return await asyncio.wait_for(asyncio.gather(*(task.wait() for task in tasks)), timeout=1.0)

    assert asyncio.run(scenario()) == [False, False, False]


def test_renderer_errors_propagate_to_the_waiter():
    class BrokenRenderer:
        def place_agent(self, agent_id, position):
            raise RuntimeError("scene gone")

    async def scenario():
        coordinator = _coordinator(BrokenRenderer())
        await coordinator.animate(1, (0, 0, 0), (1, 0, 0), duration=0.01).wait()

    with pytest.raises(RuntimeError, match="scene gone"):
        asyncio.run(scenario())
