import math

import numpy as np
import pytest
import pyvista as pv

from treepruner.view.debris import DebrisSim, FallingBody
from treepruner.view.scene import SceneNode


def resting_body(y: float) -> FallingBody:
    node = SceneNode(name="piece", mesh=pv.Sphere())
    node.position[1] = y
    return FallingBody(node=node, velocity=np.zeros(3), angular_velocity=np.zeros(3))


def test_body_falls_until_below_floor():
    sim = DebrisSim(gravity=9.8, floor_y=-10.0)
    body = resting_body(5.0)
    sim.add(body)

    steps = 0
    removed = []
    while not removed:
        removed = sim.step(0.05)
        steps += 1

    # Explicit Euler: y_n = 5 - g * dt^2 * n(n+1)/2
    assert steps == 35
    assert removed == [body]
    assert body.node.position[1] < -10.0
    assert body.node.mesh is None
    assert len(sim) == 0


def test_removal_in_same_step_keeps_others_updated():
    sim = DebrisSim(gravity=10.0, floor_y=0.0)
    low_a = resting_body(0.01)
    high = resting_body(100.0)
    low_b = resting_body(0.02)
    for body in (low_a, high, low_b):
        sim.add(body)

    removed = sim.step(0.1)

    assert set(map(id, removed)) == {id(low_a), id(low_b)}
    assert sim.bodies == [high]
    assert high.velocity[1] == pytest.approx(-1.0)
    assert high.node.position[1] == pytest.approx(99.9)


def test_rotation_integrates_angular_velocity():
    sim = DebrisSim()
    body = resting_body(50.0)
    body.angular_velocity[:] = [1.0, 2.0, -1.0]
    sim.add(body)
    sim.step(0.5)
    np.testing.assert_allclose(body.node.rotation, [0.5, 1.0, -0.5])


def test_spawn_bakes_world_transform():
    root = SceneNode(name="root")
    pivot = root.add(SceneNode(name="pivot"))
    pivot.position[1] = 2.0
    pivot.rotation[2] = math.pi / 4
    source = pivot.add(SceneNode(name="segment", node_id=7, mesh=pv.Sphere(), pickable=True, highlighted=True))
    source.position[1] = 1.0

    sim = DebrisSim(rng=np.random.default_rng(0))
    body = sim.spawn(source)
    piece = body.node

    assert piece is not source
    assert piece.parent is None
    assert not piece.pickable
    assert not piece.highlighted
    np.testing.assert_allclose(piece.world_matrix(), source.world_matrix(), atol=1e-9)

    # The source stays where it was
    assert source.parent is pivot
    assert source.highlighted
    assert len(sim) == 1


def test_spawn_velocity_ranges():
    sim = DebrisSim(rng=np.random.default_rng(1))
    for _ in range(50):
        body = sim.spawn(SceneNode(mesh=pv.Sphere()))
        assert -1.0 <= body.velocity[0] <= 1.0
        assert 0.0 <= body.velocity[1] <= 1.0
        assert -1.0 <= body.velocity[2] <= 1.0
        assert np.all(np.abs(body.angular_velocity) <= 2.5)


def test_clear_disposes_everything():
    sim = DebrisSim()
    bodies = [resting_body(1.0), resting_body(2.0)]
    for body in bodies:
        sim.add(body)
    assert sim.clear() == bodies
    assert len(sim) == 0
    assert all(body.node.mesh is None for body in bodies)
