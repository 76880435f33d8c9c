"""
Falling Debris
==============
Cosmetic motion for pruned pieces: a detached copy of the cut part tumbles
down under gravity until it drops below the floor and is released.

Integration is explicit Euler, once per frame:
    velocity.y -= gravity * dt
    position   += velocity * dt
    rotation   += angular_velocity * dt
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional, TYPE_CHECKING

import numpy as np

from treepruner.config import GRAVITY, DEBRIS_FLOOR_Y
from treepruner.view.scene import SceneNode, matrix_to_euler_xyz

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class FallingBody:
    node: SceneNode
    velocity: npt.NDArray[np.float64]
    angular_velocity: npt.NDArray[np.float64]


class DebrisSim:
    def __init__(
        self,
        gravity: float = GRAVITY,
        floor_y: float = DEBRIS_FLOOR_Y,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.gravity = gravity
        self.floor_y = floor_y
        self.rng = rng if rng is not None else np.random.default_rng()
        self.bodies: list[FallingBody] = []

    def __len__(self) -> int:
        return len(self.bodies)

    def spawn(self, source: SceneNode) -> FallingBody:
        """
        Detach a falling copy of `source`.

        The copy gets the source's world transform baked onto it, since it no
        longer has the source's parents above it.
        """
        world = source.world_matrix()
        piece = source.clone()
        piece.position = world[:3, 3].copy()
        piece.rotation = matrix_to_euler_xyz(world)
        for node in piece.traverse():
            node.highlighted = False
            node.pickable = False

        u = self.rng.random(6)
        velocity = np.array([(u[0] - 0.5) * 2.0, u[1] * 1.0, (u[2] - 0.5) * 2.0])
        angular_velocity = (u[3:] - 0.5) * 5.0

        body = FallingBody(node=piece, velocity=velocity, angular_velocity=angular_velocity)
        self.add(body)
        logger.debug(f"Spawned debris for node {source.node_id} at {piece.position}.")
        return body

    def add(self, body: FallingBody) -> None:
        self.bodies.append(body)

    def step(self, dt: float) -> list[FallingBody]:
        """Advance every body by `dt` seconds. Returns the bodies removed this step."""
        removed: list[FallingBody] = []
        # Reverse order so removal does not skip entries
        for i in range(len(self.bodies) - 1, -1, -1):
            body = self.bodies[i]
            body.velocity[1] -= self.gravity * dt
            body.node.position = body.node.position + body.velocity * dt
            body.node.rotation = body.node.rotation + body.angular_velocity * dt

            if body.node.position[1] < self.floor_y:
                del self.bodies[i]
                removed.append(body)

        for body in removed:
            body.node.dispose()
        return removed

    def clear(self) -> list[FallingBody]:
        removed = list(self.bodies)
        self.bodies.clear()
        for body in removed:
            body.node.dispose()
        return removed
