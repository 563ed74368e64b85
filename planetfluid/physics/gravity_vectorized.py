"""
Gravitational attraction toward the rigid bodies.

Forces are computed at visualization scale: the user-facing gravitational
constant is multiplied by ``GRAVITY_VISUAL_SCALE`` so that body masses in
the hundreds or thousands give well-conditioned accelerations at
simulation distances.
"""

from typing import Iterable

import numpy as np

from ..core.bodies import RigidBody

# Floor on the separation used in the inverse-square law
MIN_GRAVITY_DISTANCE = 0.5

GRAVITY_VISUAL_SCALE = 0.01


def scaled_gravitational_constant(gravitational_constant: float) -> float:
    return gravitational_constant * GRAVITY_VISUAL_SCALE


def compute_body_gravity(positions: np.ndarray, body_position: np.ndarray,
                         body_mass: float, g_scaled: float,
                         min_distance: float = MIN_GRAVITY_DISTANCE) -> np.ndarray:
    """Attraction of every particle toward one body.

    F = G_scaled · M · dir / max(d, min_distance)²

    Particles exactly at the body centre have no defined direction and
    receive no force.

    Args:
        positions: (N, 3) particle positions
        body_position: (3,) body centre
        body_mass: Body mass
        g_scaled: Scaled gravitational constant
        min_distance: Softening floor

    Returns:
        (N, 3) forces
    """
    offset = np.asarray(body_position, dtype=np.float64) - positions
    distance = np.linalg.norm(offset, axis=1)

    valid = distance > 0.0
    safe_distance = np.where(valid, distance, 1.0)
    magnitude = g_scaled * body_mass / np.maximum(distance, min_distance) ** 2
    magnitude = np.where(valid, magnitude, 0.0)

    return offset / safe_distance[:, np.newaxis] * magnitude[:, np.newaxis]


def compute_gravity_forces(positions: np.ndarray, bodies: Iterable[RigidBody],
                           gravitational_constant: float,
                           uniform_gravity: float = 0.0) -> np.ndarray:
    """Total gravity from all bodies plus an optional uniform field along y."""
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    g_scaled = scaled_gravitational_constant(gravitational_constant)

    forces = np.zeros_like(positions)
    for body in bodies:
        if body.mass == 0.0:
            continue
        forces += compute_body_gravity(positions, body.position, body.mass, g_scaled)

    if uniform_gravity != 0.0:
        forces[:, 1] += uniform_gravity
    return forces
