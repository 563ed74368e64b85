"""
Vectorized time integration for the sandbox particles.

Includes:
- Semi-implicit (symplectic) Euler with global velocity damping
- Tick-to-timestep conversion
- Reflective box walls
"""

from typing import Tuple

import numpy as np

from .particles import ParticleArrays

# Fixed wall-clock tick of the host refresh loop (seconds)
DEFAULT_TICK = 1.0 / 60.0

# Raw gravity / pressure magnitudes are tuned for this inner scaling of the
# tick; retune it together with the force defaults, it is not a unit change.
STABILITY_SCALE = 0.1


def compute_timestep(dt_tick: float, time_scale: float,
                     stability_scale: float = STABILITY_SCALE) -> float:
    """Simulation timestep for one host tick."""
    return float(dt_tick) * float(time_scale) * stability_scale


def limit_speed(velocity: np.ndarray, max_speed: float) -> np.ndarray:
    """Scale down any velocity whose magnitude exceeds ``max_speed``."""
    speed = np.linalg.norm(velocity, axis=-1, keepdims=True)
    scale = np.where(speed > max_speed, max_speed / np.maximum(speed, 1e-300), 1.0)
    return velocity * scale


def integrate_step(position: np.ndarray, velocity: np.ndarray, force: np.ndarray,
                   dt: float, damping: float = 0.99,
                   max_speed: float = np.inf) -> Tuple[np.ndarray, np.ndarray]:
    """One semi-implicit Euler step.

    v += F dt; v *= damping; |v| <= max_speed; x += v dt

    Works on a single particle (shape (3,)) or a batch (shape (N, 3)).
    Force is applied as acceleration (unit particle inertia).

    Returns:
        (new_velocity, new_position)
    """
    new_velocity = (np.asarray(velocity, dtype=np.float64) + np.asarray(force) * dt) * damping
    new_velocity = limit_speed(new_velocity, max_speed)
    new_position = np.asarray(position, dtype=np.float64) + new_velocity * dt
    return new_velocity, new_position


def integrate_semi_implicit_euler(particles: ParticleArrays, dt: float,
                                  damping: float = 0.99,
                                  max_speed: float = np.inf):
    """Advance all particles in place using their accumulated forces."""
    particles.velocity[:], particles.position[:] = integrate_step(
        particles.position, particles.velocity, particles.force,
        dt, damping, max_speed
    )


def apply_box_boundaries(particles: ParticleArrays, half_extent: float,
                         damping: float = 0.5) -> np.ndarray:
    """Clamp particles into the cube [-half_extent, half_extent]^3.

    Any velocity component pointing through a wall is reflected and
    scaled by ``damping``.

    Returns:
        (N, 3) boolean mask of the clamped components
    """
    outside = np.abs(particles.position) > half_extent
    if np.any(outside):
        particles.position[outside] = np.sign(particles.position[outside]) * half_extent
        particles.velocity[outside] *= -damping
    return outside
