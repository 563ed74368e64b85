"""
Particle data structure using the Structure-of-Arrays (SoA) pattern.

Every per-particle quantity lives in its own contiguous float64 array so
the per-tick passes can run as whole-array NumPy operations (or be handed
to a Numba kernel unchanged) instead of touching one vector object at a time.
"""

import numpy as np
from dataclasses import dataclass


@dataclass
class ParticleArrays:
    """Structure of Arrays holding the fluid particles.

    Vector quantities are stored as (N, 3) arrays, scalars as (N,).
    ``density`` and ``pressure`` are transient and recomputed every tick.
    """
    position: np.ndarray   # shape: (N, 3)
    velocity: np.ndarray   # shape: (N, 3)
    force: np.ndarray      # shape: (N, 3) accumulator
    density: np.ndarray    # shape: (N,)
    pressure: np.ndarray   # shape: (N,)
    mass: np.ndarray       # shape: (N,)

    @staticmethod
    def allocate(n_particles: int, mass: float = 1.0) -> 'ParticleArrays':
        """Allocate zeroed arrays for ``n_particles`` particles.

        Args:
            n_particles: Number of particles
            mass: Mass assigned to every particle

        Returns:
            ParticleArrays instance with zero position and velocity
        """
        return ParticleArrays(
            position=np.zeros((n_particles, 3), dtype=np.float64),
            velocity=np.zeros((n_particles, 3), dtype=np.float64),
            force=np.zeros((n_particles, 3), dtype=np.float64),
            density=np.zeros(n_particles, dtype=np.float64),
            pressure=np.zeros(n_particles, dtype=np.float64),
            mass=np.full(n_particles, mass, dtype=np.float64),
        )

    @property
    def n_particles(self) -> int:
        return self.position.shape[0]

    def __len__(self) -> int:
        return self.position.shape[0]

    def snapshot(self) -> 'ParticleArrays':
        """Deep copy used as the frozen read state of a tick."""
        return ParticleArrays(
            position=self.position.copy(),
            velocity=self.velocity.copy(),
            force=self.force.copy(),
            density=self.density.copy(),
            pressure=self.pressure.copy(),
            mass=self.mass.copy(),
        )

    def all_finite(self) -> bool:
        """True when no position or velocity component is NaN or infinite."""
        return bool(np.all(np.isfinite(self.position)) and np.all(np.isfinite(self.velocity)))
