"""
Unified API for the sandbox physics with automatic backend dispatch.

This module provides a clean interface that dispatches the pair loops
(density, pressure and viscosity) to the NumPy or Numba implementation
based on the current backend, and composes them with the body gravity
and surface tension terms into the net force on every particle.
"""

import numpy as np
from typing import Optional, Sequence

from .core.backend import dispatch, set_backend, get_backend, auto_select_backend
from .core.bodies import Moon, RigidBody
from .core.kernel_vectorized import SPHKernels
from .core.parameters import SimulationParameters
from .core.particles import ParticleArrays
from .core.spatial_hash_vectorized import NeighborPairs, SpatialHash

# Import and register all implementations
from .core.backend import backend_function, for_backend, Backend

from .physics.density_vectorized import compute_density_vectorized, compute_pressure_linear
from .physics.forces_vectorized import compute_sph_forces_vectorized
from .physics.gravity_vectorized import compute_gravity_forces
from .physics.cohesion_vectorized import compute_surface_tension_forces
from .physics.forces_numba import compute_density_numba, compute_sph_forces_numba


# Register NumPy implementations
@backend_function("compute_density")
@for_backend(Backend.NUMPY)
def _compute_density_numpy(particles: ParticleArrays, pairs: NeighborPairs, kernel: SPHKernels):
    compute_density_vectorized(particles, pairs, kernel)


@backend_function("compute_sph_forces")
@for_backend(Backend.NUMPY)
def _compute_sph_forces_numpy(particles: ParticleArrays, pairs: NeighborPairs,
                              kernel: SPHKernels, viscosity: float) -> np.ndarray:
    return compute_sph_forces_vectorized(particles, pairs, kernel, viscosity)


# Register Numba implementations
@backend_function("compute_density")
@for_backend(Backend.NUMBA)
def _compute_density_numba(particles: ParticleArrays, pairs: NeighborPairs, kernel: SPHKernels):
    compute_density_numba(particles, pairs, kernel)


@backend_function("compute_sph_forces")
@for_backend(Backend.NUMBA)
def _compute_sph_forces_numba(particles: ParticleArrays, pairs: NeighborPairs,
                              kernel: SPHKernels, viscosity: float) -> np.ndarray:
    return compute_sph_forces_numba(particles, pairs, kernel, viscosity)


# Public API functions
def compute_density(particles: ParticleArrays, pairs: NeighborPairs, kernel: SPHKernels,
                    backend: Optional[str] = None):
    """Compute densities using current backend.

    Args:
        particles: Particle arrays
        pairs: Neighbor pairs of the current snapshot
        kernel: SPH kernels
        backend: Override backend ('numpy' or 'numba')
    """
    dispatch("compute_density", particles, pairs, kernel, backend=backend)


def compute_pressure(particles: ParticleArrays, gas_constant: float, rest_density: float):
    """Equation of state; cheap enough that it is never dispatched."""
    compute_pressure_linear(particles, gas_constant, rest_density)


def compute_sph_forces(particles: ParticleArrays, pairs: NeighborPairs, kernel: SPHKernels,
                       viscosity: float, backend: Optional[str] = None) -> np.ndarray:
    """Pressure plus viscosity forces using current backend, shape (N, 3)."""
    return dispatch("compute_sph_forces", particles, pairs, kernel, viscosity, backend=backend)


def compute_net_forces(particles: ParticleArrays, pairs: NeighborPairs,
                       planet: RigidBody, moon: Moon, params: SimulationParameters,
                       kernel: Optional[SPHKernels] = None,
                       backend: Optional[str] = None) -> np.ndarray:
    """Sum of every force family on every particle.

    Gravity, pressure, viscosity and surface tension are added without
    normalisation. Density and pressure must already be current. The result
    is also stored in ``particles.force``.
    """
    if kernel is None:
        kernel = SPHKernels(params.smoothing_length)

    forces = compute_gravity_forces(particles.position, (planet, moon),
                                    params.gravitational_constant, params.gravity)
    forces += compute_sph_forces(particles, pairs, kernel, params.viscosity, backend)
    forces += compute_surface_tension_forces(
        particles.position, pairs,
        params.surface_tension_radius,
        params.surface_tension_strength,
        params.tension_resistance,
        params.cohesion_strength,
    )
    particles.force[:] = forces
    return forces


def net_force(particles: ParticleArrays, index: int, neighbors: Sequence[int],
              planet: RigidBody, moon: Moon, params: SimulationParameters,
              backend: Optional[str] = None) -> np.ndarray:
    """Net force on a single particle from an explicit neighbor list.

    Neighbors outside the interaction radius and the particle itself are
    ignored, so a raw spatial hash query can be passed directly.

    Returns:
        (3,) force vector
    """
    neighbors = np.asarray(neighbors, dtype=np.int64).reshape(-1)
    neighbors = neighbors[neighbors != index]

    delta = particles.position[neighbors] - particles.position[index]
    distance = np.linalg.norm(delta, axis=1)
    order = np.argsort(neighbors, kind="stable")
    pairs = NeighborPairs(
        i=np.full(neighbors.shape[0], index, dtype=np.int64),
        j=neighbors[order],
        delta=delta[order],
        distance=distance[order],
    ).within(params.interaction_radius)

    kernel = SPHKernels(params.smoothing_length)
    force = compute_gravity_forces(particles.position[index], (planet, moon),
                                   params.gravitational_constant, params.gravity)[0]
    force = force + compute_sph_forces(particles, pairs, kernel, params.viscosity, backend)[index]
    force = force + compute_surface_tension_forces(
        particles.position, pairs,
        params.surface_tension_radius,
        params.surface_tension_strength,
        params.tension_resistance,
        params.cohesion_strength,
    )[index]
    return force


def create_spatial_hash(cell_size: float) -> SpatialHash:
    """Create a spatial hash sized for the given interaction radius."""
    return SpatialHash(cell_size)


__all__ = [
    'compute_density',
    'compute_pressure',
    'compute_sph_forces',
    'compute_net_forces',
    'net_force',
    'create_spatial_hash',
    'set_backend',
    'get_backend',
    'auto_select_backend',
    'ParticleArrays',
    'SPHKernels',
]
