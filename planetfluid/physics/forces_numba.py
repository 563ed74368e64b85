"""
Numba-optimized density and SPH force computation.

The pair loops dominate the tick once particle counts reach the thousands.
Pairs arrive sorted by ``i``, so each particle owns a contiguous slice of
the pair arrays and particles can be processed in parallel without write
conflicts.
"""

import numba as nb
import numpy as np

from ..core.kernel_vectorized import SPHKernels
from ..core.particles import ParticleArrays
from ..core.spatial_hash_vectorized import NeighborPairs


@nb.njit(parallel=True, fastmath=True, cache=True)
def density_numba(pair_start: np.ndarray, pair_j: np.ndarray, distance: np.ndarray,
                  mass: np.ndarray, h: float, density: np.ndarray):
    """Poly6 density summation including the self term."""
    n = mass.shape[0]
    h2 = h * h
    poly6 = 315.0 / (64.0 * np.pi * h ** 9)
    w_self = poly6 * h2 * h2 * h2

    for i in nb.prange(n):
        rho = mass[i] * w_self
        for p in range(pair_start[i], pair_start[i + 1]):
            r = distance[p]
            if r < h:
                diff = h2 - r * r
                rho += mass[pair_j[p]] * poly6 * diff * diff * diff
        density[i] = rho


@nb.njit(parallel=True, fastmath=True, cache=True)
def sph_forces_numba(pair_start: np.ndarray, pair_j: np.ndarray,
                     delta: np.ndarray, distance: np.ndarray,
                     velocity: np.ndarray, mass: np.ndarray,
                     density: np.ndarray, pressure: np.ndarray,
                     h: float, viscosity: float, force: np.ndarray):
    """Pressure (spiky gradient) plus viscosity (laplacian) forces."""
    n = mass.shape[0]
    spiky = -45.0 / (np.pi * h ** 5)
    visc = 45.0 / (np.pi * h ** 6)

    for i in nb.prange(n):
        fx = 0.0
        fy = 0.0
        fz = 0.0
        for p in range(pair_start[i], pair_start[i + 1]):
            r = distance[p]
            if r <= 0.0 or r >= h:
                continue
            j = pair_j[p]
            gap = h - r
            rho_j = density[j]

            # Divide by r to turn delta into a unit direction
            pressure_term = (spiky * gap * gap * mass[j]
                             * (pressure[i] + pressure[j]) / (2.0 * rho_j) / r)
            viscous_term = visc * gap * viscosity * mass[j] / rho_j

            fx += pressure_term * delta[p, 0] + viscous_term * (velocity[j, 0] - velocity[i, 0])
            fy += pressure_term * delta[p, 1] + viscous_term * (velocity[j, 1] - velocity[i, 1])
            fz += pressure_term * delta[p, 2] + viscous_term * (velocity[j, 2] - velocity[i, 2])

        force[i, 0] = fx
        force[i, 1] = fy
        force[i, 2] = fz


def pair_offsets(pairs: NeighborPairs, n_particles: int) -> np.ndarray:
    """CSR-style start offsets of every particle's slice (length n + 1)."""
    return np.searchsorted(pairs.i, np.arange(n_particles + 1, dtype=np.int64)).astype(np.int64)


def compute_density_numba(particles: ParticleArrays, pairs: NeighborPairs,
                          kernel: SPHKernels):
    """Numba density, written into ``particles.density``."""
    density_numba(
        pair_offsets(pairs, particles.n_particles),
        np.ascontiguousarray(pairs.j, dtype=np.int64),
        np.ascontiguousarray(pairs.distance, dtype=np.float64),
        particles.mass, float(kernel.h), particles.density,
    )


def compute_sph_forces_numba(particles: ParticleArrays, pairs: NeighborPairs,
                             kernel: SPHKernels, viscosity: float) -> np.ndarray:
    """Numba pressure plus viscosity forces, shape (N, 3)."""
    force = np.zeros((particles.n_particles, 3), dtype=np.float64)
    sph_forces_numba(
        pair_offsets(pairs, particles.n_particles),
        np.ascontiguousarray(pairs.j, dtype=np.int64),
        np.ascontiguousarray(pairs.delta, dtype=np.float64),
        np.ascontiguousarray(pairs.distance, dtype=np.float64),
        particles.velocity, particles.mass, particles.density, particles.pressure,
        float(kernel.h), float(viscosity), force,
    )
    return force
