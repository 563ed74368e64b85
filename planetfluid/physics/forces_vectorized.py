"""
Vectorized SPH pair forces.

Includes:
- Pressure forces (spiky kernel gradient, symmetric pressure average)
- Viscous forces (viscosity kernel laplacian)

Forces are accumulated per pair and scattered onto particle ``i`` with
``np.bincount``, so every pair is evaluated from the same read-only
snapshot regardless of order.
"""

import numpy as np

from ..core.kernel_vectorized import SPHKernels
from ..core.particles import ParticleArrays
from ..core.spatial_hash_vectorized import NeighborPairs


def scatter_add(index: np.ndarray, vectors: np.ndarray, n: int) -> np.ndarray:
    """Sum (P, 3) pair vectors into an (n, 3) per-particle array."""
    if index.shape[0] == 0:
        return np.zeros((n, 3), dtype=np.float64)
    return np.stack([
        np.bincount(index, weights=vectors[:, axis], minlength=n)
        for axis in range(3)
    ], axis=1)


def _kernel_pairs(pairs: NeighborPairs, kernel: SPHKernels) -> NeighborPairs:
    """Pairs inside the kernel support, coincident particles removed."""
    support = pairs.within(kernel.h)
    return support.subset(support.distance > 0.0)


def compute_pressure_forces_vectorized(particles: ParticleArrays, pairs: NeighborPairs,
                                       kernel: SPHKernels) -> np.ndarray:
    """Pressure force on every particle.

    F_i = Σⱼ dir_ij · ∇W_spiky(r) · mⱼ (Pᵢ + Pⱼ) / (2 ρⱼ)

    The spiky gradient is negative, so positive pressure pushes
    particles apart and negative pressure pulls them together.
    """
    n = particles.n_particles
    p = _kernel_pairs(pairs, kernel)
    if len(p) == 0:
        return np.zeros((n, 3), dtype=np.float64)

    direction = p.delta / p.distance[:, np.newaxis]
    shared_pressure = (particles.pressure[p.i] + particles.pressure[p.j]) / (2.0 * particles.density[p.j])
    magnitude = kernel.spiky_gradient(p.distance) * particles.mass[p.j] * shared_pressure

    return scatter_add(p.i, direction * magnitude[:, np.newaxis], n)


def compute_viscous_forces_vectorized(particles: ParticleArrays, pairs: NeighborPairs,
                                      kernel: SPHKernels, viscosity: float) -> np.ndarray:
    """Viscous force on every particle.

    F_i = μ Σⱼ ∇²W_visc(r) · mⱼ / ρⱼ · (vⱼ - vᵢ)
    """
    n = particles.n_particles
    p = _kernel_pairs(pairs, kernel)
    if len(p) == 0 or viscosity == 0.0:
        return np.zeros((n, 3), dtype=np.float64)

    coefficient = (kernel.viscosity_laplacian(p.distance) * viscosity
                   * particles.mass[p.j] / particles.density[p.j])
    relative_velocity = particles.velocity[p.j] - particles.velocity[p.i]

    return scatter_add(p.i, relative_velocity * coefficient[:, np.newaxis], n)


def compute_sph_forces_vectorized(particles: ParticleArrays, pairs: NeighborPairs,
                                  kernel: SPHKernels, viscosity: float) -> np.ndarray:
    """Pressure plus viscosity. Density and pressure must already be current."""
    return (compute_pressure_forces_vectorized(particles, pairs, kernel)
            + compute_viscous_forces_vectorized(particles, pairs, kernel, viscosity))
