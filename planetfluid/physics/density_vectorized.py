"""
Vectorized density and pressure computation.

Direct summation over neighbor pairs:
    ρᵢ = mᵢ W(0, h) + Σⱼ mⱼ W(|rᵢ - rⱼ|, h)
and the linear equation of state
    Pᵢ = k (ρᵢ - ρ₀)
"""

import numpy as np

from ..core.kernel_vectorized import SPHKernels
from ..core.particles import ParticleArrays
from ..core.spatial_hash_vectorized import NeighborPairs


def compute_density_vectorized(particles: ParticleArrays, pairs: NeighborPairs,
                               kernel: SPHKernels):
    """Density by direct summation, written into ``particles.density``.

    Args:
        particles: Particle arrays
        pairs: Neighbor pairs (may extend beyond the kernel support)
        kernel: SPH kernels for the current smoothing length
    """
    n = particles.n_particles
    support = pairs.within(kernel.h)

    # Self contribution keeps density strictly positive
    particles.density[:] = particles.mass * kernel.W_self()

    if len(support):
        contributions = particles.mass[support.j] * kernel.W_poly6(support.distance)
        particles.density += np.bincount(support.i, weights=contributions, minlength=n)


def compute_pressure_linear(particles: ParticleArrays, gas_constant: float,
                            rest_density: float):
    """Linear equation of state P = k (ρ - ρ₀).

    Pressure is negative below rest density, which pulls sparse regions
    back together.
    """
    particles.pressure[:] = gas_constant * (particles.density - rest_density)
