"""
Vectorized surface tension and cohesion.

Short-range attraction that keeps a particle cluster together, independent
of the SPH pressure model. Within the surface tension radius R every
neighbor pulls with strength (1 - r/R); beyond 80% of R an additional
resistance term penalizes over-stretched bonds; and each particle is drawn
toward the centroid of its neighbors.
"""

import numpy as np

from ..core.spatial_hash_vectorized import NeighborPairs
from .forces_vectorized import scatter_add

# Fraction of the radius past which a bond counts as stretched
STRETCH_THRESHOLD = 0.8


def compute_surface_tension_forces(positions: np.ndarray, pairs: NeighborPairs,
                                   radius: float, strength: float,
                                   resistance: float, cohesion: float) -> np.ndarray:
    """Surface tension, stretch resistance and centroid cohesion.

    Args:
        positions: (N, 3) particle positions of the snapshot
        pairs: Neighbor pairs (may extend beyond ``radius``)
        radius: Surface tension radius R
        strength: Tension strength
        resistance: Stretch resistance strength
        cohesion: Centroid cohesion strength

    Returns:
        (N, 3) forces
    """
    n = positions.shape[0]
    forces = np.zeros((n, 3), dtype=np.float64)

    close = pairs.within(radius)
    close = close.subset(close.distance > 0.0)
    if len(close) == 0:
        return forces

    direction = close.delta / close.distance[:, np.newaxis]

    # Pairwise pull toward each neighbor, strongest at short range
    magnitude = (1.0 - close.distance / radius) * strength

    stretch_start = STRETCH_THRESHOLD * radius
    stretched = close.distance > stretch_start
    magnitude = magnitude + np.where(
        stretched,
        resistance * (close.distance - stretch_start) / (radius - stretch_start),
        0.0,
    )
    forces += scatter_add(close.i, direction * magnitude[:, np.newaxis], n)

    # Pull toward the neighbor centroid
    if cohesion != 0.0:
        counts = np.bincount(close.i, minlength=n)
        has_neighbors = counts > 0
        centroid_sum = scatter_add(close.i, positions[close.j], n)
        centroid = centroid_sum[has_neighbors] / counts[has_neighbors, np.newaxis]
        forces[has_neighbors] += (centroid - positions[has_neighbors]) * cohesion

    return forces
