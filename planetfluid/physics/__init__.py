"""Physics modules: density, pair forces, gravity, surface tension and collisions."""

from .density_vectorized import (
    compute_density_vectorized,
    compute_pressure_linear
)
from .forces_vectorized import (
    compute_pressure_forces_vectorized,
    compute_viscous_forces_vectorized,
    compute_sph_forces_vectorized,
    scatter_add
)
from .gravity_vectorized import (
    GRAVITY_VISUAL_SCALE,
    MIN_GRAVITY_DISTANCE,
    compute_body_gravity,
    compute_gravity_forces
)
from .cohesion_vectorized import compute_surface_tension_forces
from .collisions import (
    CollisionReport,
    classify_collisions,
    resolve_collisions
)

__all__ = [
    # Density
    'compute_density_vectorized',
    'compute_pressure_linear',
    # Forces
    'compute_pressure_forces_vectorized',
    'compute_viscous_forces_vectorized',
    'compute_sph_forces_vectorized',
    'scatter_add',
    # Gravity
    'GRAVITY_VISUAL_SCALE',
    'MIN_GRAVITY_DISTANCE',
    'compute_body_gravity',
    'compute_gravity_forces',
    # Surface tension
    'compute_surface_tension_forces',
    # Collisions
    'CollisionReport',
    'classify_collisions',
    'resolve_collisions',
]
