"""Core data structures: particles, kernels, spatial hashing, bodies and parameters."""

from .particles import ParticleArrays
from .kernel_vectorized import SPHKernels
from .spatial_hash_vectorized import NeighborPairs, SpatialHash
from .integrator_vectorized import (
    DEFAULT_TICK,
    STABILITY_SCALE,
    compute_timestep,
    integrate_step,
    integrate_semi_implicit_euler,
    apply_box_boundaries
)
from .parameters import PARAMETER_SPECS, ParameterSpec, SimulationParameters
from .bodies import Moon, RigidBody, create_bodies, sync_bodies

__all__ = [
    'ParticleArrays',
    'SPHKernels',
    'NeighborPairs',
    'SpatialHash',
    'DEFAULT_TICK',
    'STABILITY_SCALE',
    'compute_timestep',
    'integrate_step',
    'integrate_semi_implicit_euler',
    'apply_box_boundaries',
    'PARAMETER_SPECS',
    'ParameterSpec',
    'SimulationParameters',
    'Moon',
    'RigidBody',
    'create_bodies',
    'sync_bodies',
]
