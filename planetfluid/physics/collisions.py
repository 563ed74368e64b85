"""
Particle collisions with the planet shell and the moon.

Runs after integration. A particle inside a body is projected back onto
its surface and its velocity is rebuilt from the tangential component
plus the motion of the body's surface. When a particle penetrates both
bodies, the closer one wins and an exact tie goes to the moon.
"""

from dataclasses import dataclass

import numpy as np

from ..core.bodies import Moon, RigidBody, Y_AXIS
from ..core.parameters import SimulationParameters

MOON_DAMPING = 0.92

# Small outward push so particles resting on the moon separate from it
MOON_REPULSION = 0.05

TANGENTIAL_RETENTION = 0.98


@dataclass
class CollisionReport:
    """Which particles were resolved against which body this tick."""
    moon_hits: np.ndarray    # shape: (N,) bool
    planet_hits: np.ndarray  # shape: (N,) bool

    @property
    def n_moon(self) -> int:
        return int(np.count_nonzero(self.moon_hits))

    @property
    def n_planet(self) -> int:
        return int(np.count_nonzero(self.planet_hits))


def outward_normals(offset: np.ndarray, distance: np.ndarray) -> np.ndarray:
    """Unit vectors along ``offset``; +y where the offset is zero."""
    normals = np.tile(Y_AXIS, (offset.shape[0], 1))
    nonzero = distance > 0.0
    normals[nonzero] = offset[nonzero] / distance[nonzero, np.newaxis]
    return normals


def _tangential(vectors: np.ndarray, normals: np.ndarray) -> np.ndarray:
    normal_part = np.einsum("ij,ij->i", vectors, normals)
    return vectors - normal_part[:, np.newaxis] * normals


def classify_collisions(position: np.ndarray, planet: RigidBody, moon: Moon,
                        shell_radius: float):
    """Decide which body, if any, each particle must be resolved against.

    Penetration is strict: a particle exactly on a surface is not colliding.

    Returns:
        (moon_mask, planet_mask) boolean arrays, never both True for a particle
    """
    moon_distance = np.linalg.norm(position - moon.position, axis=1)
    planet_distance = np.linalg.norm(position - planet.position, axis=1)

    inside_moon = moon_distance < moon.radius
    inside_planet = planet_distance < shell_radius

    moon_wins = inside_moon & (~inside_planet | (moon_distance <= planet_distance))
    planet_wins = inside_planet & ~moon_wins
    return moon_wins, planet_wins


def resolve_moon_collisions(position: np.ndarray, velocity: np.ndarray,
                            moon: Moon, mask: np.ndarray):
    """Project onto the moon surface and carry the particle with the moon."""
    if not np.any(mask):
        return
    offset = position[mask] - moon.position
    normals = outward_normals(offset, np.linalg.norm(offset, axis=1))
    surface = moon.position + normals * moon.radius

    v_tangent = _tangential(velocity[mask], normals)
    surface_tangent = _tangential(moon.surface_velocity(surface), normals)

    position[mask] = surface
    velocity[mask] = (v_tangent + surface_tangent + MOON_REPULSION * normals) * MOON_DAMPING


def resolve_planet_collisions(position: np.ndarray, velocity: np.ndarray,
                              planet: RigidBody, mask: np.ndarray,
                              params: SimulationParameters):
    """Project onto the fluid shell and apply damping, current and friction."""
    if not np.any(mask):
        return
    offset = position[mask] - planet.position
    normals = outward_normals(offset, np.linalg.norm(offset, axis=1))
    surface = planet.position + normals * params.shell_radius

    v = velocity[mask]
    v_normal = np.einsum("ij,ij->i", v, normals)
    v_tangent = v - v_normal[:, np.newaxis] * normals

    # Inward motion is removed, outward motion is damped
    bounce = np.maximum(v_normal, 0.0) * params.boundary_damping

    # Eastward current about the spin axis, zero at the poles
    current = params.current_strength * np.cross(Y_AXIS, normals)
    friction = params.surface_friction * (planet.surface_velocity(surface) - v_tangent)

    position[mask] = surface
    velocity[mask] = (v_tangent * TANGENTIAL_RETENTION
                      + bounce[:, np.newaxis] * normals
                      + current + friction)


def resolve_collisions(position: np.ndarray, velocity: np.ndarray,
                       planet: RigidBody, moon: Moon,
                       params: SimulationParameters) -> CollisionReport:
    """Resolve all body collisions in place.

    Args:
        position: (N, 3) positions, modified in place
        velocity: (N, 3) velocities, modified in place
        planet: Planet body
        moon: Moon body
        params: Parameters of the current tick

    Returns:
        CollisionReport with the resolved masks
    """
    moon_mask, planet_mask = classify_collisions(position, planet, moon, params.shell_radius)
    resolve_moon_collisions(position, velocity, moon, moon_mask)
    resolve_planet_collisions(position, velocity, planet, planet_mask, params)
    return CollisionReport(moon_hits=moon_mask, planet_hits=planet_mask)
