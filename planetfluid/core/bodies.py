"""
Rigid spherical bodies: the planet and its orbiting moon.

Bodies are created once per simulation and mutated in place. The moon's
position is never integrated; it is derived each tick from its orbit angle.
"""

import logging
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

from .parameters import SimulationParameters

logger = logging.getLogger(__name__)

Y_AXIS = np.array([0.0, 1.0, 0.0])


def uv_sphere(center: np.ndarray, radius: float, resolution: int = 16) -> np.ndarray:
    """Vertices of a latitude/longitude sphere, shape ((res+1) * 2res, 3)."""
    theta = np.linspace(0.0, np.pi, resolution + 1)
    phi = np.linspace(0.0, 2.0 * np.pi, 2 * resolution, endpoint=False)
    theta, phi = np.meshgrid(theta, phi, indexing="ij")
    unit = np.stack([
        np.sin(theta) * np.cos(phi),
        np.cos(theta),
        np.sin(theta) * np.sin(phi),
    ], axis=-1).reshape(-1, 3)
    return center + radius * unit


@dataclass(eq=False)
class RigidBody:
    """A rigid sphere spinning about the +y axis."""
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    radius: float = 1.0
    mass: float = 1.0
    rotation_angle: float = 0.0
    rotation_speed: float = 0.0
    geometry_resolution: int = 16
    geometry: np.ndarray = field(default=None, repr=False)
    geometry_revision: int = 0

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64).copy()
        if self.geometry is None:
            self.regenerate_geometry()

    def regenerate_geometry(self):
        """Rebuild the display vertices for the current radius."""
        self.geometry = uv_sphere(self.position, self.radius, self.geometry_resolution)
        self.geometry_revision += 1

    def set_radius(self, radius: float) -> bool:
        """Change the radius; returns True if the geometry was regenerated."""
        if radius == self.radius:
            return False
        self.radius = float(radius)
        self.regenerate_geometry()
        return True

    def angular_velocity(self) -> np.ndarray:
        return self.rotation_speed * Y_AXIS

    def surface_velocity(self, points: np.ndarray) -> np.ndarray:
        """Velocity of the body's material at ``points`` (omega x r)."""
        return np.cross(self.angular_velocity(), np.asarray(points) - self.position)

    def advance(self, dt: float):
        """Advance the spin by one timestep."""
        self.rotation_angle = (self.rotation_angle + self.rotation_speed * dt) % (2.0 * np.pi)


@dataclass(eq=False)
class Moon(RigidBody):
    """Rigid sphere on a circular orbit in the xz-plane."""
    orbit_center: np.ndarray = field(default_factory=lambda: np.zeros(3))
    orbit_radius: float = 10.0
    orbital_speed: float = 0.0
    orbit_angle: float = 0.0

    def __post_init__(self):
        self.orbit_center = np.asarray(self.orbit_center, dtype=np.float64).copy()
        self.position = self.orbit_position()
        super().__post_init__()

    def orbit_position(self) -> np.ndarray:
        """Moon centre derived from the current orbit angle."""
        return self.orbit_center + self.orbit_radius * np.array([
            np.cos(self.orbit_angle), 0.0, np.sin(self.orbit_angle)
        ])

    def update_position(self):
        """Re-derive the centre; the display geometry follows the move."""
        new_position = self.orbit_position()
        if self.geometry is not None:
            self.geometry = self.geometry + (new_position - self.position)
        self.position = new_position

    def orbital_velocity(self) -> np.ndarray:
        """Velocity of the moon centre along its orbit."""
        return self.orbit_radius * self.orbital_speed * np.array([
            -np.sin(self.orbit_angle), 0.0, np.cos(self.orbit_angle)
        ])

    def surface_velocity(self, points: np.ndarray) -> np.ndarray:
        return self.orbital_velocity() + super().surface_velocity(points)

    def advance(self, dt: float):
        super().advance(dt)
        self.orbit_angle = (self.orbit_angle + self.orbital_speed * dt) % (2.0 * np.pi)
        self.update_position()


def create_bodies(params: SimulationParameters) -> Tuple[RigidBody, Moon]:
    """Build the planet (at the origin) and the moon from a parameter set."""
    planet = RigidBody(
        position=np.zeros(3),
        radius=params.planet_radius,
        mass=params.planet_mass,
        rotation_speed=params.planet_rotation_speed,
    )
    moon = Moon(
        radius=params.moon_radius,
        mass=params.moon_mass,
        rotation_speed=params.moon_rotation_speed,
        orbit_center=planet.position,
        orbit_radius=params.moon_orbit_radius,
        orbital_speed=params.moon_orbital_speed,
    )
    return planet, moon


def sync_bodies(planet: RigidBody, moon: Moon, params: SimulationParameters):
    """Copy body parameters onto existing bodies, regenerating geometry on resize."""
    if planet.set_radius(params.planet_radius):
        logger.debug("Planet geometry regenerated (radius %.3f)", planet.radius)
    planet.mass = params.planet_mass
    planet.rotation_speed = params.planet_rotation_speed

    if moon.set_radius(params.moon_radius):
        logger.debug("Moon geometry regenerated (radius %.3f)", moon.radius)
    moon.mass = params.moon_mass
    moon.rotation_speed = params.moon_rotation_speed
    moon.orbit_center = planet.position.copy()
    moon.orbit_radius = params.moon_orbit_radius
    moon.orbital_speed = params.moon_orbital_speed
    moon.update_position()
