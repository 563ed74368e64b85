"""
Planet initialization scenarios for the fluid sandbox.

Places the fluid as a shell on the planet surface:
- Random directions inside a polar cap around +y
- Radii spread uniformly through the fluid layer
- Named parameter presets layered on the defaults
"""

from typing import Dict, Tuple

import numpy as np

from ..core.particles import ParticleArrays

# Partial parameter mappings (camelCase keys) layered on the defaults
PRESETS: Dict[str, Dict[str, float]] = {
    "default": {},
    "calm_ocean": {
        "viscosity": 2.0,
        "surfaceTensionStrength": 0.2,
        "planetRotationSpeed": 0.02,
        "currentStrength": 0.01,
        "moonMass": 100.0,
    },
    "tidal_pull": {
        "moonMass": 5000.0,
        "moonOrbitRadius": 9.0,
        "moonOrbitalSpeed": 0.5,
        "fluidHeight": 1.0,
    },
    "sticky_blob": {
        "fluidSpread": 0.6,
        "surfaceTensionStrength": 2.0,
        "cohesionStrength": 2.0,
        "tensionResistance": 4.0,
    },
}


def generate_shell_positions(rng: np.random.Generator, count: int,
                             center: np.ndarray, planet_radius: float,
                             fluid_height: float, spread: float) -> np.ndarray:
    """Random positions in the fluid layer above the planet surface.

    Directions are uniform over the spherical cap of half-angle ``spread``
    around +y (``spread = π`` covers the whole sphere); radii are uniform in
    [planet_radius, planet_radius + fluid_height].

    Args:
        rng: Random generator (seeded for reproducible layouts)
        count: Number of positions
        center: (3,) planet centre
        planet_radius: Solid planet radius
        fluid_height: Thickness of the fluid layer
        spread: Polar cap half-angle in radians

    Returns:
        (count, 3) positions
    """
    cos_theta = rng.uniform(np.cos(spread), 1.0, count)
    phi = rng.uniform(0.0, 2.0 * np.pi, count)
    sin_theta = np.sqrt(np.clip(1.0 - cos_theta ** 2, 0.0, None))

    directions = np.stack([
        sin_theta * np.cos(phi),
        cos_theta,
        sin_theta * np.sin(phi),
    ], axis=1)
    radius = planet_radius + rng.uniform(0.0, 1.0, count) * fluid_height

    return np.asarray(center, dtype=np.float64) + directions * radius[:, np.newaxis]


def create_fluid_shell(rng: np.random.Generator, count: int, center: np.ndarray,
                       planet_radius: float, fluid_height: float, spread: float,
                       particle_mass: float = 1.0) -> ParticleArrays:
    """Particles at rest in the fluid layer."""
    particles = ParticleArrays.allocate(count, mass=particle_mass)
    particles.position[:] = generate_shell_positions(
        rng, count, center, planet_radius, fluid_height, spread
    )
    return particles


def describe_distribution(positions: np.ndarray, center: np.ndarray) -> Tuple[float, float, float]:
    """Shape summary of a particle cloud around ``center``.

    Returns:
        (mean radius, radius standard deviation, largest polar angle from +y)
    """
    offset = np.asarray(positions, dtype=np.float64) - center
    radius = np.linalg.norm(offset, axis=1)
    if radius.shape[0] == 0:
        return 0.0, 0.0, 0.0
    cos_theta = np.clip(offset[:, 1] / np.maximum(radius, 1e-12), -1.0, 1.0)
    return float(radius.mean()), float(radius.std()), float(np.arccos(cos_theta).max())
