"""
Simulation parameter schema.

The parameter set is a fixed, enumerated schema rather than an open map:
every recognized key has a ``ParameterSpec`` with its default and valid
range, and ``SimulationParameters`` carries one typed field per key.
External callers (UI sliders, scenario tokens) address parameters by their
camelCase key; unknown keys are ignored and out-of-range values clamped.
"""

import dataclasses
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

# Clearance between the box walls and the outermost body surface
BOX_MARGIN = 2.0


@dataclass(frozen=True)
class ParameterSpec:
    """Default value and valid range of one parameter."""
    key: str
    attribute: str
    default: float
    minimum: float
    maximum: float
    integer: bool = False
    description: str = ""

    def coerce(self, value: Any, previous: float) -> Tuple[float, bool]:
        """Bring ``value`` into range.

        Returns:
            (accepted value, True if it differs from what was requested).
            NaN and non-numeric input keep ``previous``; infinities and
            out-of-range values snap to the nearest bound.
        """
        try:
            number = float(value)
        except (TypeError, ValueError):
            return previous, True
        if math.isnan(number):
            return previous, True

        clamped = min(max(number, self.minimum), self.maximum)
        if self.integer:
            clamped = float(int(round(clamped)))
        return clamped, clamped != number


_SPECS = (
    # Rigid bodies
    ParameterSpec("planetRadius", "planet_radius", 5.0, 0.5, 50.0, description="Planet radius"),
    ParameterSpec("planetMass", "planet_mass", 5000.0, 0.0, 1e6, description="Planet mass"),
    ParameterSpec("planetRotationSpeed", "planet_rotation_speed", 0.1, -5.0, 5.0,
                  description="Planet spin about +y (rad/s)"),
    ParameterSpec("moonRadius", "moon_radius", 1.0, 0.1, 20.0, description="Moon radius"),
    ParameterSpec("moonMass", "moon_mass", 500.0, 0.0, 1e6, description="Moon mass"),
    ParameterSpec("moonOrbitRadius", "moon_orbit_radius", 12.0, 1.0, 200.0,
                  description="Distance from planet centre to moon centre"),
    ParameterSpec("moonOrbitalSpeed", "moon_orbital_speed", 0.2, -5.0, 5.0,
                  description="Orbit angular speed (rad/s)"),
    ParameterSpec("moonRotationSpeed", "moon_rotation_speed", 0.05, -5.0, 5.0,
                  description="Moon spin about +y (rad/s)"),
    # Gravity
    ParameterSpec("gravitationalConstant", "gravitational_constant", 1.0, 0.0, 100.0),
    ParameterSpec("gravity", "gravity", 0.0, -100.0, 100.0, description="Uniform field along y"),
    # Particles
    ParameterSpec("particleCount", "particle_count", 1000, 0, 20000, integer=True),
    ParameterSpec("particleMass", "particle_mass", 1.0, 0.01, 100.0),
    # Fluid
    ParameterSpec("viscosity", "viscosity", 1.0, 0.0, 10.0),
    ParameterSpec("smoothingLength", "smoothing_length", 0.6, 0.05, 5.0),
    ParameterSpec("gasConstant", "gas_constant", 20.0, 0.0, 10000.0),
    ParameterSpec("restDensity", "rest_density", 25.0, 0.1, 10000.0),
    ParameterSpec("surfaceTensionStrength", "surface_tension_strength", 0.5, 0.0, 100.0),
    ParameterSpec("surfaceTensionRadius", "surface_tension_radius", 0.8, 0.05, 5.0),
    ParameterSpec("cohesionStrength", "cohesion_strength", 0.2, 0.0, 100.0),
    ParameterSpec("tensionResistance", "tension_resistance", 1.0, 0.0, 100.0),
    ParameterSpec("boundaryDamping", "boundary_damping", 0.5, 0.0, 1.0),
    # Planet surface
    ParameterSpec("surfaceFriction", "surface_friction", 0.1, 0.0, 1.0),
    ParameterSpec("currentStrength", "current_strength", 0.05, 0.0, 5.0),
    ParameterSpec("fluidHeight", "fluid_height", 0.5, 0.0, 10.0),
    ParameterSpec("fluidSpread", "fluid_spread", math.pi, 0.0, math.pi,
                  description="Polar half-angle of the initial fluid cap (rad)"),
    # Global controls
    ParameterSpec("timeScale", "time_scale", 1.0, 0.0, 10.0),
    ParameterSpec("globalDamping", "global_damping", 0.99, 0.9, 1.0),
    ParameterSpec("maxSpeed", "max_speed", 25.0, 0.1, 1000.0),
    ParameterSpec("domainSize", "domain_size", 40.0, 5.0, 1000.0,
                  description="Half extent of the box walls"),
)

PARAMETER_SPECS: Dict[str, ParameterSpec] = {spec.key: spec for spec in _SPECS}


def _default(key: str):
    spec = PARAMETER_SPECS[key]
    return int(spec.default) if spec.integer else float(spec.default)


@dataclass(frozen=True)
class SimulationParameters:
    """Immutable parameter set read by one tick.

    Changes produce a new instance (``with_value``), so a tick holding a
    reference always sees one consistent set.
    """
    planet_radius: float = _default("planetRadius")
    planet_mass: float = _default("planetMass")
    planet_rotation_speed: float = _default("planetRotationSpeed")
    moon_radius: float = _default("moonRadius")
    moon_mass: float = _default("moonMass")
    moon_orbit_radius: float = _default("moonOrbitRadius")
    moon_orbital_speed: float = _default("moonOrbitalSpeed")
    moon_rotation_speed: float = _default("moonRotationSpeed")
    gravitational_constant: float = _default("gravitationalConstant")
    gravity: float = _default("gravity")
    particle_count: int = _default("particleCount")
    particle_mass: float = _default("particleMass")
    viscosity: float = _default("viscosity")
    smoothing_length: float = _default("smoothingLength")
    gas_constant: float = _default("gasConstant")
    rest_density: float = _default("restDensity")
    surface_tension_strength: float = _default("surfaceTensionStrength")
    surface_tension_radius: float = _default("surfaceTensionRadius")
    cohesion_strength: float = _default("cohesionStrength")
    tension_resistance: float = _default("tensionResistance")
    boundary_damping: float = _default("boundaryDamping")
    surface_friction: float = _default("surfaceFriction")
    current_strength: float = _default("currentStrength")
    fluid_height: float = _default("fluidHeight")
    fluid_spread: float = _default("fluidSpread")
    time_scale: float = _default("timeScale")
    global_damping: float = _default("globalDamping")
    max_speed: float = _default("maxSpeed")
    domain_size: float = _default("domainSize")

    @staticmethod
    def is_known(key: str) -> bool:
        return key in PARAMETER_SPECS

    def get(self, key: str):
        """Value of a parameter addressed by its camelCase key."""
        return getattr(self, PARAMETER_SPECS[key].attribute)

    def as_dict(self) -> Dict[str, float]:
        """camelCase mapping of every parameter, as stored in scenario tokens."""
        return {key: self.get(key) for key in PARAMETER_SPECS}

    def with_value(self, key: str, value: Any) -> Tuple['SimulationParameters', bool]:
        """Copy with one parameter replaced.

        Args:
            key: camelCase parameter name (must be known)
            value: Requested value, clamped into range

        Returns:
            (new parameters, True if the value had to be clamped or rejected)
        """
        spec = PARAMETER_SPECS[key]
        accepted, adjusted = spec.coerce(value, self.get(key))
        if spec.integer:
            accepted = int(accepted)
        return dataclasses.replace(self, **{spec.attribute: accepted}), adjusted

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any],
                     base: Optional['SimulationParameters'] = None) -> 'SimulationParameters':
        """Build parameters from a (possibly partial) camelCase mapping.

        Unknown keys are skipped so parameter sets from older or newer
        scenario versions still load.
        """
        params = base if base is not None else cls()
        for key, value in mapping.items():
            if not cls.is_known(key):
                logger.debug("Ignoring unknown parameter %r", key)
                continue
            params, adjusted = params.with_value(key, value)
            if adjusted:
                logger.warning("Parameter %s=%r clamped to %r", key, value, params.get(key))
        return params

    @classmethod
    def from_preset(cls, name: str) -> 'SimulationParameters':
        """Defaults overlaid with a named preset from ``scenarios.planet.PRESETS``."""
        from ..scenarios.planet import PRESETS

        if name not in PRESETS:
            raise KeyError(f"Unknown preset {name!r}; choose from {sorted(PRESETS)}")
        return cls.from_mapping(PRESETS[name])

    @property
    def interaction_radius(self) -> float:
        """Largest pair interaction radius; sizes the neighbor grid."""
        return max(self.smoothing_length, self.surface_tension_radius)

    @property
    def shell_radius(self) -> float:
        """Radius of the planet's fluid-surface collision shell."""
        return self.planet_radius + self.fluid_height

    @property
    def box_half_extent(self) -> float:
        """Half extent of the box walls, widened to enclose the shell and the moon."""
        bodies = max(self.shell_radius, self.moon_orbit_radius + self.moon_radius)
        return max(self.domain_size, bodies + BOX_MARGIN)
