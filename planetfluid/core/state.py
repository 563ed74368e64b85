"""
Particle system state and the per-tick update loop.

``FluidSandbox`` owns the particles, the two rigid bodies and the current
parameter set. A host (renderer, UI, headless runner) drives it by calling
``update()`` once per refresh and reading ``get_positions()`` afterwards.

Parameter changes from another thread either apply immediately under the
state lock (``set_parameter``) or are buffered and drained at the start of
the next tick (``queue_parameter``); a tick never observes a half-applied
change.
"""

import logging
import threading
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import numpy as np

from .. import api
from ..scenarios.planet import create_fluid_shell
from ..scenarios.scenario_codec import ScenarioError, ScenarioManager
from ..physics.collisions import CollisionReport, resolve_collisions
from .bodies import create_bodies, sync_bodies
from .integrator_vectorized import (
    DEFAULT_TICK,
    apply_box_boundaries,
    compute_timestep,
    integrate_semi_implicit_euler,
)
from .kernel_vectorized import SPHKernels
from .parameters import SimulationParameters
from .particles import ParticleArrays
from .spatial_hash_vectorized import NeighborPairs, SpatialHash

BASE_COLOR = np.array([0.5, 0.7, 1.0])
FAST_COLOR = np.array([1.0, 1.0, 1.0])

# Speed (as a fraction of maxSpeed) at which particles render fully white
COLOR_SPEED_FRACTION = 0.25

_BODY_KEYS = {
    "planetMass", "planetRotationSpeed",
    "moonRadius", "moonMass", "moonOrbitRadius", "moonOrbitalSpeed", "moonRotationSpeed",
}


class FluidSandbox:
    """Planet, moon and fluid particles advanced one tick at a time."""

    def __init__(self, parameters: Optional[SimulationParameters] = None, *,
                 seed: Optional[int] = None, backend: Optional[str] = None,
                 log_level: Union[str, int] = "INFO"):
        # ---------- logger -------------------------------------------------
        self.logger = logging.getLogger(f"FluidSandbox_{id(self)}")
        self.logger.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(handler)

        # ---------- locking ------------------------------------------------
        self._lock = threading.RLock()
        self._pending_lock = threading.Lock()
        self._pending: Dict[str, Any] = {}

        # ---------- configuration ------------------------------------------
        self.parameters = parameters if parameters is not None else SimulationParameters()
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.backend = backend
        self.scenarios = ScenarioManager()

        # ---------- simulation state ---------------------------------------
        self.planet, self.moon = create_bodies(self.parameters)
        self.particles = ParticleArrays.allocate(0)
        self.paused = False
        self.tick_count = 0
        self.sim_time = 0.0
        self.last_pairs = NeighborPairs.empty()
        self.last_collisions: Optional[CollisionReport] = None

        # Committed (positions, speed) render buffers, swapped as one tuple
        self._committed = (np.zeros((0, 3)), np.zeros(0))

        self.initialize_particles()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize_particles(self, count: Optional[int] = None):
        """Replace all particles with a fresh shell at rest on the planet.

        Args:
            count: Particle count; defaults to the ``particleCount`` parameter.
                A given count also updates that parameter.
        """
        with self._lock:
            if count is not None:
                self.parameters, adjusted = self.parameters.with_value("particleCount", count)
                if adjusted:
                    self.logger.warning(f"particleCount clamped to {self.parameters.particle_count}")

            params = self.parameters
            self.particles = create_fluid_shell(
                self.rng, params.particle_count, self.planet.position,
                params.planet_radius, params.fluid_height, params.fluid_spread,
                particle_mass=params.particle_mass,
            )
            self.last_pairs = NeighborPairs.empty()
            self.last_collisions = None
            self._commit()
            self.logger.info(f"Initialized {params.particle_count} particles")

    def reset_to_default(self):
        """Restore default parameters, rebuild the bodies and reseed the fluid."""
        with self._lock:
            with self._pending_lock:
                self._pending.clear()
            self.parameters = SimulationParameters()
            self.planet.rotation_angle = 0.0
            self.moon.rotation_angle = 0.0
            self.moon.orbit_angle = 0.0
            sync_bodies(self.planet, self.moon, self.parameters)
            self.tick_count = 0
            self.sim_time = 0.0
            self.logger.info("Reset to default parameters")
            self.initialize_particles()

    def pause(self):
        self.paused = True

    def resume(self):
        self.paused = False

    @property
    def is_paused(self) -> bool:
        return self.paused

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def set_parameter(self, name: str, value: Any) -> bool:
        """Apply a parameter change immediately.

        Returns:
            False if ``name`` is not a known parameter (nothing changes)
        """
        if not SimulationParameters.is_known(name):
            self.logger.debug(f"Ignoring unknown parameter {name!r}")
            return False
        with self._lock:
            self._apply_parameter(name, value)
        return True

    def queue_parameter(self, name: str, value: Any):
        """Buffer a parameter change for the start of the next tick.

        Never blocks on a running tick. A later value for the same name
        replaces an earlier one.
        """
        with self._pending_lock:
            self._pending[name] = value

    def _drain_pending(self):
        with self._pending_lock:
            pending, self._pending = self._pending, {}
        for name, value in pending.items():
            if SimulationParameters.is_known(name):
                self._apply_parameter(name, value)
            else:
                self.logger.debug(f"Ignoring unknown parameter {name!r}")

    def _apply_parameter(self, name: str, value: Any):
        old = self.parameters
        new, adjusted = old.with_value(name, value)
        if adjusted:
            self.logger.warning(f"Parameter {name}={value!r} adjusted to {new.get(name)!r}")
        self.parameters = new

        if name == "particleCount":
            if new.particle_count != self.particles.n_particles:
                self.initialize_particles()
        elif name == "particleMass":
            self.particles.mass.fill(new.particle_mass)
        elif name in ("planetRadius", "fluidHeight"):
            sync_bodies(self.planet, self.moon, new)
            self._reproject_particles(old, new)
        elif name in _BODY_KEYS:
            sync_bodies(self.planet, self.moon, new)

    def _reproject_particles(self, old: SimulationParameters, new: SimulationParameters):
        """Keep particles at the same relative height after the shell changes.

        A planet resize shifts every particle radially by the change in
        radius; a fluid height change rescales positions inside the old
        layer into the new one.
        """
        positions = self.particles.position
        offset = positions - self.planet.position
        distance = np.linalg.norm(offset, axis=1)
        valid = distance > 0.0
        if not np.any(valid):
            return

        height = distance - old.planet_radius
        in_layer = (height >= 0.0) & (height <= old.fluid_height)
        if old.fluid_height > 0.0:
            height = np.where(in_layer, height * (new.fluid_height / old.fluid_height), height)
        else:
            height = np.where(in_layer, new.fluid_height, height)
        new_distance = np.maximum(new.planet_radius + height, 0.0)

        scale = np.where(valid, new_distance / np.where(valid, distance, 1.0), 1.0)
        positions[:] = self.planet.position + offset * scale[:, np.newaxis]
        self._commit()
        self.logger.debug(f"Reprojected {int(valid.sum())} particles onto the new shell")

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def update(self, dt_tick: float = DEFAULT_TICK):
        """Advance the simulation by one host tick."""
        with self._lock:
            self._drain_pending()
            if self.paused:
                return

            params = self.parameters
            dt = compute_timestep(dt_tick, params.time_scale)

            self.planet.advance(dt)
            self.moon.advance(dt)

            particles = self.particles
            if particles.n_particles > 0:
                # Every force pass reads this frozen copy of the pre-integration state
                frozen = particles.snapshot()
                radius = params.interaction_radius
                grid = SpatialHash(radius).build(frozen.position)
                pairs = grid.find_pairs(frozen.position, radius)
                kernel = SPHKernels(params.smoothing_length)

                api.compute_density(frozen, pairs, kernel, backend=self.backend)
                api.compute_pressure(frozen, params.gas_constant, params.rest_density)
                api.compute_net_forces(frozen, pairs, self.planet, self.moon, params,
                                       kernel=kernel, backend=self.backend)
                particles.density[:] = frozen.density
                particles.pressure[:] = frozen.pressure
                particles.force[:] = frozen.force

                integrate_semi_implicit_euler(particles, dt, params.global_damping, params.max_speed)
                apply_box_boundaries(particles, params.box_half_extent, params.boundary_damping)
                self.last_collisions = resolve_collisions(
                    particles.position, particles.velocity, self.planet, self.moon, params
                )
                self.last_pairs = pairs

            self.tick_count += 1
            self.sim_time += dt
            self._commit()

    def run(self, ticks: int, dt_tick: float = DEFAULT_TICK):
        """Advance ``ticks`` host ticks."""
        for _ in range(ticks):
            self.update(dt_tick)

    def _commit(self):
        self._committed = (self.particles.position.copy(),
                           np.linalg.norm(self.particles.velocity, axis=1))

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def get_positions(self) -> np.ndarray:
        """Committed (N, 3) positions of the last finished tick."""
        positions, _ = self._committed
        return positions.copy()

    def get_position_buffer(self) -> np.ndarray:
        """Committed positions as a flat float32 buffer of length 3N."""
        positions, _ = self._committed
        return positions.astype(np.float32).ravel()

    def get_colors(self) -> np.ndarray:
        """Per-particle RGB, blending from the base blue toward white with speed."""
        _, speed = self._committed
        return self._speed_colors(speed)

    def get_render_state(self) -> Tuple[np.ndarray, np.ndarray]:
        """(positions, colors) of one committed tick, always the same length."""
        positions, speed = self._committed
        return positions.copy(), self._speed_colors(speed)

    def _speed_colors(self, speed: np.ndarray) -> np.ndarray:
        limit = max(self.parameters.max_speed * COLOR_SPEED_FRACTION, 1e-12)
        t = np.clip(speed / limit, 0.0, 1.0)[:, np.newaxis]
        return BASE_COLOR + (FAST_COLOR - BASE_COLOR) * t

    def get_statistics(self) -> Dict[str, Any]:
        """Summary of the last tick for logs and overlays."""
        with self._lock:
            particles = self.particles
            n = particles.n_particles
            stats = {
                'particles': n,
                'tick': self.tick_count,
                'sim_time': self.sim_time,
                'paused': self.paused,
                'backend': self.backend or api.get_backend(),
                'mean_density': float(particles.density.mean()) if n else 0.0,
                'max_speed': float(self._committed[1].max()) if n else 0.0,
                'mean_neighbors': float(self.last_pairs.counts(n).mean()) if n and len(self.last_pairs) else 0.0,
                'moon_collisions': self.last_collisions.n_moon if self.last_collisions else 0,
                'planet_collisions': self.last_collisions.n_planet if self.last_collisions else 0,
                'moon_position': self.moon.position.copy(),
            }
        return stats

    # ------------------------------------------------------------------
    # Scenarios
    # ------------------------------------------------------------------

    def apply_scenario(self, scenario: Union[str, Mapping[str, Any]]) -> bool:
        """Load parameters from a scenario token or mapping and reseed the fluid.

        Returns:
            False (parameters unchanged) if the scenario is malformed
        """
        if isinstance(scenario, str):
            data = self.scenarios.load_scenario(scenario)
            if data is None:
                self.logger.warning("Failed to load scenario, keeping current parameters")
                return False
        else:
            try:
                self.scenarios.validate_scenario(scenario)
            except ScenarioError as exc:
                self.logger.warning(f"Failed to load scenario: {exc}")
                return False
            data = scenario

        with self._lock:
            self.parameters = SimulationParameters.from_mapping(data["parameters"], base=self.parameters)
            sync_bodies(self.planet, self.moon, self.parameters)
            self.initialize_particles()
        return True

    def export_scenario(self) -> str:
        """Token describing the current parameters."""
        return self.scenarios.create_scenario(self.parameters.as_dict())
