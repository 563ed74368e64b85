"""Interactive planet fluid sandbox: SPH particles around a planet and an orbiting moon."""

from . import core
from . import physics
from . import scenarios

# Import API to trigger backend registration
from . import api

# Import unified API
from .api import (
    # Core functions
    compute_density,
    compute_pressure,
    compute_sph_forces,
    compute_net_forces,
    net_force,
    create_spatial_hash,

    # Backend management
    set_backend,
    get_backend,
    auto_select_backend,

    # Core classes
    ParticleArrays,
    SPHKernels
)
from .core.parameters import SimulationParameters
from .core.state import FluidSandbox
from .scenarios.scenario_codec import ScenarioError, ScenarioManager

__version__ = "0.1.0"

__all__ = [
    # Modules
    'core',
    'physics',
    'scenarios',

    # API functions
    'compute_density',
    'compute_pressure',
    'compute_sph_forces',
    'compute_net_forces',
    'net_force',
    'create_spatial_hash',

    # Backend management
    'set_backend',
    'get_backend',
    'auto_select_backend',

    # Core classes
    'ParticleArrays',
    'SPHKernels',
    'SimulationParameters',
    'FluidSandbox',
    'ScenarioError',
    'ScenarioManager'
]
