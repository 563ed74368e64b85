"""Pytest configuration for the sandbox tests."""
import sys
from pathlib import Path

import numpy as np
import pytest


def pytest_configure(config):
    """Configure pytest environment for the sandbox tests."""
    # Add workspace root to Python path for planetfluid package imports
    workspace_root = Path(__file__).parent.parent.parent
    if str(workspace_root) not in sys.path:
        sys.path.insert(0, str(workspace_root))


@pytest.fixture
def default_params():
    from planetfluid.core.parameters import SimulationParameters
    return SimulationParameters()


@pytest.fixture
def make_particles():
    """Factory for particle arrays at explicit positions."""
    from planetfluid.core.particles import ParticleArrays

    def _make(positions, velocities=None, mass=1.0):
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        particles = ParticleArrays.allocate(positions.shape[0], mass=mass)
        particles.position[:] = positions
        if velocities is not None:
            particles.velocity[:] = np.asarray(velocities, dtype=np.float64).reshape(-1, 3)
        return particles

    return _make


@pytest.fixture
def blob_positions():
    """A compact random cloud where most particles have several neighbors."""
    rng = np.random.default_rng(1234)
    return rng.uniform(-1.0, 1.0, size=(150, 3))


@pytest.fixture
def small_sandbox():
    from planetfluid.core.parameters import SimulationParameters
    from planetfluid.core.state import FluidSandbox

    params, _ = SimulationParameters().with_value("particleCount", 200)
    return FluidSandbox(params, seed=7, backend="numpy", log_level="WARNING")


@pytest.fixture
def restore_backend():
    """Put the global backend back after a test changes it."""
    import planetfluid

    original = planetfluid.get_backend()
    yield
    planetfluid.set_backend(original)
