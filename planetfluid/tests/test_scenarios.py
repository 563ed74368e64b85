"""
Tests for scenario tokens and initial fluid placement.
"""

import base64
import json

import numpy as np
import pytest

from planetfluid.core.parameters import SimulationParameters
from planetfluid.scenarios.planet import describe_distribution, generate_shell_positions
from planetfluid.scenarios.scenario_codec import ScenarioError, ScenarioManager


@pytest.fixture
def manager():
    return ScenarioManager()


class TestScenarioCodec:

    def test_round_trip(self, manager):
        scenario = {
            "seed": "abc123",
            "parameters": {"viscosity": 1.5, "particleCount": 250, "moonMass": 1e5},
            "objects": [{"kind": "rock", "position": [1.0, 2.0, 3.0]}],
            "forces": [],
        }
        assert manager.decode_scenario(manager.encode_scenario(scenario)) == scenario

    def test_token_is_base64_json(self, manager):
        token = manager.create_scenario({"viscosity": 2.0})
        decoded = json.loads(base64.b64decode(token))
        assert decoded["parameters"] == {"viscosity": 2.0}
        assert decoded["objects"] == [] and decoded["forces"] == []
        assert isinstance(decoded["seed"], str)

    @pytest.mark.parametrize("scenario", [
        {"objects": [], "forces": []},
        {"parameters": {}, "forces": []},
        {"parameters": {}, "objects": []},
        {"parameters": [], "objects": [], "forces": []},
        {"parameters": {}, "objects": {}, "forces": []},
        ["parameters", "objects", "forces"],
    ])
    def test_validation_rejects(self, manager, scenario):
        with pytest.raises(ScenarioError):
            manager.validate_scenario(scenario)

    def test_encode_rejects_nan(self, manager):
        with pytest.raises(ScenarioError):
            manager.encode_scenario({"parameters": {"viscosity": float("nan")},
                                     "objects": [], "forces": []})

    @pytest.mark.parametrize("token", [
        "not base64 at all!",
        base64.b64encode(b"{not json").decode("ascii"),
        base64.b64encode(b'{"parameters": {}}').decode("ascii"),
        "",
    ])
    def test_load_malformed_returns_none(self, manager, token, caplog):
        assert manager.load_scenario(token) is None
        assert manager.current_scenario is None
        assert "Failed to load scenario" in caplog.text

    def test_load_valid(self, manager):
        token = manager.encode_scenario(manager.create_default_scenario())
        scenario = manager.load_scenario(token)
        assert scenario is not None
        assert manager.current_scenario == scenario
        assert scenario["parameters"] == SimulationParameters().as_dict()


class TestFluidShell:

    def test_positions_inside_layer(self):
        rng = np.random.default_rng(0)
        positions = generate_shell_positions(rng, 2000, np.zeros(3), 5.0, 0.5, np.pi)
        radius = np.linalg.norm(positions, axis=1)
        assert positions.shape == (2000, 3)
        assert np.all(radius >= 5.0 - 1e-12)
        assert np.all(radius <= 5.5 + 1e-12)

    def test_polar_cap(self):
        rng = np.random.default_rng(0)
        spread = 0.5
        positions = generate_shell_positions(rng, 1000, np.zeros(3), 5.0, 0.5, spread)
        _, _, max_angle = describe_distribution(positions, np.zeros(3))
        assert max_angle <= spread + 1e-9

    def test_full_sphere_covers_both_hemispheres(self):
        rng = np.random.default_rng(0)
        positions = generate_shell_positions(rng, 1000, np.zeros(3), 5.0, 0.0, np.pi)
        assert np.any(positions[:, 1] > 0.0) and np.any(positions[:, 1] < 0.0)
        np.testing.assert_allclose(np.linalg.norm(positions, axis=1), 5.0)

    def test_seeded_layout_is_reproducible(self):
        a = generate_shell_positions(np.random.default_rng(42), 100, np.zeros(3), 5.0, 0.5, 1.0)
        b = generate_shell_positions(np.random.default_rng(42), 100, np.zeros(3), 5.0, 0.5, 1.0)
        np.testing.assert_array_equal(a, b)
