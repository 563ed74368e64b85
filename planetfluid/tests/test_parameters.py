"""
Tests for the parameter schema, validation and presets.
"""

import math

import pytest

from planetfluid.core.parameters import BOX_MARGIN, PARAMETER_SPECS, SimulationParameters
from planetfluid.scenarios.planet import PRESETS


class TestValidation:

    def test_defaults_within_range(self):
        params = SimulationParameters()
        for key, spec in PARAMETER_SPECS.items():
            assert spec.minimum <= params.get(key) <= spec.maximum, key

    @pytest.mark.parametrize("value,expected", [
        (3.0, 3.0),
        (-5.0, 0.0),
        (50.0, 10.0),
        (math.inf, 10.0),
        (-math.inf, 0.0),
    ])
    def test_clamping(self, value, expected):
        params, _ = SimulationParameters().with_value("viscosity", value)
        assert params.viscosity == expected

    @pytest.mark.parametrize("value", [math.nan, "fast", None])
    def test_unusable_value_keeps_previous(self, value):
        base, _ = SimulationParameters().with_value("viscosity", 2.5)
        params, adjusted = base.with_value("viscosity", value)
        assert adjusted
        assert params.viscosity == 2.5

    def test_adjusted_flag(self):
        params = SimulationParameters()
        assert params.with_value("viscosity", 2.0)[1] is False
        assert params.with_value("viscosity", 20.0)[1] is True

    def test_integer_parameter_rounded(self):
        params, _ = SimulationParameters().with_value("particleCount", 499.6)
        assert params.particle_count == 500
        assert isinstance(params.particle_count, int)

    def test_immutable(self):
        params = SimulationParameters()
        updated, _ = params.with_value("planetRadius", 8.0)
        assert params.planet_radius == 5.0
        assert updated.planet_radius == 8.0
        with pytest.raises(Exception):
            params.planet_radius = 1.0

    def test_unknown_key(self):
        assert not SimulationParameters.is_known("warpFactor")
        params = SimulationParameters.from_mapping({"warpFactor": 9, "viscosity": 0.5})
        assert params.viscosity == 0.5
        assert "warpFactor" not in params.as_dict()


class TestMappings:

    def test_as_dict_round_trip(self):
        params, _ = SimulationParameters().with_value("moonMass", 123.0)
        assert SimulationParameters.from_mapping(params.as_dict()) == params

    def test_as_dict_uses_camel_case(self):
        keys = SimulationParameters().as_dict().keys()
        assert "planetRadius" in keys
        assert "surfaceTensionRadius" in keys
        assert set(keys) == set(PARAMETER_SPECS)

    def test_partial_mapping_keeps_base(self):
        base, _ = SimulationParameters().with_value("gravity", -3.0)
        params = SimulationParameters.from_mapping({"viscosity": 4.0}, base=base)
        assert params.gravity == -3.0
        assert params.viscosity == 4.0

    def test_derived_radii(self):
        params = SimulationParameters.from_mapping({
            "planetRadius": 5.0, "fluidHeight": 0.5,
            "smoothingLength": 0.6, "surfaceTensionRadius": 0.9,
        })
        assert params.shell_radius == pytest.approx(5.5)
        assert params.interaction_radius == pytest.approx(0.9)

    def test_box_half_extent_encloses_bodies(self):
        params = SimulationParameters()
        assert params.box_half_extent == params.domain_size

        params, _ = params.with_value("domainSize", 5.0)
        assert params.box_half_extent == pytest.approx(
            params.moon_orbit_radius + params.moon_radius + BOX_MARGIN)

        params, _ = params.with_value("planetRadius", 50.0)
        assert params.box_half_extent == pytest.approx(50.5 + BOX_MARGIN)


class TestPresets:

    @pytest.mark.parametrize("name", sorted(PRESETS))
    def test_preset_loads(self, name):
        params = SimulationParameters.from_preset(name)
        for key, value in PRESETS[name].items():
            assert params.get(key) == pytest.approx(value)

    def test_default_preset_is_defaults(self):
        assert SimulationParameters.from_preset("default") == SimulationParameters()

    def test_unknown_preset(self):
        with pytest.raises(KeyError):
            SimulationParameters.from_preset("lava_lamp")
