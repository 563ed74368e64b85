"""Sandbox scenarios: fluid placement, presets and shareable tokens."""

from .planet import (
    PRESETS,
    create_fluid_shell,
    describe_distribution,
    generate_shell_positions
)
from .scenario_codec import ScenarioError, ScenarioManager

__all__ = [
    'PRESETS',
    'create_fluid_shell',
    'describe_distribution',
    'generate_shell_positions',
    'ScenarioError',
    'ScenarioManager'
]
