"""
Shareable scenario tokens.

A scenario is a JSON object with a ``parameters`` mapping and ``objects``
and ``forces`` lists (plus an informational ``seed``), serialized as
base64-encoded JSON so it can be pasted into a URL or a chat message.
"""

import base64
import binascii
import json
import logging
import uuid
from typing import Any, Dict, Mapping, Optional

from ..core.parameters import SimulationParameters

logger = logging.getLogger(__name__)

REQUIRED_KEYS = {
    "parameters": dict,
    "objects": list,
    "forces": list,
}


class ScenarioError(ValueError):
    """A scenario token or mapping could not be decoded or validated."""


def generate_seed() -> str:
    """Short random identifier stored with exported scenarios."""
    return uuid.uuid4().hex[:13]


class ScenarioManager:
    """Encodes, decodes and validates scenario tokens."""

    def __init__(self):
        self.current_scenario: Optional[Dict[str, Any]] = None

    def validate_scenario(self, scenario: Any):
        """Check the scenario structure.

        Raises:
            ScenarioError: If a required key is missing or has the wrong type
        """
        if not isinstance(scenario, Mapping):
            raise ScenarioError("Scenario must be a JSON object")
        for key, expected in REQUIRED_KEYS.items():
            if key not in scenario:
                raise ScenarioError(f"Scenario is missing '{key}'")
            if not isinstance(scenario[key], expected):
                raise ScenarioError(f"Scenario '{key}' must be a {expected.__name__}")

    def encode_scenario(self, scenario: Mapping[str, Any]) -> str:
        """Validate and serialize a scenario into a base64 token."""
        self.validate_scenario(scenario)
        try:
            text = json.dumps(scenario, separators=(",", ":"), allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise ScenarioError(f"Scenario is not JSON serializable: {exc}") from exc
        return base64.b64encode(text.encode("utf-8")).decode("ascii")

    def decode_scenario(self, token: str) -> Dict[str, Any]:
        """Decode a base64 token back into a validated scenario.

        Raises:
            ScenarioError: If the token is not valid base64 JSON or fails validation
        """
        try:
            text = base64.b64decode(token, validate=True).decode("utf-8")
            scenario = json.loads(text)
        except (TypeError, binascii.Error, UnicodeDecodeError, ValueError) as exc:
            raise ScenarioError(f"Invalid scenario token: {exc}") from exc
        self.validate_scenario(scenario)
        return scenario

    def create_scenario(self, parameters: Mapping[str, Any]) -> str:
        """Token for a parameter set with empty object and force lists."""
        scenario = {
            "seed": generate_seed(),
            "parameters": dict(parameters),
            "objects": [],
            "forces": [],
        }
        return self.encode_scenario(scenario)

    def load_scenario(self, token: str) -> Optional[Dict[str, Any]]:
        """Decode a token, or return None (with a warning) if it is malformed."""
        try:
            scenario = self.decode_scenario(token)
        except ScenarioError as exc:
            logger.warning("Failed to load scenario: %s", exc)
            return None
        self.current_scenario = scenario
        return scenario

    def create_default_scenario(self) -> Dict[str, Any]:
        """Scenario holding the default parameter set."""
        return {
            "seed": generate_seed(),
            "parameters": SimulationParameters().as_dict(),
            "objects": [],
            "forces": [],
        }
