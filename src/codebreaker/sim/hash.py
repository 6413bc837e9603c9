from __future__ import annotations

import hashlib
import json
from typing import Any

from codebreaker.sim.core import Simulation


def _canonical_digest(payload: dict[str, Any]) -> str:
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def simulation_hash(simulation: Simulation) -> str:
    payload = simulation.simulation_payload()
    payload["entities"] = [
        {
            **entity,
            "position_x": round(entity["position_x"], 8),
            "position_y": round(entity["position_y"], 8),
            "angle": round(entity["angle"], 8),
        }
        for entity in payload["entities"]
    ]
    return _canonical_digest(payload)
