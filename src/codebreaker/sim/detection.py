from __future__ import annotations

from codebreaker.sim.core import PHASE_ACTIVE, PHASE_DETECTED, EntityState, Simulation
from codebreaker.sim.rules import RuleModule

DETECTION_CAUSE_PROXIMITY = "guard_proximity"


def is_detected(player: EntityState, guard: EntityState, detection_radius: float) -> bool:
    """Strictly inside the radius counts; standing exactly on it does not."""
    return player.distance_to(guard) < detection_radius


class DetectionModule(RuleModule):
    """Ends the round when the player comes within the guard's detection radius.

    Runs at tick end, after both the patrol step and the player step for the tick.
    """

    name = "detection"

    def on_tick_end(self, sim: Simulation, tick: int) -> None:
        if sim.state.phase != PHASE_ACTIVE:
            return
        if is_detected(sim.player, sim.guard, sim.state.settings.detection_radius):
            sim.set_phase(PHASE_DETECTED, cause=DETECTION_CAUSE_PROXIMITY)
