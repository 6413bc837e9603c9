from __future__ import annotations

from codebreaker.sim.core import PHASE_ACTIVE, PHASE_LEVEL_COMPLETE, SimCommand, Simulation
from codebreaker.sim.difficulty import LEARNING_PHASE_MAX_LEVEL
from codebreaker.sim.rules import RuleModule

RESTART_COMMAND_TYPE = "restart"
NEXT_LEVEL_COMMAND_TYPE = "next_level"

RESTART_CAUSE = "restart"
NEXT_LEVEL_CAUSE = "next_level"
DOOR_REACHED_CAUSE = "door_reached"

LEVEL_SCORE_BASE = 1000
LEVEL_SCORE_STEP = 50
LEVEL_SCORE_FLOOR = 300
ADVANCED_LEVEL_BONUS = 200


def level_score(level: int) -> int:
    bonus = ADVANCED_LEVEL_BONUS if level > LEARNING_PHASE_MAX_LEVEL else 0
    return max(LEVEL_SCORE_BASE - level * LEVEL_SCORE_STEP, LEVEL_SCORE_FLOOR) + bonus


def door_reached(sim: Simulation) -> bool:
    layout = sim.state.layout
    return sim.player.distance_to_point(*layout.door) < layout.door_range


def restart_game(sim: Simulation) -> None:
    """Back to level 1 with no score, from any phase. Safe to repeat."""
    sim.state.total_score = 0
    sim.configure_level(1)
    sim.reset_round()
    sim.set_phase(PHASE_ACTIVE, cause=RESTART_CAUSE)


def advance_level(sim: Simulation) -> bool:
    if sim.state.phase != PHASE_LEVEL_COMPLETE:
        return False
    sim.state.total_score += level_score(sim.state.level)
    sim.configure_level(sim.state.level + 1)
    sim.reset_round()
    sim.set_phase(PHASE_ACTIVE, cause=NEXT_LEVEL_CAUSE)
    return True


class PhaseControllerModule(RuleModule):
    """Restart / next-level commands and the unlocked-door exit check."""

    name = "phase_controller"

    def on_command(self, sim: Simulation, command: SimCommand, command_index: int) -> bool:
        if command.command_type == RESTART_COMMAND_TYPE:
            restart_game(sim)
            return True
        if command.command_type == NEXT_LEVEL_COMMAND_TYPE:
            advance_level(sim)
            return True
        return False

    def on_tick_end(self, sim: Simulation, tick: int) -> None:
        # Detection runs first at tick end; a detected player never also completes the level.
        if sim.state.phase != PHASE_ACTIVE or not sim.state.door_unlocked:
            return
        if door_reached(sim):
            sim.set_phase(PHASE_LEVEL_COMPLETE, cause=DOOR_REACHED_CAUSE)
