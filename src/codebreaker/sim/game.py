from __future__ import annotations

from typing import Any

from codebreaker.content.rooms import DEFAULT_ROOM_LAYOUT, RoomLayout
from codebreaker.sim.core import SimCommand, Simulation
from codebreaker.sim.detection import DetectionModule
from codebreaker.sim.hacking import HackingModule
from codebreaker.sim.locomotion import LocomotionModule
from codebreaker.sim.patrol import PatrolModule
from codebreaker.sim.periodic import PeriodicScheduler
from codebreaker.sim.phases import PhaseControllerModule

DEFAULT_SEED = 7


def register_game_modules(sim: Simulation) -> None:
    # Registration order is tick-end order: player step, then detection, then the door check.
    sim.register_rule_module(PeriodicScheduler())
    sim.register_rule_module(PatrolModule())
    sim.register_rule_module(LocomotionModule())
    sim.register_rule_module(DetectionModule())
    sim.register_rule_module(HackingModule())
    sim.register_rule_module(PhaseControllerModule())


def build_simulation(seed: int = DEFAULT_SEED, layout: RoomLayout = DEFAULT_ROOM_LAYOUT) -> Simulation:
    sim = Simulation(seed=seed, layout=layout)
    register_game_modules(sim)
    return sim


def run_replay(
    command_log: list[SimCommand | dict[str, Any]],
    ticks_to_run: int,
    *,
    seed: int = DEFAULT_SEED,
    layout: RoomLayout = DEFAULT_ROOM_LAYOUT,
) -> Simulation:
    simulation = build_simulation(seed=seed, layout=layout)
    for command in command_log:
        simulation.append_command(command)
    simulation.advance_ticks(ticks_to_run)
    return simulation
