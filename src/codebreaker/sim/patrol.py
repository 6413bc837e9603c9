from __future__ import annotations

import math
import random

from codebreaker.content.rooms import PatrolBox, RoomLayout
from codebreaker.sim.core import PHASE_ACTIVE, EntityState, Simulation, ms_to_ticks
from codebreaker.sim.difficulty import (
    MOVEMENT_PATTERNS,
    PATTERN_CIRCULAR,
    PATTERN_DIAGONAL,
    PATTERN_HORIZONTAL,
    PATTERN_RANDOM,
    PATTERN_SPEED_DIAGONAL,
    PATTERN_SPEED_HORIZONTAL,
    PATTERN_SPEED_VERTICAL,
    PATTERN_VERTICAL,
    DifficultySettings,
)
from codebreaker.sim.periodic import PeriodicScheduler
from codebreaker.sim.rng import RNG_PATROL_STREAM_NAME
from codebreaker.sim.rules import RuleModule

PATROL_TASK_NAME = "guard_patrol"
PATROL_INTERVAL_MS = 50
PATROL_INTERVAL_TICKS = ms_to_ticks(PATROL_INTERVAL_MS)
DIAGONAL_AXIS_FACTOR = 0.7
ORBIT_ANGULAR_RATE = 0.02
RANDOM_TURN_PROBABILITY = 0.08

HORIZONTAL_PATTERNS = frozenset({PATTERN_HORIZONTAL, PATTERN_SPEED_HORIZONTAL})
VERTICAL_PATTERNS = frozenset({PATTERN_VERTICAL, PATTERN_SPEED_VERTICAL})
DIAGONAL_PATTERNS = frozenset({PATTERN_DIAGONAL, PATTERN_SPEED_DIAGONAL})


def step_guard(
    guard: EntityState,
    pattern: str,
    settings: DifficultySettings,
    layout: RoomLayout,
    rng: random.Random,
) -> None:
    """Advance the guard by one patrol tick of ``pattern``."""
    if pattern not in MOVEMENT_PATTERNS:
        raise ValueError(f"unknown movement pattern: {pattern}")
    speed = settings.speed
    if pattern in HORIZONTAL_PATTERNS:
        _step_bouncing(guard, speed, layout.patrol_box, axis_x=1.0, axis_y=0.0)
    elif pattern in VERTICAL_PATTERNS:
        _step_bouncing(guard, speed, layout.patrol_box, axis_x=0.0, axis_y=1.0)
    elif pattern in DIAGONAL_PATTERNS:
        _step_bouncing(
            guard,
            speed,
            layout.patrol_box,
            axis_x=DIAGONAL_AXIS_FACTOR,
            axis_y=DIAGONAL_AXIS_FACTOR,
        )
    elif pattern == PATTERN_CIRCULAR:
        _step_orbit(guard, speed)
    else:
        _step_random(guard, speed, layout.patrol_box, rng)


def _breaches(box: PatrolBox, x: float, y: float, *, axis_x: float, axis_y: float) -> bool:
    if axis_x and (x <= box.min_x or x >= box.max_x):
        return True
    if axis_y and (y <= box.min_y or y >= box.max_y):
        return True
    return False


def _step_bouncing(guard: EntityState, speed: float, box: PatrolBox, *, axis_x: float, axis_y: float) -> None:
    next_x = guard.position_x + guard.direction * speed * axis_x
    next_y = guard.position_y + guard.direction * speed * axis_y
    if _breaches(box, next_x, next_y, axis_x=axis_x, axis_y=axis_y):
        # Re-step from the previous position so the guard never rests on the bound.
        guard.direction = -guard.direction
        next_x = guard.position_x + guard.direction * speed * axis_x
        next_y = guard.position_y + guard.direction * speed * axis_y
    guard.position_x = next_x
    guard.position_y = next_y


def _step_orbit(guard: EntityState, speed: float) -> None:
    if guard.orbit_center is None or guard.orbit_radius <= 0:
        raise ValueError("circular pattern requires an orbit center and radius")
    center = guard.orbit_center
    radius = guard.orbit_radius
    guard.angle += speed * ORBIT_ANGULAR_RATE
    guard.position_x = center[0] + math.cos(guard.angle) * radius
    guard.position_y = center[1] + math.sin(guard.angle) * radius


def _step_random(guard: EntityState, speed: float, box: PatrolBox, rng: random.Random) -> None:
    if rng.random() < RANDOM_TURN_PROBABILITY:
        guard.direction = rng.choice((1, -1))
        guard.angle = rng.random() * math.tau
    # Clamped rather than reflected: the guard may slide along a wall until the next turn.
    guard.position_x, guard.position_y = box.clamp(
        guard.position_x + math.cos(guard.angle) * speed,
        guard.position_y + math.sin(guard.angle) * speed,
    )


def vision_cone_degrees(pattern: str, direction: int, angle: float) -> float:
    if pattern in HORIZONTAL_PATTERNS:
        return 0.0 if direction > 0 else 180.0
    if pattern in VERTICAL_PATTERNS:
        return 90.0 if direction > 0 else 270.0
    if pattern in DIAGONAL_PATTERNS:
        return 45.0 if direction > 0 else 225.0
    if pattern == PATTERN_CIRCULAR:
        return math.degrees(angle) + 90.0
    if pattern == PATTERN_RANDOM:
        return math.degrees(angle)
    return 0.0


class PatrolModule(RuleModule):
    """Moves the guard at 20 Hz through the periodic scheduler while the game is active."""

    name = "patrol"

    def on_simulation_start(self, sim: Simulation) -> None:
        scheduler = sim.get_rule_module(PeriodicScheduler.name)
        if scheduler is None:
            scheduler = PeriodicScheduler()
            sim.register_rule_module(scheduler)
        if not isinstance(scheduler, PeriodicScheduler):
            raise TypeError("periodic_scheduler module must be a PeriodicScheduler")

        scheduler.register_task(task_name=PATROL_TASK_NAME, interval_ticks=PATROL_INTERVAL_TICKS)
        scheduler.set_task_callback(PATROL_TASK_NAME, self._on_patrol_tick)
        self._configure_orbit(sim)

    def on_round_reset(self, sim: Simulation) -> None:
        self._configure_orbit(sim)

    def _configure_orbit(self, sim: Simulation) -> None:
        guard = sim.guard
        if sim.state.pattern == PATTERN_CIRCULAR:
            guard.orbit_center = sim.state.layout.orbit_center
            guard.orbit_radius = sim.state.settings.orbit_radius
        else:
            guard.orbit_center = None
            guard.orbit_radius = 0.0

    def _on_patrol_tick(self, sim: Simulation, tick: int) -> None:
        if sim.state.phase != PHASE_ACTIVE:
            return
        step_guard(
            sim.guard,
            sim.state.pattern,
            sim.state.settings,
            sim.state.layout,
            sim.rng_stream(RNG_PATROL_STREAM_NAME),
        )
