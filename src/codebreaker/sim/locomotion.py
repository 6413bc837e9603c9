from __future__ import annotations

from collections.abc import Collection

from codebreaker.content.rooms import RoomLayout
from codebreaker.sim.core import PHASE_ACTIVE, EntityState, SimCommand, Simulation
from codebreaker.sim.rules import RuleModule

KEY_DOWN_COMMAND_TYPE = "key_down"
KEY_UP_COMMAND_TYPE = "key_up"

MOVE_UP = "up"
MOVE_DOWN = "down"
MOVE_LEFT = "left"
MOVE_RIGHT = "right"
MOVE_KEYS = frozenset({MOVE_UP, MOVE_DOWN, MOVE_LEFT, MOVE_RIGHT})

PLAYER_STEP_PER_TICK = 3.0


def advance_player(
    player: EntityState,
    held_keys: Collection[str],
    layout: RoomLayout,
    step: float = PLAYER_STEP_PER_TICK,
) -> None:
    """Apply one tick of held-key movement; each axis moves independently."""
    dx = 0.0
    dy = 0.0
    if MOVE_UP in held_keys:
        dy -= step
    if MOVE_DOWN in held_keys:
        dy += step
    if MOVE_LEFT in held_keys:
        dx -= step
    if MOVE_RIGHT in held_keys:
        dx += step
    if dx == 0.0 and dy == 0.0:
        return
    low, high = layout.walkable_min, layout.walkable_max
    player.position_x = max(low, min(high, player.position_x + dx))
    player.position_y = max(low, min(high, player.position_y + dy))


class LocomotionModule(RuleModule):
    name = "locomotion"

    def on_command(self, sim: Simulation, command: SimCommand, command_index: int) -> bool:
        if command.command_type not in {KEY_DOWN_COMMAND_TYPE, KEY_UP_COMMAND_TYPE}:
            return False
        key = command.params.get("key")
        if key not in MOVE_KEYS:
            return True
        if command.command_type == KEY_UP_COMMAND_TYPE:
            sim.state.held_keys.discard(key)
            return True
        # Presses are only taken while the player can act; releases always count.
        if sim.state.phase == PHASE_ACTIVE:
            sim.state.held_keys.add(key)
        return True

    def on_tick_end(self, sim: Simulation, tick: int) -> None:
        if sim.state.phase != PHASE_ACTIVE:
            return
        advance_player(sim.player, sim.state.held_keys, sim.state.layout)
