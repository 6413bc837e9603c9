from codebreaker.cli.pygame_viewer import (
    RenderEntitySnapshot,
    clamp01,
    extract_render_snapshot,
    interpolate_entity_position,
    lerp,
)
from codebreaker.sim.core import GUARD_ENTITY_ID, PLAYER_ENTITY_ID
from codebreaker.sim.game import build_simulation
from codebreaker.sim.locomotion import KEY_DOWN_COMMAND_TYPE


def test_clamp01_and_lerp() -> None:
    assert clamp01(-0.5) == 0.0
    assert clamp01(0.25) == 0.25
    assert clamp01(1.5) == 1.0
    assert lerp(2.0, 10.0, 0.25) == 4.0


def test_extract_render_snapshot_is_immutable_copy_of_positions() -> None:
    sim = build_simulation(seed=3)

    snapshot = extract_render_snapshot(sim)
    assert snapshot[PLAYER_ENTITY_ID] == RenderEntitySnapshot(x=100.0, y=100.0)
    assert snapshot[GUARD_ENTITY_ID] == RenderEntitySnapshot(x=300.0, y=200.0)

    sim.apply_command(KEY_DOWN_COMMAND_TYPE, {"key": "right"})
    sim.advance_ticks(1)

    # Existing snapshots must not be mutated by later simulation ticks.
    assert snapshot[PLAYER_ENTITY_ID].x == 100.0
    assert extract_render_snapshot(sim)[PLAYER_ENTITY_ID].x == 103.0


def test_interpolate_entity_position_missing_entity_cases() -> None:
    prev_snapshot = {"guard": RenderEntitySnapshot(x=0.0, y=0.0)}
    curr_snapshot = {"guard": RenderEntitySnapshot(x=1.0, y=1.0)}

    assert interpolate_entity_position(prev_snapshot, curr_snapshot, "guard", 0.5) == (0.5, 0.5)
    assert interpolate_entity_position({}, curr_snapshot, "guard", 0.5) == (1.0, 1.0)
    assert interpolate_entity_position(prev_snapshot, {}, "guard", 0.5) == (0.0, 0.0)
    assert interpolate_entity_position({}, {}, "guard", 0.5) is None
