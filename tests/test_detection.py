from codebreaker.sim.core import GUARD_ENTITY_ID, PHASE_ACTIVE, PHASE_DETECTED, PLAYER_ENTITY_ID, EntityState, Simulation
from codebreaker.sim.detection import DETECTION_CAUSE_PROXIMITY, DetectionModule, is_detected
from codebreaker.sim.game import build_simulation
from codebreaker.sim.locomotion import KEY_DOWN_COMMAND_TYPE


def test_detection_boundary_is_strict() -> None:
    player = EntityState(entity_id=PLAYER_ENTITY_ID, position_x=0.0, position_y=0.0)
    guard = EntityState(entity_id=GUARD_ENTITY_ID, position_x=48.0, position_y=64.0)

    assert player.distance_to(guard) == 80.0
    assert is_detected(player, guard, 80) is False
    assert is_detected(player, guard, 80.0001) is True


def test_detection_module_triggers_only_inside_radius() -> None:
    sim = Simulation(seed=1)
    sim.register_rule_module(DetectionModule())

    sim.player.position_x, sim.player.position_y = 348.0, 264.0
    sim.advance_ticks(1)
    assert sim.state.phase == PHASE_ACTIVE

    sim.player.position_x = 347.9
    sim.advance_ticks(1)
    assert sim.state.phase == PHASE_DETECTED
    assert sim.state.phase_history[-1]["cause"] == DETECTION_CAUSE_PROXIMITY


def test_detection_is_suspended_outside_active_phase() -> None:
    sim = Simulation(seed=1)
    sim.register_rule_module(DetectionModule())
    sim.set_phase("hacking", cause="test")

    sim.player.position_x, sim.player.position_y = sim.guard.world_xy()
    sim.advance_ticks(5)

    assert sim.state.phase == "hacking"


def test_player_walking_into_level_one_guard_path_is_detected() -> None:
    sim = build_simulation(seed=11)
    sim.player.position_x, sim.player.position_y = 300.0, 300.0

    sim.apply_command(KEY_DOWN_COMMAND_TYPE, {"key": "up"})
    sim.advance_ticks(30)

    assert sim.state.phase == PHASE_DETECTED
    assert len(sim.state.phase_history) == 1

    frozen = sim.player.world_xy()
    sim.advance_ticks(10)
    assert sim.player.world_xy() == frozen
