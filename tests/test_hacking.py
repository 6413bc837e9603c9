import random

import pytest

from codebreaker.sim.core import (
    CHALLENGE_STAGE_AWAITING_INPUT,
    CHALLENGE_STAGE_PLAYBACK,
    PHASE_ACTIVE,
    PHASE_DETECTED,
    PHASE_HACKING,
    PHASE_LEVEL_COMPLETE,
    Simulation,
)
from codebreaker.sim.game import build_simulation
from codebreaker.sim.hacking import (
    HACK_PLAYBACK_EVENT_TYPE,
    INTERACT_COMMAND_TYPE,
    PLAYBACK_HIGHLIGHT_TICKS,
    PLAYBACK_STEP_TICKS,
    SELECT_SYMBOL_COMMAND_TYPE,
    generate_sequence,
    playback_duration_ticks,
)
from codebreaker.sim.phases import RESTART_COMMAND_TYPE


def _sim_at_console(seed: int = 17) -> Simulation:
    sim = build_simulation(seed=seed)
    sim.player.position_x, sim.player.position_y = sim.state.layout.console
    return sim


def _start_hack(sim: Simulation) -> None:
    sim.apply_command(INTERACT_COMMAND_TYPE)
    assert sim.state.phase == PHASE_HACKING


def _finish_playback(sim: Simulation) -> None:
    sim.advance_ticks(playback_duration_ticks(sim.state.challenge.target_length) + 1)


def _pending_playback_events(sim: Simulation) -> list:
    return [event for event in sim.pending_events() if event.event_type == HACK_PLAYBACK_EVENT_TYPE]


def test_generate_sequence_uses_three_symbols() -> None:
    sequence = generate_sequence(200, random.Random(4))

    assert len(sequence) == 200
    assert set(sequence) == {0, 1, 2}

    with pytest.raises(ValueError):
        generate_sequence(0, random.Random(4))


def test_playback_timing_constants() -> None:
    assert PLAYBACK_STEP_TICKS == 36
    assert PLAYBACK_HIGHLIGHT_TICKS == 24
    assert playback_duration_ticks(3) == 96


def test_interact_out_of_range_does_nothing() -> None:
    sim = build_simulation(seed=17)

    sim.apply_command(INTERACT_COMMAND_TYPE)

    assert sim.state.phase == PHASE_ACTIVE
    assert sim.state.challenge is None


def test_interact_in_range_starts_playback_with_level_sequence_length() -> None:
    sim = _sim_at_console()

    _start_hack(sim)

    challenge = sim.state.challenge
    assert challenge is not None
    assert challenge.target_length == sim.state.settings.sequence_length == 3
    assert challenge.stage == CHALLENGE_STAGE_PLAYBACK
    assert len(_pending_playback_events(sim)) == 6


def test_playback_highlights_each_symbol_then_awaits_input() -> None:
    sim = _sim_at_console()
    _start_hack(sim)
    target = sim.state.challenge.target_sequence

    sim.advance_ticks(1)
    assert sim.state.challenge.highlighted_symbol == target[0]

    sim.advance_ticks(PLAYBACK_HIGHLIGHT_TICKS)
    assert sim.state.challenge.highlighted_symbol is None

    sim.advance_ticks(PLAYBACK_STEP_TICKS - PLAYBACK_HIGHLIGHT_TICKS)
    assert sim.state.challenge.highlighted_symbol == target[1]

    sim.advance_ticks(playback_duration_ticks(3) - PLAYBACK_STEP_TICKS - 1)
    assert sim.state.challenge.stage == CHALLENGE_STAGE_PLAYBACK

    sim.advance_ticks(1)
    assert sim.state.challenge.stage == CHALLENGE_STAGE_AWAITING_INPUT
    assert sim.state.challenge.highlighted_symbol is None
    assert _pending_playback_events(sim) == []


def test_input_during_playback_is_ignored() -> None:
    sim = _sim_at_console()
    _start_hack(sim)
    target = sim.state.challenge.target_sequence

    sim.advance_ticks(30)
    sim.apply_command(SELECT_SYMBOL_COMMAND_TYPE, {"symbol": (target[0] + 1) % 3})

    assert sim.state.phase == PHASE_HACKING
    assert sim.state.challenge.player_progress == []


def test_correct_sequence_unlocks_door_and_reaching_door_completes_level() -> None:
    sim = _sim_at_console()
    _start_hack(sim)
    _finish_playback(sim)
    target = sim.state.challenge.target_sequence

    for index, symbol in enumerate(target):
        sim.apply_command(SELECT_SYMBOL_COMMAND_TYPE, {"symbol": symbol})
        if index < len(target) - 1:
            assert sim.state.challenge.current_index == index + 1

    assert sim.state.door_unlocked is True
    assert sim.state.phase == PHASE_ACTIVE
    assert sim.state.challenge is None

    sim.player.position_x, sim.player.position_y = sim.state.layout.door
    sim.advance_ticks(1)

    assert sim.state.phase == PHASE_LEVEL_COMPLETE


@pytest.mark.parametrize("wrong_index", [0, 1, 2])
def test_any_wrong_symbol_fails_the_challenge(wrong_index: int) -> None:
    sim = _sim_at_console()
    _start_hack(sim)
    _finish_playback(sim)
    target = sim.state.challenge.target_sequence

    for symbol in target[:wrong_index]:
        sim.apply_command(SELECT_SYMBOL_COMMAND_TYPE, {"symbol": symbol})
    sim.apply_command(SELECT_SYMBOL_COMMAND_TYPE, {"symbol": (target[wrong_index] + 1) % 3})

    assert sim.state.phase == PHASE_DETECTED
    assert sim.state.challenge is None
    assert sim.state.door_unlocked is False

    for symbol in target[wrong_index:]:
        sim.apply_command(SELECT_SYMBOL_COMMAND_TYPE, {"symbol": symbol})

    assert sim.state.phase == PHASE_DETECTED
    assert sim.state.door_unlocked is False


def test_invalid_symbol_is_ignored() -> None:
    sim = _sim_at_console()
    _start_hack(sim)
    _finish_playback(sim)

    sim.apply_command(SELECT_SYMBOL_COMMAND_TYPE, {"symbol": 7})
    sim.apply_command(SELECT_SYMBOL_COMMAND_TYPE, {"symbol": "1"})
    sim.apply_command(SELECT_SYMBOL_COMMAND_TYPE, {})

    assert sim.state.phase == PHASE_HACKING
    assert sim.state.challenge.player_progress == []


def test_restart_mid_playback_cancels_pending_highlights() -> None:
    sim = _sim_at_console()
    _start_hack(sim)
    sim.advance_ticks(10)

    sim.apply_command(RESTART_COMMAND_TYPE)

    assert sim.state.phase == PHASE_ACTIVE
    assert sim.state.challenge is None
    assert _pending_playback_events(sim) == []

    sim.player.position_x, sim.player.position_y = sim.state.layout.console
    _start_hack(sim)
    assert len(_pending_playback_events(sim)) == 6

    # The abandoned challenge would have shown its second symbol on tick 36.
    sim.advance_ticks(PLAYBACK_STEP_TICKS - 10 + 1)

    assert sim.state.challenge.highlighted_symbol is None
    assert sim.state.challenge.stage == CHALLENGE_STAGE_PLAYBACK


def test_stale_playback_event_for_old_challenge_is_ignored() -> None:
    sim = _sim_at_console()
    _start_hack(sim)
    challenge = sim.state.challenge
    stray_symbol = (challenge.target_sequence[0] + 1) % 3

    sim.schedule_event_at(
        sim.state.tick + 1,
        HACK_PLAYBACK_EVENT_TYPE,
        {"challenge_id": challenge.challenge_id + 99, "step": 0, "symbol": stray_symbol, "action": "show"},
    )
    sim.advance_ticks(2)

    assert challenge.highlighted_symbol == challenge.target_sequence[0]


def test_interact_during_hacking_does_not_restart_challenge() -> None:
    sim = _sim_at_console()
    _start_hack(sim)
    challenge_id = sim.state.challenge.challenge_id

    sim.apply_command(INTERACT_COMMAND_TYPE)

    assert sim.state.challenge.challenge_id == challenge_id
