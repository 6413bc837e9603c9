from __future__ import annotations

import random

from codebreaker.sim.core import (
    HACK_SYMBOL_COUNT,
    PHASE_ACTIVE,
    PHASE_DETECTED,
    PHASE_HACKING,
    CHALLENGE_STAGE_AWAITING_INPUT,
    HackChallenge,
    SimCommand,
    SimEvent,
    Simulation,
    is_valid_symbol,
    ms_to_ticks,
)
from codebreaker.sim.rng import RNG_HACKING_STREAM_NAME
from codebreaker.sim.rules import RuleModule

INTERACT_COMMAND_TYPE = "interact"
SELECT_SYMBOL_COMMAND_TYPE = "select_symbol"
HACK_PLAYBACK_EVENT_TYPE = "hack_playback"

PLAYBACK_STEP_MS = 600
PLAYBACK_HIGHLIGHT_MS = 400
PLAYBACK_STEP_TICKS = ms_to_ticks(PLAYBACK_STEP_MS)
PLAYBACK_HIGHLIGHT_TICKS = ms_to_ticks(PLAYBACK_HIGHLIGHT_MS)
PLAYBACK_SHOW = "show"
PLAYBACK_HIDE = "hide"

HACK_START_CAUSE = "console_interaction"
HACK_SUCCESS_CAUSE = "hack_succeeded"
HACK_FAILURE_CAUSE = "hack_failed"

SELECTION_IGNORED = "ignored"
SELECTION_PROGRESS = "progress"
SELECTION_SUCCESS = "success"
SELECTION_FAILURE = "failure"


def generate_sequence(length: int, rng: random.Random) -> tuple[int, ...]:
    if length <= 0:
        raise ValueError("sequence length must be > 0")
    return tuple(rng.randrange(HACK_SYMBOL_COUNT) for _ in range(length))


def playback_duration_ticks(sequence_length: int) -> int:
    """Ticks from playback start until the last highlight clears."""
    return (sequence_length - 1) * PLAYBACK_STEP_TICKS + PLAYBACK_HIGHLIGHT_TICKS


def console_in_range(sim: Simulation) -> bool:
    layout = sim.state.layout
    return sim.player.distance_to_point(*layout.console) < layout.interact_range


class HackingModule(RuleModule):
    """Console memory challenge: playback, then symbol-by-symbol validation.

    Playback highlights are scheduled as simulation events tagged with the
    challenge id. Discarding the challenge cancels them, and a stray event for a
    different challenge id is ignored.
    """

    name = "hacking"

    def on_command(self, sim: Simulation, command: SimCommand, command_index: int) -> bool:
        if command.command_type == INTERACT_COMMAND_TYPE:
            self.start_challenge(sim)
            return True
        if command.command_type == SELECT_SYMBOL_COMMAND_TYPE:
            self.select_symbol(sim, command.params.get("symbol"))
            return True
        return False

    def start_challenge(self, sim: Simulation) -> HackChallenge | None:
        if sim.state.phase != PHASE_ACTIVE or not console_in_range(sim):
            return None
        sim.discard_challenge()
        sequence = generate_sequence(sim.state.settings.sequence_length, sim.rng_stream(RNG_HACKING_STREAM_NAME))
        challenge = HackChallenge(challenge_id=sim.allocate_challenge_id(), target_sequence=sequence)
        sim.state.challenge = challenge
        sim.set_phase(PHASE_HACKING, cause=HACK_START_CAUSE)
        self._schedule_playback(sim, challenge)
        return challenge

    def select_symbol(self, sim: Simulation, symbol: object) -> str:
        challenge = sim.state.challenge
        if sim.state.phase != PHASE_HACKING or challenge is None or not challenge.accepts_input:
            return SELECTION_IGNORED
        if not is_valid_symbol(symbol):
            return SELECTION_IGNORED

        index = challenge.current_index
        challenge.player_progress.append(int(symbol))
        if challenge.player_progress[index] != challenge.target_sequence[index]:
            sim.discard_challenge()
            sim.set_phase(PHASE_DETECTED, cause=HACK_FAILURE_CAUSE)
            return SELECTION_FAILURE

        if len(challenge.player_progress) == challenge.target_length:
            sim.discard_challenge()
            sim.state.door_unlocked = True
            sim.set_phase(PHASE_ACTIVE, cause=HACK_SUCCESS_CAUSE)
            return SELECTION_SUCCESS

        challenge.current_index += 1
        return SELECTION_PROGRESS

    def on_event_executed(self, sim: Simulation, event: SimEvent) -> None:
        if event.event_type != HACK_PLAYBACK_EVENT_TYPE:
            return
        challenge = sim.state.challenge
        if challenge is None or challenge.challenge_id != event.params.get("challenge_id"):
            return
        if event.event_id in challenge.playback_event_ids:
            challenge.playback_event_ids.remove(event.event_id)

        if event.params.get("action") == PLAYBACK_SHOW:
            challenge.highlighted_symbol = int(event.params["symbol"])
            return
        challenge.highlighted_symbol = None
        if int(event.params["step"]) == challenge.target_length - 1:
            challenge.stage = CHALLENGE_STAGE_AWAITING_INPUT

    def _schedule_playback(self, sim: Simulation, challenge: HackChallenge) -> None:
        start_tick = sim.state.tick
        for step, symbol in enumerate(challenge.target_sequence):
            show_tick = start_tick + step * PLAYBACK_STEP_TICKS
            for tick, action in ((show_tick, PLAYBACK_SHOW), (show_tick + PLAYBACK_HIGHLIGHT_TICKS, PLAYBACK_HIDE)):
                event_id = sim.schedule_event_at(
                    tick=tick,
                    event_type=HACK_PLAYBACK_EVENT_TYPE,
                    params={
                        "challenge_id": challenge.challenge_id,
                        "step": step,
                        "symbol": symbol,
                        "action": action,
                    },
                )
                challenge.playback_event_ids.append(event_id)
