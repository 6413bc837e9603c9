from __future__ import annotations

from dataclasses import dataclass

from codebreaker.sim.core import CHALLENGE_STAGE_PLAYBACK, Simulation
from codebreaker.sim.difficulty import (
    advanced_cycle_number,
    advanced_phase_label,
    difficulty_phase_label,
    is_speed_pattern,
    pattern_description,
)
from codebreaker.sim.patrol import vision_cone_degrees


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only view of everything the presentation layer draws in one frame."""

    tick: int
    phase: str
    player_xy: tuple[float, float]
    guard_xy: tuple[float, float]
    console_xy: tuple[float, float]
    door_xy: tuple[float, float]
    room_size: float
    door_unlocked: bool
    level: int
    total_score: int
    pattern: str
    pattern_description: str
    speed_mode: bool
    speed: float
    detection_radius: int
    sequence_length: int
    challenge_progress: int
    challenge_length: int
    highlighted_symbol: int | None
    playback_active: bool
    difficulty_phase: str
    advanced_cycle: int | None
    advanced_phase: str | None
    vision_cone_degrees: float


def extract_game_snapshot(sim: Simulation) -> GameSnapshot:
    state = sim.state
    challenge = state.challenge
    guard = sim.guard
    return GameSnapshot(
        tick=state.tick,
        phase=state.phase,
        player_xy=sim.player.world_xy(),
        guard_xy=guard.world_xy(),
        console_xy=state.layout.console,
        door_xy=state.layout.door,
        room_size=state.layout.room_size,
        door_unlocked=state.door_unlocked,
        level=state.level,
        total_score=state.total_score,
        pattern=state.pattern,
        pattern_description=pattern_description(state.pattern),
        speed_mode=is_speed_pattern(state.pattern),
        speed=state.settings.speed,
        detection_radius=state.settings.detection_radius,
        sequence_length=state.settings.sequence_length,
        challenge_progress=len(challenge.player_progress) if challenge is not None else 0,
        challenge_length=challenge.target_length if challenge is not None else 0,
        highlighted_symbol=challenge.highlighted_symbol if challenge is not None else None,
        playback_active=challenge is not None and challenge.stage == CHALLENGE_STAGE_PLAYBACK,
        difficulty_phase=difficulty_phase_label(state.level),
        advanced_cycle=advanced_cycle_number(state.level),
        advanced_phase=advanced_phase_label(state.level),
        vision_cone_degrees=vision_cone_degrees(state.pattern, guard.direction, guard.angle),
    )
