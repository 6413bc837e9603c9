from __future__ import annotations

from dataclasses import dataclass

PATTERN_HORIZONTAL = "horizontal"
PATTERN_VERTICAL = "vertical"
PATTERN_DIAGONAL = "diagonal"
PATTERN_CIRCULAR = "circular"
PATTERN_RANDOM = "random"
PATTERN_SPEED_HORIZONTAL = "speed-horizontal"
PATTERN_SPEED_VERTICAL = "speed-vertical"
PATTERN_SPEED_DIAGONAL = "speed-diagonal"

MOVEMENT_PATTERNS: tuple[str, ...] = (
    PATTERN_HORIZONTAL,
    PATTERN_VERTICAL,
    PATTERN_DIAGONAL,
    PATTERN_CIRCULAR,
    PATTERN_RANDOM,
    PATTERN_SPEED_HORIZONTAL,
    PATTERN_SPEED_VERTICAL,
    PATTERN_SPEED_DIAGONAL,
)

LEARNING_PHASE_MAX_LEVEL = 5
LEARNING_PHASE_PATTERNS: tuple[str, ...] = (
    PATTERN_HORIZONTAL,
    PATTERN_VERTICAL,
    PATTERN_DIAGONAL,
    PATTERN_CIRCULAR,
    PATTERN_RANDOM,
)
# Levels 6, 7, 8, ... walk this cycle: multi-directional chaos alternates with high-speed linear sweeps.
ADVANCED_PATTERN_CYCLE: tuple[str, ...] = (
    PATTERN_RANDOM,
    PATTERN_SPEED_HORIZONTAL,
    PATTERN_RANDOM,
    PATTERN_SPEED_VERTICAL,
    PATTERN_RANDOM,
    PATTERN_SPEED_DIAGONAL,
)

SPEED_PATTERN_PREFIX = "speed-"
BASE_GUARD_SPEED = 2.0
LEARNING_SPEED_STEP = 0.5
LEARNING_SPEED_CAP = 4.0
ADVANCED_SPEED_STEP = 0.8
SPEED_PATTERN_MULTIPLIER = 2.5
MAX_GUARD_SPEED = 12.0

BASE_DETECTION_RADIUS = 80
DETECTION_RADIUS_STEP = 5
MIN_DETECTION_RADIUS = 50

BASE_SEQUENCE_LENGTH = 3
MAX_SEQUENCE_LENGTH = 10

BASE_PATROL_AREA = 150
PATROL_AREA_STEP = 15
MAX_PATROL_AREA = 280

PATTERN_DESCRIPTIONS: dict[str, str] = {
    PATTERN_HORIZONTAL: "Linear Patrol",
    PATTERN_VERTICAL: "Vertical Sweep",
    PATTERN_DIAGONAL: "Diagonal Path",
    PATTERN_CIRCULAR: "Orbital Pattern",
    PATTERN_RANDOM: "Chaos Mode",
    PATTERN_SPEED_HORIZONTAL: "SPEED BLITZ - Horizontal",
    PATTERN_SPEED_VERTICAL: "SPEED BLITZ - Vertical",
    PATTERN_SPEED_DIAGONAL: "SPEED BLITZ - Diagonal",
}


@dataclass(frozen=True)
class DifficultySettings:
    """Per-level tuning, derived once when a level starts and read-only afterwards."""

    speed: float
    detection_radius: int
    sequence_length: int
    patrol_area: int

    @property
    def orbit_radius(self) -> float:
        return self.patrol_area / 2

    def to_dict(self) -> dict[str, float | int]:
        return {
            "speed": self.speed,
            "detection_radius": self.detection_radius,
            "sequence_length": self.sequence_length,
            "patrol_area": self.patrol_area,
        }


def _require_level(level: int) -> None:
    if isinstance(level, bool) or not isinstance(level, int) or level < 1:
        raise ValueError(f"level must be an integer >= 1; got {level!r}")


def is_learning_level(level: int) -> bool:
    return level <= LEARNING_PHASE_MAX_LEVEL


def is_speed_pattern(pattern: str) -> bool:
    return pattern.startswith(SPEED_PATTERN_PREFIX)


def movement_pattern_for_level(level: int) -> str:
    _require_level(level)
    if is_learning_level(level):
        return LEARNING_PHASE_PATTERNS[level - 1]
    return ADVANCED_PATTERN_CYCLE[(level - LEARNING_PHASE_MAX_LEVEL - 1) % len(ADVANCED_PATTERN_CYCLE)]


def _learning_speed(level: int) -> float:
    return min(BASE_GUARD_SPEED + (level - 1) * LEARNING_SPEED_STEP, LEARNING_SPEED_CAP)


def _advanced_speed(level: int, pattern: str) -> float:
    speed = BASE_GUARD_SPEED + ((level - 1) // 2) * ADVANCED_SPEED_STEP
    if is_speed_pattern(pattern):
        speed *= SPEED_PATTERN_MULTIPLIER
    return min(speed, MAX_GUARD_SPEED)


def difficulty_settings_for_level(level: int) -> DifficultySettings:
    _require_level(level)
    pattern = movement_pattern_for_level(level)
    speed = _learning_speed(level) if is_learning_level(level) else _advanced_speed(level, pattern)
    return DifficultySettings(
        speed=speed,
        detection_radius=max(BASE_DETECTION_RADIUS - ((level - 1) // 2) * DETECTION_RADIUS_STEP, MIN_DETECTION_RADIUS),
        sequence_length=min(BASE_SEQUENCE_LENGTH + level // 2, MAX_SEQUENCE_LENGTH),
        patrol_area=min(BASE_PATROL_AREA + (level - 1) * PATROL_AREA_STEP, MAX_PATROL_AREA),
    )


def resolve_difficulty(level: int) -> tuple[str, DifficultySettings]:
    """Map a level number to its guard movement pattern and tuning."""
    return movement_pattern_for_level(level), difficulty_settings_for_level(level)


def pattern_description(pattern: str) -> str:
    return PATTERN_DESCRIPTIONS.get(pattern, "Unknown")


def difficulty_phase_label(level: int) -> str:
    return "Learning Phase" if is_learning_level(level) else "Advanced Phase"


def advanced_cycle_number(level: int) -> int | None:
    if is_learning_level(level):
        return None
    return (level - LEARNING_PHASE_MAX_LEVEL - 1) // len(ADVANCED_PATTERN_CYCLE) + 1


def advanced_phase_label(level: int) -> str | None:
    if is_learning_level(level):
        return None
    return "Multi-Dir" if (level - LEARNING_PHASE_MAX_LEVEL - 1) % 2 == 0 else "Speed"
