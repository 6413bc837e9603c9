import pytest

from codebreaker.sim.difficulty import (
    MAX_GUARD_SPEED,
    PATTERN_CIRCULAR,
    PATTERN_DIAGONAL,
    PATTERN_HORIZONTAL,
    PATTERN_RANDOM,
    PATTERN_SPEED_DIAGONAL,
    PATTERN_SPEED_HORIZONTAL,
    PATTERN_SPEED_VERTICAL,
    PATTERN_VERTICAL,
    advanced_cycle_number,
    advanced_phase_label,
    difficulty_phase_label,
    difficulty_settings_for_level,
    is_speed_pattern,
    movement_pattern_for_level,
    pattern_description,
    resolve_difficulty,
)


def test_learning_levels_walk_the_five_base_patterns() -> None:
    assert [movement_pattern_for_level(level) for level in range(1, 6)] == [
        PATTERN_HORIZONTAL,
        PATTERN_VERTICAL,
        PATTERN_DIAGONAL,
        PATTERN_CIRCULAR,
        PATTERN_RANDOM,
    ]


def test_advanced_levels_cycle_every_six_levels() -> None:
    expected_cycle = [
        PATTERN_RANDOM,
        PATTERN_SPEED_HORIZONTAL,
        PATTERN_RANDOM,
        PATTERN_SPEED_VERTICAL,
        PATTERN_RANDOM,
        PATTERN_SPEED_DIAGONAL,
    ]

    assert [movement_pattern_for_level(level) for level in range(6, 12)] == expected_cycle
    assert [movement_pattern_for_level(level) for level in range(12, 18)] == expected_cycle


def test_learning_speed_ramps_by_half_unit_up_to_cap() -> None:
    speeds = [difficulty_settings_for_level(level).speed for level in range(1, 6)]

    assert speeds == [2.0, 2.5, 3.0, 3.5, 4.0]


def test_advanced_speed_uses_multiplier_for_speed_patterns_and_caps() -> None:
    assert difficulty_settings_for_level(6).speed == pytest.approx(3.6)
    assert difficulty_settings_for_level(7).speed == pytest.approx(11.0)
    assert difficulty_settings_for_level(8).speed == pytest.approx(4.4)
    assert difficulty_settings_for_level(9).speed == MAX_GUARD_SPEED
    assert difficulty_settings_for_level(41).speed == MAX_GUARD_SPEED


def test_detection_radius_shrinks_every_two_levels_to_floor() -> None:
    radii = [difficulty_settings_for_level(level).detection_radius for level in (1, 2, 3, 5, 7, 13, 30)]

    assert radii == [80, 80, 75, 70, 65, 50, 50]


def test_sequence_length_and_patrol_area_grow_to_caps() -> None:
    assert [difficulty_settings_for_level(level).sequence_length for level in (1, 2, 3, 4, 14, 50)] == [
        3,
        4,
        4,
        5,
        10,
        10,
    ]
    assert difficulty_settings_for_level(1).patrol_area == 150
    assert difficulty_settings_for_level(5).patrol_area == 210
    assert difficulty_settings_for_level(10).patrol_area == 280


def test_circular_level_orbit_radius_is_half_patrol_area() -> None:
    pattern, settings = resolve_difficulty(4)

    assert pattern == PATTERN_CIRCULAR
    assert settings.orbit_radius == 97.5


def test_resolve_difficulty_is_deterministic_for_every_level() -> None:
    for level in range(1, 40):
        assert resolve_difficulty(level) == resolve_difficulty(level)


@pytest.mark.parametrize("level", [0, -3, True, 2.0])
def test_invalid_level_is_rejected(level) -> None:
    with pytest.raises(ValueError, match="level must be an integer >= 1"):
        resolve_difficulty(level)


def test_presentation_labels() -> None:
    assert is_speed_pattern(PATTERN_SPEED_VERTICAL) is True
    assert is_speed_pattern(PATTERN_VERTICAL) is False
    assert pattern_description(PATTERN_CIRCULAR) == "Orbital Pattern"
    assert pattern_description("teleport") == "Unknown"
    assert difficulty_phase_label(5) == "Learning Phase"
    assert difficulty_phase_label(6) == "Advanced Phase"
    assert advanced_cycle_number(5) is None
    assert advanced_cycle_number(6) == 1
    assert advanced_cycle_number(11) == 1
    assert advanced_cycle_number(12) == 2
    assert advanced_phase_label(3) is None
    assert advanced_phase_label(6) == "Multi-Dir"
    assert advanced_phase_label(7) == "Speed"
