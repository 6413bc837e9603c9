import pytest

from codebreaker.sim.core import Simulation
from codebreaker.sim.game import build_simulation
from codebreaker.sim.patrol import PATROL_INTERVAL_TICKS, PATROL_TASK_NAME
from codebreaker.sim.periodic import PERIODIC_EVENT_TYPE, PeriodicScheduler


def _build_sim(seed: int = 123) -> Simulation:
    return Simulation(seed=seed)


def test_periodic_fires_expected_ticks() -> None:
    sim = _build_sim(seed=1)
    scheduler = PeriodicScheduler()
    observed_ticks: list[int] = []

    scheduler.register_task(task_name="t", interval_ticks=2, start_tick=0)
    scheduler.set_task_callback("t", lambda _sim, tick: observed_ticks.append(tick))
    sim.register_rule_module(scheduler)

    sim.advance_ticks(7)

    assert observed_ticks == [0, 2, 4, 6]


def test_periodic_ordering_same_tick() -> None:
    sim = _build_sim(seed=3)
    scheduler = PeriodicScheduler()
    observed: list[tuple[str, int]] = []

    scheduler.register_task(task_name="A", interval_ticks=5, start_tick=0)
    scheduler.register_task(task_name="B", interval_ticks=5, start_tick=0)
    scheduler.set_task_callback("A", lambda _sim, tick: observed.append(("A", tick)))
    scheduler.set_task_callback("B", lambda _sim, tick: observed.append(("B", tick)))
    sim.register_rule_module(scheduler)

    sim.advance_ticks(6)

    assert observed == [("A", 0), ("B", 0), ("A", 5), ("B", 5)]


def test_task_registered_after_start_begins_at_current_tick() -> None:
    sim = _build_sim(seed=4)
    scheduler = PeriodicScheduler()
    sim.register_rule_module(scheduler)
    sim.advance_ticks(4)
    observed: list[int] = []

    scheduler.register_task(task_name="late", interval_ticks=3, start_tick=0)
    scheduler.set_task_callback("late", lambda _sim, tick: observed.append(tick))
    sim.advance_ticks(6)

    assert observed == [4, 7]


def test_periodic_register_task_conflict_rejected() -> None:
    scheduler = PeriodicScheduler()

    scheduler.register_task(task_name="t", interval_ticks=5, start_tick=0)

    with pytest.raises(ValueError, match="already registered with interval"):
        scheduler.register_task(task_name="t", interval_ticks=7, start_tick=0)


def test_periodic_register_task_idempotent_same_interval() -> None:
    sim = _build_sim(seed=11)
    scheduler = PeriodicScheduler()

    scheduler.register_task(task_name="t", interval_ticks=5, start_tick=0)
    scheduler.register_task(task_name="t", interval_ticks=5, start_tick=0)
    sim.register_rule_module(scheduler)

    pending = [
        event
        for event in sim.pending_events()
        if event.event_type == PERIODIC_EVENT_TYPE and event.params.get("task") == "t"
    ]
    assert len(pending) == 1


def test_callback_for_unknown_task_rejected() -> None:
    scheduler = PeriodicScheduler()

    with pytest.raises(ValueError, match="unknown periodic task"):
        scheduler.set_task_callback("missing", lambda _sim, tick: None)


def test_game_keeps_exactly_one_pending_patrol_event() -> None:
    sim = build_simulation(seed=9)

    for _ in range(20):
        pending_patrol = [
            event
            for event in sim.pending_events()
            if event.event_type == PERIODIC_EVENT_TYPE and event.params.get("task") == PATROL_TASK_NAME
        ]
        assert len(pending_patrol) == 1
        assert pending_patrol[0].params["interval"] == PATROL_INTERVAL_TICKS
        sim.advance_ticks(1)
