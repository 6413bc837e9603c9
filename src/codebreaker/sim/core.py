from __future__ import annotations

import copy
import hashlib
import math
import random
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

from codebreaker.content.rooms import DEFAULT_ROOM_LAYOUT, RoomLayout
from codebreaker.sim.difficulty import DifficultySettings, resolve_difficulty
from codebreaker.sim.rng import derive_stream_seed
from codebreaker.sim.rules import RuleModule

TICKS_PER_SECOND = 60
MAX_EVENT_TRACE = 256
MAX_EVENTS_PER_TICK = 10_000
MAX_PHASE_HISTORY = 64

PHASE_ACTIVE = "active"
PHASE_DETECTED = "detected"
PHASE_HACKING = "hacking"
PHASE_LEVEL_COMPLETE = "level_complete"
GAME_PHASES = frozenset({PHASE_ACTIVE, PHASE_DETECTED, PHASE_HACKING, PHASE_LEVEL_COMPLETE})

PLAYER_ENTITY_ID = "player"
GUARD_ENTITY_ID = "guard"

CHALLENGE_STAGE_PLAYBACK = "playback"
CHALLENGE_STAGE_AWAITING_INPUT = "awaiting_input"
CHALLENGE_STAGES = frozenset({CHALLENGE_STAGE_PLAYBACK, CHALLENGE_STAGE_AWAITING_INPUT})
HACK_SYMBOL_COUNT = 3


def ms_to_ticks(milliseconds: int) -> int:
    return round(milliseconds * TICKS_PER_SECOND / 1000)


def _is_json_primitive(value: Any) -> bool:
    return value is None or isinstance(value, (bool, int, float, str))


def _validate_json_value(value: Any, *, field_name: str) -> None:
    if _is_json_primitive(value):
        return
    if isinstance(value, list):
        for item in value:
            _validate_json_value(item, field_name=field_name)
        return
    if isinstance(value, dict):
        for key, nested_value in value.items():
            if not isinstance(key, str):
                raise ValueError(f"{field_name} keys must be strings")
            _validate_json_value(nested_value, field_name=field_name)
        return
    raise ValueError(f"{field_name} must contain only canonical JSON primitives")


@dataclass
class SimCommand:
    tick: int
    command_type: str
    params: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.tick, int) or self.tick < 0:
            raise ValueError("command tick must be a non-negative integer")
        if not isinstance(self.command_type, str) or not self.command_type:
            raise ValueError("command_type must be a non-empty string")
        if not isinstance(self.params, dict):
            raise ValueError("params must be a dict")
        _validate_json_value(self.params, field_name="params")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tick": self.tick,
            "command_type": self.command_type,
            "params": copy.deepcopy(self.params),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SimCommand":
        return cls(
            tick=int(data["tick"]),
            command_type=str(data["command_type"]),
            params=dict(data.get("params", {})),
        )


@dataclass
class SimEvent:
    tick: int
    event_id: str
    event_type: str
    params: dict[str, Any]

    def __post_init__(self) -> None:
        if not isinstance(self.tick, int) or self.tick < 0:
            raise ValueError("event tick must be a non-negative integer")
        if not isinstance(self.event_id, str) or not self.event_id:
            raise ValueError("event_id must be a non-empty string")
        if not isinstance(self.event_type, str) or not self.event_type:
            raise ValueError("event_type must be a non-empty string")
        if not isinstance(self.params, dict):
            raise ValueError("params must be a dict")
        _validate_json_value(self.params, field_name="params")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tick": self.tick,
            "event_id": self.event_id,
            "event_type": self.event_type,
            "params": copy.deepcopy(self.params),
        }


@dataclass
class EntityState:
    """Position plus the motion fields that move with it (patrol direction, angle, orbit)."""

    entity_id: str
    position_x: float
    position_y: float
    direction: int = 1
    angle: float = 0.0
    orbit_center: tuple[float, float] | None = None
    orbit_radius: float = 0.0

    def __post_init__(self) -> None:
        if self.direction not in (1, -1):
            raise ValueError("entity direction must be 1 or -1")

    def world_xy(self) -> tuple[float, float]:
        return (self.position_x, self.position_y)

    def distance_to_point(self, x: float, y: float) -> float:
        return math.hypot(self.position_x - x, self.position_y - y)

    def distance_to(self, other: "EntityState") -> float:
        return self.distance_to_point(other.position_x, other.position_y)

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "position_x": self.position_x,
            "position_y": self.position_y,
            "direction": self.direction,
            "angle": self.angle,
            "orbit_center": list(self.orbit_center) if self.orbit_center is not None else None,
            "orbit_radius": self.orbit_radius,
        }


@dataclass
class HackChallenge:
    challenge_id: int
    target_sequence: tuple[int, ...]
    player_progress: list[int] = field(default_factory=list)
    current_index: int = 0
    stage: str = CHALLENGE_STAGE_PLAYBACK
    highlighted_symbol: int | None = None
    playback_event_ids: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.target_sequence:
            raise ValueError("target_sequence must not be empty")
        for symbol in self.target_sequence:
            if not is_valid_symbol(symbol):
                raise ValueError(f"target_sequence symbols must be integers in [0, {HACK_SYMBOL_COUNT - 1}]")
        if self.stage not in CHALLENGE_STAGES:
            raise ValueError(f"unknown challenge stage: {self.stage}")

    @property
    def target_length(self) -> int:
        return len(self.target_sequence)

    @property
    def accepts_input(self) -> bool:
        return self.stage == CHALLENGE_STAGE_AWAITING_INPUT

    def to_dict(self) -> dict[str, Any]:
        return {
            "challenge_id": self.challenge_id,
            "target_sequence": list(self.target_sequence),
            "player_progress": list(self.player_progress),
            "current_index": self.current_index,
            "stage": self.stage,
            "highlighted_symbol": self.highlighted_symbol,
            "playback_event_ids": list(self.playback_event_ids),
        }


def is_valid_symbol(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < HACK_SYMBOL_COUNT


@dataclass
class SimulationState:
    layout: RoomLayout
    pattern: str
    settings: DifficultySettings
    tick: int = 0
    phase: str = PHASE_ACTIVE
    level: int = 1
    total_score: int = 0
    door_unlocked: bool = False
    entities: dict[str, EntityState] = field(default_factory=dict)
    held_keys: set[str] = field(default_factory=set)
    challenge: HackChallenge | None = None
    event_trace: list[dict[str, Any]] = field(default_factory=list)
    phase_history: list[dict[str, Any]] = field(default_factory=list)

    @property
    def player(self) -> EntityState:
        return self.entities[PLAYER_ENTITY_ID]

    @property
    def guard(self) -> EntityState:
        return self.entities[GUARD_ENTITY_ID]


class Simulation:
    def __init__(self, seed: int, layout: RoomLayout = DEFAULT_ROOM_LAYOUT) -> None:
        pattern, settings = resolve_difficulty(1)
        self.state = SimulationState(layout=layout, pattern=pattern, settings=settings)
        self.seed = seed
        self.master_seed = seed
        self._rng_streams: dict[str, random.Random] = {}
        self.rule_modules: list[RuleModule] = []
        self.input_log: list[SimCommand] = []
        self._pending_commands: dict[int, list[SimCommand]] = defaultdict(list)
        self._applied_command_counts: dict[int, int] = defaultdict(int)
        self._pending_events_by_tick: dict[int, list[SimEvent]] = defaultdict(list)
        self._event_tick_by_id: dict[str, int] = {}
        self._next_event_counter = 1
        self._next_challenge_id = 1
        self._spawn_entities()

    @property
    def player(self) -> EntityState:
        return self.state.player

    @property
    def guard(self) -> EntityState:
        return self.state.guard

    def append_command(self, command: SimCommand | dict[str, Any]) -> None:
        """Queue a command for its tick; it is applied before that tick's events run."""
        normalized = command if isinstance(command, SimCommand) else SimCommand.from_dict(command)
        self.input_log.append(normalized)
        self._pending_commands[normalized.tick].append(normalized)

    def apply_command(self, command_type: str, params: dict[str, Any] | None = None) -> SimCommand:
        """Apply a player command right now, between ticks.

        The command is logged with the current tick so a replay that queues it
        for that tick reproduces the same state.
        """
        command = SimCommand(tick=self.state.tick, command_type=command_type, params=dict(params or {}))
        self.input_log.append(command)
        command_index = self._applied_command_counts[command.tick]
        self._applied_command_counts[command.tick] += 1
        self._execute_command(command, command_index=command_index)
        return command

    def schedule_event(self, event: SimEvent) -> None:
        if event.event_id in self._event_tick_by_id:
            raise ValueError(f"duplicate event_id: {event.event_id}")
        self._pending_events_by_tick[event.tick].append(event)
        self._event_tick_by_id[event.event_id] = event.tick

    def schedule_event_at(self, tick: int, event_type: str, params: dict[str, Any]) -> str:
        event_id = f"evt-{self._next_event_counter:08d}"
        self._next_event_counter += 1
        event = SimEvent(tick=tick, event_id=event_id, event_type=event_type, params=params)
        self.schedule_event(event)
        return event_id

    def cancel_event(self, event_id: str) -> bool:
        if event_id not in self._event_tick_by_id:
            return False
        tick = self._event_tick_by_id.pop(event_id)
        events = self._pending_events_by_tick[tick]
        self._pending_events_by_tick[tick] = [event for event in events if event.event_id != event_id]
        if not self._pending_events_by_tick[tick]:
            del self._pending_events_by_tick[tick]
        return True

    def pending_events(self) -> list[SimEvent]:
        return [
            event
            for tick in sorted(self._pending_events_by_tick)
            for event in self._pending_events_by_tick[tick]
        ]

    def advance_ticks(self, ticks: int) -> None:
        for _ in range(ticks):
            self._tick_once()

    def advance_milliseconds(self, milliseconds: int) -> None:
        self.advance_ticks(ms_to_ticks(milliseconds))

    def rng_stream(self, name: str) -> random.Random:
        if name not in self._rng_streams:
            self._rng_streams[name] = random.Random(
                derive_stream_seed(master_seed=self.master_seed, stream_name=name)
            )
        return self._rng_streams[name]

    def rng_state_payload(self) -> dict[str, Any]:
        return {
            "master_seed": self.master_seed,
            "rng_stream_states": {
                name: stream.getstate()
                for name, stream in sorted(self._rng_streams.items(), key=lambda item: item[0])
            },
        }

    def get_rule_module(self, module_name: str) -> RuleModule | None:
        for module in self.rule_modules:
            if module.name == module_name:
                return module
        return None

    def register_rule_module(self, module: RuleModule) -> None:
        if any(existing.name == module.name for existing in self.rule_modules):
            raise ValueError(f"duplicate rule module name: {module.name}")
        self.rule_modules.append(module)
        module.on_simulation_start(self)

    def set_phase(self, phase: str, *, cause: str) -> bool:
        if phase not in GAME_PHASES:
            raise ValueError(f"unknown game phase: {phase}")
        previous = self.state.phase
        if previous == phase:
            return False
        self.state.phase = phase
        self.state.phase_history.append(
            {"tick": self.state.tick, "from": previous, "to": phase, "cause": cause}
        )
        if len(self.state.phase_history) > MAX_PHASE_HISTORY:
            overflow = len(self.state.phase_history) - MAX_PHASE_HISTORY
            del self.state.phase_history[:overflow]
        return True

    def configure_level(self, level: int) -> None:
        pattern, settings = resolve_difficulty(level)
        self.state.level = level
        self.state.pattern = pattern
        self.state.settings = settings

    def reset_round(self) -> None:
        """Return positions, motion state, door lock and challenge to their level-start values."""
        self._spawn_entities()
        self.state.door_unlocked = False
        self.discard_challenge()
        for module in self.rule_modules:
            module.on_round_reset(self)

    def allocate_challenge_id(self) -> int:
        challenge_id = self._next_challenge_id
        self._next_challenge_id += 1
        return challenge_id

    def discard_challenge(self) -> bool:
        challenge = self.state.challenge
        if challenge is None:
            return False
        for event_id in challenge.playback_event_ids:
            self.cancel_event(event_id)
        self.state.challenge = None
        return True

    def simulation_payload(self) -> dict[str, Any]:
        return {
            "seed": self.seed,
            "master_seed": self.master_seed,
            "tick": self.state.tick,
            "phase": self.state.phase,
            "level": self.state.level,
            "total_score": self.state.total_score,
            "door_unlocked": self.state.door_unlocked,
            "pattern": self.state.pattern,
            "settings": self.state.settings.to_dict(),
            "layout": self.state.layout.to_dict(),
            "held_keys": sorted(self.state.held_keys),
            "challenge": self.state.challenge.to_dict() if self.state.challenge is not None else None,
            "next_event_counter": self._next_event_counter,
            "next_challenge_id": self._next_challenge_id,
            "rng_state": self.rng_state_payload(),
            "entities": [
                entity.to_dict()
                for entity in sorted(self.state.entities.values(), key=lambda current: current.entity_id)
            ],
            "input_log": [command.to_dict() for command in self.input_log],
            "pending_events": [event.to_dict() for event in self.pending_events()],
            "event_trace": copy.deepcopy(self.state.event_trace),
            "phase_history": copy.deepcopy(self.state.phase_history),
        }

    def _spawn_entities(self) -> None:
        layout = self.state.layout
        for entity_id, spawn in ((PLAYER_ENTITY_ID, layout.player_spawn), (GUARD_ENTITY_ID, layout.guard_spawn)):
            self.state.entities[entity_id] = EntityState(
                entity_id=entity_id,
                position_x=spawn[0],
                position_y=spawn[1],
            )

    def _tick_once(self) -> None:
        for module in self.rule_modules:
            module.on_tick_start(self, self.state.tick)
        self._apply_commands_for_tick(self.state.tick)
        self._execute_events_for_tick(self.state.tick)
        for module in self.rule_modules:
            module.on_tick_end(self, self.state.tick)
        self.state.tick += 1

    def _apply_commands_for_tick(self, tick: int) -> None:
        for command in self._pending_commands.pop(tick, []):
            command_index = self._applied_command_counts[tick]
            self._applied_command_counts[tick] += 1
            self._execute_command(command, command_index=command_index)

    def _execute_command(self, command: SimCommand, *, command_index: int) -> None:
        for module in self.rule_modules:
            if module.on_command(self, command, command_index):
                return

    def _execute_events_for_tick(self, tick: int) -> None:
        executed_count = 0
        while True:
            events = self._pending_events_by_tick.pop(tick, None)
            if not events:
                return
            for event in events:
                executed_count += 1
                if executed_count > MAX_EVENTS_PER_TICK:
                    raise RuntimeError(
                        f"event execution guard tripped at tick {tick}; exceeded MAX_EVENTS_PER_TICK={MAX_EVENTS_PER_TICK}"
                    )
                self._event_tick_by_id.pop(event.event_id, None)
                for module in self.rule_modules:
                    module.on_event_executed(self, event)
                self._append_event_trace_entry(
                    {
                        "tick": tick,
                        "event_id": self._trace_event_id_as_int(event.event_id),
                        "event_type": event.event_type,
                        "params": copy.deepcopy(event.params),
                    }
                )

    def _append_event_trace_entry(self, entry: dict[str, Any]) -> None:
        self.state.event_trace.append(copy.deepcopy(entry))
        if len(self.state.event_trace) > MAX_EVENT_TRACE:
            overflow = len(self.state.event_trace) - MAX_EVENT_TRACE
            del self.state.event_trace[:overflow]

    @staticmethod
    def _trace_event_id_as_int(event_id: str) -> int:
        if event_id.startswith("evt-") and event_id[4:].isdigit():
            return int(event_id[4:])
        digest = hashlib.sha256(event_id.encode("utf-8")).hexdigest()
        return int(digest[:16], 16)
