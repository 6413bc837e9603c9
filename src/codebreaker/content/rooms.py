from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from codebreaker.sim.difficulty import MAX_PATROL_AREA

ROOM_LAYOUT_SCHEMA_VERSION = 1
DEFAULT_ROOM_LAYOUT_PATH = "content/rooms/default_room.json"


@dataclass(frozen=True)
class PatrolBox:
    """Axis-aligned region the guard's linear and random patterns stay inside."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float

    def __post_init__(self) -> None:
        if self.min_x >= self.max_x:
            raise ValueError("patrol_box.min_x must be < patrol_box.max_x")
        if self.min_y >= self.max_y:
            raise ValueError("patrol_box.min_y must be < patrol_box.max_y")

    def clamp(self, x: float, y: float) -> tuple[float, float]:
        return (max(self.min_x, min(self.max_x, x)), max(self.min_y, min(self.max_y, y)))

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def to_dict(self) -> dict[str, float]:
        return {"min_x": self.min_x, "max_x": self.max_x, "min_y": self.min_y, "max_y": self.max_y}


@dataclass(frozen=True)
class RoomLayout:
    room_size: float = 600.0
    wall_margin: float = 20.0
    player_spawn: tuple[float, float] = (100.0, 100.0)
    guard_spawn: tuple[float, float] = (300.0, 200.0)
    console: tuple[float, float] = (400.0, 300.0)
    door: tuple[float, float] = (550.0, 250.0)
    patrol_box: PatrolBox = PatrolBox(min_x=200.0, max_x=500.0, min_y=150.0, max_y=450.0)
    orbit_center: tuple[float, float] = (350.0, 300.0)
    interact_range: float = 60.0
    door_range: float = 50.0

    def __post_init__(self) -> None:
        if self.room_size <= 0:
            raise ValueError("room_size must be > 0")
        if self.wall_margin < 0 or self.wall_margin * 2 >= self.room_size:
            raise ValueError("wall_margin must be >= 0 and leave a walkable area")
        for field_name in ("player_spawn", "guard_spawn", "console", "door", "orbit_center"):
            x, y = getattr(self, field_name)
            if not (0.0 <= x <= self.room_size and 0.0 <= y <= self.room_size):
                raise ValueError(f"{field_name} must lie inside the room")
        box = self.patrol_box
        if box.min_x < 0.0 or box.min_y < 0.0 or box.max_x > self.room_size or box.max_y > self.room_size:
            raise ValueError("patrol_box must lie inside the room")
        if not box.contains(*self.guard_spawn):
            raise ValueError("guard_spawn must lie inside patrol_box")
        orbit_reach = MAX_PATROL_AREA / 2
        for coordinate in self.orbit_center:
            if coordinate - orbit_reach < 0.0 or coordinate + orbit_reach > self.room_size:
                raise ValueError(f"orbit_center must keep a {orbit_reach:g} unit orbit inside the room")
        for coordinate in self.player_spawn:
            if not self.walkable_min <= coordinate <= self.walkable_max:
                raise ValueError("player_spawn must lie inside the walkable area")
        if self.interact_range <= 0 or self.door_range <= 0:
            raise ValueError("interact_range and door_range must be > 0")

    @property
    def walkable_min(self) -> float:
        return self.wall_margin

    @property
    def walkable_max(self) -> float:
        return self.room_size - self.wall_margin

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": ROOM_LAYOUT_SCHEMA_VERSION,
            "room_size": self.room_size,
            "wall_margin": self.wall_margin,
            "player_spawn": list(self.player_spawn),
            "guard_spawn": list(self.guard_spawn),
            "console": list(self.console),
            "door": list(self.door),
            "patrol_box": self.patrol_box.to_dict(),
            "orbit_center": list(self.orbit_center),
            "interact_range": self.interact_range,
            "door_range": self.door_range,
        }


DEFAULT_ROOM_LAYOUT = RoomLayout()


def load_room_layout_json(path: str | Path) -> RoomLayout:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return room_layout_from_payload(payload)


def room_layout_from_payload(payload: dict[str, Any]) -> RoomLayout:
    if not isinstance(payload, dict):
        raise ValueError("room layout payload must be an object")

    schema_version = payload.get("schema_version")
    if not isinstance(schema_version, int):
        raise ValueError("room layout payload must contain integer field: schema_version")
    if schema_version != ROOM_LAYOUT_SCHEMA_VERSION:
        raise ValueError(f"unsupported room layout schema_version: {schema_version}")

    defaults = DEFAULT_ROOM_LAYOUT
    patrol_box_payload = payload.get("patrol_box", defaults.patrol_box.to_dict())
    if not isinstance(patrol_box_payload, dict):
        raise ValueError("patrol_box must be an object")
    patrol_box = PatrolBox(
        min_x=_number(patrol_box_payload, "min_x", field_path="patrol_box.min_x"),
        max_x=_number(patrol_box_payload, "max_x", field_path="patrol_box.max_x"),
        min_y=_number(patrol_box_payload, "min_y", field_path="patrol_box.min_y"),
        max_y=_number(patrol_box_payload, "max_y", field_path="patrol_box.max_y"),
    )

    return RoomLayout(
        room_size=_number(payload, "room_size", default=defaults.room_size),
        wall_margin=_number(payload, "wall_margin", default=defaults.wall_margin),
        player_spawn=_point(payload, "player_spawn", default=defaults.player_spawn),
        guard_spawn=_point(payload, "guard_spawn", default=defaults.guard_spawn),
        console=_point(payload, "console", default=defaults.console),
        door=_point(payload, "door", default=defaults.door),
        patrol_box=patrol_box,
        orbit_center=_point(payload, "orbit_center", default=defaults.orbit_center),
        interact_range=_number(payload, "interact_range", default=defaults.interact_range),
        door_range=_number(payload, "door_range", default=defaults.door_range),
    )


def _number(
    payload: dict[str, Any],
    key: str,
    *,
    default: float | None = None,
    field_path: str | None = None,
) -> float:
    label = field_path or key
    if key not in payload:
        if default is None:
            raise ValueError(f"{label} is required")
        return float(default)
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{label} must be a number")
    return float(value)


def _point(payload: dict[str, Any], key: str, *, default: tuple[float, float]) -> tuple[float, float]:
    if key not in payload:
        return default
    value = payload[key]
    if not isinstance(value, list) or len(value) != 2:
        raise ValueError(f"{key} must be a [x, y] list")
    for index, component in enumerate(value):
        if isinstance(component, bool) or not isinstance(component, (int, float)):
            raise ValueError(f"{key}[{index}] must be a number")
    return (float(value[0]), float(value[1]))
