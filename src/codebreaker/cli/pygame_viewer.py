from __future__ import annotations

import argparse
import importlib.metadata
import math
import os
import platform
import sys
from dataclasses import dataclass
from typing import Any

from codebreaker.cli.viewer import SimulationController
from codebreaker.content.rooms import DEFAULT_ROOM_LAYOUT, RoomLayout, load_room_layout_json
from codebreaker.sim.core import (
    GUARD_ENTITY_ID,
    HACK_SYMBOL_COUNT,
    PHASE_DETECTED,
    PHASE_HACKING,
    PHASE_LEVEL_COMPLETE,
    PLAYER_ENTITY_ID,
    TICKS_PER_SECOND,
    Simulation,
)
from codebreaker.sim.game import DEFAULT_SEED, build_simulation
from codebreaker.sim.locomotion import MOVE_DOWN, MOVE_LEFT, MOVE_RIGHT, MOVE_UP
from codebreaker.sim.phases import level_score
from codebreaker.sim.snapshot import GameSnapshot, extract_game_snapshot

WINDOW_SIZE = (980, 680)
ROOM_ORIGIN = (20, 60)
PANEL_X = 640
SIM_TICK_SECONDS = 1.0 / TICKS_PER_SECOND
MAX_TICKS_PER_FRAME = 10
VISION_CONE_HALF_ANGLE_DEGREES = 30.0

SYMBOL_BUTTON_SIZE = 84
SYMBOL_BUTTON_GAP = 16
SYMBOL_BUTTON_TOP = 380
RESTART_BUTTON_BOX = (PANEL_X, 600, 140, 40)
NEXT_LEVEL_BUTTON_BOX = (PANEL_X + 160, 600, 140, 40)

BACKGROUND_COLOR = (10, 12, 20)
ROOM_COLOR = (18, 22, 34)
GRID_COLOR = (28, 40, 56)
PATROL_BOX_COLOR = (40, 52, 70)
TEXT_COLOR = (120, 230, 240)
MUTED_TEXT_COLOR = (140, 150, 165)
PLAYER_COLOR = (80, 220, 255)
GUARD_COLOR = (240, 80, 90)
SPEED_GUARD_COLOR = (255, 140, 60)
DETECTION_RING_COLOR = (120, 40, 48)
CONSOLE_COLOR = (200, 120, 255)
DOOR_LOCKED_COLOR = (200, 60, 60)
DOOR_UNLOCKED_COLOR = (70, 220, 120)
SYMBOL_COLORS: tuple[tuple[int, int, int], ...] = ((220, 60, 60), (60, 110, 230), (60, 190, 90))
SYMBOL_HIGHLIGHT_COLOR = (245, 245, 245)

pygame: Any | None = None


@dataclass(frozen=True)
class RenderEntitySnapshot:
    x: float
    y: float


RenderSnapshot = dict[str, RenderEntitySnapshot]


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def lerp(start: float, end: float, alpha: float) -> float:
    return start + (end - start) * alpha


def extract_render_snapshot(sim: Simulation) -> RenderSnapshot:
    return {
        entity_id: RenderEntitySnapshot(x=entity.position_x, y=entity.position_y)
        for entity_id, entity in sim.state.entities.items()
    }


def interpolate_entity_position(
    prev_snapshot: RenderSnapshot,
    curr_snapshot: RenderSnapshot,
    entity_id: str,
    alpha: float,
) -> tuple[float, float] | None:
    previous = prev_snapshot.get(entity_id)
    current = curr_snapshot.get(entity_id)
    if previous is None and current is None:
        return None
    if previous is None:
        return (current.x, current.y)
    if current is None:
        return (previous.x, previous.y)
    return (lerp(previous.x, current.x, alpha), lerp(previous.y, current.y, alpha))


def _room_to_pixel(x: float, y: float) -> tuple[int, int]:
    return (int(round(ROOM_ORIGIN[0] + x)), int(round(ROOM_ORIGIN[1] + y)))


def _symbol_button_boxes() -> list[tuple[int, int, int, int]]:
    return [
        (PANEL_X + index * (SYMBOL_BUTTON_SIZE + SYMBOL_BUTTON_GAP), SYMBOL_BUTTON_TOP, SYMBOL_BUTTON_SIZE, SYMBOL_BUTTON_SIZE)
        for index in range(HACK_SYMBOL_COUNT)
    ]


def _box_contains(box: tuple[int, int, int, int], pos: tuple[int, int]) -> bool:
    x, y, width, height = box
    return x <= pos[0] < x + width and y <= pos[1] < y + height


def _hit_symbol_button(pos: tuple[int, int]) -> int | None:
    for index, box in enumerate(_symbol_button_boxes()):
        if _box_contains(box, pos):
            return index
    return None


def _vision_cone_points(
    center: tuple[float, float],
    rotation_degrees: float,
    length: float,
) -> list[tuple[float, float]]:
    points = [center]
    steps = 8
    for step in range(steps + 1):
        offset = -VISION_CONE_HALF_ANGLE_DEGREES + step * (2 * VISION_CONE_HALF_ANGLE_DEGREES / steps)
        radians = math.radians(rotation_degrees + offset)
        points.append((center[0] + math.cos(radians) * length, center[1] + math.sin(radians) * length))
    return points


def _hud_lines(snapshot: GameSnapshot) -> list[str]:
    lines = [
        f"Level {snapshot.level}   Score {snapshot.total_score}",
        f"{snapshot.pattern_description}",
        f"{snapshot.difficulty_phase}"
        + (f"  Cycle {snapshot.advanced_cycle}  {snapshot.advanced_phase}" if snapshot.advanced_cycle else ""),
        f"Bot speed {snapshot.speed:.1f}x{'  SPEED MODE' if snapshot.speed_mode else ''}",
        f"Detection {snapshot.detection_radius}px   Sequence {snapshot.sequence_length}",
        f"Door {'UNLOCKED' if snapshot.door_unlocked else 'locked'}",
        "WASD/arrows move  E interact  Esc restart",
    ]
    return lines


def _movement_key_bindings(pygame_module: Any) -> dict[int, str]:
    return {
        pygame_module.K_w: MOVE_UP,
        pygame_module.K_UP: MOVE_UP,
        pygame_module.K_s: MOVE_DOWN,
        pygame_module.K_DOWN: MOVE_DOWN,
        pygame_module.K_a: MOVE_LEFT,
        pygame_module.K_LEFT: MOVE_LEFT,
        pygame_module.K_d: MOVE_RIGHT,
        pygame_module.K_RIGHT: MOVE_RIGHT,
    }


def _symbol_key_bindings(pygame_module: Any) -> dict[int, int]:
    return {pygame_module.K_1: 0, pygame_module.K_2: 1, pygame_module.K_3: 2}


def _draw_room(screen: Any, snapshot: GameSnapshot, sim: Simulation, font: Any) -> None:
    size = int(snapshot.room_size)
    room_rect = pygame.Rect(ROOM_ORIGIN[0], ROOM_ORIGIN[1], size, size)
    pygame.draw.rect(screen, ROOM_COLOR, room_rect)
    for offset in range(0, size, 40):
        pygame.draw.line(screen, GRID_COLOR, _room_to_pixel(offset, 0), _room_to_pixel(offset, size))
        pygame.draw.line(screen, GRID_COLOR, _room_to_pixel(0, offset), _room_to_pixel(size, offset))
    box = sim.state.layout.patrol_box
    top_left = _room_to_pixel(box.min_x, box.min_y)
    pygame.draw.rect(
        screen,
        PATROL_BOX_COLOR,
        pygame.Rect(top_left[0], top_left[1], int(box.max_x - box.min_x), int(box.max_y - box.min_y)),
        1,
    )
    border_color = SPEED_GUARD_COLOR if snapshot.speed_mode else TEXT_COLOR
    pygame.draw.rect(screen, border_color, room_rect, 2)

    console_x, console_y = _room_to_pixel(*snapshot.console_xy)
    pygame.draw.rect(screen, CONSOLE_COLOR, pygame.Rect(console_x - 20, console_y - 20, 40, 40), 2)
    screen.blit(font.render("CONSOLE", True, CONSOLE_COLOR), (console_x - 30, console_y + 24))

    door_x, door_y = _room_to_pixel(*snapshot.door_xy)
    door_color = DOOR_UNLOCKED_COLOR if snapshot.door_unlocked else DOOR_LOCKED_COLOR
    pygame.draw.rect(screen, door_color, pygame.Rect(door_x - 25, door_y - 25, 50, 50), 3)


def _draw_guard(screen: Any, snapshot: GameSnapshot, guard_xy: tuple[float, float]) -> None:
    center = _room_to_pixel(*guard_xy)
    pygame.draw.circle(screen, DETECTION_RING_COLOR, center, snapshot.detection_radius, 1)
    cone = _vision_cone_points((float(center[0]), float(center[1])), snapshot.vision_cone_degrees, snapshot.detection_radius)
    pygame.draw.polygon(screen, DETECTION_RING_COLOR, cone, 1)
    color = SPEED_GUARD_COLOR if snapshot.speed_mode else GUARD_COLOR
    pygame.draw.circle(screen, color, center, 12)


def _draw_player(screen: Any, player_xy: tuple[float, float]) -> None:
    pygame.draw.circle(screen, PLAYER_COLOR, _room_to_pixel(*player_xy), 10)


def _draw_panel(screen: Any, snapshot: GameSnapshot, font: Any, small_font: Any) -> None:
    y = ROOM_ORIGIN[1]
    screen.blit(font.render("CYBER HEIST: CODEBREAKER", True, TEXT_COLOR), (PANEL_X, 16))
    for line in _hud_lines(snapshot):
        screen.blit(small_font.render(line, True, TEXT_COLOR), (PANEL_X, y))
        y += 26

    if snapshot.phase == PHASE_HACKING:
        label = "WATCH THE SEQUENCE" if snapshot.playback_active else "REPEAT THE SEQUENCE (1/2/3)"
        screen.blit(font.render(label, True, TEXT_COLOR), (PANEL_X, SYMBOL_BUTTON_TOP - 60))
        progress = f"{snapshot.challenge_progress}/{snapshot.challenge_length}"
        screen.blit(small_font.render(f"Progress {progress}", True, MUTED_TEXT_COLOR), (PANEL_X, SYMBOL_BUTTON_TOP - 30))
        for index, box in enumerate(_symbol_button_boxes()):
            color = SYMBOL_HIGHLIGHT_COLOR if snapshot.highlighted_symbol == index else SYMBOL_COLORS[index]
            pygame.draw.rect(screen, color, pygame.Rect(*box), border_radius=8)
            screen.blit(font.render(str(index + 1), True, BACKGROUND_COLOR), (box[0] + box[2] // 2 - 6, box[1] + box[3] // 2 - 10))

    pygame.draw.rect(screen, MUTED_TEXT_COLOR, pygame.Rect(*RESTART_BUTTON_BOX), 1)
    screen.blit(small_font.render("Restart", True, TEXT_COLOR), (RESTART_BUTTON_BOX[0] + 36, RESTART_BUTTON_BOX[1] + 10))
    if snapshot.phase == PHASE_LEVEL_COMPLETE:
        pygame.draw.rect(screen, DOOR_UNLOCKED_COLOR, pygame.Rect(*NEXT_LEVEL_BUTTON_BOX), 1)
        screen.blit(
            small_font.render("Next level", True, DOOR_UNLOCKED_COLOR),
            (NEXT_LEVEL_BUTTON_BOX[0] + 24, NEXT_LEVEL_BUTTON_BOX[1] + 10),
        )


def _draw_overlay(screen: Any, snapshot: GameSnapshot, font: Any) -> None:
    if snapshot.phase not in {PHASE_DETECTED, PHASE_LEVEL_COMPLETE}:
        return
    size = int(snapshot.room_size)
    overlay = pygame.Surface((size, size), pygame.SRCALPHA)
    if snapshot.phase == PHASE_DETECTED:
        overlay.fill((160, 20, 30, 120))
        message = "DETECTED - press Esc to restart"
    else:
        overlay.fill((20, 140, 70, 110))
        message = f"ACCESS GRANTED +{level_score(snapshot.level)} - press N for next level"
    screen.blit(overlay, ROOM_ORIGIN)
    text = font.render(message, True, SYMBOL_HIGHLIGHT_COLOR)
    screen.blit(text, (ROOM_ORIGIN[0] + size // 2 - text.get_width() // 2, ROOM_ORIGIN[1] + size // 2 - 12))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Codebreaker pygame viewer.")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Master seed for patrol and hacking RNG streams.")
    parser.add_argument("--room-path", default=None, help="Optional room layout JSON; built-in layout when omitted.")
    parser.add_argument("--headless", action="store_true", help="Initialize, run one tick, and exit without a window.")
    return parser


def _env_flag_enabled(var_name: str) -> bool:
    return os.environ.get(var_name, "").strip().lower() in {"1", "true", "yes", "on"}


def _print_startup_banner() -> None:
    try:
        pygame_version = importlib.metadata.version("pygame")
    except importlib.metadata.PackageNotFoundError:
        pygame_version = "not-installed"
    print(
        "[codebreaker.viewer] startup "
        f"python={platform.python_version()} "
        f"pygame={pygame_version} "
        f"platform={platform.platform()}"
    )
    for name in ("SDL_VIDEODRIVER", "SDL_AUDIODRIVER"):
        value = os.environ.get(name, "<unset>")
        print(f"[codebreaker.viewer] env {name}={value}")


def _ensure_pygame_imported() -> Any:
    global pygame
    if pygame is None:
        import pygame as pygame_module

        pygame = pygame_module
    return pygame


def _load_layout(room_path: str | None) -> RoomLayout:
    if room_path is None:
        return DEFAULT_ROOM_LAYOUT
    return load_room_layout_json(room_path)


def _build_viewer_simulation(*, seed: int, room_path: str | None) -> Simulation:
    sim = build_simulation(seed=seed, layout=_load_layout(room_path))
    print(
        "[codebreaker.viewer] simulation ready "
        f"seed={seed} room={room_path or '<built-in>'} "
        f"level={sim.state.level} pattern={sim.state.pattern}"
    )
    return sim


def _log_phase_changes(sim: Simulation, seen_count: int) -> int:
    history = sim.state.phase_history
    for entry in history[seen_count:]:
        print(
            "[codebreaker.viewer] phase "
            f"{entry['from']} -> {entry['to']} cause={entry['cause']} "
            f"tick={entry['tick']} level={sim.state.level} score={sim.state.total_score}"
        )
    return len(history)


def run_pygame_viewer(
    *,
    seed: int = DEFAULT_SEED,
    room_path: str | None = None,
    headless: bool = False,
) -> int:
    if headless:
        os.environ["SDL_VIDEODRIVER"] = "dummy"
        print("[codebreaker.viewer] warning: headless mode active; no window will open.")

    _print_startup_banner()
    pygame_module = _ensure_pygame_imported()

    try:
        pygame_module.init()
    except Exception as exc:
        print(
            "[codebreaker.viewer] failed during pygame.init(): "
            f"{exc}. Hint: verify a working SDL video driver (set SDL_VIDEODRIVER=dummy for headless mode).",
            file=sys.stderr,
        )
        return 1

    try:
        sim = _build_viewer_simulation(seed=seed, room_path=room_path)
    except (OSError, ValueError) as exc:
        print(f"[codebreaker.viewer] failed to initialize simulation: {exc}", file=sys.stderr)
        pygame_module.quit()
        return 1

    controller = SimulationController(sim)

    try:
        pygame_module.display.set_caption("Cyber Heist: Codebreaker")
        screen = pygame_module.display.set_mode(WINDOW_SIZE)
    except Exception as exc:
        print(
            "[codebreaker.viewer] failed during pygame.display.set_mode(...): "
            f"{exc}. Hint: use --headless or CODEBREAKER_HEADLESS=1 without a display.",
            file=sys.stderr,
        )
        pygame_module.quit()
        return 1

    print(f"[codebreaker.viewer] display initialized: {pygame_module.display.get_driver()}, window size={WINDOW_SIZE}")

    if headless:
        controller.advance_ticks(1)
        pygame_module.quit()
        return 0

    movement_keys = _movement_key_bindings(pygame_module)
    symbol_keys = _symbol_key_bindings(pygame_module)
    clock = pygame_module.time.Clock()
    font = pygame_module.font.SysFont("consolas", 22)
    small_font = pygame_module.font.SysFont("consolas", 17)

    accumulator = 0.0
    running = True
    previous_snapshot = extract_render_snapshot(sim)
    current_snapshot = previous_snapshot
    last_tick_time = pygame_module.time.get_ticks() / 1000.0
    seen_phase_changes = 0

    while running:
        dt = clock.tick(60) / 1000.0
        accumulator += dt

        for event in pygame_module.event.get():
            if event.type == pygame_module.QUIT:
                running = False
            elif event.type == pygame_module.KEYDOWN and event.key in movement_keys:
                controller.press_key(movement_keys[event.key])
            elif event.type == pygame_module.KEYUP and event.key in movement_keys:
                controller.release_key(movement_keys[event.key])
            elif event.type == pygame_module.KEYUP and event.key == pygame_module.K_ESCAPE:
                controller.restart()
            elif event.type == pygame_module.KEYUP and event.key == pygame_module.K_e:
                controller.interact()
            elif event.type == pygame_module.KEYDOWN and event.key in symbol_keys:
                controller.select_symbol(symbol_keys[event.key])
            elif event.type == pygame_module.KEYDOWN and event.key in (pygame_module.K_n, pygame_module.K_RETURN):
                controller.next_level()
            elif event.type == pygame_module.MOUSEBUTTONDOWN and event.button == 1:
                symbol = _hit_symbol_button(event.pos)
                if symbol is not None:
                    controller.select_symbol(symbol)
                elif _box_contains(RESTART_BUTTON_BOX, event.pos):
                    controller.restart()
                elif _box_contains(NEXT_LEVEL_BUTTON_BOX, event.pos):
                    controller.next_level()

        ticks_this_frame = 0
        while accumulator >= SIM_TICK_SECONDS and ticks_this_frame < MAX_TICKS_PER_FRAME:
            previous_snapshot = current_snapshot
            controller.advance_ticks(1)
            current_snapshot = extract_render_snapshot(sim)
            last_tick_time = pygame_module.time.get_ticks() / 1000.0
            accumulator -= SIM_TICK_SECONDS
            ticks_this_frame += 1
        if ticks_this_frame == MAX_TICKS_PER_FRAME:
            accumulator = 0.0
        seen_phase_changes = _log_phase_changes(sim, seen_phase_changes)

        now_seconds = pygame_module.time.get_ticks() / 1000.0
        alpha = clamp01((now_seconds - last_tick_time) / SIM_TICK_SECONDS)
        snapshot = extract_game_snapshot(sim)

        screen.fill(BACKGROUND_COLOR)
        _draw_room(screen, snapshot, sim, small_font)
        guard_xy = interpolate_entity_position(previous_snapshot, current_snapshot, GUARD_ENTITY_ID, alpha) or snapshot.guard_xy
        player_xy = interpolate_entity_position(previous_snapshot, current_snapshot, PLAYER_ENTITY_ID, alpha) or snapshot.player_xy
        _draw_guard(screen, snapshot, guard_xy)
        _draw_player(screen, player_xy)
        _draw_overlay(screen, snapshot, font)
        _draw_panel(screen, snapshot, font, small_font)
        pygame_module.display.flip()

    pygame_module.quit()
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    headless = args.headless or _env_flag_enabled("CODEBREAKER_HEADLESS")
    raise SystemExit(run_pygame_viewer(seed=args.seed, room_path=args.room_path, headless=headless))


if __name__ == "__main__":
    main()
