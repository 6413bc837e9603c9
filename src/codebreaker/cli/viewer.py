from __future__ import annotations

from codebreaker.sim.core import Simulation
from codebreaker.sim.game import DEFAULT_SEED, build_simulation
from codebreaker.sim.hacking import INTERACT_COMMAND_TYPE, SELECT_SYMBOL_COMMAND_TYPE
from codebreaker.sim.locomotion import KEY_DOWN_COMMAND_TYPE, KEY_UP_COMMAND_TYPE, MOVE_KEYS
from codebreaker.sim.phases import NEXT_LEVEL_COMMAND_TYPE, RESTART_COMMAND_TYPE
from codebreaker.sim.snapshot import extract_game_snapshot

GRID_COLUMNS = 30
GRID_ROWS = 15
PHASE_BANNERS = {
    "active": "",
    "detected": "!! DETECTED !! (restart)",
    "hacking": "HACKING",
    "level_complete": "ACCESS GRANTED (next)",
}


class AsciiViewer:
    """Read-only projection of simulation state for terminal display."""

    def render(self, sim: Simulation) -> str:
        snapshot = extract_game_snapshot(sim)
        lines: list[str] = [
            f"tick={snapshot.tick} level={snapshot.level} score={snapshot.total_score} "
            f"phase={snapshot.phase} pattern={snapshot.pattern_description}",
            f"speed={snapshot.speed:.1f} detection={snapshot.detection_radius} "
            f"sequence={snapshot.sequence_length} door={'open' if snapshot.door_unlocked else 'locked'}",
        ]

        grid = [["." for _ in range(GRID_COLUMNS)] for _ in range(GRID_ROWS)]
        for glyph, xy in (
            ("C", snapshot.console_xy),
            ("D", snapshot.door_xy),
            ("G", snapshot.guard_xy),
            ("P", snapshot.player_xy),
        ):
            column = min(GRID_COLUMNS - 1, int(xy[0] / snapshot.room_size * GRID_COLUMNS))
            row = min(GRID_ROWS - 1, int(xy[1] / snapshot.room_size * GRID_ROWS))
            grid[row][column] = glyph
        lines.extend("".join(row) for row in grid)

        if snapshot.challenge_length:
            highlight = "-" if snapshot.highlighted_symbol is None else str(snapshot.highlighted_symbol)
            mode = "watch" if snapshot.playback_active else "repeat"
            lines.append(
                f"hack[{mode}] progress={snapshot.challenge_progress}/{snapshot.challenge_length} highlight={highlight}"
            )
        banner = PHASE_BANNERS.get(snapshot.phase, "")
        if banner:
            lines.append(banner)
        return "\n".join(lines)


class SimulationController:
    """Small command adapter; issues commands to sim but does not own state."""

    def __init__(self, sim: Simulation) -> None:
        self.sim = sim

    def press_key(self, key: str) -> None:
        if key not in MOVE_KEYS:
            return
        self.sim.apply_command(KEY_DOWN_COMMAND_TYPE, {"key": key})

    def release_key(self, key: str) -> None:
        if key not in MOVE_KEYS:
            return
        self.sim.apply_command(KEY_UP_COMMAND_TYPE, {"key": key})

    def interact(self) -> None:
        self.sim.apply_command(INTERACT_COMMAND_TYPE)

    def select_symbol(self, symbol: int) -> None:
        self.sim.apply_command(SELECT_SYMBOL_COMMAND_TYPE, {"symbol": symbol})

    def restart(self) -> None:
        self.sim.apply_command(RESTART_COMMAND_TYPE)

    def next_level(self) -> None:
        self.sim.apply_command(NEXT_LEVEL_COMMAND_TYPE)

    def advance_ticks(self, ticks: int) -> None:
        self.sim.advance_ticks(ticks)

    def advance_milliseconds(self, milliseconds: int) -> None:
        self.sim.advance_milliseconds(milliseconds)


def run_demo(seed: int = DEFAULT_SEED) -> None:
    sim = build_simulation(seed=seed)
    view = AsciiViewer()
    controller = SimulationController(sim)

    print(
        "Codebreaker demo. Commands: show | hold <dir> | release <dir> | interact | press <0-2> | "
        "tick <n> | wait <ms> | restart | next | quit"
    )
    print(view.render(sim))

    while True:
        raw = input("> ").strip()
        if raw in {"quit", "exit"}:
            break
        if raw == "show":
            print(view.render(sim))
            continue
        if raw == "interact":
            controller.interact()
            print(view.render(sim))
            continue
        if raw == "restart":
            controller.restart()
            print(view.render(sim))
            continue
        if raw == "next":
            controller.next_level()
            print(view.render(sim))
            continue

        parts = raw.split()
        if len(parts) == 2 and parts[0] == "hold" and parts[1] in MOVE_KEYS:
            controller.press_key(parts[1])
            continue
        if len(parts) == 2 and parts[0] == "release" and parts[1] in MOVE_KEYS:
            controller.release_key(parts[1])
            continue
        if len(parts) == 2 and parts[0] == "press" and parts[1] in {"0", "1", "2"}:
            controller.select_symbol(int(parts[1]))
            print(view.render(sim))
            continue
        if len(parts) == 2 and parts[0] == "tick" and parts[1].isdigit():
            controller.advance_ticks(int(parts[1]))
            print(view.render(sim))
            continue
        if len(parts) == 2 and parts[0] == "wait" and parts[1].isdigit():
            controller.advance_milliseconds(int(parts[1]))
            print(view.render(sim))
            continue

        print("unknown command")


if __name__ == "__main__":
    run_demo()
