from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from codebreaker.cli.pygame_viewer import run_pygame_viewer
from codebreaker.content.rooms import DEFAULT_ROOM_LAYOUT_PATH
from codebreaker.sim.game import DEFAULT_SEED


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="codebreaker", description="Canonical Codebreaker launcher.")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Master seed for the game's RNG streams.")
    parser.add_argument("--room-path", default=DEFAULT_ROOM_LAYOUT_PATH, help="Room layout JSON to play in.")
    parser.add_argument("--headless", action="store_true", help="Run startup path in headless mode.")
    return parser


def _resolve_room_path(room_path: str) -> str | None:
    """Fall back to the built-in layout when the canonical room file is not on disk."""
    if Path(room_path).exists():
        return room_path
    if room_path == DEFAULT_ROOM_LAYOUT_PATH:
        return None
    raise FileNotFoundError(f"room layout not found: {room_path}")


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        room_path = _resolve_room_path(args.room_path)
    except FileNotFoundError as exc:
        print(f"error: {exc}")
        return 1
    return run_pygame_viewer(seed=args.seed, room_path=room_path, headless=args.headless)


if __name__ == "__main__":
    raise SystemExit(main())
