from pathlib import Path

from codebreaker.cli.play import main
from codebreaker.content.rooms import DEFAULT_ROOM_LAYOUT_PATH


def test_play_launcher_defaults_to_canonical_room(monkeypatch) -> None:
    captured = {}

    def fake_run(**kwargs):
        captured.update(kwargs)
        return 0

    monkeypatch.setattr("codebreaker.cli.play.run_pygame_viewer", fake_run)

    result = main(["--headless"])

    assert result == 0
    assert captured == {"seed": 7, "room_path": DEFAULT_ROOM_LAYOUT_PATH, "headless": True}


def test_play_launcher_falls_back_to_built_in_room_when_canonical_file_missing(tmp_path: Path, monkeypatch) -> None:
    captured = {}

    def fake_run(**kwargs):
        captured.update(kwargs)
        return 0

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("codebreaker.cli.play.run_pygame_viewer", fake_run)

    result = main(["--seed", "3"])

    assert result == 0
    assert captured == {"seed": 3, "room_path": None, "headless": False}


def test_play_launcher_rejects_missing_custom_room(tmp_path: Path, monkeypatch, capsys) -> None:
    def fake_run(**kwargs):
        raise AssertionError("viewer must not start")

    monkeypatch.setattr("codebreaker.cli.play.run_pygame_viewer", fake_run)

    result = main(["--room-path", str(tmp_path / "missing.json")])

    assert result == 1
    assert "error: room layout not found" in capsys.readouterr().out
