"""Tests for the command-line session simulator."""

import json
import logging

import pytest

from conductor.app.config import PlayerConfig
from conductor.app.runner import DEMO_TRACKS, load_playlist, main, run_session
from conductor.models.playback_state import PlaybackState


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    for name in ("CONDUCTOR_LOG_LEVEL", "CONDUCTOR_LOG_FILE", "CONDUCTOR_TICK_INTERVAL_MS",
                 "CONDUCTOR_TIME_SCALE", "CONDUCTOR_PROBABILITY_MODE", "CONDUCTOR_SHUFFLE",
                 "CONDUCTOR_REPEAT", "CONDUCTOR_SEED"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("CONDUCTOR_ENV_FILE", str(tmp_path / "missing.env"))


@pytest.fixture(autouse=True)
def restore_root_logger():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_demo_playlist():
    playlist = load_playlist(None)
    assert playlist.get_track_count() == len(DEMO_TRACKS)


def test_playlist_file(tmp_path):
    path = tmp_path / "mix.json"
    path.write_text(json.dumps(DEMO_TRACKS[:2]))

    playlist = load_playlist(path)

    assert playlist.name == "mix"
    assert [t.id for t in playlist.tracks] == ["t01", "t02"]


def test_playlist_file_must_be_a_list(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"tracks": []}))

    with pytest.raises(ValueError):
        load_playlist(path)


def test_sequential_session_plays_through_once():
    config = PlayerConfig(probability_mode=False, seed=3)

    player = run_session(load_playlist(None), config, steps=50, skip_chance=0.0, step_seconds=10.0)

    assert player.get_state() == PlaybackState.STOPPED
    assert player.get_current_track().id == "t08"
    weights = player.queue_manager.get_probability_engine().get_track_weights()
    assert weights == {track["id"]: pytest.approx(1.1) for track in DEMO_TRACKS}


def test_seeded_sessions_are_reproducible():
    config = PlayerConfig(seed=5)

    first = run_session(load_playlist(None), config, steps=6, skip_chance=0.5, step_seconds=5.0)
    second = run_session(load_playlist(None), config, steps=6, skip_chance=0.5, step_seconds=5.0)

    first_engine = first.queue_manager.get_probability_engine()
    second_engine = second.queue_manager.get_probability_engine()
    assert first_engine.get_recent_selections() == second_engine.get_recent_selections()
    assert first_engine.get_track_weights() == second_engine.get_track_weights()


def test_main_prints_summary(capsys):
    exit_code = main(["--steps", "3", "--seed", "1", "--step-seconds", "5"])

    assert exit_code == 0
    output = capsys.readouterr().out
    assert "Learned weights" in output
    assert "Listener" in output


def test_main_sequential_with_log_file(tmp_path, capsys):
    log_file = tmp_path / "logs" / "session.log"

    exit_code = main(["--sequential", "--steps", "2", "--seed", "2", "--step-seconds", "10",
                      "--log-file", str(log_file)])

    assert exit_code == 0
    assert "Playing:" in log_file.read_text(encoding="utf-8")


def test_main_rejects_bad_configuration(monkeypatch):
    monkeypatch.setenv("CONDUCTOR_TIME_SCALE", "9")
    assert main(["--steps", "1"]) == 2


def test_main_rejects_bad_arguments():
    assert main(["--steps", "0"]) == 2
    assert main(["--skip-chance", "2"]) == 2


def test_main_missing_playlist(tmp_path):
    assert main(["--playlist", str(tmp_path / "nope.json")]) == 1
