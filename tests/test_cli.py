"""
Tests for the terminal game loop, driven by scripted input.
"""
from cli import PLAYER_ID, run_cli
from progress import ProgressTracker


def scripted(*lines):
    feed = iter(lines)
    return lambda prompt="": next(feed)


def test_browse_and_quit(engine, capsys):
    run_cli(engine, seed=42, input_fn=scripted("/store", "/buy nope", "/suspects", "/solution", "/bogus", "/quit"))
    out = capsys.readouterr().out
    assert "ALPHA CASE" in out
    assert "Next clue costs 10 AP" in out
    assert "CLUE_NOT_FOUND" in out
    assert "Cole" in out
    assert "Cole did it." in out
    assert "Commands:" in out
    assert "Thanks for playing!" in out


def test_locked_next_story_is_reported(engine, capsys):
    run_cli(engine, seed=42, input_fn=scripted("/next", "/quit"))
    assert "STORY_LOCKED" in capsys.readouterr().out


def test_quiz_completes_story_and_saves_progress(engine, tmp_path, capsys):
    path = tmp_path / "progress.json"
    run_cli(
        engine,
        progress_path=str(path),
        difficulty="hard",
        seed=42,
        input_fn=scripted("/quiz", "1", "1", "1", "1", "/progress", "/quit"),
    )
    out = capsys.readouterr().out
    assert "Refund: 0 AP" in out
    assert "completed" in out

    saved = ProgressTracker.load(path)
    assert saved.progress.completed_stories == [0]
    assert saved.is_unlocked(1)
    assert engine.tracker(PLAYER_ID) is not None


def test_resumes_at_highest_unlocked_story(engine, tmp_path, capsys):
    path = tmp_path / "progress.json"
    tracker = ProgressTracker()
    tracker.complete_story(0, 90)
    tracker.save(path)

    run_cli(engine, progress_path=str(path), seed=1, input_fn=scripted("/quit"))
    assert "BETA CASE" in capsys.readouterr().out
