"""
Tests for the engine facade: validation, unlock gating, carry-over, expiry.
"""
import pytest

from case_engine import TruthSeekerEngine
from errors import (
    GenerationError,
    InvalidActionPoints,
    InvalidDifficulty,
    InvalidQuizScore,
    InvalidSeed,
    InvalidStoryIndex,
    MissingClueId,
    NoMoreStories,
    PoolNotLoaded,
    ScoreNotFound,
    SessionNotFound,
    StoryLocked,
)


def _play_round(engine, session_id):
    """Buy three clues, answer three of four questions correctly."""
    state = engine.get_case_state(session_id)
    for entry in state["store"][:3]:
        engine.purchase_clue(session_id, entry["clue"]["id"])
    quiz = engine.sessions.get(session_id).case.quiz
    answers = {q.id: q.answer for q in quiz[:3]}
    return engine.finalize_quiz(session_id, answers)


def test_list_stories(engine):
    data = engine.list_stories()
    assert data["total"] == 2
    assert data["stories"][0] == {"id": "alpha", "title": "Alpha Case", "tags": ["test"], "metadata": {"era": "1920s"}}


def test_create_case_payload(engine):
    state = engine.create_case(0, "hard", seed=42)
    assert state["session_id"] in engine.sessions
    assert state["action_points"] == 100
    assert state["next_cost"] == 10
    assert state["case"]["seed"] == 42
    assert state["case"]["total_stories"] == 2
    assert "quiz" not in state["case"]


@pytest.mark.parametrize("bad_index", [-1, 2, "0", True, None])
def test_create_case_rejects_bad_index(engine, bad_index):
    with pytest.raises(InvalidStoryIndex):
        engine.create_case(bad_index)


def test_create_case_rejects_bad_difficulty(engine):
    with pytest.raises(InvalidDifficulty):
        engine.create_case(0, "nightmare")


def test_integral_float_seed_is_reproducible(engine):
    first = engine.create_case(0, "hard", seed=42.0)
    second = engine.create_case(0, "hard", seed=42)
    assert first["case"]["seed"] == second["case"]["seed"] == 42
    assert first["case"] == second["case"]


def test_huge_seed_generates_a_case(engine):
    state = engine.create_case(0, seed=10 ** 400)
    assert state["case"]["seed"] == 10 ** 400


@pytest.mark.parametrize("bad_seed", [42.5, "42", True, float("inf")])
def test_create_and_reset_reject_bad_seeds(engine, bad_seed):
    with pytest.raises(InvalidSeed):
        engine.create_case(0, seed=bad_seed)
    session_id = engine.create_case(0, seed=1)["session_id"]
    with pytest.raises(InvalidSeed):
        engine.reset_case(session_id, seed=bad_seed)


def test_locked_story_cannot_be_opened(engine):
    with pytest.raises(StoryLocked):
        engine.create_case(1)


def test_finalize_completes_story_and_carries_balance(engine):
    session_id = engine.create_case(0, "hard", seed=42)["session_id"]
    result = _play_round(engine, session_id)
    assert result["refund"] == 45
    assert result["final_action_points"] == 85
    assert result["progress"]["completed_stories"] == [0]
    assert 1 in result["progress"]["unlocked_stories"]
    assert "correct_answer" in result["results"][0]

    state = engine.create_case(1, "easy", seed=1)
    assert state["action_points"] == 85


def test_advance_requires_unlock_and_stops_at_last_story(engine):
    session_id = engine.create_case(0, "hard", seed=42)["session_id"]
    with pytest.raises(StoryLocked):
        engine.advance_story(session_id)

    _play_round(engine, session_id)
    state = engine.advance_story(session_id)
    assert state["case"]["story_index"] == 1
    assert state["action_points"] == 85

    with pytest.raises(NoMoreStories):
        engine.advance_story(session_id)


def test_reset_case(engine):
    session_id = engine.create_case(0, "medium", seed=1)["session_id"]
    engine.purchase_clue(session_id, engine.get_case_state(session_id)["store"][0]["clue"]["id"])
    state = engine.reset_case(session_id, "easy", 2)
    assert state["case"]["difficulty"] == "easy"
    assert state["action_points"] == 100
    with pytest.raises(InvalidDifficulty):
        engine.reset_case(session_id, "nightmare")


def test_purchase_needs_clue_id(engine):
    session_id = engine.create_case(0, seed=1)["session_id"]
    with pytest.raises(MissingClueId):
        engine.purchase_clue(session_id, "")


def test_purchase_reports_contradictions(engine):
    session_id = engine.create_case(0, seed=11)["session_id"]
    timeline = next(e for e in engine.get_case_state(session_id)["store"] if e["category"] == "timeline")
    result = engine.purchase_clue(session_id, timeline["clue"]["id"])
    assert result["contradictions"][0]["conflict"] == "Cole lied."
    assert result["action_points"] == 90
    assert result["next_cost"] == 20


def test_quiz_and_solution_flow(engine):
    session_id = engine.create_case(0, seed=3)["session_id"]
    quiz = engine.get_quiz(session_id)
    assert all("answer" not in q for q in quiz["questions"])
    assert engine.reveal_solution(session_id)["solution"]["summary"] == "Cole did it."
    assert engine.get_solution(session_id)["solution"]["summary"] == "Cole did it."


def test_unknown_session(engine):
    with pytest.raises(SessionNotFound):
        engine.get_case_state("missing")


def test_sessions_expire_after_idle_ttl(engine, clock):
    session_id = engine.create_case(0, seed=1)["session_id"]
    clock.advance(engine.session_config.ttl_seconds + 1)
    assert engine.sweep_expired() == 1
    with pytest.raises(SessionNotFound):
        engine.get_case_state(session_id)


def test_progress_is_per_player(engine):
    engine.save_progress("alice", 0, 70, {"correct": 1, "total": 2})
    assert engine.get_progress("alice")["completed_stories"] == [0]
    assert engine.get_progress("bob")["completed_stories"] == []
    assert engine.story_score(0, "alice")["score"]["accuracy"] == 50
    with pytest.raises(ScoreNotFound):
        engine.story_score(0, "bob")
    assert engine.statistics("alice")["overall_stats"]["total_questions"] == 2


def test_save_progress_validation(engine):
    with pytest.raises(InvalidStoryIndex):
        engine.save_progress("alice", -3, 10)
    with pytest.raises(InvalidActionPoints):
        engine.save_progress("alice", 0, "lots")
    with pytest.raises(InvalidQuizScore):
        engine.save_progress("alice", 0, 10, [3, 4])
    with pytest.raises(InvalidQuizScore):
        engine.save_progress("alice", 0, 10, {"correct": "many", "total": 4})
    assert "alice" not in engine.progress


def test_reads_do_not_create_progress_records(engine):
    assert engine.get_progress("ghost")["completed_stories"] == []
    assert engine.statistics("ghost")["story_scores"] == []
    with pytest.raises(ScoreNotFound):
        engine.story_score(0, "ghost")
    engine.reset_progress("ghost")
    engine.create_case(0, seed=1, player_id="ghost")
    assert "ghost" not in engine.progress

    engine.save_progress("ghost", 0, 40)
    assert "ghost" in engine.progress


def test_reset_progress(engine):
    engine.save_progress(None, 0, 50)
    assert engine.get_progress()["all_stories_completed"] is False
    engine.save_progress(None, 1, 50)
    assert engine.get_progress()["all_stories_completed"] is True
    assert engine.reset_progress()["unlocked_stories"] == [0]


def test_engine_without_pool():
    engine = TruthSeekerEngine(None)
    with pytest.raises(PoolNotLoaded):
        engine.list_stories()
    assert engine.health()["status"] == "degraded"


def test_unexpected_generation_failure_is_wrapped(engine, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("template exploded")

    monkeypatch.setattr("session.generate_case", explode)
    with pytest.raises(GenerationError) as excinfo:
        engine.create_case(0)
    assert excinfo.value.details["details"] == "template exploded"
    assert len(engine.sessions) == 0


def test_health(engine):
    engine.create_case(0, seed=1)
    assert engine.health() == {"status": "ok", "stories_loaded": 2, "active_sessions": 1}
