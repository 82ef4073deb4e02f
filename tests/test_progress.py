"""
Tests for the player progress tracker.
"""
import pytest

from errors import InvalidStoryIndex
from models import QuizScore
from progress import ProgressTracker


def test_zero_state():
    tracker = ProgressTracker()
    assert tracker.is_unlocked(0)
    assert not tracker.is_unlocked(1)
    assert not tracker.is_completed(0)
    assert tracker.overall_stats() == {
        "total_correct": 0,
        "total_questions": 0,
        "overall_accuracy": 0,
        "overall_error_rate": 0,
        "completed_count": 0,
    }


def test_completion_unlocks_next_and_is_idempotent():
    tracker = ProgressTracker()
    tracker.complete_story(0, 80)
    tracker.complete_story(0, 80)
    assert tracker.progress.completed_stories == [0]
    assert tracker.progress.unlocked_stories == [0, 1]
    assert tracker.progress.last_story_index == 0


def test_unlocks_are_monotonic_until_reset():
    tracker = ProgressTracker()
    tracker.complete_story(2, 50)
    tracker.complete_story(0, 50)
    assert {0, 1, 3} <= set(tracker.progress.unlocked_stories)
    tracker.reset()
    assert tracker.progress.unlocked_stories == [0]
    assert tracker.progress.completed_stories == []


@pytest.mark.parametrize("bad_index", [-1, True, "1", None])
def test_invalid_story_index(bad_index):
    with pytest.raises(InvalidStoryIndex):
        ProgressTracker().complete_story(bad_index, 10)


def test_scores_recorded_only_for_non_empty_quiz():
    tracker = ProgressTracker()
    tracker.complete_story(0, 50, QuizScore(correct=2, total=3))
    tracker.complete_story(1, 50, QuizScore(correct=0, total=0))
    score = tracker.story_score(0)
    assert (score.accuracy, score.error_rate) == (67, 33)
    assert tracker.story_score(1) is None


def test_overall_stats():
    tracker = ProgressTracker()
    tracker.complete_story(0, 50, QuizScore(3, 4))
    tracker.complete_story(1, 50, QuizScore(1, 4))
    stats = tracker.overall_stats()
    assert stats["total_correct"] == 4
    assert stats["total_questions"] == 8
    assert stats["overall_accuracy"] == 50
    assert stats["overall_error_rate"] == 50
    assert stats["completed_count"] == 2


def test_carry_over_is_capped_and_excess_cleared():
    tracker = ProgressTracker(base_action_points=100)
    tracker.complete_story(0, 130)
    assert tracker.progress.saved_action_points == 100
    assert tracker.progress.saved_excess_ap == 30
    assert tracker.carry_over_action_points() == 100
    assert tracker.progress.saved_excess_ap == 0
    assert tracker.carry_over_action_points() == 100


def test_carry_over_below_base():
    tracker = ProgressTracker()
    tracker.complete_story(0, 85)
    assert tracker.carry_over_action_points() == 85


def test_all_stories_completed():
    tracker = ProgressTracker()
    assert not tracker.all_stories_completed(2)
    tracker.complete_story(0, 10)
    tracker.complete_story(1, 10)
    assert tracker.all_stories_completed(2)
    assert not tracker.all_stories_completed(0)


def test_to_dict_lists_scores_by_index():
    tracker = ProgressTracker()
    tracker.complete_story(1, 50, QuizScore(1, 2))
    tracker.complete_story(0, 50, QuizScore(2, 2))
    data = tracker.to_dict()
    assert [entry["key"] for entry in data["story_scores"]] == [0, 1]
    assert data["story_scores"][1]["value"]["accuracy"] == 50
    assert data["unlocked_stories"] == [0, 2, 1]


def test_save_and_load(tmp_path):
    path = tmp_path / "progress.json"
    tracker = ProgressTracker()
    tracker.complete_story(0, 120, QuizScore(3, 4))
    tracker.save(path)

    loaded = ProgressTracker.load(path)
    assert loaded.progress == tracker.progress
    assert loaded.story_score(0).correct == 3


def test_load_missing_or_corrupt_file_starts_fresh(tmp_path):
    assert ProgressTracker.load(tmp_path / "absent.json").progress.unlocked_stories == [0]
    corrupt = tmp_path / "corrupt.json"
    corrupt.write_text("{not json", encoding="utf-8")
    assert ProgressTracker.load(corrupt).progress.completed_stories == []
