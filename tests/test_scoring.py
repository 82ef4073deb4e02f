"""
Tests for quiz scoring and refunds.
"""
from models import QuizQuestion, QuizScore
from scoring import accuracy_percent, calculate_quiz_score, calculate_refund, error_rate_percent, round_half_up


def _question(qid, answer):
    return QuizQuestion(id=qid, question="?", options=(answer, "other"), answer=answer)


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(1.49) == 1


def test_exact_match_scoring():
    questions = [_question("q1", "hall"), _question("q2", "Ada"), _question("q3", "")]
    score, results = calculate_quiz_score(questions, {"q1": "hall", "q2": "ada"})
    assert score == QuizScore(correct=1, total=3)
    assert [r.correct for r in results] == [True, False, False]
    assert results[2].user_answer is None
    assert results[1].correct_answer == "Ada"


def test_unanswered_empty_answer_is_not_correct():
    score, _ = calculate_quiz_score([_question("q", "")], {})
    assert score.correct == 0


def test_refund():
    assert calculate_refund(60, QuizScore(3, 4)) == 45
    assert calculate_refund(60, QuizScore(4, 4)) == 60
    assert calculate_refund(60, QuizScore(0, 4)) == 0
    assert calculate_refund(0, QuizScore(4, 4)) == 0
    assert calculate_refund(30, QuizScore(0, 0)) == 0
    assert calculate_refund(10, QuizScore(1, 4)) == 3


def test_percentages():
    assert accuracy_percent(2, 3) == 67
    assert error_rate_percent(2, 3) == 33
    assert accuracy_percent(0, 0) == 0
    assert error_rate_percent(0, 0) == 0
