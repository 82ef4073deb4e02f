"""
scoring.py
==========
Deterministic, side-effect-free quiz scoring and refund logic.

Extracted from the session engine so it can be unit-tested independently
and shared with the progress tracker, which reports the same percentages.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Tuple

from models import QuestionResult, QuizQuestion, QuizScore


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves going up.

    Python's built-in round() sends halves to the even neighbour, which would
    make 0.5-boundary counts and refunds depend on parity.

    Examples:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(1.8)
        2
    """
    return math.floor(value + 0.5)


def calculate_quiz_score(
    questions: Iterable[QuizQuestion],
    answers:   Mapping[str, Any],
) -> Tuple[QuizScore, Tuple[QuestionResult, ...]]:
    """
    Compare submitted answers with the rendered correct answers.

    Matching is exact string equality. A question with no submitted answer
    is never correct, even when its rendered answer is empty.

    Args:
        questions: The case's quiz, in display order.
        answers:   Mapping of question id to the chosen option text.

    Returns:
        (QuizScore, per-question results in quiz order).
    """
    results = []
    for question in questions:
        submitted = answers.get(question.id)
        correct   = question.id in answers and submitted == question.answer
        results.append(QuestionResult(
            question_id=question.id,
            correct=correct,
            user_answer=submitted or None,
            correct_answer=question.answer,
        ))
    score = QuizScore(correct=sum(1 for r in results if r.correct), total=len(results))
    return score, tuple(results)


def calculate_refund(round_spent_points: int, score: QuizScore) -> int:
    """
    Action points returned after the quiz, proportional to accuracy.

    refund = round_half_up(round_spent_points * correct / total), with the
    ratio clamped to [0, 1]. Zero when nothing was spent or the quiz was
    empty, and never more than what was spent this round.

    Examples:
        >>> calculate_refund(60, QuizScore(correct=3, total=4))
        45
        >>> calculate_refund(0, QuizScore(correct=4, total=4))
        0
    """
    if score.total <= 0 or round_spent_points <= 0:
        return 0
    ratio = max(0.0, min(1.0, score.correct / score.total))
    return round_half_up(round_spent_points * ratio)


def accuracy_percent(correct: int, total: int) -> int:
    """Share of correct answers as a whole percentage (0 for an empty quiz)."""
    if total <= 0:
        return 0
    return round_half_up(correct / total * 100)


def error_rate_percent(correct: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up((total - correct) / total * 100)
