"""
progress.py
===========
Cross-session player progress: completions, unlocks, quiz scores and the
action-point balance carried into the next story.

ProgressTracker wraps one PlayerProgress record and does not know where
the record lives: the engine keeps trackers in a
KeyedStore, the CLI persists the record to a JSON file with save()/load().
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from config import ECONOMY_CONFIG
from errors import InvalidStoryIndex
from models import PlayerProgress, QuizScore, StoryScore
from scoring import accuracy_percent, error_rate_percent

logger = logging.getLogger("truth_seeker.progress")


class ProgressTracker:
    """
    Unlock gating and carry-over bookkeeping for one player.

    Invariants:
        - Story 0 is always unlocked.
        - Completing story i unlocks story i + 1.
        - Nothing but reset() removes an unlocked story.
    """

    def __init__(
        self,
        progress: Optional[PlayerProgress] = None,
        base_action_points: int = ECONOMY_CONFIG.base_action_points,
    ) -> None:
        self.progress = progress or PlayerProgress()
        self.base_action_points = base_action_points

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def complete_story(
        self,
        story_index: int,
        action_points: int,
        quiz_score: Optional[QuizScore] = None,
    ) -> PlayerProgress:
        """
        Record that `story_index` was completed with `action_points` left.

        Idempotent on the completed / unlocked sets. The balance is stored as
        a carry-over split into the part up to the base allotment and the
        excess above it. A quiz score is recorded only for a non-empty quiz.
        """
        if isinstance(story_index, bool) or not isinstance(story_index, int) or story_index < 0:
            raise InvalidStoryIndex(story_index=story_index)

        p = self.progress
        if story_index not in p.completed_stories:
            p.completed_stories.append(story_index)
        next_index = story_index + 1
        if next_index not in p.unlocked_stories:
            p.unlocked_stories.append(next_index)
            logger.info("Story %d unlocked.", next_index)

        balance = max(0, int(action_points))
        p.saved_action_points = min(self.base_action_points, balance)
        p.saved_excess_ap     = balance - p.saved_action_points
        p.last_story_index    = story_index

        if quiz_score is not None and quiz_score.total > 0:
            p.story_scores[story_index] = StoryScore(
                correct=quiz_score.correct,
                total=quiz_score.total,
                accuracy=accuracy_percent(quiz_score.correct, quiz_score.total),
                error_rate=error_rate_percent(quiz_score.correct, quiz_score.total),
            )

        logger.info(
            "Story %d completed — carry-over=%d (+%d excess) score=%s",
            story_index, p.saved_action_points, p.saved_excess_ap,
            f"{quiz_score.correct}/{quiz_score.total}" if quiz_score else "n/a",
        )
        return p

    def carry_over_action_points(self) -> int:
        """
        Balance to start the next story's session with.

        Never more than the base allotment. The excess part is consumed by
        this call.
        """
        p = self.progress
        carried = min(self.base_action_points, p.saved_action_points + p.saved_excess_ap)
        p.saved_excess_ap = 0
        return carried

    def reset(self) -> PlayerProgress:
        """Back to the zero state: only story 0 unlocked, nothing completed."""
        self.progress = PlayerProgress()
        logger.info("Progress reset.")
        return self.progress

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_unlocked(self, story_index: int) -> bool:
        return story_index in self.progress.unlocked_stories

    def is_completed(self, story_index: int) -> bool:
        return story_index in self.progress.completed_stories

    def story_score(self, story_index: int) -> Optional[StoryScore]:
        return self.progress.story_scores.get(story_index)

    def all_stories_completed(self, total_stories: int) -> bool:
        return total_stories > 0 and len(self.progress.completed_stories) >= total_stories

    def overall_stats(self) -> Dict[str, int]:
        """Aggregate every recorded quiz score into overall percentages."""
        scores = self.progress.story_scores.values()
        total_correct   = sum(s.correct for s in scores)
        total_questions = sum(s.total for s in scores)
        return {
            "total_correct":      total_correct,
            "total_questions":    total_questions,
            "overall_accuracy":   accuracy_percent(total_correct, total_questions),
            "overall_error_rate": error_rate_percent(total_correct, total_questions),
            "completed_count":    len(self.progress.story_scores),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot for clients: lists, per-story scores and overall stats."""
        p = self.progress
        return {
            "completed_stories": list(p.completed_stories),
            "unlocked_stories":  list(p.unlocked_stories),
            "last_story_index":  p.last_story_index,
            "story_scores":      [
                {"key": index, "value": score.model_dump()}
                for index, score in sorted(p.story_scores.items())
            ],
            "overall_stats":     self.overall_stats(),
        }

    # ------------------------------------------------------------------
    # File persistence (clients without a server)
    # ------------------------------------------------------------------

    def save(self, path: Union[str, Path]) -> None:
        Path(path).write_text(self.progress.model_dump_json(indent=2), encoding="utf-8")

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        base_action_points: int = ECONOMY_CONFIG.base_action_points,
    ) -> "ProgressTracker":
        """
        Load a saved record. A missing or unreadable file yields fresh progress;
        the problem is logged, the player just starts over.
        """
        target = Path(path)
        if not target.exists():
            return cls(base_action_points=base_action_points)
        try:
            progress = PlayerProgress.model_validate_json(target.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            logger.error("Could not load progress from %s: %s. Starting fresh.", target, exc)
            return cls(base_action_points=base_action_points)
        if 0 not in progress.unlocked_stories:
            progress.unlocked_stories.insert(0, 0)
        return cls(progress, base_action_points=base_action_points)
