"""
case_engine.py
==============
Orchestration layer for TruthSeeker.

Contains:
  TruthSeekerEngine — the single class that wires the story pool, the
                      session registry and the progress registry together
                      and exposes a clean, dict-returning API consumed by
                      the HTTP server (server.py), the Streamlit UI (app.py)
                      and the terminal runner (cli.py).

Public API summary:
    engine = TruthSeekerEngine(stories)
    engine.list_stories()                                   -> dict
    engine.create_case(story_index, difficulty, seed, pid)  -> dict
    engine.get_case_state(sid)                              -> dict
    engine.purchase_clue(sid, clue_id)                      -> dict
    engine.get_quiz(sid)                                    -> dict
    engine.finalize_quiz(sid, answers)                      -> dict
    engine.reveal_solution(sid) / engine.get_solution(sid)  -> dict
    engine.reset_case(sid, difficulty, seed)                -> dict
    engine.advance_story(sid)                               -> dict
    engine.get_progress(pid) / save_progress(...) / reset_progress(pid)

Every failure is raised as a TruthSeekerError subclass; front ends decide
how to present it (HTTP status, Streamlit warning, CLI message).

Logging
-------
The logger name for this module is ``truth_seeker.case_engine``. Configure
level and destination once at your entry point.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from config import DIFFICULTY_CONFIG, ECONOMY_CONFIG, SESSION_CONFIG, EconomyConfig, SessionConfig
from errors import (
    GenerationError,
    InvalidActionPoints,
    InvalidDifficulty,
    InvalidQuizScore,
    InvalidSeed,
    InvalidStoryIndex,
    MissingClueId,
    PoolNotLoaded,
    ScoreNotFound,
    SessionNotFound,
    StoryLocked,
    TruthSeekerError,
)
from models import QuizScore, StoryDefinition, clue_to_dict
from progress import ProgressTracker
from session import CaseSession
from session_store import InMemoryStore, KeyedStore

logger = logging.getLogger("truth_seeker.case_engine")


class TruthSeekerEngine:
    """
    Main engine.

    Owns nothing global: the session and progress registries are injected
    KeyedStore objects (in-memory by default), so tests can control time and
    a deployment can swap the backend.

    Attributes:
        stories:  The loaded story pool, or None when loading failed.
        sessions: KeyedStore of CaseSession by session id, TTL-evicted.
        progress: KeyedStore of ProgressTracker by player id, never evicted.
        economy:  Action-point constants.
    """

    def __init__(
        self,
        stories:        Optional[Sequence[StoryDefinition]] = None,
        sessions:       Optional[KeyedStore[CaseSession]] = None,
        progress:       Optional[KeyedStore[ProgressTracker]] = None,
        economy:        EconomyConfig = ECONOMY_CONFIG,
        session_config: SessionConfig = SESSION_CONFIG,
        clock:          Callable[[], float] = time.time,
    ) -> None:
        self.stories = list(stories) if stories is not None else None
        self.economy = economy
        self.session_config = session_config
        self._clock = clock
        self.sessions: KeyedStore[CaseSession] = (
            sessions if sessions is not None
            else InMemoryStore(ttl_seconds=session_config.ttl_seconds, clock=clock)
        )
        self.progress: KeyedStore[ProgressTracker] = (
            progress if progress is not None else InMemoryStore(clock=clock)
        )
        logger.info(
            "TruthSeekerEngine initialised — stories=%s, base_action_points=%d, step=%d",
            len(self.stories) if self.stories is not None else "not loaded",
            economy.base_action_points,
            economy.action_point_step,
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _require_stories(self) -> List[StoryDefinition]:
        if self.stories is None:
            raise PoolNotLoaded()
        return self.stories

    def _session(self, session_id: str) -> CaseSession:
        session = self.sessions.get(session_id) if session_id else None
        if session is None:
            logger.warning("Unknown session id %r.", session_id)
            raise SessionNotFound(session_id=session_id)
        session.touch()
        return session

    def tracker(self, player_id: Optional[str] = None, create: bool = True) -> ProgressTracker:
        """
        Progress tracker for `player_id`.

        With `create` the record is stored on first use. Without it an unknown
        player gets a fresh, unstored tracker, so reads never grow the registry.
        """
        player_id = player_id or self.session_config.default_player_id
        tracker = self.progress.get(player_id)
        if tracker is None:
            tracker = ProgressTracker(base_action_points=self.economy.base_action_points)
            if not create:
                return tracker
            self.progress.set(player_id, tracker)
            logger.debug("Created progress record for player=%s.", player_id)
        return tracker

    def _validate_story_index(self, story_index: Any) -> int:
        stories = self._require_stories()
        if (
            isinstance(story_index, bool)
            or not isinstance(story_index, int)
            or not 0 <= story_index < len(stories)
        ):
            raise InvalidStoryIndex(story_index=story_index, total_stories=len(stories))
        return story_index

    @staticmethod
    def _validate_difficulty(difficulty: Any) -> None:
        if not isinstance(difficulty, str) or not DIFFICULTY_CONFIG.is_valid(difficulty):
            raise InvalidDifficulty(
                difficulty=difficulty,
                valid=sorted(DIFFICULTY_CONFIG.tiers),
            )

    @staticmethod
    def _validate_seed(seed: Any) -> Optional[int]:
        """Integers pass through; integral floats from JSON clients become ints."""
        if seed is None:
            return None
        if isinstance(seed, float) and seed.is_integer():
            return int(seed)
        if isinstance(seed, bool) or not isinstance(seed, int):
            raise InvalidSeed(seed=seed)
        return seed

    def _generate(self, action: Callable[[], Any]) -> Any:
        """
        Run a generation step, wrapping anything unexpected in GenerationError.

        Typed engine errors pass through untouched.
        """
        try:
            return action()
        except TruthSeekerError:
            raise
        except Exception as exc:
            logger.error("Case generation failed: %s", exc, exc_info=True)
            raise GenerationError(details=str(exc)) from exc

    # ------------------------------------------------------------------
    # Stories and cases
    # ------------------------------------------------------------------

    def list_stories(self) -> Dict[str, Any]:
        stories = self._require_stories()
        return {"stories": [story.summary() for story in stories], "total": len(stories)}

    def create_case(
        self,
        story_index: Any = 0,
        difficulty:  Any = "medium",
        seed:        Optional[int] = None,
        player_id:   Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Start a new session on `story_index`.

        Story 0 starts at the base allotment; later stories start with the
        player's carried-over balance (falling back to the base allotment
        when nothing was carried).

        Raises:
            InvalidStoryIndex, InvalidDifficulty, InvalidSeed, StoryLocked,
            GenerationError
        """
        stories = self._require_stories()
        story_index = self._validate_story_index(story_index)
        self._validate_difficulty(difficulty)
        seed = self._validate_seed(seed)

        player_id = player_id or self.session_config.default_player_id
        tracker = self.tracker(player_id, create=False)
        if not tracker.is_unlocked(story_index):
            logger.warning("Player %s tried to open locked story %d.", player_id, story_index)
            raise StoryLocked(story_index=story_index)

        action_points = self.economy.base_action_points
        if story_index > 0:
            carried = tracker.carry_over_action_points()
            if carried > 0:
                action_points = carried

        session = self._generate(lambda: CaseSession.start(
            stories,
            story_index,
            difficulty,
            seed,
            action_points=action_points,
            player_id=player_id,
            economy=self.economy,
            clock=self._clock,
        ))
        self.sessions.set(session.session_id, session)
        logger.info(
            "Case created — session=%s player=%s story=%d difficulty=%s active_sessions=%d",
            session.session_id, player_id, story_index, difficulty, len(self.sessions),
        )
        return session.state_view()

    def get_case_state(self, session_id: str) -> Dict[str, Any]:
        return self._session(session_id).state_view()

    def purchase_clue(self, session_id: str, clue_id: Optional[str]) -> Dict[str, Any]:
        session = self._session(session_id)
        if not clue_id:
            raise MissingClueId()
        result = session.purchase(clue_id)
        return {
            "clue":          clue_to_dict(result.clue),
            "spent_cost":    result.spent_cost,
            "action_points": result.action_points,
            "next_cost":     result.next_cost,
            "store":         session.store_view(),
            "statement":     session.statement.to_dict(),
            "contradictions": [rule.model_dump() for rule in session.contradictions()],
        }

    # ------------------------------------------------------------------
    # Quiz and solution
    # ------------------------------------------------------------------

    def get_quiz(self, session_id: str) -> Dict[str, Any]:
        session = self._session(session_id)
        return {
            "questions":     [q.public() for q in session.case.quiz],
            "quiz_revealed": session.quiz_revealed,
        }

    def finalize_quiz(self, session_id: str, answers: Any) -> Dict[str, Any]:
        """
        Score the quiz, apply the refund and complete the story for the player.

        Completion records the score and carry-over balance and unlocks the
        next story.
        """
        session = self._session(session_id)
        result = session.finalize_quiz(answers)

        tracker = self.tracker(session.player_id)
        tracker.complete_story(session.story_index, result.final_action_points, result.score)

        return {
            "score":               {"correct": result.score.correct, "total": result.score.total},
            "results":             [
                {
                    "question_id":    r.question_id,
                    "correct":        r.correct,
                    "user_answer":    r.user_answer,
                    "correct_answer": r.correct_answer,
                }
                for r in result.results
            ],
            "refund":              result.refund,
            "round_spent_points":  result.round_spent_points,
            "final_action_points": result.final_action_points,
            "action_points":       session.action_points,
            "progress":            tracker.to_dict(),
        }

    def reveal_solution(self, session_id: str) -> Dict[str, Any]:
        solution = self._session(session_id).reveal_solution()
        return {"solution": solution.to_dict(), "solution_revealed": True}

    def get_solution(self, session_id: str) -> Dict[str, Any]:
        return {"solution": self._session(session_id).get_solution().to_dict()}

    # ------------------------------------------------------------------
    # Story progression
    # ------------------------------------------------------------------

    def reset_case(
        self,
        session_id: str,
        difficulty: Optional[str] = None,
        seed:       Optional[int] = None,
    ) -> Dict[str, Any]:
        session = self._session(session_id)
        if difficulty is not None:
            self._validate_difficulty(difficulty)
        seed = self._validate_seed(seed)
        self._generate(lambda: session.reset_case(difficulty, seed))
        return session.state_view()

    def advance_story(self, session_id: str) -> Dict[str, Any]:
        """
        Move the session to the next story.

        Raises:
            NoMoreStories: the session is on the last story.
            StoryLocked:   the player has not unlocked the next story yet.
        """
        session = self._session(session_id)
        next_index = session.story_index + 1
        tracker = self.tracker(session.player_id, create=False)
        if next_index < len(self._require_stories()) and not tracker.is_unlocked(next_index):
            logger.warning(
                "Session %s: advance to locked story %d refused.", session_id, next_index,
            )
            raise StoryLocked(story_index=next_index)
        self._generate(session.advance_story)
        return session.state_view()

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def get_progress(self, player_id: Optional[str] = None) -> Dict[str, Any]:
        tracker = self.tracker(player_id, create=False)
        data = tracker.to_dict()
        if self.stories is not None:
            data["all_stories_completed"] = tracker.all_stories_completed(len(self.stories))
        return data

    def save_progress(
        self,
        player_id:     Optional[str],
        story_index:   Any,
        action_points: Any,
        quiz_score:    Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Record a completion reported by a client (quiz score is optional)."""
        try:
            points = int(action_points)
        except (TypeError, ValueError) as exc:
            raise InvalidActionPoints(action_points=action_points) from exc

        if quiz_score is not None and not isinstance(quiz_score, Mapping):
            raise InvalidQuizScore(quiz_score=quiz_score)
        score = None
        if quiz_score:
            try:
                score = QuizScore(
                    correct=int(quiz_score.get("correct", 0)),
                    total=int(quiz_score.get("total", 0)),
                )
            except (TypeError, ValueError) as exc:
                raise InvalidQuizScore(quiz_score=quiz_score) from exc

        player_id = player_id or self.session_config.default_player_id
        tracker = self.tracker(player_id, create=False)
        tracker.complete_story(story_index, points, score)
        self.progress.set(player_id, tracker)
        return self.get_progress(player_id)

    def reset_progress(self, player_id: Optional[str] = None) -> Dict[str, Any]:
        player_id = player_id or self.session_config.default_player_id
        tracker = self.progress.get(player_id)
        if tracker is not None:
            tracker.reset()
        return self.get_progress(player_id)

    def story_score(self, story_index: int, player_id: Optional[str] = None) -> Dict[str, Any]:
        score = self.tracker(player_id, create=False).story_score(story_index)
        if score is None:
            raise ScoreNotFound(story_index=story_index)
        return {"story_index": story_index, "score": score.model_dump()}

    def statistics(self, player_id: Optional[str] = None) -> Dict[str, Any]:
        data = self.tracker(player_id, create=False).to_dict()
        return {"overall_stats": data["overall_stats"], "story_scores": data["story_scores"]}

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def sweep_expired(self) -> int:
        """Drop idle sessions. Returns how many were removed."""
        return self.sessions.sweep_expired()

    def health(self) -> Dict[str, Any]:
        return {
            "status":          "ok" if self.stories is not None else "degraded",
            "stories_loaded":  len(self.stories) if self.stories is not None else 0,
            "active_sessions": len(self.sessions),
        }
