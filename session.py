"""
session.py
==========
The case session state machine.

Contains:
  CaseSession — one player's live case: the generated story instance, its
                clue store, the action-point economy, and the quiz / solution
                reveal flags.

Public API summary:
    session = CaseSession.start(stories, story_index, difficulty, seed)
    session.purchase(clue_id)          -> PurchaseResult
    session.finalize_quiz(answers)     -> QuizResult
    session.reveal_solution()          -> Solution
    session.get_solution()             -> Solution
    session.reset_case(difficulty, seed)
    session.advance_story()
    session.contradictions()           -> list of triggered rules

Every transition validates first and generates first, then assigns. A
failing call leaves the session exactly as it was.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Sequence

from case_generator import generate_case
from config import ECONOMY_CONFIG, EconomyConfig
from errors import (
    ClueAlreadyPurchased,
    ClueNotFound,
    InsufficientPoints,
    MissingAnswers,
    NoMoreStories,
    QuizAlreadyFinalized,
    SolutionNotRevealed,
)
from models import (
    Clue,
    ContradictionRule,
    GeneratedCase,
    PurchaseResult,
    QuizResult,
    Solution,
    Statement,
    StoreEntry,
    StoryDefinition,
    clue_to_dict,
)
from scoring import calculate_quiz_score, calculate_refund

logger = logging.getLogger("truth_seeker.session")


def new_session_id() -> str:
    return uuid.uuid4().hex


def decorate_store(case: GeneratedCase) -> List[StoreEntry]:
    """Fresh, unpurchased store entries for a generated case."""
    return [StoreEntry(category=offer.category, clue=offer.clue) for offer in case.store_offers]


class CaseSession:
    """
    Mutable state for one session.

    Attributes:
        session_id:         Opaque token handed to the client.
        player_id:          Progress key the session reports completions to.
        case:               The current GeneratedCase (never mutated).
        store:              Decorated store entries, in offer order.
        purchased_clues:    Clues bought this case, in purchase order.
        statement:          Initial clues plus purchased clues.
        action_points:      Spendable balance, never negative.
        round_spent_points: Points spent since the last quiz; refund basis.
        quiz_answers:       Answers recorded by finalize_quiz().
        quiz_revealed:      True once the quiz has been finalised.
        solution_revealed:  True once the solution has been revealed.
        story_initial_ap:   Balance the player entered each story with.
    """

    def __init__(
        self,
        stories:       Sequence[StoryDefinition],
        case:          GeneratedCase,
        action_points: int,
        session_id:    Optional[str] = None,
        player_id:     str = "default",
        economy:       EconomyConfig = ECONOMY_CONFIG,
        clock=time.time,
    ) -> None:
        self.stories    = stories
        self.economy    = economy
        self.session_id = session_id or new_session_id()
        self.player_id  = player_id
        self._clock     = clock

        self.story_initial_ap: Dict[int, int] = {case.story_index: action_points}
        self._load_case(case, action_points)

        self.created_at    = clock()
        self.last_accessed = self.created_at

    @classmethod
    def start(
        cls,
        stories:       Sequence[StoryDefinition],
        story_index:   int = 0,
        difficulty:    str = "medium",
        seed:          Optional[int] = None,
        action_points: Optional[int] = None,
        **kwargs: Any,
    ) -> "CaseSession":
        """Generate a case and wrap it in a new session."""
        economy = kwargs.get("economy", ECONOMY_CONFIG)
        case = generate_case(stories, story_index, difficulty, seed)
        points = economy.base_action_points if action_points is None else action_points
        session = cls(stories, case, points, **kwargs)
        logger.info(
            "Session %s started — story=%s index=%d action_points=%d",
            session.session_id, case.story_id, story_index, points,
        )
        return session

    def _load_case(self, case: GeneratedCase, action_points: int) -> None:
        self.case               = case
        self.store              = decorate_store(case)
        self.purchased_clues: List[Clue] = []
        self.statement          = Statement(initial=list(case.initial_clues))
        self.action_points      = action_points
        self.round_spent_points = 0
        self.quiz_answers: Dict[str, Any] = {}
        self.quiz_revealed      = False
        self.solution_revealed  = False

    # ------------------------------------------------------------------
    # Economy
    # ------------------------------------------------------------------

    @property
    def story_index(self) -> int:
        return self.case.story_index

    @property
    def purchased_count(self) -> int:
        return sum(1 for entry in self.store if entry.purchased)

    @property
    def next_cost(self) -> int:
        """Cost of the next purchase: the Nth purchase costs N * step."""
        return (self.purchased_count + 1) * self.economy.action_point_step

    def touch(self) -> None:
        self.last_accessed = self._clock()

    def purchase(self, clue_id: str) -> PurchaseResult:
        """
        Buy the store clue `clue_id`.

        Raises:
            ClueNotFound:         the id is not offered in this case's store.
            ClueAlreadyPurchased: it was bought already.
            InsufficientPoints:   the balance is below the current price.
        """
        target = next((entry for entry in self.store if entry.clue.id == clue_id), None)
        if target is None:
            raise ClueNotFound(clue_id=clue_id)
        if target.purchased:
            raise ClueAlreadyPurchased(clue_id=clue_id)

        cost = self.next_cost
        if self.action_points < cost:
            logger.warning(
                "Session %s: purchase of %s rejected — required=%d current=%d",
                self.session_id, clue_id, cost, self.action_points,
            )
            raise InsufficientPoints(required=cost, current=self.action_points)

        target.purchased  = True
        target.spent_cost = cost
        self.purchased_clues.append(target.clue)
        self.statement.merge(target.clue)
        self.action_points       = max(0, self.action_points - cost)
        self.round_spent_points += cost

        logger.info(
            "Session %s: purchased %s (%s) for %d — action_points=%d round_spent=%d",
            self.session_id, clue_id, target.category, cost,
            self.action_points, self.round_spent_points,
        )
        return PurchaseResult(
            clue=target.clue,
            action_points=self.action_points,
            next_cost=self.next_cost,
            spent_cost=cost,
        )

    # ------------------------------------------------------------------
    # Quiz and solution
    # ------------------------------------------------------------------

    def finalize_quiz(self, answers: Any) -> QuizResult:
        """
        Score the quiz once and refund part of this round's spending.

        The refund is added to the balance without any cap; capping to the
        base allotment only happens when points are carried into a new
        session through the progress tracker.

        Raises:
            QuizAlreadyFinalized: the quiz was already scored for this case.
            MissingAnswers:       `answers` is not a mapping.
        """
        if self.quiz_revealed:
            raise QuizAlreadyFinalized()
        if not isinstance(answers, Mapping):
            raise MissingAnswers()

        score, results = calculate_quiz_score(self.case.quiz, answers)
        refund      = calculate_refund(self.round_spent_points, score)
        round_spent = self.round_spent_points

        self.action_points     += refund
        self.quiz_answers       = dict(answers)
        self.quiz_revealed      = True
        self.round_spent_points = 0

        logger.info(
            "Session %s: quiz finalised %d/%d — spent=%d refund=%d action_points=%d",
            self.session_id, score.correct, score.total, round_spent, refund, self.action_points,
        )
        return QuizResult(
            score=score,
            results=results,
            refund=refund,
            final_action_points=self.action_points,
            round_spent_points=round_spent,
        )

    def reveal_solution(self) -> Solution:
        """Mark the solution revealed (idempotent) and return it."""
        if not self.solution_revealed:
            logger.info("Session %s: solution revealed.", self.session_id)
        self.solution_revealed = True
        return self.case.solution

    def get_solution(self) -> Solution:
        if not self.solution_revealed:
            raise SolutionNotRevealed()
        return self.case.solution

    def contradictions(self) -> List[ContradictionRule]:
        """Contradiction rules whose premise names a purchased clue's title."""
        titles = {clue.title for clue in self.purchased_clues}
        return [rule for rule in self.case.contradiction_rules if rule.premise in titles]

    # ------------------------------------------------------------------
    # Story progression
    # ------------------------------------------------------------------

    def reset_case(self, difficulty: Optional[str] = None, seed: Optional[int] = None) -> None:
        """
        Regenerate the current story and restart its economy.

        The first story always restarts at the base allotment. Later stories
        restart at the balance the player entered them with, so a restart
        never loses (or gains) carried-over points.
        """
        story_index = self.story_index
        case = generate_case(self.stories, story_index, difficulty or self.case.difficulty, seed)

        if story_index == 0:
            points = self.economy.base_action_points
        else:
            points = self.story_initial_ap.get(story_index, self.action_points)

        self._load_case(case, points)
        logger.info(
            "Session %s: case reset — story index=%d difficulty=%s seed=%d action_points=%d",
            self.session_id, story_index, case.difficulty, case.seed, points,
        )

    def advance_story(self) -> None:
        """
        Move to the next story, carrying the balance forward unchanged.

        Raises:
            NoMoreStories: the current story is the last one of the pool.
        """
        next_index = self.story_index + 1
        if next_index >= len(self.stories):
            raise NoMoreStories(story_index=self.story_index, total_stories=len(self.stories))

        case = generate_case(self.stories, next_index, self.case.difficulty)
        carried = self.action_points

        self._load_case(case, carried)
        self.story_initial_ap[next_index] = carried
        logger.info(
            "Session %s: advanced to story index=%d (%s) carrying action_points=%d",
            self.session_id, next_index, case.story_id, carried,
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def store_view(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.store]

    def state_view(self) -> Dict[str, Any]:
        """Everything a client may see about the session before reveal."""
        return {
            "session_id":        self.session_id,
            "case":              self.case.public_view(),
            "store":             self.store_view(),
            "purchased_clues":   [clue_to_dict(c) for c in self.purchased_clues],
            "action_points":     self.action_points,
            "next_cost":         self.next_cost,
            "statement":         self.statement.to_dict(),
            "quiz_revealed":     self.quiz_revealed,
            "solution_revealed": self.solution_revealed,
        }
