"""
models.py
=========
Shared data models for TruthSeeker.

Contains:
  - Story pool schema    : Pydantic models validating a story definition asset
                           (variables tree + template collections).
  - Generated case       : Frozen dataclasses produced by the case generator.
                           Nothing downstream mutates them.
  - Session bookkeeping  : Mutable dataclasses owned by a CaseSession
                           (store entries, statement, operation results).
  - PlayerProgress       : Pydantic model for the cross-session progress
                           record, JSON-serialisable so clients can persist it.

Keeping these in one module guarantees a single source of truth for data
shapes used across the generator, the session engine, and every front end.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Story pool schema (validated input)
# ---------------------------------------------------------------------------

class _Template(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ClueTemplate(_Template):
    """A clue before rendering. ``text`` may contain placeholders."""

    id:      str
    title:   str = ""
    text:    str = ""
    tags:    List[str] = Field(default_factory=list)
    initial: bool = False


class BeatTemplate(_Template):
    id:   Optional[str] = None
    text: str = ""


class StoreClueTemplate(_Template):
    """
    A purchasable clue candidate.

    Fields:
        category: Free-form category; normalised to one of the core
                  categories or "other" during generation.
        initial:  When true the clue starts unlocked instead of being sold.
        clue:     The clue itself.
    """

    category: str = ""
    initial:  bool = False
    clue:     ClueTemplate


class StatementTemplate(_Template):
    id:      str
    text:    str = ""
    speaker: Optional[str] = None
    tags:    List[str] = Field(default_factory=list)


class QuizTemplate(_Template):
    """
    A quiz question before rendering.

    ``answer`` is rendered with the same context as ``options`` so that an
    exact string comparison against the submitted option is meaningful.
    """

    id:         str
    question:   str = ""
    options:    List[str] = Field(default_factory=list)
    answer:     str = ""
    tags:       List[str] = Field(default_factory=list)
    difficulty: Optional[str] = None


class SolutionTemplate(_Template):
    summary: str = ""
    details: List[str] = Field(default_factory=list)
    tags:    List[str] = Field(default_factory=list)


class ContradictionRule(_Template):
    id:         str
    premise:    str
    conflict:   str = ""
    resolution: str = ""


class StoryTemplates(_Template):
    description_beats:   List[BeatTemplate] = Field(default_factory=list, alias="descriptionBeats")
    micro_events:        Dict[str, List[ClueTemplate]] = Field(default_factory=dict, alias="microEvents")
    initial_clues:       List[ClueTemplate] = Field(default_factory=list, alias="initialClues")
    store_clues:         List[StoreClueTemplate] = Field(default_factory=list, alias="storeClues")
    statement_entries:   List[StatementTemplate] = Field(default_factory=list, alias="statementEntries")
    quiz_questions:      List[QuizTemplate] = Field(default_factory=list, alias="quizQuestions")
    solution:            SolutionTemplate = Field(default_factory=SolutionTemplate)
    contradiction_rules: List[ContradictionRule] = Field(default_factory=list, alias="contradictionRules")


class StoryDefinition(_Template):
    """
    One story of the pool.

    ``variables`` maps pool names to either a list of variants (one is drawn
    per case) or a nested mapping of further pools. It is treated as
    read-only template data; the context builder copies what it draws.
    """

    id:        str
    title:     str
    tags:      List[str] = Field(default_factory=list)
    metadata:  Dict[str, Any] = Field(default_factory=dict)
    variables: Dict[str, Any] = Field(default_factory=dict)
    templates: StoryTemplates = Field(default_factory=StoryTemplates)

    def summary(self) -> Dict[str, Any]:
        """Public listing entry: id, title, tags, metadata."""
        return {
            "id":       self.id,
            "title":    self.title,
            "tags":     list(self.tags),
            "metadata": dict(self.metadata),
        }


# ---------------------------------------------------------------------------
# Generated case (immutable output of the generator)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Clue:
    id:    str
    title: str
    text:  str
    tags:  Tuple[str, ...] = ()
    phase: Optional[str] = None


@dataclass(frozen=True)
class Beat:
    id:   Optional[str]
    text: str


@dataclass(frozen=True)
class Suspect:
    id:         str
    name:       str
    role:       str = ""
    occupation: Optional[str] = None
    appearance: Optional[str] = None
    notes:      Optional[str] = None


@dataclass(frozen=True)
class StatementEntry:
    id:      str
    text:    str
    speaker: Optional[str] = None
    tags:    Tuple[str, ...] = ()


@dataclass(frozen=True)
class QuizQuestion:
    id:         str
    question:   str
    options:    Tuple[str, ...]
    answer:     str
    tags:       Tuple[str, ...] = ()
    difficulty: Optional[str] = None

    def public(self) -> Dict[str, Any]:
        """The question as a client may see it before reveal: no answer."""
        return {
            "id":         self.id,
            "question":   self.question,
            "options":    list(self.options),
            "difficulty": self.difficulty,
        }


@dataclass(frozen=True)
class Solution:
    summary: str
    details: Tuple[str, ...] = ()
    tags:    Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"summary": self.summary, "details": list(self.details)}


@dataclass(frozen=True)
class StoreOffer:
    """The single visible clue the generator keeps for one category."""
    category: str
    clue:     Clue


@dataclass(frozen=True)
class GeneratedCase:
    """
    One concrete instance of a story for a given seed and difficulty.

    Quiz answers and the solution are present here but must never be sent to
    an untrusted client before reveal; ``public_view()`` leaves them out.
    """

    seed:                int
    story_id:            str
    story_title:         str
    story_index:         int
    total_stories:       int
    difficulty:          str
    tags:                Tuple[str, ...]
    metadata:            Dict[str, Any]
    narrative:           str
    description_beats:   Tuple[Beat, ...]
    micro_events:        Tuple[Clue, ...]
    victim:              Any
    location:            Any
    time_window:         Any
    suspects:            Tuple[Suspect, ...]
    initial_clues:       Tuple[Clue, ...]
    store_offers:        Tuple[StoreOffer, ...]
    statement_entries:   Tuple[StatementEntry, ...]
    quiz:                Tuple[QuizQuestion, ...]
    solution:            Solution
    contradiction_rules: Tuple[ContradictionRule, ...] = ()
    context:             Dict[str, Any] = field(default_factory=dict)

    def public_view(self) -> Dict[str, Any]:
        return {
            "seed":              self.seed,
            "story_id":          self.story_id,
            "story_title":       self.story_title,
            "story_index":       self.story_index,
            "total_stories":     self.total_stories,
            "difficulty":        self.difficulty,
            "tags":              list(self.tags),
            "metadata":          dict(self.metadata),
            "narrative":         self.narrative,
            "description_beats": [asdict(b) for b in self.description_beats],
            "victim":            self.victim,
            "location":          self.location,
            "time_window":       self.time_window,
            "suspects":          [asdict(s) for s in self.suspects],
            "initial_clues":     [clue_to_dict(c) for c in self.initial_clues],
            "statement_entries": [
                {**asdict(e), "tags": list(e.tags)} for e in self.statement_entries
            ],
        }


def clue_to_dict(clue: Clue) -> Dict[str, Any]:
    data = asdict(clue)
    data["tags"] = list(clue.tags)
    return data


# ---------------------------------------------------------------------------
# Session bookkeeping (mutable, owned by CaseSession)
# ---------------------------------------------------------------------------

@dataclass
class StoreEntry:
    """A store offer decorated with its purchase state."""

    category:   str
    clue:       Clue
    purchased:  bool = False
    spent_cost: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Public view. Clue text stays hidden until the clue is bought."""
        if self.purchased:
            clue = clue_to_dict(self.clue)
        else:
            clue = {"id": self.clue.id, "title": self.clue.title}
        return {
            "category":   self.category,
            "clue":       clue,
            "purchased":  self.purchased,
            "spent_cost": self.spent_cost,
        }


@dataclass
class Statement:
    """
    The player-visible evidence file: initial clues plus purchased clues.

    Append-only. A clue already present (by id) is never added twice.
    """

    initial:   List[Clue] = field(default_factory=list)
    purchased: List[Clue] = field(default_factory=list)

    def merge(self, clue: Clue) -> bool:
        """Append `clue` to the purchased section. Returns False if already present."""
        if any(existing.id == clue.id for existing in self.purchased):
            return False
        self.purchased.append(clue)
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "initial":   [clue_to_dict(c) for c in self.initial],
            "purchased": [clue_to_dict(c) for c in self.purchased],
        }


@dataclass(frozen=True)
class QuizScore:
    correct: int
    total:   int


@dataclass(frozen=True)
class QuestionResult:
    question_id:    str
    correct:        bool
    user_answer:    Optional[str]
    correct_answer: str


@dataclass(frozen=True)
class PurchaseResult:
    clue:          Clue
    action_points: int
    next_cost:     int
    spent_cost:    int


@dataclass(frozen=True)
class QuizResult:
    score:               QuizScore
    results:             Tuple[QuestionResult, ...]
    refund:              int
    final_action_points: int
    round_spent_points:  int


# ---------------------------------------------------------------------------
# Player progress (persisted)
# ---------------------------------------------------------------------------

class StoryScore(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    correct:    int
    total:      int
    accuracy:   int
    error_rate: int = Field(alias="errorRate")


class PlayerProgress(BaseModel):
    """
    Per-player record that outlives any single session.

    Fields:
        completed_stories:   Story indices whose quiz has been completed.
        unlocked_stories:    Story indices the player may enter. Always holds 0;
                             only a full reset ever shrinks it.
        last_story_index:    Most recently completed story.
        saved_action_points: Carry-over balance, at most the base allotment.
        saved_excess_ap:     Part of the carry-over balance above the base
                             allotment; cleared once consumed.
        story_scores:        Quiz score per story index.
    """

    model_config = ConfigDict(populate_by_name=True)

    completed_stories:   List[int] = Field(default_factory=list, alias="completedStories")
    unlocked_stories:    List[int] = Field(default_factory=lambda: [0], alias="unlockedStories")
    last_story_index:    int = Field(default=0, alias="lastStoryIndex")
    saved_action_points: int = Field(default=0, alias="savedActionPoints")
    saved_excess_ap:     int = Field(default=0, alias="savedExcessAP")
    story_scores:        Dict[int, StoryScore] = Field(default_factory=dict, alias="storyScores")
