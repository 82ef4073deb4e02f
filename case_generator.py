"""
case_generator.py
=================
Procedural case generation from story templates.

Public API:
    generate_case(stories, story_index, difficulty="medium", seed=None) -> GeneratedCase

Reproducibility
---------------
Every random decision in a generation draws from ONE SeededRandom, in a
fixed order:

    1. context draws        (variables, declaration order)
    2. store group shuffles (one per category, first-seen category order)
    3. initial-clue subsample shuffle
    4. quiz subsample shuffle

Reordering any of these steps, or iterating a collection in a different
order, changes every case produced from an existing seed. The pipeline is
therefore written as one straight sequence in generate_case(); the helper
functions receive the shared generator explicitly.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from config import CORE_CATEGORIES, DIFFICULTY_CONFIG, FINAL_QUIZ_TAG, OTHER_CATEGORY
from context_builder import build_context
from errors import StoryNotFound
from models import (
    Beat,
    Clue,
    ClueTemplate,
    GeneratedCase,
    QuizQuestion,
    QuizTemplate,
    Solution,
    StatementEntry,
    StoreClueTemplate,
    StoreOffer,
    StoryDefinition,
    Suspect,
)
from rng import SeededRandom
from scoring import round_half_up
from templating import render_template

logger = logging.getLogger("truth_seeker.case_generator")


def derive_seed() -> int:
    """
    Seed for callers that did not supply one.

    Wall-clock milliseconds plus a random offset, so two cases requested in
    the same millisecond still differ. Only a caller-supplied seed makes a
    case reproducible.
    """
    return int(time.time() * 1000) + random.randrange(1_000_000)


def generate_case(
    stories:     Sequence[StoryDefinition],
    story_index: int,
    difficulty:  str = "medium",
    seed:        Optional[int] = None,
) -> GeneratedCase:
    """
    Build a complete case for ``stories[story_index]``.

    Args:
        stories:     The loaded story pool.
        story_index: Position of the story in the pool.
        difficulty:  "easy" | "medium" | "hard". Anything else is treated
                     as the default tier, "medium".
        seed:        Integer seed. Derived from the clock when omitted.

    Returns:
        A frozen GeneratedCase.

    Raises:
        StoryNotFound: if `story_index` is outside the pool.
    """
    if not 0 <= story_index < len(stories):
        raise StoryNotFound(f"Story not found for index {story_index}")
    story = stories[story_index]

    if not DIFFICULTY_CONFIG.is_valid(difficulty):
        logger.debug("Unknown difficulty %r, using %r.", difficulty, DIFFICULTY_CONFIG.default)
        difficulty = DIFFICULTY_CONFIG.default
    tier = DIFFICULTY_CONFIG.tier(difficulty)

    if isinstance(seed, float) and seed.is_integer():
        seed = int(seed)
    effective_seed = seed if isinstance(seed, int) and not isinstance(seed, bool) else derive_seed()
    rng = SeededRandom(effective_seed)
    templates = story.templates

    # 1. Context.
    context = build_context(story.variables, rng)
    logger.debug("Context built for story=%s: keys=%s", story.id, list(context.keys()))

    # 2. Deterministic renders (no draws).
    beats = tuple(
        Beat(id=beat.id, text=render_template(beat.text, context))
        for beat in templates.description_beats
    )
    micro_events = _render_micro_events(templates.micro_events, context)
    rendered_initial = [_render_clue(c, context) for c in templates.initial_clues]

    # 3. Store assembly (one shuffle per category group).
    initial_from_store, store_offers, overflow = _assemble_store(templates.store_clues, context, rng)

    # 4. Difficulty-scaled initial clues.
    candidates = rendered_initial + initial_from_store + overflow + list(micro_events)
    initial_clues = _select_by_multiplier(candidates, tier.clue_multiplier, rng)

    statement_entries = tuple(
        StatementEntry(
            id=entry.id,
            text=render_template(entry.text, context),
            speaker=render_template(entry.speaker, context) or None,
            tags=tuple(entry.tags),
        )
        for entry in templates.statement_entries
    )

    # 5. Quiz (final questions always last).
    quiz = _select_quiz(templates.quiz_questions, tier.quiz_ratio, rng, context)

    solution = Solution(
        summary=render_template(templates.solution.summary, context),
        details=tuple(render_template(d, context) for d in templates.solution.details),
        tags=tuple(templates.solution.tags),
    )

    suspects = _extract_suspects(context.get("suspects") or {})

    logger.info(
        "Generated case story=%s index=%d difficulty=%s seed=%d | "
        "store=%d initial_clues=%d/%d quiz=%d",
        story.id, story_index, difficulty, effective_seed,
        len(store_offers), len(initial_clues), len(candidates), len(quiz),
    )

    return GeneratedCase(
        seed=effective_seed,
        story_id=story.id,
        story_title=story.title,
        story_index=story_index,
        total_stories=len(stories),
        difficulty=difficulty,
        tags=tuple(story.tags),
        metadata=dict(story.metadata),
        narrative=" ".join(beat.text for beat in beats),
        description_beats=beats,
        micro_events=micro_events,
        victim=context.get("victim"),
        location=context.get("locationMain"),
        time_window=context.get("timeWindow"),
        suspects=suspects,
        initial_clues=tuple(initial_clues),
        store_offers=tuple(store_offers),
        statement_entries=statement_entries,
        quiz=quiz,
        solution=solution,
        contradiction_rules=tuple(
            rule.model_copy(update={
                "premise":    render_template(rule.premise, context),
                "conflict":   render_template(rule.conflict, context),
                "resolution": render_template(rule.resolution, context),
            })
            for rule in templates.contradiction_rules
        ),
        context=context,
    )


# ---------------------------------------------------------------------------
# Pipeline steps
# ---------------------------------------------------------------------------

def _render_clue(template: ClueTemplate, context: Mapping[str, Any], phase: Optional[str] = None) -> Clue:
    return Clue(
        id=template.id,
        title=template.title,
        text=render_template(template.text, context),
        tags=tuple(template.tags),
        phase=phase,
    )


def _render_micro_events(
    micro_events: Mapping[str, Sequence[ClueTemplate]],
    context:      Mapping[str, Any],
) -> Tuple[Clue, ...]:
    rendered: List[Clue] = []
    for phase, events in micro_events.items():
        for event in events or []:
            clue = _render_clue(event, context, phase=phase)
            if not clue.title:
                clue = Clue(id=clue.id, title="Micro Event", text=clue.text, tags=clue.tags, phase=phase)
            rendered.append(clue)
    return tuple(rendered)


def normalize_category(category: Optional[str]) -> str:
    """Map a free-form category onto a core category, else "other"."""
    normalized = (category or "").strip().lower()
    return normalized if normalized in CORE_CATEGORIES else OTHER_CATEGORY


def _assemble_store(
    entries: Sequence[StoreClueTemplate],
    context: Mapping[str, Any],
    rng:     SeededRandom,
) -> Tuple[List[Clue], List[StoreOffer], List[Clue]]:
    """
    Split store candidates into starting clues, one offer per category, and overflow.

    Returns:
        (initial-flagged clues, store offers, overflow clues). Overflow is
        narrative colour: it joins the initial-clue candidates and is never
        sold.
    """
    initial_from_store: List[Clue] = []
    groups: Dict[str, List[Clue]] = {}

    for entry in entries:
        clue = _render_clue(entry.clue, context)
        if entry.initial or entry.clue.initial:
            initial_from_store.append(clue)
            continue
        groups.setdefault(normalize_category(entry.category), []).append(clue)

    offers: List[StoreOffer] = []
    overflow: List[Clue] = []
    for category, clues in groups.items():
        shuffled = rng.shuffle(clues)
        offers.append(StoreOffer(category=category, clue=shuffled[0]))
        overflow.extend(shuffled[1:])
        logger.debug("Store group %s: %d candidate(s), offer=%s", category, len(clues), shuffled[0].id)

    return initial_from_store, offers, overflow


def _select_by_multiplier(clues: List[Clue], multiplier: float, rng: SeededRandom) -> List[Clue]:
    if multiplier >= 1 or len(clues) <= 1:
        return clues
    count = max(1, round_half_up(len(clues) * multiplier))
    if count >= len(clues):
        return clues
    return rng.shuffle(clues)[:count]


def _render_question(template: QuizTemplate, context: Mapping[str, Any]) -> QuizQuestion:
    return QuizQuestion(
        id=template.id,
        question=render_template(template.question, context),
        options=tuple(render_template(o, context) for o in template.options),
        answer=render_template(template.answer, context),
        tags=tuple(template.tags),
        difficulty=template.difficulty,
    )


def _select_quiz(
    questions: Sequence[QuizTemplate],
    ratio:     float,
    rng:       SeededRandom,
    context:   Mapping[str, Any],
) -> Tuple[QuizQuestion, ...]:
    """Subsample the ordinary questions, then append every final question."""
    if not questions:
        return ()
    final = [q for q in questions if FINAL_QUIZ_TAG in q.tags]
    other = [q for q in questions if FINAL_QUIZ_TAG not in q.tags]

    if ratio >= 1:
        selected = other
    else:
        count = max(1, round_half_up(len(other) * ratio))
        selected = rng.shuffle(other)[:count]

    return tuple(_render_question(q, context) for q in selected + final)


def _extract_suspects(suspects: Mapping[str, Any]) -> Tuple[Suspect, ...]:
    """Flatten the context's suspect map into an ordered list keyed by map key."""
    flattened = []
    for suspect_id, data in suspects.items():
        if isinstance(data, Mapping):
            flattened.append(Suspect(
                id=suspect_id,
                name=str(data.get("name", "")),
                role=str(data.get("role", "")),
                occupation=data.get("occupation"),
                appearance=data.get("appearance"),
                notes=data.get("notes"),
            ))
        else:
            flattened.append(Suspect(id=suspect_id, name="" if data is None else str(data)))
    return tuple(flattened)
