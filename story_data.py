"""
story_data.py
=============
The story pool: all narrative content TruthSeeker generates cases from.

Centralising story data here means you can swap out the mysteries
(variables, clue templates, quiz, solution) without touching the generator,
the session engine or any UI.

Two sources:
    BUILTIN_STORIES      — the default pool shipped with the game.
    load_story_pool(path)— a JSON asset ``{"stories": [...]}`` using the same
                           shape (camelCase template keys are accepted too).

Template conventions used below:
    - ``suspects.a`` is always the culprit slot; who fills it varies per seed.
    - Quiz answers are templates rendered from the same context as the
      options, so the exact-match check compares like with like.
    - Questions tagged "quiz:final" ask for the culprit and always close the quiz.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from errors import PoolNotLoaded
from models import StoryDefinition

logger = logging.getLogger("truth_seeker.story_data")


# ---------------------------------------------------------------------------
# Story 1: the blackout
# ---------------------------------------------------------------------------

_MERIDIAN_BLACKOUT: Dict[str, Any] = {
    "id": "meridian-blackout",
    "title": "The Blackout at Meridian Labs",
    "tags": ["facility", "blackout", "tutorial"],
    "metadata": {"era": "contemporary", "estimated_minutes": 15},
    "variables": {
        "victim": [
            {"name": "Dr. Helena Voss", "role": "Lead Researcher"},
            {"name": "Dr. Anton Reyes", "role": "Facility Director"},
        ],
        "locationMain": ["server vault", "cryogenics bay", "east wing archive"],
        "timeWindow": ["21:40 - 22:10", "23:05 - 23:35"],
        "weather": ["a freezing drizzle", "a gusting storm", "a heavy fog"],
        "outage": {
            "duration": ["eleven minutes", "seventeen minutes"],
            "cause": ["a tripped breaker", "a forged maintenance order"],
        },
        "weapon": ["a severed power cable", "an insulated pry bar"],
        "motive": ["a stolen patent", "buried safety violations"],
        "suspects": {
            "a": [
                {"name": "Iris Calder", "role": "Systems Engineer",
                 "occupation": "Power grid maintenance", "appearance": "Scorched work gloves"},
                {"name": "Owen Pike", "role": "Systems Engineer",
                 "occupation": "Backup generator crew", "appearance": "Oil-stained cuffs"},
            ],
            "b": [
                {"name": "Nadia Ferro", "role": "Security Chief",
                 "occupation": "Night shift supervisor", "appearance": "Keycard lanyard"},
                {"name": "Victor Hale", "role": "Security Chief",
                 "occupation": "Access control", "appearance": "Rain-soaked coat"},
            ],
            "c": [
                {"name": "Lena Ortiz", "role": "Research Assistant",
                 "occupation": "Sample logistics", "notes": "Stayed late to finish a report"},
                {"name": "Samuel Brandt", "role": "Research Assistant",
                 "occupation": "Data analysis", "notes": "Argued with the victim last week"},
            ],
        },
    },
    "templates": {
        "description_beats": [
            {"id": "intro", "text": "{{victim.name}}, the {{victim.role}}, was found in the {{locationMain}} after a facility-wide blackout."},
            {"id": "outage", "text": "The lights stayed dark for {{outage.duration}}, triggered by {{outage.cause}}."},
            {"id": "weather", "text": "Outside, {{weather}} kept everyone on site between {{timeWindow}}."},
        ],
        "micro_events": {
            "before": [
                {"id": "me-argument", "title": "Raised Voices", "text": "A janitor heard {{victim.name}} arguing about {{motive}} an hour before the outage."},
            ],
            "during": [
                {"id": "me-footsteps", "text": "Footsteps echoed near the {{locationMain}} while the emergency lights flickered."},
            ],
            "after": [
                {"id": "me-alarm", "title": "Silent Alarm", "text": "A silent alarm from the {{locationMain}} was logged but never acknowledged."},
            ],
        },
        "initial_clues": [
            {"id": "ic-body", "title": "Scene Report", "text": "{{victim.name}} lay beside {{weapon}} in the {{locationMain}}.", "tags": ["scene"]},
            {"id": "ic-roster", "title": "Night Roster", "text": "Only {{suspects.a.name}}, {{suspects.b.name}} and {{suspects.c.name}} badged in after 20:00.", "tags": ["roster"]},
        ],
        "store_clues": [
            {"category": "background", "clue": {"id": "sc-patent", "title": "Patent Filing", "text": "{{suspects.a.name}} was listed, then removed, as co-inventor on {{victim.name}}'s latest patent."}},
            {"category": "background", "clue": {"id": "sc-review", "title": "Performance Review", "text": "{{suspects.c.name}} had received a harsh review signed by {{victim.name}}."}},
            {"category": "timeline", "clue": {"id": "sc-badge", "title": "Badge Log", "text": "{{suspects.a.name}}'s badge opened the power room two minutes before the blackout."}},
            {"category": "timeline", "clue": {"id": "sc-cctv", "title": "CCTV Gap", "text": "The corridor camera outside the {{locationMain}} lost power for exactly {{outage.duration}}."}},
            {"category": "physical", "clue": {"id": "sc-gloves", "title": "Scorched Gloves", "text": "Gloves with burn marks matching {{weapon}} were found in the engineering lockers."}},
            {"category": "physical", "clue": {"id": "sc-print", "title": "Partial Print", "text": "A partial print on the breaker panel is too smudged for a match."}},
            {"category": "testimonial", "clue": {"id": "sc-guard", "title": "Guard's Account", "text": "{{suspects.b.name}} saw an engineer's torch moving toward the {{locationMain}} during the outage."}},
            {"category": "forensics", "clue": {"id": "sc-tox", "title": "Toxicology", "text": "No drugs or poisons were found; the injuries match {{weapon}}."}},
            {"category": "timeline", "initial": True, "clue": {"id": "sc-outage-start", "title": "Outage Start", "text": "The main grid dropped at the start of {{timeWindow}}."}},
        ],
        "statement_entries": [
            {"id": "st-a", "speaker": "{{suspects.a.name}}", "text": "I was resetting the backup generator the whole time."},
            {"id": "st-b", "speaker": "{{suspects.b.name}}", "text": "I stayed at the front desk and kept the log."},
            {"id": "st-c", "speaker": "{{suspects.c.name}}", "text": "I was in the lab; I never went near the {{locationMain}}."},
        ],
        "quiz_questions": [
            {"id": "q-place", "question": "Where was {{victim.name}} found?",
             "options": ["{{locationMain}}", "the loading dock", "the cafeteria"],
             "answer": "{{locationMain}}", "difficulty": "easy"},
            {"id": "q-weapon", "question": "What caused the fatal injuries?",
             "options": ["{{weapon}}", "poison", "a fall"],
             "answer": "{{weapon}}", "difficulty": "medium"},
            {"id": "q-motive", "question": "What was the motive?",
             "options": ["{{motive}}", "a gambling debt", "jealousy"],
             "answer": "{{motive}}", "difficulty": "medium"},
            {"id": "q-cause", "question": "What triggered the blackout?",
             "options": ["{{outage.cause}}", "the storm", "a power surge"],
             "answer": "{{outage.cause}}", "difficulty": "hard"},
            {"id": "q-culprit", "question": "Who killed {{victim.name}}?",
             "options": ["{{suspects.a.name}}", "{{suspects.b.name}}", "{{suspects.c.name}}"],
             "answer": "{{suspects.a.name}}", "tags": ["quiz:final"]},
        ],
        "solution": {
            "summary": "{{suspects.a.name}} staged the blackout with {{outage.cause}} and killed {{victim.name}} over {{motive}}.",
            "details": [
                "The badge log puts {{suspects.a.name}} in the power room just before the grid dropped.",
                "The darkness covered the walk to the {{locationMain}}, where {{weapon}} was used.",
                "The scorched gloves in the engineering lockers tie the weapon back to {{suspects.a.name}}.",
            ],
        },
        "contradiction_rules": [
            {"id": "cr-generator", "premise": "Badge Log",
             "conflict": "{{suspects.a.name}} claimed to be at the backup generator, but the badge opened the power room.",
             "resolution": "The generator alibi covers the wrong room."},
        ],
    },
}


# ---------------------------------------------------------------------------
# Story 2: the gallery
# ---------------------------------------------------------------------------

_GALLERY_NIGHT: Dict[str, Any] = {
    "id": "gallery-night",
    "title": "Death at the Gallery Opening",
    "tags": ["art", "society"],
    "metadata": {"era": "1920s", "estimated_minutes": 20},
    "variables": {
        "victim": [
            {"name": "Cornelius Ashby", "role": "Art Dealer"},
            {"name": "Margaret Lisle", "role": "Gallery Owner"},
        ],
        "locationMain": ["sculpture hall", "private viewing room"],
        "timeWindow": ["20:15 - 20:45", "21:30 - 22:00"],
        "painting": ["a lost Vermeer", "a disputed Turner"],
        "weapon": ["a bronze statuette", "a glass of poisoned champagne"],
        "motive": ["a forged provenance", "an unpaid commission"],
        "suspects": {
            "a": [
                {"name": "Julian Marsh", "role": "Restorer", "occupation": "Canvas restoration"},
                {"name": "Esther Quill", "role": "Restorer", "occupation": "Frame gilding"},
            ],
            "b": [
                {"name": "Lord Pembroke", "role": "Collector", "appearance": "Monocle and cane"},
                {"name": "Lady Abernathy", "role": "Collector", "appearance": "Emerald brooch"},
            ],
            "c": [
                {"name": "Felix Dunn", "role": "Critic", "notes": "Wrote a scathing review of the show"},
            ],
        },
    },
    "templates": {
        "description_beats": [
            {"id": "intro", "text": "At the unveiling of ${painting}, {{victim.name}} collapsed in the {{locationMain}}."},
            {"id": "crowd", "text": "Guests mingled freely between {{timeWindow}} and nobody admits to leaving the main floor."},
        ],
        "micro_events": {
            "opening": [
                {"id": "me-toast", "title": "The Toast", "text": "{{victim.name}} raised a glass to ${painting} and glared at {{suspects.a.name}}."},
            ],
        },
        "initial_clues": [
            {"id": "ic-scene", "title": "Scene Report", "text": "{{victim.name}} was found near {{weapon}}."},
        ],
        "store_clues": [
            {"category": "Background", "clue": {"id": "gs-ledger", "title": "Gallery Ledger", "text": "The ledger shows {{suspects.a.name}} was paid twice for restoring ${painting}."}},
            {"category": "Timeline", "clue": {"id": "gs-clock", "title": "Stopped Clock", "text": "The hall clock stopped during {{timeWindow}} when someone brushed against it."}},
            {"category": "Physical", "clue": {"id": "gs-varnish", "title": "Varnish Traces", "text": "Fresh restorer's varnish was found on {{weapon}}."}},
            {"category": "Testimonial", "clue": {"id": "gs-waiter", "title": "Waiter's Account", "text": "A waiter saw {{suspects.b.name}} leave the {{locationMain}} before the scream."}},
            {"category": "Testimonial", "clue": {"id": "gs-critic", "title": "Critic's Notes", "text": "{{suspects.c.name}} noted that ${painting} looked 'suspiciously new'."}},
            {"category": "", "clue": {"id": "gs-invite", "title": "Guest List", "text": "Three guests arrived without invitations."}},
        ],
        "statement_entries": [
            {"id": "st-a", "speaker": "{{suspects.a.name}}", "text": "I only came to see my work admired."},
            {"id": "st-b", "speaker": "{{suspects.b.name}}", "text": "I was negotiating a price all evening."},
        ],
        "quiz_questions": [
            {"id": "q-weapon", "question": "What killed {{victim.name}}?",
             "options": ["{{weapon}}", "a heart attack", "a fall from the balcony"],
             "answer": "{{weapon}}"},
            {"id": "q-motive", "question": "What was the motive?",
             "options": ["{{motive}}", "a love affair", "an inheritance"],
             "answer": "{{motive}}"},
            {"id": "q-painting", "question": "Which painting was unveiled?",
             "options": ["${painting}", "a Rembrandt sketch"],
             "answer": "${painting}"},
            {"id": "q-culprit", "question": "Who is responsible?",
             "options": ["{{suspects.a.name}}", "{{suspects.b.name}}", "{{suspects.c.name}}"],
             "answer": "{{suspects.a.name}}", "tags": ["quiz:final"]},
        ],
        "solution": {
            "summary": "{{suspects.a.name}} killed {{victim.name}} to hide {{motive}} behind ${painting}.",
            "details": [
                "The double payment in the ledger exposed the scheme.",
                "Varnish on {{weapon}} could only have come from the restorer's hands.",
            ],
        },
    },
}


# ---------------------------------------------------------------------------
# Story 3: the night train
# ---------------------------------------------------------------------------

_NIGHT_TRAIN: Dict[str, Any] = {
    "id": "night-train",
    "title": "The Last Night Train",
    "tags": ["travel", "locked-room"],
    "metadata": {"era": "1950s", "estimated_minutes": 25},
    "variables": {
        "victim": [{"name": "Elias Thorne", "role": "Diplomat"}, {"name": "Rosa Kemp", "role": "Journalist"}],
        "locationMain": ["sleeper car 7", "the dining car"],
        "timeWindow": ["01:10 - 01:40", "02:20 - 02:50"],
        "station": ["Lindau", "Basel", "Innsbruck"],
        "weapon": ["a silk scarf", "a conductor's punch"],
        "motive": ["a stolen dossier", "a blackmail letter"],
        "suspects": {
            "a": [{"name": "Conductor Brix", "role": "Conductor"}, {"name": "Conductor Holm", "role": "Conductor"}],
            "b": [{"name": "Greta Sand", "role": "Passenger", "occupation": "Violinist"}],
            "c": [{"name": "Pavel Orlov", "role": "Passenger", "occupation": "Salesman"},
                  {"name": "Ida Verne", "role": "Passenger", "occupation": "Nurse"}],
        },
    },
    "templates": {
        "description_beats": [
            {"id": "intro", "text": "Somewhere before {{station}}, {{victim.name}} was found dead in {{locationMain}}."},
            {"id": "locked", "text": "The compartment was locked from the inside between {{timeWindow}}."},
        ],
        "micro_events": {
            "night": [{"id": "me-whistle", "title": "Whistle", "text": "A whistle blew twice near {{station}} although no stop was scheduled."}],
        },
        "initial_clues": [
            {"id": "ic-lock", "title": "Locked Door", "text": "Only a conductor's key opens {{locationMain}} from outside."},
        ],
        "store_clues": [
            {"category": "background", "clue": {"id": "ts-dossier", "title": "Missing Dossier", "text": "{{victim.name}} boarded with {{motive}} that is now gone."}},
            {"category": "timeline", "clue": {"id": "ts-ticket", "title": "Ticket Stubs", "text": "{{suspects.a.name}} punched no tickets during {{timeWindow}}."}},
            {"category": "physical", "clue": {"id": "ts-fibre", "title": "Fibres", "text": "Uniform fibres were caught on {{weapon}}."}},
            {"category": "testimonial", "clue": {"id": "ts-nurse", "title": "Passenger Account", "text": "{{suspects.c.name}} heard a key turn in the lock after the whistle."}},
        ],
        "statement_entries": [
            {"id": "st-a", "speaker": "{{suspects.a.name}}", "text": "I was checking tickets in the rear cars."},
        ],
        "quiz_questions": [
            {"id": "q-station", "question": "Which station was the train approaching?",
             "options": ["{{station}}", "Vienna"], "answer": "{{station}}"},
            {"id": "q-weapon", "question": "What was the weapon?",
             "options": ["{{weapon}}", "a revolver"], "answer": "{{weapon}}"},
            {"id": "q-culprit", "question": "Who killed {{victim.name}}?",
             "options": ["{{suspects.a.name}}", "{{suspects.b.name}}", "{{suspects.c.name}}"],
             "answer": "{{suspects.a.name}}", "tags": ["quiz:final"]},
        ],
        "solution": {
            "summary": "{{suspects.a.name}} used the conductor's key to reach {{victim.name}} and take {{motive}}.",
            "details": [
                "The unpunched tickets break the conductor's alibi.",
                "Uniform fibres on {{weapon}} close the case.",
            ],
        },
    },
}


BUILTIN_STORIES: List[Dict[str, Any]] = [_MERIDIAN_BLACKOUT, _GALLERY_NIGHT, _NIGHT_TRAIN]
"""
Raw story definitions, in play order.

Order matters: story 0 is unlocked from the start and every completion
unlocks the next index.
"""


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def parse_stories(raw_stories: List[Dict[str, Any]]) -> List[StoryDefinition]:
    """Validate raw story dicts into StoryDefinition models."""
    return [StoryDefinition.model_validate(raw) for raw in raw_stories]


def load_story_pool(path: Optional[Union[str, Path]] = None) -> List[StoryDefinition]:
    """
    Load the story pool.

    Args:
        path: JSON pool asset. When None, the built-in pool is used.

    Returns:
        Validated stories in play order.

    Raises:
        PoolNotLoaded: the file is missing, is not JSON, has no non-empty
                       "stories" list, or a story fails validation.
    """
    if path is None:
        stories = parse_stories(BUILTIN_STORIES)
        logger.info("Loaded %d built-in stories.", len(stories))
        return stories

    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Failed to load story pool from %s: %s", path, exc)
        raise PoolNotLoaded(f"Failed to load story pool: {exc}", path=str(path)) from exc

    raw_stories = data.get("stories") if isinstance(data, dict) else None
    if not raw_stories:
        raise PoolNotLoaded("Story pool has no stories", path=str(path))

    try:
        stories = parse_stories(raw_stories)
    except ValidationError as exc:
        logger.error("Story pool %s failed validation: %s", path, exc)
        raise PoolNotLoaded("Story pool failed validation", path=str(path), details=str(exc)) from exc

    logger.info("Loaded %d stories from %s.", len(stories), path)
    return stories
