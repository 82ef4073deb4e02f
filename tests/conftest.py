"""
Shared fixtures for the TruthSeeker test suite.
"""
import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from case_engine import TruthSeekerEngine
from models import StoryDefinition


ALPHA = {
    "id": "alpha",
    "title": "Alpha Case",
    "tags": ["test"],
    "metadata": {"era": "1920s"},
    "variables": {
        "victim": ["Ada", "Bea"],
        "place": ["hall", "attic"],
        "era": "1920",
        "suspects": {
            "a": [{"name": "Cole", "role": "Cook"}],
            "b": [{"name": "Dana", "role": "Driver", "occupation": "Chauffeur"}],
        },
    },
    "templates": {
        "description_beats": [{"id": "b1", "text": "{{victim}} died in the {{place}}."}],
        "micro_events": {"before": [{"id": "m1", "text": "A door slammed."}]},
        "initial_clues": [{"id": "i1", "title": "Body", "text": "Found in the {{place}}."}],
        "store_clues": [
            {"category": "background", "clue": {"id": "s1", "title": "Ledger", "text": "Debts."}},
            {"category": "background", "clue": {"id": "s2", "title": "Letter", "text": "Threats."}},
            {"category": "timeline", "clue": {"id": "s3", "title": "Timeline", "text": "{{suspects.a.name}} left at nine."}},
            {"category": "Physical", "clue": {"id": "s4", "title": "Knife", "text": "A bloody knife."}},
            {"category": "Forensics", "clue": {"id": "s5", "title": "Lab", "text": "Prints."}},
            {"category": "timeline", "initial": True, "clue": {"id": "s6", "title": "Clock", "text": "Stopped at ten."}},
        ],
        "statement_entries": [{"id": "st1", "speaker": "{{suspects.a.name}}", "text": "I was cooking."}],
        "quiz_questions": [
            {"id": "q1", "question": "Where?", "options": ["{{place}}", "garden"], "answer": "{{place}}"},
            {"id": "q2", "question": "Who died?", "options": ["{{victim}}", "Zed"], "answer": "{{victim}}"},
            {"id": "q3", "question": "When?", "options": ["${era}", "1850"], "answer": "${era}"},
            {"id": "qf", "question": "Who did it?",
             "options": ["{{suspects.a.name}}", "{{suspects.b.name}}"],
             "answer": "{{suspects.a.name}}", "tags": ["quiz:final"]},
        ],
        "solution": {"summary": "{{suspects.a.name}} did it.", "details": ["In the {{place}}."]},
        "contradiction_rules": [
            {"id": "c1", "premise": "Timeline", "conflict": "{{suspects.a.name}} lied.", "resolution": "Check the clock."},
        ],
    },
}

BETA = {
    "id": "beta",
    "title": "Beta Case",
    "variables": {"victim": ["Eve"]},
    "templates": {
        "store_clues": [{"category": "background", "clue": {"id": "b1", "title": "Diary", "text": "{{victim}} wrote."}}],
        "quiz_questions": [
            {"id": "qf", "question": "Who?", "options": ["Eve"], "answer": "Eve", "tags": ["quiz:final"]},
        ],
        "solution": {"summary": "Solved."},
    },
}


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def stories():
    return [StoryDefinition.model_validate(ALPHA), StoryDefinition.model_validate(BETA)]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(stories, clock):
    return TruthSeekerEngine(stories, clock=clock)
