"""
Tests for the stateless presentation helpers.
"""
from ui_helpers import (
    affordability,
    budget_ratio,
    build_css,
    category_label,
    format_clue,
    score_verdict,
    story_status,
)


def test_category_label():
    assert category_label("timeline") == "Timeline"
    assert category_label("forensics") == "Other"
    assert category_label("physical", with_icon=True).endswith("Physical")


def test_story_status():
    progress = {"completed_stories": [0], "unlocked_stories": [0, 1]}
    assert story_status(0, progress) == "completed"
    assert story_status(1, progress) == "unlocked"
    assert story_status(2, progress) == "locked"


def test_budget_ratio_is_clamped():
    assert budget_ratio(50) == 0.5
    assert budget_ratio(150) == 1.0
    assert budget_ratio(-5) == 0.0
    assert budget_ratio(10, base=0) == 0.0


def test_affordability():
    assert "not enough" not in affordability(40, 40)
    assert "not enough" in affordability(30, 40)


def test_score_verdict():
    assert score_verdict(4, 4).startswith("Case closed")
    assert "2/4" in score_verdict(2, 4)
    assert score_verdict(0, 0) == "No questions were asked."


def test_format_clue():
    assert format_clue({"title": "Knife", "text": "Bloody."}) == "Knife: Bloody."
    assert format_clue({"text": "Untitled."}) == "Clue: Untitled."


def test_css_defines_case_file_classes():
    css = build_css()
    for selector in (".case-file", ".clue-card", ".score-display"):
        assert selector in css
