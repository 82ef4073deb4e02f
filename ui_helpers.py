"""
ui_helpers.py
=============
Stateless presentation helpers shared by the Streamlit UI and the CLI.

These functions carry no game state of their own; they receive plain
engine payloads (dicts) and return strings or numbers. Keeping them out of
app.py means they can be imported and tested without a live Streamlit
session.

Contains:
  - category_label()      : store category -> display label
  - story_status()        : locked / unlocked / completed for a story index
  - budget_ratio()        : action points as a 0..1 progress-bar value
  - affordability()       : price tag text for the next purchase
  - score_verdict()       : one-line verdict for a quiz score
  - format_clue()         : "Title: text" line used by both front ends
  - build_css()           : returns the full case-file CSS string
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from config import CORE_CATEGORIES, ECONOMY_CONFIG, OTHER_CATEGORY


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------

CATEGORY_ICONS: Dict[str, str] = {
    "background":  "📜",
    "timeline":    "⏱️",
    "physical":    "🔎",
    "testimonial": "🗣️",
    OTHER_CATEGORY: "🗂️",
}


def category_label(category: str, with_icon: bool = False) -> str:
    """
    Human-readable label for a store category.

    Unknown categories are shown as "Other", matching how the generator
    files them.

    Example:
        >>> category_label("timeline")
        'Timeline'
    """
    key = category if category in CORE_CATEGORIES else OTHER_CATEGORY
    label = key.capitalize()
    return f"{CATEGORY_ICONS[key]} {label}" if with_icon else label


def story_status(story_index: int, progress: Mapping[str, Any]) -> str:
    """Return "completed", "unlocked" or "locked" for a progress payload."""
    if story_index in progress.get("completed_stories", []):
        return "completed"
    if story_index in progress.get("unlocked_stories", [0]):
        return "unlocked"
    return "locked"


def budget_ratio(action_points: int, base: int = ECONOMY_CONFIG.base_action_points) -> float:
    """
    Action points as a progress-bar value.

    The balance may exceed the base after a refund; the bar is clamped to 1.0.
    """
    if base <= 0:
        return 0.0
    return max(0.0, min(1.0, action_points / base))


def affordability(action_points: int, next_cost: int) -> str:
    if action_points >= next_cost:
        return f"Next clue costs {next_cost} AP ({action_points} AP left)"
    return f"Next clue costs {next_cost} AP: not enough points ({action_points} AP left)"


def score_verdict(correct: int, total: int) -> str:
    """One-line verdict shown after the quiz."""
    if total <= 0:
        return "No questions were asked."
    if correct == total:
        return f"Case closed! {correct}/{total} correct."
    if correct * 2 >= total:
        return f"Solid work, detective: {correct}/{total} correct."
    return f"The trail went cold: {correct}/{total} correct."


def format_clue(clue: Mapping[str, Any]) -> str:
    title = clue.get("title") or "Clue"
    return f"{title}: {clue.get('text', '')}"


# ---------------------------------------------------------------------------
# Case-file CSS
# ---------------------------------------------------------------------------

def build_css() -> str:
    """
    Return the CSS string injected into the Streamlit app.

    Returns:
        A raw CSS string (without <style> tags; the caller wraps it).
    """
    return """
    @import url('https://fonts.googleapis.com/css2?family=Special+Elite&family=Courier+Prime:wght@400;700&display=swap');

    /* ── Page ── */
    html, body, .stApp, .main, .block-container {
        background: linear-gradient(180deg, #101418 0%, #161c22 70%, #0e1216 100%) !important;
        color: #d0d4d8 !important;
    }
    [data-testid="stSidebar"], section[data-testid="stSidebar"] > div {
        background-color: #0e1216 !important;
        border-right: 1px solid #2a3138 !important;
    }

    /* ── Typography ── */
    .main-header {
        text-align: center; color: #c9a227;
        font-family: 'Special Elite', cursive; letter-spacing: 3px;
    }
    .sub-header {
        text-align: center; color: #7a848e;
        font-family: 'Courier Prime', monospace; font-style: italic;
    }

    /* ── Case file ── */
    .case-file {
        background: linear-gradient(145deg, #1b2229, #232c34);
        padding: 22px; border-radius: 5px;
        border-left: 4px solid #c9a227;
        font-family: 'Courier Prime', monospace;
    }
    .case-file h3 { color: #c9a227; font-family: 'Special Elite', cursive; }

    /* ── Clue cards ── */
    .clue-card {
        background: #1b2229; padding: 12px 16px; margin: 8px 0;
        border: 1px solid #2a3138; border-radius: 6px;
        font-family: 'Courier Prime', monospace;
    }
    .clue-card.purchased { border-color: #c9a227; }
    .clue-title { color: #c9a227; font-weight: 700; }

    /* ── Contradictions ── */
    .contradiction {
        background: #2a1b1b; border-left: 4px solid #a33; padding: 10px 14px;
        border-radius: 4px; margin: 6px 0;
    }

    /* ── Score ── */
    .score-display {
        font-size: 56px; font-weight: bold; text-align: center;
        color: #c9a227; font-family: 'Special Elite', cursive;
    }

    /* ── Buttons ── */
    .stButton > button {
        background: #1b2229; color: #d0d4d8; border: 1px solid #3a434c;
        font-family: 'Courier Prime', monospace;
    }
    .stButton > button:hover { border-color: #c9a227; color: #c9a227; }
    .stProgress > div > div { background-color: #c9a227 !important; }
"""
