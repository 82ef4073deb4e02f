"""
app.py
======
Streamlit web UI for TruthSeeker.

Responsibilities:
  - Configure and render the Streamlit page (layout, case-file theme).
  - Manage session state initialisation and reset.
  - Render sidebar components (story list, action-point budget, difficulty).
  - Render main-panel components (case briefing, clue store, evidence file,
    closing quiz, solution).

This file contains only UI logic. All game logic lives in case_engine.py,
all narrative data in story_data.py, and all shared presentation helpers in
ui_helpers.py. The engine runs in-process; no HTTP service is needed.

Run with:
    streamlit run app.py
"""

from __future__ import annotations

import logging

import streamlit as st
from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Logging configuration
#
# basicConfig runs once per process; Streamlit reruns the script but the
# root logger keeps its handler. All "truth_seeker.*" loggers emit here.
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("truth_seeker.app")

from case_engine import TruthSeekerEngine
from config import DIFFICULTY_CONFIG, ServerConfig
from errors import InsufficientPoints, TruthSeekerError
from story_data import load_story_pool
from ui_helpers import (
    affordability,
    budget_ratio,
    build_css,
    category_label,
    score_verdict,
    story_status,
)


# ============================================================
# PAGE CONFIGURATION
# ============================================================

st.set_page_config(
    page_title="TruthSeeker",
    page_icon="🕵️",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown(f"<style>{build_css()}</style>", unsafe_allow_html=True)

PLAYER_ID = "streamlit"


# ============================================================
# SESSION STATE
# ============================================================

def init_session_state() -> None:
    """
    Initialise all Streamlit session state variables on first run.

    The engine lives in session state so each browser tab has its own
    sessions and progress.
    """
    defaults: dict = {
        "engine":      None,
        "session_id":  None,
        "difficulty":  DIFFICULTY_CONFIG.default,
        "quiz_result": None,
        "solution":    None,
        "flash":       None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value

    if st.session_state.engine is None:
        settings = ServerConfig.from_env()
        st.session_state.engine = TruthSeekerEngine(load_story_pool(settings.pool_path))


def start_case(story_index: int) -> None:
    """Open a new session on `story_index` and clear per-case UI state."""
    engine: TruthSeekerEngine = st.session_state.engine
    state = engine.create_case(story_index, st.session_state.difficulty, player_id=PLAYER_ID)
    st.session_state.session_id  = state["session_id"]
    st.session_state.quiz_result = None
    st.session_state.solution    = None
    logger.info("UI opened story %d as session %s.", story_index, state["session_id"])


def _clear_case_results() -> None:
    st.session_state.quiz_result = None
    st.session_state.solution    = None


def _run(action) -> None:
    """Run an engine action, turning engine errors into a flash message."""
    try:
        action()
    except InsufficientPoints as exc:
        st.session_state.flash = f"Not enough action points: need {exc.required}, have {exc.current}."
    except TruthSeekerError as exc:
        st.session_state.flash = exc.message


# ============================================================
# SIDEBAR COMPONENTS
# ============================================================

def render_story_list() -> None:
    """Render every story with its lock state; unlocked ones can be opened."""
    engine: TruthSeekerEngine = st.session_state.engine
    progress = engine.get_progress(PLAYER_ID)

    st.sidebar.markdown("### 📚 Stories")
    for index, story in enumerate(engine.list_stories()["stories"]):
        status = story_status(index, progress)
        icon = {"completed": "✅", "unlocked": "🔓", "locked": "🔒"}[status]
        if st.sidebar.button(
            f"{icon} {story['title']}",
            key=f"story_{index}",
            use_container_width=True,
            disabled=status == "locked",
        ):
            _run(lambda: start_case(index))
            st.rerun()

    stats = progress["overall_stats"]
    if stats["total_questions"]:
        st.sidebar.markdown(
            f"**Accuracy:** {stats['overall_accuracy']}% "
            f"({stats['total_correct']}/{stats['total_questions']})"
        )
    if st.sidebar.button("♻️ Reset progress", use_container_width=True):
        engine.reset_progress(PLAYER_ID)
        st.session_state.session_id = None
        _clear_case_results()
        st.rerun()


def render_budget(state: dict) -> None:
    st.sidebar.markdown("---")
    st.sidebar.markdown("### 🎯 Action points")
    st.sidebar.progress(budget_ratio(state["action_points"]))
    st.sidebar.markdown(f"**{state['action_points']} AP**")
    st.sidebar.caption(affordability(state["action_points"], state["next_cost"]))


def render_case_controls(state: dict) -> None:
    engine: TruthSeekerEngine = st.session_state.engine
    session_id = st.session_state.session_id

    st.sidebar.markdown("---")
    st.session_state.difficulty = st.sidebar.selectbox(
        "Difficulty",
        options=list(DIFFICULTY_CONFIG.tiers),
        index=list(DIFFICULTY_CONFIG.tiers).index(st.session_state.difficulty),
    )
    col1, col2 = st.sidebar.columns(2)
    with col1:
        if st.button("🔄 Restart", use_container_width=True):
            _run(lambda: engine.reset_case(session_id, st.session_state.difficulty))
            _clear_case_results()
            st.rerun()
    with col2:
        if st.button("⏭️ Next story", use_container_width=True):
            _run(lambda: engine.advance_story(session_id))
            _clear_case_results()
            st.rerun()


# ============================================================
# MAIN-PANEL COMPONENTS
# ============================================================

def render_case_briefing(state: dict) -> None:
    """Render the case file card: title, narrative, victim and suspects."""
    case = state["case"]
    st.markdown(f"""
    <div class="case-file">
        <h3>📁 {case['story_title']}</h3>
        <p style="color: #7a848e; font-size: 12px;">
            STORY {case['story_index'] + 1} OF {case['total_stories']} | {case['difficulty'].upper()} | SEED {case['seed']}
        </p>
    </div>
    """, unsafe_allow_html=True)

    for beat in case["description_beats"]:
        st.markdown(beat["text"])

    col1, col2 = st.columns(2)
    with col1:
        victim = case["victim"]
        st.markdown(f"**VICTIM:** {victim.get('name') if isinstance(victim, dict) else victim}")
        st.markdown(f"**LOCATION:** {case['location']}")
        st.markdown(f"**TIME WINDOW:** {case['time_window']}")
    with col2:
        st.markdown("**SUSPECTS:**")
        for suspect in case["suspects"]:
            st.markdown(f"- {suspect['name']} ({suspect['role']})")


def render_store(state: dict) -> None:
    """One offer per category; bought clues show what they cost."""
    engine: TruthSeekerEngine = st.session_state.engine
    session_id = st.session_state.session_id

    st.markdown("---")
    st.markdown("### 🛒 Clue store")
    columns = st.columns(max(1, len(state["store"])))
    for column, entry in zip(columns, state["store"]):
        clue = entry["clue"]
        with column:
            st.markdown(f"**{category_label(entry['category'], with_icon=True)}**")
            st.markdown(clue["title"])
            if entry["purchased"]:
                st.caption(f"Bought for {entry['spent_cost']} AP")
            elif st.button("Buy", key=f"buy_{clue['id']}", use_container_width=True):
                _run(lambda clue_id=clue["id"]: engine.purchase_clue(session_id, clue_id))
                st.rerun()


def render_statement(state: dict) -> None:
    """The evidence file: initial clues, then purchased clues."""
    st.markdown("---")
    st.markdown("### 🗂️ Evidence file")
    statement = state["statement"]
    for clue in statement["initial"]:
        st.markdown(
            f"<div class='clue-card'><span class='clue-title'>{clue['title']}</span><br>{clue['text']}</div>",
            unsafe_allow_html=True,
        )
    for clue in statement["purchased"]:
        st.markdown(
            f"<div class='clue-card purchased'><span class='clue-title'>{clue['title']}</span><br>{clue['text']}</div>",
            unsafe_allow_html=True,
        )

    for entry in state["case"]["statement_entries"]:
        speaker = entry.get("speaker") or "Unknown"
        st.markdown(f"> **{speaker}:** {entry['text']}")


def render_quiz(state: dict) -> None:
    """Quiz form; submitting it finalises the quiz and completes the story."""
    engine: TruthSeekerEngine = st.session_state.engine
    session_id = st.session_state.session_id

    st.markdown("---")
    st.markdown("### ⚖️ Closing questions")

    result = st.session_state.quiz_result
    if state["quiz_revealed"] and result:
        score = result["score"]
        st.markdown(f"<div class='score-display'>{score['correct']}/{score['total']}</div>", unsafe_allow_html=True)
        st.success(score_verdict(score["correct"], score["total"]))
        st.markdown(f"Refund: **{result['refund']} AP** (spent {result['round_spent_points']} AP this round)")
        for r in result["results"]:
            st.markdown(f"{'✅' if r['correct'] else '❌'} {r['correct_answer']}")
        return

    quiz = engine.get_quiz(session_id)["questions"]
    with st.form("quiz_form"):
        answers = {}
        for question in quiz:
            answers[question["id"]] = st.radio(
                question["question"],
                options=question["options"],
                index=None,
                key=f"quiz_{session_id}_{question['id']}",
            )
        if st.form_submit_button("Submit answers", type="primary"):
            submitted = {qid: answer for qid, answer in answers.items() if answer is not None}

            def _finalize() -> None:
                st.session_state.quiz_result = engine.finalize_quiz(session_id, submitted)

            _run(_finalize)
            st.rerun()


def render_solution(state: dict) -> None:
    engine: TruthSeekerEngine = st.session_state.engine
    session_id = st.session_state.session_id

    st.markdown("---")
    if not state["solution_revealed"]:
        if st.button("🔍 Reveal the solution", use_container_width=True):
            _run(lambda: engine.reveal_solution(session_id))
            st.rerun()
        return

    solution = engine.get_solution(session_id)["solution"]
    st.markdown("### 🧩 Solution")
    st.markdown(f"**{solution['summary']}**")
    for line in solution["details"]:
        st.markdown(f"- {line}")


# ============================================================
# ENTRY POINT
# ============================================================

def main() -> None:
    """
    Entry point — called by Streamlit on every render pass.

    Flow:
      1. Initialise session state on first run.
      2. Render the page header and the story list.
      3. If a case is open, render the sidebar budget and controls, then the
         case briefing, store, evidence file, quiz and solution.
    """
    init_session_state()
    engine: TruthSeekerEngine = st.session_state.engine

    st.markdown("""
    <h1 class='main-header'>🕵️ TRUTHSEEKER</h1>
    <h3 class='sub-header'>Spend wisely. Deduce carefully.</h3>
    """, unsafe_allow_html=True)

    render_story_list()

    if st.session_state.flash:
        st.warning(st.session_state.flash)
        st.session_state.flash = None

    if st.session_state.session_id is None:
        st.info("Pick an unlocked story in the sidebar to open a case.")
        return

    try:
        state = engine.get_case_state(st.session_state.session_id)
    except TruthSeekerError as exc:
        logger.warning("Dropping stale session %s: %s", st.session_state.session_id, exc.message)
        st.session_state.session_id = None
        st.rerun()
        return

    render_budget(state)
    render_case_controls(state)

    render_case_briefing(state)
    render_store(state)
    render_statement(state)
    render_quiz(state)
    render_solution(state)


if __name__ == "__main__":
    main()
