"""
cli.py
======
Command-line interface for TruthSeeker.

Provides a text-based game loop for development, testing, and playing
without Streamlit or the HTTP service. All game logic is delegated to
TruthSeekerEngine; this module only handles I/O and, when a progress file
is configured, persisting the player's progress between runs.

Usage:
    python cli.py

Commands during play:
    /store            — list the clue store and the price of the next clue
    /buy <clue_id>    — buy a clue from the store
    /statement        — show the evidence file (initial + purchased clues)
    /suspects         — list the suspects
    /quiz             — answer the closing quiz (once per case)
    /solution         — reveal the solution
    /reset [level]    — regenerate this story (easy / medium / hard)
    /next             — move on to the next story
    /progress         — show completed / unlocked stories and scores
    /quit             — exit the game
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from case_engine import TruthSeekerEngine
from config import ServerConfig
from errors import InsufficientPoints, TruthSeekerError
from progress import ProgressTracker
from story_data import load_story_pool
from ui_helpers import affordability, category_label, format_clue, score_verdict, story_status

logger = logging.getLogger("truth_seeker.cli")

PLAYER_ID = "cli"

HELP_TEXT = (
    "Commands: /store, /buy <clue_id>, /statement, /suspects, /quiz, /solution, "
    "/reset [easy|medium|hard], /next, /progress, /quit"
)


def print_briefing(state: Dict[str, Any]) -> None:
    case = state["case"]
    print("\n" + "=" * 60)
    print(f"   TRUTHSEEKER: {case['story_title'].upper()}")
    print(f"   Story {case['story_index'] + 1}/{case['total_stories']} | {case['difficulty']}")
    print("=" * 60)
    print(f"\n{case['narrative']}\n")
    for clue in case["initial_clues"]:
        print(f"  * {format_clue(clue)}")
    print(f"\nAction points: {state['action_points']}")
    print(HELP_TEXT)
    print("-" * 60)


def print_store(state: Dict[str, Any]) -> None:
    for entry in state["store"]:
        clue = entry["clue"]
        mark = f"[bought for {entry['spent_cost']}]" if entry["purchased"] else ""
        print(f"  {clue['id']:<18} {category_label(entry['category']):<12} {clue['title']} {mark}")
    print(f"  {affordability(state['action_points'], state['next_cost'])}")


def run_quiz(engine: TruthSeekerEngine, session_id: str, input_fn: Callable[[str], str]) -> Dict[str, Any]:
    """Ask every quiz question, then finalise with the collected answers."""
    answers: Dict[str, str] = {}
    for number, question in enumerate(engine.get_quiz(session_id)["questions"], 1):
        print(f"\nQ{number}. {question['question']}")
        for i, option in enumerate(question["options"], 1):
            print(f"   {i}) {option}")
        choice = input_fn("   Your answer (number): ").strip()
        if choice.isdigit() and 1 <= int(choice) <= len(question["options"]):
            answers[question["id"]] = question["options"][int(choice) - 1]
    return engine.finalize_quiz(session_id, answers)


def run_cli(
    engine:        Optional[TruthSeekerEngine] = None,
    progress_path: Optional[str] = None,
    difficulty:    str = "medium",
    seed:          Optional[int] = None,
    input_fn:      Callable[[str], str] = input,
) -> None:
    """
    Main CLI game loop.

    Restores saved progress (when `progress_path` is set), opens the highest
    unlocked story, then processes player input until the player quits.
    """
    if engine is None:
        engine = TruthSeekerEngine(load_story_pool())

    tracker = (
        ProgressTracker.load(progress_path, engine.economy.base_action_points)
        if progress_path else engine.tracker(PLAYER_ID)
    )
    engine.progress.set(PLAYER_ID, tracker)

    total = len(engine.stories or [])
    playable = [i for i in tracker.progress.unlocked_stories if i < total]
    state = engine.create_case(max(playable, default=0), difficulty, seed, PLAYER_ID)
    session_id = state["session_id"]
    print_briefing(state)

    while True:
        user_input = input_fn(f"\n[{state['action_points']} AP] > ").strip()
        if not user_input:
            continue

        lower = user_input.lower()
        command, _, argument = lower.partition(" ")
        argument = argument.strip()

        if command in {"/quit", "quit", "exit"}:
            print("Thanks for playing!")
            break

        try:
            if command == "/store":
                print_store(state)

            elif command == "/buy":
                if not argument:
                    print("Usage: /buy <clue_id>")
                    continue
                result = engine.purchase_clue(session_id, user_input.split(maxsplit=1)[1].strip())
                print(f"\n  {format_clue(result['clue'])}")
                print(f"  Spent {result['spent_cost']} AP. {affordability(result['action_points'], result['next_cost'])}")
                for rule in result["contradictions"]:
                    print(f"  ! Contradiction: {rule['conflict']}")

            elif command == "/statement":
                statement = state["statement"]
                for clue in statement["initial"] + statement["purchased"]:
                    print(f"  * {format_clue(clue)}")

            elif command == "/suspects":
                for suspect in state["case"]["suspects"]:
                    extra = suspect.get("occupation") or suspect.get("notes") or ""
                    print(f"  {suspect['id']} – {suspect['name']} ({suspect['role']}) {extra}".rstrip())

            elif command == "/quiz":
                result = run_quiz(engine, session_id, input_fn)
                for r in result["results"]:
                    print(f"  {'✔' if r['correct'] else '✘'} {r['question_id']}: {r['correct_answer']}")
                print(f"\n{score_verdict(result['score']['correct'], result['score']['total'])}")
                print(f"Refund: {result['refund']} AP. Balance: {result['final_action_points']} AP.")
                if progress_path:
                    tracker.save(progress_path)
                    logger.info("Progress saved to %s.", progress_path)

            elif command == "/solution":
                solution = engine.reveal_solution(session_id)["solution"]
                print(f"\n{solution['summary']}")
                for line in solution["details"]:
                    print(f"  - {line}")

            elif command == "/reset":
                engine.reset_case(session_id, argument or None)
                print_briefing(engine.get_case_state(session_id))

            elif command == "/next":
                engine.advance_story(session_id)
                print_briefing(engine.get_case_state(session_id))

            elif command == "/progress":
                progress = engine.get_progress(PLAYER_ID)
                for index, story in enumerate(engine.list_stories()["stories"]):
                    print(f"  {index + 1}. {story['title']:<36} {story_status(index, progress)}")
                stats = progress["overall_stats"]
                print(f"  Accuracy: {stats['overall_accuracy']}% over {stats['total_questions']} question(s)")

            else:
                print(HELP_TEXT)

        except InsufficientPoints as exc:
            print(f"Not enough action points: need {exc.required}, have {exc.current}.")
        except TruthSeekerError as exc:
            print(f"{exc.message} ({exc.code})")

        state = engine.get_case_state(session_id)


if __name__ == "__main__":
    from dotenv import load_dotenv

    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    settings = ServerConfig.from_env()
    run_cli(
        TruthSeekerEngine(load_story_pool(settings.pool_path)),
        progress_path=settings.progress_path,
    )
