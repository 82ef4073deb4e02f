"""
server.py
=========
HTTP API for TruthSeeker (Flask).

Thin transport over TruthSeekerEngine: every route parses the JSON body,
calls one engine method and wraps the result as ``{"status": "success", ...}``.
Engine errors are turned into ``{"status": "error", "error", "code", ...}``
payloads by a single error handler, with the status code chosen from the
error's kind.

Run with:
    python server.py
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from case_engine import TruthSeekerEngine
from config import SESSION_CONFIG
from errors import ErrorKind, PoolNotLoaded, TruthSeekerError
from story_data import load_story_pool

logger = logging.getLogger("truth_seeker.server")

STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND:           404,
    ErrorKind.CONFLICT:            409,
    ErrorKind.INVALID_INPUT:       400,
    ErrorKind.PRECONDITION_FAILED: 403,
    ErrorKind.INTERNAL:            500,
}


def status_for(error: TruthSeekerError) -> int:
    if isinstance(error, PoolNotLoaded):
        return 503
    return STATUS_BY_KIND.get(error.kind, 500)


def _body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _success(payload: Dict[str, Any], status: int = 200):
    return jsonify({"status": "success", **payload}), status


def create_app(engine: Optional[TruthSeekerEngine] = None) -> Flask:
    """
    Build the Flask application around `engine`.

    The engine is stored on ``app.config["ENGINE"]`` so tests can reach it.
    """
    app = Flask(__name__)
    CORS(app)
    engine = engine if engine is not None else TruthSeekerEngine()
    app.config["ENGINE"] = engine

    @app.errorhandler(TruthSeekerError)
    def handle_engine_error(error: TruthSeekerError):
        status = status_for(error)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, error.message)
        else:
            logger.warning("%s %s rejected: %s (%s)", request.method, request.path, error.code, error.message)
        return jsonify({"status": "error", **error.to_dict()}), status

    # ------------------------------------------------------------------
    # Service
    # ------------------------------------------------------------------

    @app.route("/api/health", methods=["GET"])
    def health():
        """Health check endpoint."""
        return jsonify({"service": "truth-seeker", **engine.health()})

    @app.route("/api/stories", methods=["GET"])
    def list_stories():
        return _success(engine.list_stories())

    # ------------------------------------------------------------------
    # Cases
    # ------------------------------------------------------------------

    @app.route("/api/cases", methods=["POST"])
    def create_case():
        """Start a new case session."""
        data = _body()
        state = engine.create_case(
            story_index=data.get("story_index", 0),
            difficulty=data.get("difficulty", "medium"),
            seed=data.get("seed"),
            player_id=data.get("player_id"),
        )
        return _success(state, 201)

    @app.route("/api/cases/<session_id>", methods=["GET"])
    def get_case(session_id: str):
        return _success(engine.get_case_state(session_id))

    @app.route("/api/cases/<session_id>/clues/purchase", methods=["POST"])
    def purchase_clue(session_id: str):
        return _success(engine.purchase_clue(session_id, _body().get("clue_id")))

    @app.route("/api/cases/<session_id>/quiz", methods=["GET"])
    def get_quiz(session_id: str):
        """Quiz questions without their answers."""
        return _success(engine.get_quiz(session_id))

    @app.route("/api/cases/<session_id>/quiz/finalize", methods=["POST"])
    def finalize_quiz(session_id: str):
        return _success(engine.finalize_quiz(session_id, _body().get("answers")))

    @app.route("/api/cases/<session_id>/solution/reveal", methods=["POST"])
    def reveal_solution(session_id: str):
        return _success(engine.reveal_solution(session_id))

    @app.route("/api/cases/<session_id>/solution", methods=["GET"])
    def get_solution(session_id: str):
        return _success(engine.get_solution(session_id))

    @app.route("/api/cases/<session_id>/reset", methods=["POST"])
    def reset_case(session_id: str):
        data = _body()
        return _success(engine.reset_case(session_id, data.get("difficulty"), data.get("seed")))

    @app.route("/api/cases/<session_id>/advance", methods=["POST"])
    def advance_story(session_id: str):
        return _success(engine.advance_story(session_id))

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    @app.route("/api/progress", methods=["GET"])
    def get_progress():
        return _success(engine.get_progress(request.args.get("player_id")))

    @app.route("/api/progress", methods=["POST"])
    def save_progress():
        data = _body()
        return _success(engine.save_progress(
            data.get("player_id"),
            data.get("story_index"),
            data.get("action_points", 0),
            data.get("quiz_score"),
        ))

    @app.route("/api/progress/reset", methods=["POST"])
    def reset_progress():
        return _success(engine.reset_progress(_body().get("player_id")))

    @app.route("/api/progress/statistics", methods=["GET"])
    def progress_statistics():
        return _success(engine.statistics(request.args.get("player_id")))

    @app.route("/api/progress/story/<int:story_index>", methods=["GET"])
    def story_score(story_index: int):
        return _success(engine.story_score(story_index, request.args.get("player_id")))

    return app


# ---------------------------------------------------------------------------
# Background session sweep
# ---------------------------------------------------------------------------

def start_sweeper(
    engine:   TruthSeekerEngine,
    interval: float = SESSION_CONFIG.sweep_interval_seconds,
) -> threading.Event:
    """
    Sweep expired sessions every `interval` seconds on a daemon thread.

    Returns an Event; set it to stop the loop.
    """
    stop = threading.Event()

    def _run() -> None:
        while not stop.wait(interval):
            removed = engine.sweep_expired()
            logger.debug("Session sweep removed %d session(s).", removed)

    threading.Thread(target=_run, name="session-sweeper", daemon=True).start()
    logger.info("Session sweeper started (interval=%ss).", interval)
    return stop


def build_engine(pool_path: Optional[str] = None) -> TruthSeekerEngine:
    """Engine over the configured pool. A pool that fails to load leaves the service degraded."""
    try:
        stories = load_story_pool(pool_path)
    except PoolNotLoaded as exc:
        logger.error("Starting without stories: %s", exc.message)
        stories = None
    return TruthSeekerEngine(stories)


if __name__ == "__main__":
    from dotenv import load_dotenv

    from config import ServerConfig

    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    settings = ServerConfig.from_env()
    engine = build_engine(settings.pool_path)
    start_sweeper(engine)
    create_app(engine).run(host=settings.host, port=settings.port, debug=settings.debug)
