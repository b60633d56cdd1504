"""Work routes.

Endpoints:
- GET    /api/work                     - All agent sessions with task and state
- GET    /api/work/<session>/question  - Pending question of a session
- DELETE /api/work/<session>/question  - Clear an answered question
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from jat_monitor.routes.sessions import parse_lines
from jat_monitor.services.work_service import MAX_WORK_LINES

logger = logging.getLogger(__name__)

work_bp = Blueprint("work", __name__)


@work_bp.route("/work", methods=["GET"])
def list_work():
    """List active work sessions.

    Query params:
        lines: Output lines per session (default 50, max 500).
        bust: "true" to refresh the task listing (e.g. right after a spawn).

    Returns:
        JSON with sessions, count, stateCounts and timestamp. A taskError
        key is present when the task tracker could not be queried.
    """
    lines = parse_lines(request.args.get("lines"), 50, MAX_WORK_LINES)
    bust = request.args.get("bust") == "true"

    snapshot = current_app.extensions["work_service"].list_work_sessions(lines=lines, bust=bust)
    logger.debug(f"[API] GET /work - {len(snapshot.sessions)} sessions")
    return jsonify(snapshot.to_dict())


@work_bp.route("/work/<session_name>/question", methods=["GET"])
def get_question(session_name: str):
    """Get the active question of a session.

    Returns:
        {active: false} when there is none, {active: false, stale: true}
        when it expired, otherwise the question data with active: true.
    """
    reading = current_app.extensions["sidecar_store"].read_question(session_name)
    if reading.failed:
        return jsonify(reading.to_dict()), 500
    return jsonify(reading.to_dict())


@work_bp.route("/work/<session_name>/question", methods=["DELETE"])
def clear_question(session_name: str):
    """Clear the question file after the user answered."""
    try:
        removed = current_app.extensions["sidecar_store"].clear_question(session_name)
    except OSError as e:
        logger.error(f"[API] Error deleting question file for {session_name}: {e}")
        return jsonify({"success": False, "error": str(e)}), 500
    return jsonify({"success": True, "deleted": removed})
