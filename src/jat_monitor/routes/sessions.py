"""Session routes.

Endpoints:
- GET    /api/sessions/<name>/activity - Output activity from the monitor hook
- GET    /api/sessions/<name>/signal   - Current agent signal
- POST   /api/sessions/<name>/signal   - Emit a signal via jat-signal
- DELETE /api/sessions/<name>/signal   - Clear the signal files
- GET    /api/sessions/<name>/output   - Capture pane output
- POST   /api/sessions/<name>/input    - Type text into the session
- GET    /api/sessions/<name>/state    - Resolved activity state
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from jat_monitor.services.signal_emitter import SignalEmitError

logger = logging.getLogger(__name__)

sessions_bp = Blueprint("sessions", __name__)

MAX_OUTPUT_LINES = 10000


def parse_lines(value: str | None, default: int, maximum: int) -> int:
    """Parse a ``lines`` query parameter, clamped to 1..maximum."""
    try:
        lines = int(value) if value else default
    except ValueError:
        lines = default
    if lines == 0:
        lines = default
    return min(max(lines, 1), maximum)


def _get_sidecars():
    return current_app.extensions["sidecar_store"]


def _get_backend():
    return current_app.extensions["terminal_backend"]


@sessions_bp.route("/sessions/<name>/activity", methods=["GET"])
def get_activity(name: str):
    """Get the output activity state of a session.

    Returns:
        JSON with hasActivity, activity {state, since, tmux_session} and
        fileModifiedAt. Callers checking staleness should use
        fileModifiedAt, not since.
    """
    reading = _get_sidecars().read_activity(name)
    if reading.failed:
        return jsonify(reading.to_dict()), 500
    return jsonify(reading.to_dict())


@sessions_bp.route("/sessions/<name>/signal", methods=["GET"])
def get_signal(name: str):
    """Get the current signal for a session."""
    reading = _get_sidecars().read_signal(name)
    if reading.failed:
        return jsonify(reading.to_dict()), 500
    return jsonify(reading.to_dict())


@sessions_bp.route("/sessions/<name>/signal", methods=["DELETE"])
def clear_signal(name: str):
    """Clear the signal files of a session after processing."""
    result = _get_sidecars().clear_signal(name)
    logger.debug(f"[API] Cleared signal for {name}: {result.deleted_files}")
    return jsonify(result.to_dict())


@sessions_bp.route("/sessions/<name>/signal", methods=["POST"])
def emit_signal(name: str):
    """Emit a signal for a session.

    Request body:
        {
            "type": "working" | "review" | "tasks" | ...,
            "data": string | object
        }
    """
    data = request.get_json(silent=True) or {}
    signal_type = data.get("type")
    if not signal_type:
        return (
            jsonify(
                {
                    "error": "Missing signal type",
                    "message": 'Signal type is required (e.g., "working", "review", "tasks")',
                }
            ),
            400,
        )

    emitter = current_app.extensions["signal_emitter"]
    try:
        stdout = emitter.emit(name, signal_type, data.get("data"))
    except SignalEmitError as e:
        logger.warning(f"[API] Signal {signal_type} for {name} failed: {e}")
        error = f"{emitter.command} not found" if e.command_missing else "Signal failed"
        return jsonify({"error": error, "message": str(e), "sessionName": name}), 500

    return jsonify(
        {
            "success": True,
            "sessionName": name,
            "type": signal_type,
            "data": data.get("data"),
            "stdout": stdout,
            "message": f"Signal emitted: {signal_type}",
        }
    )


@sessions_bp.route("/sessions/<name>/output", methods=["GET"])
def get_output(name: str):
    """Capture the output of a session.

    Query params:
        lines: Number of lines to return (default 100, max 10000).
        history: "true" to include scrollback, otherwise only the visible pane.
    """
    lines = parse_lines(request.args.get("lines"), 100, MAX_OUTPUT_LINES)
    history = request.args.get("history") == "true"

    capture = _get_backend().capture(name, lines, history=history, escapes=False)
    if not capture.success:
        if capture.session_missing:
            return (
                jsonify(
                    {
                        "error": "Session not found",
                        "message": f"Session '{name}' does not exist",
                        "sessionName": name,
                    }
                ),
                404,
            )
        return (
            jsonify({"error": "Failed to capture output", "message": capture.error, "sessionName": name}),
            500,
        )

    all_lines = capture.output.split("\n")
    output_lines = all_lines[-lines:]
    return jsonify(
        {
            "success": True,
            "sessionName": name,
            "output": "\n".join(output_lines),
            "lineCount": len(output_lines),
            "truncated": len(all_lines) > lines,
        }
    )


@sessions_bp.route("/sessions/<name>/input", methods=["POST"])
def send_input(name: str):
    """Type text into a session.

    Request body:
        {"input": "string", "enter": true}
    """
    data = request.get_json(silent=True) or {}
    text = data.get("input")
    if not isinstance(text, str):
        return jsonify({"error": "Missing input", "sessionName": name}), 400

    sent = _get_backend().send_text(name, text, enter=bool(data.get("enter", True)))
    if not sent:
        return jsonify({"success": False, "error": "Failed to send input", "sessionName": name}), 500
    return jsonify({"success": True, "sessionName": name})


@sessions_bp.route("/sessions/<name>/state", methods=["GET"])
def get_state(name: str):
    """Get the resolved activity state of a session."""
    lines = parse_lines(request.args.get("lines"), 100, MAX_OUTPUT_LINES)
    result = current_app.extensions["work_service"].get_session_state(name, lines)
    if "error" in result:
        return jsonify(result), 404 if result.get("notFound") else 500
    return jsonify(result)
