"""Event routes.

Provides the Server-Sent Events endpoint for real-time session updates.
"""

from flask import Blueprint, Response, current_app, jsonify, request

events_bp = Blueprint("events", __name__)


@events_bp.route("/events")
def sse_events():
    """Server-Sent Events endpoint for session updates.

    Clients receive a ``connected`` message followed by:
    - session-created / session-destroyed
    - session-output: output changed
    - session-state: resolved state changed
    - session-question: a question became active

    Query params:
        replay: "true" to receive buffered recent events first.
        since: Resume after this event ID. Browsers reconnecting send the
            ``Last-Event-ID`` header instead.
    """
    event_bus = current_app.extensions["event_bus"]
    replay = request.args.get("replay") == "true"
    since_id = request.args.get("since") or request.headers.get("Last-Event-ID")

    return Response(
        event_bus.get_sse_stream(include_buffer=replay, since_id=since_id),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@events_bp.route("/events/recent")
def recent_events():
    """Buffered events as JSON, for clients polling instead of streaming.

    Query params:
        since: Only events after this ID.
        type: Only events of this type.
    """
    event_bus = current_app.extensions["event_bus"]
    events = event_bus.get_buffered_events(
        since_id=request.args.get("since"), event_type=request.args.get("type")
    )
    return jsonify(
        {
            "events": [
                {
                    "id": e.id,
                    "type": e.event_type,
                    "data": e.data,
                    "timestamp": e.timestamp.isoformat(),
                }
                for e in events
            ],
            "count": len(events),
        }
    )
