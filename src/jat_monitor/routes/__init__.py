"""Flask routes for JAT Monitor."""

from jat_monitor.routes.events import events_bp
from jat_monitor.routes.sessions import sessions_bp
from jat_monitor.routes.work import work_bp

__all__ = [
    "events_bp",
    "sessions_bp",
    "work_bp",
]


def register_blueprints(app):
    """Register all blueprints with the Flask app.

    Args:
        app: The Flask application instance.
    """
    app.register_blueprint(events_bp, url_prefix="/api")
    app.register_blueprint(sessions_bp, url_prefix="/api")
    app.register_blueprint(work_bp, url_prefix="/api")
