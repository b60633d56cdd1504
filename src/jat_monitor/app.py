"""Flask application factory for JAT Monitor.

This module creates and configures the Flask application, wiring together
the services that classify agent sessions:

- SidecarStore: Reads the JSON files written by agent hooks
- TmuxBackend: Lists and captures agent tmux sessions
- TaskTracker: Cached task listings from the tracker CLI
- WorkService: Joins sessions, tasks and resolved states
- SignalEmitter: Emits agent signals via jat-signal
- EventBus / SessionWatcher: Real-time SSE updates

Usage:
    from jat_monitor.app import create_app
    app = create_app()
    app.run(port=5050)
"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from flask import Flask, jsonify

from jat_monitor.backends import get_tmux_backend
from jat_monitor.models import AppConfig
from jat_monitor.routes import register_blueprints
from jat_monitor.services import (
    EventBus,
    SessionWatcher,
    SidecarStore,
    SignalEmitter,
    TaskTracker,
    WorkService,
    get_config_service,
)

logger = logging.getLogger(__name__)


def _load_dotenv() -> None:
    """Load environment variables from .env file if it exists."""
    env_file = Path(".env")
    if env_file.exists():
        with open(env_file) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip().strip('"').strip("'")
                    if key and key not in os.environ:
                        os.environ[key] = value


_load_dotenv()


def create_app(config_path: str = "config.yaml") -> Flask:
    """Create and configure the Flask application.

    Args:
        config_path: Path to the configuration file.

    Returns:
        Configured Flask application.
    """
    config_service = get_config_service(config_path)
    config = config_service.get_config()

    app = Flask(__name__)
    app.config["TESTING"] = False

    app.extensions["config"] = config
    app.extensions["config_service"] = config_service

    _init_services(app, config)

    register_blueprints(app)

    @app.route("/api/health")
    def health():
        backend = app.extensions["terminal_backend"]
        watcher = app.extensions["session_watcher"]
        return jsonify(
            {
                "status": "ok",
                "backend": backend.backend_name,
                "backendAvailable": backend.is_available(),
                "watcherRunning": watcher.is_running,
                "subscribers": app.extensions["event_bus"].subscriber_count,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )

    return app


def _init_services(app: Flask, config: AppConfig) -> None:
    """Initialize all services and wire them together.

    Args:
        app: Flask application.
        config: Application configuration.
    """
    sidecars = SidecarStore(
        base_dir=config.sidecar_dir,
        question_max_age=config.question_max_age,
    )
    app.extensions["sidecar_store"] = sidecars

    backend = get_tmux_backend()
    app.extensions["terminal_backend"] = backend

    task_tracker = TaskTracker(
        config=config.task_tracker,
        projects=config.projects,
        cache_ttl=config.task_cache_ttl,
    )
    app.extensions["task_tracker"] = task_tracker

    work_service = WorkService(
        backend=backend,
        task_tracker=task_tracker,
        sidecars=sidecars,
        session_prefix=config.session_prefix,
    )
    app.extensions["work_service"] = work_service

    app.extensions["signal_emitter"] = SignalEmitter(command=config.signal_command)

    event_bus = EventBus()
    app.extensions["event_bus"] = event_bus

    app.extensions["session_watcher"] = SessionWatcher(
        backend=backend,
        work_service=work_service,
        sidecars=sidecars,
        event_bus=event_bus,
        output_lines=config.output_lines,
        interval=config.scan_interval,
    )

    logger.info("Services initialized")


def start_background_tasks(app: Flask) -> None:
    """Start background tasks for the application.

    Args:
        app: Flask application.
    """
    config = app.extensions.get("config")
    watcher = app.extensions.get("session_watcher")

    if watcher and config and config.watcher_enabled:
        watcher.start()


def main():
    """Run the Flask application."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = create_app()
    config = app.extensions["config"]
    logging.getLogger().setLevel(config.log_level)

    start_background_tasks(app)

    logger.info(f"Starting JAT Monitor on port {config.port}")
    app.run(host="0.0.0.0", port=config.port, debug=config.debug, threaded=True)


if __name__ == "__main__":
    main()
