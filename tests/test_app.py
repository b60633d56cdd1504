"""Tests for Flask application factory."""

import os
from unittest.mock import patch

import pytest

from jat_monitor.app import _load_dotenv, create_app, start_background_tasks
from jat_monitor.services.config_service import ENV_OVERRIDES


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for env_var in ENV_OVERRIDES:
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture
def config_file(temp_dir):
    """Create a test config file."""
    config_path = temp_dir / "config.yaml"
    config_path.write_text(
        f"""
projects:
  - name: test-project
    path: /tmp/test

sidecar_dir: {temp_dir}
watcher_enabled: false
port: 5050
"""
    )
    return str(config_path)


class TestCreateApp:
    """Tests for create_app factory."""

    def test_create_app_returns_flask_app(self, config_file):
        app = create_app(config_file)
        assert app.name == "jat_monitor.app"

    def test_app_has_extensions(self, config_file):
        """App has every service wired in."""
        app = create_app(config_file)

        for name in (
            "config",
            "config_service",
            "sidecar_store",
            "terminal_backend",
            "task_tracker",
            "work_service",
            "signal_emitter",
            "event_bus",
            "session_watcher",
        ):
            assert name in app.extensions

    def test_config_applied(self, config_file, temp_dir):
        app = create_app(config_file)
        assert str(app.extensions["sidecar_store"].base_dir) == str(temp_dir)
        assert app.extensions["task_tracker"].projects[0].path == "/tmp/test"

    def test_health_route(self, config_file):
        app = create_app(config_file)
        with patch("jat_monitor.backends.tmux.shutil.which", return_value=None):
            response = app.test_client().get("/api/health")

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "ok"
        assert data["backend"] == "tmux"
        assert data["backendAvailable"] is False
        assert data["watcherRunning"] is False

    def test_question_route_uses_sidecar_dir(self, config_file, temp_dir):
        (temp_dir / "claude-question-tmux-jat-A.json").write_text('{"questions": []}')
        app = create_app(config_file)

        data = app.test_client().get("/api/work/jat-A/question").get_json()
        assert data["active"] is True


class TestBackgroundTasks:
    """Tests for start_background_tasks()."""

    def test_watcher_disabled(self, config_file):
        app = create_app(config_file)
        start_background_tasks(app)
        assert not app.extensions["session_watcher"].is_running

    def test_watcher_started(self, config_file):
        app = create_app(config_file)
        app.extensions["config"].watcher_enabled = True
        watcher = app.extensions["session_watcher"]

        with patch.object(watcher, "start") as mock_start:
            start_background_tasks(app)
        mock_start.assert_called_once()


class TestLoadDotenv:
    """Tests for .env loading."""

    def test_loads_unset_variables(self, temp_dir, monkeypatch):
        (temp_dir / ".env").write_text('# comment\nJAT_TEST_VALUE="from-file"\nJAT_TEST_KEEP=file\n')
        monkeypatch.chdir(temp_dir)
        monkeypatch.delenv("JAT_TEST_VALUE", raising=False)
        monkeypatch.setenv("JAT_TEST_KEEP", "env")

        _load_dotenv()

        assert os.environ["JAT_TEST_VALUE"] == "from-file"
        assert os.environ["JAT_TEST_KEEP"] == "env"
