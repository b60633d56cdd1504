"""Emits agent signals through the `jat-signal` command.

The command prints a ``[JAT-SIGNAL:<type>] <payload>`` line that the agent's
PostToolUse hook turns into a signal sidecar file.
"""

import json
import logging
import os
import subprocess

logger = logging.getLogger(__name__)


class SignalEmitError(Exception):
    """The signal command failed."""

    def __init__(self, message: str, command_missing: bool = False):
        super().__init__(message)
        self.command_missing = command_missing


class SignalEmitter:
    """Runs the signal command on behalf of a session."""

    def __init__(self, command: str = "jat-signal", timeout: int = 10):
        self.command = command
        self.timeout = timeout

    def emit(self, session_name: str, signal_type: str, data: object = None) -> str:
        """Emit a signal for a session.

        Args:
            session_name: tmux session the signal belongs to.
            signal_type: Signal type (e.g. "working", "review", "tasks").
            data: Payload; dicts and lists are sent as JSON.

        Returns:
            The command's stdout.

        Raises:
            SignalEmitError: The command is missing, timed out or failed.
        """
        if isinstance(data, (dict, list)):
            payload = json.dumps(data)
        else:
            payload = str(data) if data else "{}"

        env = {**os.environ, "JAT_SESSION": session_name}
        try:
            result = subprocess.run(
                [self.command, signal_type, payload],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=env,
            )
        except FileNotFoundError as e:
            raise SignalEmitError(
                f"{self.command} command not found in PATH. Ensure jat tools are installed.",
                command_missing=True,
            ) from e
        except subprocess.TimeoutExpired as e:
            raise SignalEmitError(f"{self.command} timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise SignalEmitError(result.stderr.strip() or f"exit code {result.returncode}")

        logger.info(f"Signal emitted for {session_name}: {signal_type}")
        return result.stdout
