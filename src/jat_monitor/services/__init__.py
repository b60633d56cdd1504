"""Services for JAT Monitor."""

from jat_monitor.services.config_service import (
    ConfigService,
    get_config_service,
    reset_config_service,
)
from jat_monitor.services.event_bus import Event, EventBus
from jat_monitor.services.marker_scanner import (
    OUTPUT_WINDOW,
    MarkerGroup,
    MarkerPositions,
    scan_markers,
)
from jat_monitor.services.session_watcher import SessionWatcher
from jat_monitor.services.sidecar_store import (
    ActivityReading,
    QuestionReading,
    SidecarStore,
    SignalClearResult,
    SignalReading,
)
from jat_monitor.services.signal_emitter import SignalEmitError, SignalEmitter
from jat_monitor.services.state_resolver import detect_session_state, resolve_state
from jat_monitor.services.task_tracker import TaskTracker, TaskTrackerError
from jat_monitor.services.ttl_cache import CacheEntry, TTLCache
from jat_monitor.services.work_service import WorkService, WorkSnapshot

__all__ = [
    "ActivityReading",
    "CacheEntry",
    "ConfigService",
    "Event",
    "EventBus",
    "MarkerGroup",
    "MarkerPositions",
    "OUTPUT_WINDOW",
    "QuestionReading",
    "SessionWatcher",
    "SidecarStore",
    "SignalClearResult",
    "SignalEmitError",
    "SignalEmitter",
    "SignalReading",
    "TTLCache",
    "TaskTracker",
    "TaskTrackerError",
    "WorkService",
    "WorkSnapshot",
    "detect_session_state",
    "get_config_service",
    "reset_config_service",
    "resolve_state",
    "scan_markers",
]
