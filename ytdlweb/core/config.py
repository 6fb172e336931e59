"""
Application configuration manager.
Stores settings in an optional JSON file; command-line flags override it.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from ytdlweb.core.constants import (
    DEFAULT_RESULTS_DIR, DEFAULT_WORK_DIR, DEFAULT_ADDR, FETCH_TOOL,
    QUEUE_CAPACITY, CLEANUP_INTERVAL_SEC, RESULT_RETENTION_SEC,
    FETCH_JITTER_MAX_SEC, ErrorCode,
)
from ytdlweb.core.error_codes import JobError

# Validation bounds
_QUEUE_CAPACITY_MIN = 1
_QUEUE_CAPACITY_MAX = 1000
_CLEANUP_INTERVAL_MIN = 10        # seconds
_CLEANUP_INTERVAL_MAX = 86400
_RETENTION_MIN = 60               # 1 minute
_RETENTION_MAX = 30 * 86400       # 30 days
_JITTER_MAX = 60.0

logger = logging.getLogger(__name__)

_DEFAULTS = {
    'results_dir': str(DEFAULT_RESULTS_DIR),
    'work_dir': str(DEFAULT_WORK_DIR),
    'addr': DEFAULT_ADDR,
    'users_file': '',
    'fetch_tool': FETCH_TOOL,
    'queue_capacity': QUEUE_CAPACITY,
    'cleanup_interval_sec': CLEANUP_INTERVAL_SEC,
    'result_retention_sec': RESULT_RETENTION_SEC,
    'fetch_jitter_sec': FETCH_JITTER_MAX_SEC,
}

# (coerce, default, min, max)
_NUMERIC = {
    'queue_capacity': (int, QUEUE_CAPACITY, _QUEUE_CAPACITY_MIN, _QUEUE_CAPACITY_MAX),
    'cleanup_interval_sec': (float, CLEANUP_INTERVAL_SEC, _CLEANUP_INTERVAL_MIN, _CLEANUP_INTERVAL_MAX),
    'result_retention_sec': (float, RESULT_RETENTION_SEC, _RETENTION_MIN, _RETENTION_MAX),
    'fetch_jitter_sec': (float, FETCH_JITTER_MAX_SEC, 0.0, _JITTER_MAX),
}


class AppConfig:
    """Manages application configuration stored as JSON."""

    def __init__(self, config_path: Path | None = None, **overrides):
        self.path = Path(config_path) if config_path else None
        self._data: dict = {}
        self.load()
        for key, value in overrides.items():
            if value is not None:
                self._data[key] = self._validate(key, value)

    def load(self):
        """Load config from disk, merging with defaults."""
        self._data = dict(_DEFAULTS)
        if self.path and self.path.exists():
            try:
                with open(self.path, 'r') as f:
                    saved = json.load(f)
                for key, value in saved.items():
                    self._data[key] = self._validate(key, value)
            except (OSError, ValueError) as e:
                logger.warning("Failed to load config: %s", e)

    def save(self):
        """Persist config to disk."""
        if not self.path:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump(self._data, f, indent=2)

    def get(self, key: str, default=None):
        return self._data.get(key, default)

    def set(self, key: str, value):
        value = self._validate(key, value)
        self._data[key] = value
        self.save()

    def _validate(self, key: str, value):
        """Validate and coerce config values to safe ranges."""
        if key in _NUMERIC:
            coerce, default, lo, hi = _NUMERIC[key]
            try:
                value = coerce(value)
            except (TypeError, ValueError):
                logger.warning("Invalid %s %r — using default", key, value)
                return default
            return max(lo, min(hi, value))

        if key in ('results_dir', 'work_dir', 'users_file'):
            value = str(value or '')
            return os.path.expanduser(os.path.expandvars(value)) if value else ''

        return value

    def validate(self):
        """Start-up checks: the program needs exclusive use of both directories."""
        results, work = self.results_dir, self.work_dir
        if not results or not work:
            raise JobError(ErrorCode.CONFIG_INVALID,
                           "neither results nor workdir path can be empty")
        if os.path.abspath(results) == os.path.abspath(work):
            raise JobError(ErrorCode.CONFIG_INVALID,
                           "results and workdir cannot be the same")
        tmp = os.path.abspath(tempfile.gettempdir())
        if tmp in (os.path.abspath(results), os.path.abspath(work)):
            raise JobError(ErrorCode.CONFIG_INVALID,
                           "refusing to use system temporary dir, "
                           "program expects exclusive directory access")

    def as_dict(self) -> dict:
        return dict(self._data)

    @property
    def results_dir(self) -> str:
        return self._data.get('results_dir', '')

    @property
    def work_dir(self) -> str:
        return self._data.get('work_dir', '')

    @property
    def addr(self) -> str:
        return self._data.get('addr', DEFAULT_ADDR)

    @property
    def users_file(self) -> str:
        return self._data.get('users_file', '')

    @property
    def fetch_tool(self) -> str:
        return self._data.get('fetch_tool', FETCH_TOOL)

    @property
    def queue_capacity(self) -> int:
        return self._data.get('queue_capacity', QUEUE_CAPACITY)

    @property
    def cleanup_interval_sec(self) -> float:
        return self._data.get('cleanup_interval_sec', CLEANUP_INTERVAL_SEC)

    @property
    def result_retention_sec(self) -> float:
        return self._data.get('result_retention_sec', RESULT_RETENTION_SEC)

    @property
    def fetch_jitter_sec(self) -> float:
        return self._data.get('fetch_jitter_sec', FETCH_JITTER_MAX_SEC)
