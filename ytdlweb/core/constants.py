"""
Shared constants for youtube-dl-web.
Single source of truth — imported by every other module.
"""

import pathlib

# ── Application identity ──────────────────────────────────────────────
APP_NAME = "youtube-dl-web"
APP_VERSION = "1.0.0"

# ── Filesystem paths ─────────────────────────────────────────────────
HOME = pathlib.Path.home()

DEFAULT_RESULTS_DIR = HOME / "youtube" / "ready"
DEFAULT_WORK_DIR = HOME / "youtube" / ".temp"   # must share a filesystem with results

DEFAULT_ADDR = "localhost:8080"

# ── Job status values ─────────────────────────────────────────────────
class JobStatus:
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    PENDING = "PENDING"
    NOT_FOUND = "NOT_FOUND"

# ── Error codes ───────────────────────────────────────────────────────
class ErrorCode:
    INVALID_URL = "ERR_INVALID_URL"
    QUEUE_FULL = "ERR_QUEUE_FULL"
    DOWNLOAD_FAILED = "ERR_DOWNLOAD_FAILED"
    WORKDIR_SETUP = "ERR_WORKDIR_SETUP"
    CONFIG_INVALID = "ERR_CONFIG_INVALID"
    CREDENTIALS_INVALID = "ERR_CREDENTIALS_INVALID"

# ── Queue / worker defaults ───────────────────────────────────────────
QUEUE_CAPACITY = 10
CLEANUP_INTERVAL_SEC = 300           # 5 minutes
RESULT_RETENTION_SEC = 24 * 3600     # 24 hours
FETCH_JITTER_MAX_SEC = 4.0

# ── Fetch tool ────────────────────────────────────────────────────────
FETCH_TOOL = "yt-dlp"
TEMP_OUTPUT_NAME = "out.mp4"
# --no-mtime keeps the artifact mtime at download time, retention depends on it
FETCH_ARGS = ["--no-mtime", "-q", "-o", TEMP_OUTPUT_NAME]
WATCH_URL_PREFIX = "https://www.youtube.com/watch?v="
UPSTREAM_URL = "https://www.youtube.com/"

# ── Content sniffing ──────────────────────────────────────────────────
SNIFF_LEN = 512

# ── Misc ──────────────────────────────────────────────────────────────
JOB_NAME_PATTERN = r'^[a-zA-Z0-9-]+$'
YOUTUBE_URL_PREFIXES = (
    "https://www.youtube.com/watch?",
    "https://youtu.be/",
)
AUTH_REALM = "Restricted"
