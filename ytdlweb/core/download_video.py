"""
Video download via the external fetch tool (yt-dlp by default).
"""

import os
import logging
import random
import time
from pathlib import Path

from ytdlweb.core.security_utils import run_subprocess_capture, job_path
from ytdlweb.core.error_codes import JobError
from ytdlweb.core.url_parse import watch_url
from ytdlweb.core.constants import (
    ErrorCode, FETCH_TOOL, FETCH_ARGS, TEMP_OUTPUT_NAME, FETCH_JITTER_MAX_SEC,
)

logger = logging.getLogger(__name__)


def ensure_dirs(*dirs: Path):
    """Create the working/results directories, raising JobError on failure."""
    for d in dirs:
        try:
            Path(d).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise JobError(ErrorCode.WORKDIR_SETUP, f"Cannot create {d}: {e}")


def clear_temp_output(work_dir: Path) -> int:
    """
    Remove any previous attempt's output (out.mp4, out.mp4.part, ...).
    The fetch tool treats an existing out.mp4 as already downloaded.
    """
    removed = 0
    for path in Path(work_dir).glob(TEMP_OUTPUT_NAME + "*"):
        try:
            path.unlink()
            removed += 1
        except FileNotFoundError:
            pass
        except OSError as e:
            raise JobError(ErrorCode.WORKDIR_SETUP, f"Cannot remove stale {path}: {e}")
    if removed:
        logger.info("Removed %d stale temp file(s) from %s", removed, work_dir)
    return removed


def write_error_artifact(results_dir: Path, name: str, stderr: bytes) -> Path:
    """Store the tool's diagnostic output where the video would have gone."""
    path = job_path(results_dir, name)
    path.write_bytes(stderr or b"")
    return path


def download_video(name: str, work_dir: Path, results_dir: Path,
                   fetch_tool: str = FETCH_TOOL,
                   jitter_sec: float = FETCH_JITTER_MAX_SEC) -> Path:
    """
    Download one video into work_dir, then rename it to <results_dir>/<name>.
    On a failed fetch the captured stderr becomes the artifact and
    JobError is raised. Returns the artifact path on success.
    """
    work_dir = Path(work_dir)
    results_dir = Path(results_dir)
    target = job_path(results_dir, name)

    ensure_dirs(work_dir, results_dir)
    clear_temp_output(work_dir)

    if jitter_sec > 0:
        time.sleep(random.uniform(0, jitter_sec))

    args = [fetch_tool, *FETCH_ARGS, watch_url(name)]

    try:
        result = run_subprocess_capture(args, cwd=str(work_dir))
    except OSError as e:
        raise JobError(ErrorCode.DOWNLOAD_FAILED, f"Cannot run {fetch_tool}: {e}")

    if result.returncode != 0:
        stderr = result.stderr or b""
        write_error_artifact(results_dir, name, stderr)
        clear_temp_output(work_dir)
        raise JobError(ErrorCode.DOWNLOAD_FAILED,
                       f"{fetch_tool} failed (rc={result.returncode}): "
                       f"{stderr[:300].decode('utf-8', 'replace')}")

    # Same filesystem, so this is an atomic rename and never a partial copy
    try:
        os.replace(work_dir / TEMP_OUTPUT_NAME, target)
    except OSError as e:
        raise JobError(ErrorCode.DOWNLOAD_FAILED, f"Cannot move download into place: {e}")

    logger.info("Downloaded video: %s", target)
    return target
