"""
Cleanup: periodic sweep of scratch space and expiry of old results.
"""

import os
import time
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def _regular_files(root: Path):
    """Yield every regular file under root, subdirectories included."""
    for dirpath, _dirnames, filenames in os.walk(root):
        for filename in filenames:
            path = os.path.join(dirpath, filename)
            if os.path.isfile(path) and not os.path.islink(path):
                yield path


def _remove(path: str) -> bool:
    try:
        os.remove(path)
        logger.debug("Deleted: %s", path)
        return True
    except OSError as e:
        logger.debug("Failed to delete %s: %s", path, e)
        return False


def sweep_work_dir(work_dir: Path) -> int:
    """
    Delete every regular file in the working directory.
    Directories are left in place. Returns the number of files removed.
    """
    removed = 0
    for path in _regular_files(work_dir):
        if _remove(path):
            removed += 1
    return removed


def expire_results(results_dir: Path, retention_sec: float,
                   now: float | None = None) -> int:
    """
    Delete result artifacts whose mtime is strictly older than retention_sec.
    Returns the number of files removed.
    """
    if now is None:
        now = time.time()
    removed = 0
    for path in _regular_files(results_dir):
        try:
            mtime = os.stat(path).st_mtime
        except OSError:
            continue
        if mtime + retention_sec < now and _remove(path):
            removed += 1
    return removed


def run_cleanup(work_dir: Path, results_dir: Path, retention_sec: float,
                skip_work_dir: bool = False) -> tuple[int, int]:
    """
    Run both sweeps. Best-effort: never raises on per-file errors.
    Returns (scratch files removed, results expired).
    """
    swept = 0 if skip_work_dir else sweep_work_dir(work_dir)
    expired = expire_results(results_dir, retention_sec)
    if swept or expired:
        logger.info("Cleanup removed %d scratch file(s), %d expired result(s)",
                    swept, expired)
    return swept, expired
