"""
Job Queue Manager and Worker.
Downloads one video at a time; job state lives in the results directory.
"""

import collections
import logging
import threading
import time
from pathlib import Path
from typing import Optional

from ytdlweb.core.config import AppConfig
from ytdlweb.core.constants import JobStatus
from ytdlweb.core.error_codes import JobError, QueueFullError, ErrorCode
from ytdlweb.core.url_parse import is_job_name
from ytdlweb.core.download_video import download_video
from ytdlweb.core.cleanup import run_cleanup
from ytdlweb.core.security_utils import job_path
from ytdlweb.core import status

logger = logging.getLogger(__name__)

# Upper bound on one wait, so stop_processing() is noticed promptly
_POLL_INTERVAL_SEC = 1.0

# Returned by _next_job when the worker must exit
_STOP = object()


class JobQueueManager:
    """
    Bounded FIFO of job names consumed by a single worker thread.

    The queue and the busy flag are guarded by one condition variable:
    taking a job off the queue and marking the worker busy happen in the same
    critical section, so readers never see a job that is neither queued nor
    running.
    """

    def __init__(self, config: AppConfig | None = None):
        self.config = config or AppConfig()
        self._cond = threading.Condition()
        self._pending: collections.deque[str] = collections.deque()
        self._busy = False
        self._current_job: Optional[str] = None
        self._worker_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._running = False
        self._worker_exiting = False

    # ── Config helpers ────────────────────────────────────────────────

    @property
    def results_dir(self) -> Path:
        return Path(self.config.results_dir)

    @property
    def work_dir(self) -> Path:
        return Path(self.config.work_dir)

    @property
    def capacity(self) -> int:
        return self.config.queue_capacity

    # ── Queue management ──────────────────────────────────────────────

    def submit(self, name: str):
        """
        Enqueue a job name without blocking.
        Raises QueueFullError when the queue is at capacity.
        """
        if not is_job_name(name):
            raise JobError(ErrorCode.INVALID_URL, f"Invalid job name: {name!r}")
        with self._cond:
            if len(self._pending) >= self.capacity:
                raise QueueFullError(self.capacity)
            self._pending.append(name)
            self._cond.notify_all()
        logger.info("Queued job %s", name)

    def queue_depth(self) -> int:
        """Number of jobs not yet taken by the worker."""
        with self._cond:
            return len(self._pending)

    def is_worker_busy(self) -> bool:
        """True while a fetch is executing."""
        with self._cond:
            return self._busy

    def current_job(self) -> Optional[str]:
        with self._cond:
            return self._current_job

    def pending_jobs(self) -> int:
        """Queued jobs plus the one being downloaded, if any."""
        with self._cond:
            return len(self._pending) + (1 if self._busy else 0)

    # ── Status (filesystem is the source of truth) ────────────────────

    def exists(self, name: str) -> bool:
        return status.exists(self.results_dir, name)

    def is_success(self, name: str) -> bool:
        return status.is_video(self.results_dir, name)

    def artifact_path(self, name: str) -> Path:
        return job_path(self.results_dir, name)

    def job_status(self, name: str) -> str:
        """
        COMPLETED / FAILED once an artifact exists, PENDING while any job is
        queued or running, NOT_FOUND otherwise.
        """
        if self.exists(name):
            return JobStatus.COMPLETED if self.is_success(name) else JobStatus.FAILED
        if self.pending_jobs() > 0:
            return JobStatus.PENDING
        return JobStatus.NOT_FOUND

    # ── Worker lifecycle ──────────────────────────────────────────────

    def start_processing(self):
        """
        Start the worker thread. A worker still finishing its fetch after a
        timed-out stop_processing() is resumed instead of joined by a second one.
        """
        with self._cond:
            self._stop_event.clear()
            old = self._worker_thread
            if old is not None and old.is_alive() and not self._worker_exiting:
                self._running = True
                return
        if old is not None:
            # committed to exit and holds no job, so this returns promptly
            old.join()
        with self._cond:
            self._worker_exiting = False
            self._running = True
            self._worker_thread = threading.Thread(target=self._worker_loop,
                                                   name="download-worker", daemon=True)
            self._worker_thread.start()

    def stop_processing(self, timeout: float | None = None):
        """
        Stop after the current job finishes (a running fetch is never aborted).
        is_running() stays true until the worker has actually exited.
        """
        with self._cond:
            self._stop_event.set()
            self._cond.notify_all()
        if self._worker_thread is not None:
            self._worker_thread.join(timeout)
            if self._worker_thread.is_alive():
                logger.warning("Worker still busy with %r after stop request",
                               self.current_job())
                return
        self._running = False

    def is_running(self) -> bool:
        return self._running

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until the queue is drained and the worker is idle."""
        with self._cond:
            return self._cond.wait_for(
                lambda: not self._pending and not self._busy, timeout)

    # ── Worker loop ───────────────────────────────────────────────────

    def _next_job(self, deadline: float):
        """
        Wait for a job until deadline. On success the worker is marked busy
        before the lock is released. Returns None on timeout and _STOP once a
        stop was requested; the exit decision is made under the lock.
        """
        with self._cond:
            while True:
                if self._stop_event.is_set():
                    self._worker_exiting = True
                    return _STOP
                if self._pending:
                    break
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self._cond.wait(min(remaining, _POLL_INTERVAL_SEC))
            name = self._pending.popleft()
            self._busy = True
            self._current_job = name
            return name

    def _worker_loop(self):
        """Main worker loop — downloads one job at a time, sweeps on a timer."""
        interval = self.config.cleanup_interval_sec
        next_cleanup = time.monotonic() + interval
        try:
            while True:
                if time.monotonic() >= next_cleanup:
                    self.cleanup()
                    next_cleanup = time.monotonic() + interval
                    continue

                name = self._next_job(next_cleanup)
                if name is _STOP:
                    break
                if name is None:
                    continue
                try:
                    self._process_job(name)
                finally:
                    with self._cond:
                        self._busy = False
                        self._current_job = None
                        self._cond.notify_all()
        except Exception as e:
            logger.error("Worker loop error: %s", e, exc_info=True)
        finally:
            self._running = False

    def _process_job(self, name: str):
        """Run one download attempt. Failures are logged, never raised."""
        try:
            if self.is_success(name):
                logger.info("Job %s already downloaded, skipping", name)
                return
            download_video(name, self.work_dir, self.results_dir,
                           fetch_tool=self.config.fetch_tool,
                           jitter_sec=self.config.fetch_jitter_sec)
        except JobError as e:
            logger.error("%r download: %s", name, e)
        except Exception as e:
            logger.error("Unexpected error downloading %r: %s", name, e, exc_info=True)

    def cleanup(self):
        """
        Empty the working directory and expire old results.
        The working directory is left alone while a fetch is running.
        """
        try:
            run_cleanup(self.work_dir, self.results_dir,
                        self.config.result_retention_sec,
                        skip_work_dir=self.is_worker_busy())
        except Exception as e:
            logger.warning("Cleanup failed: %s", e)
