"""
Standardised error handling for youtube-dl-web.
"""

from ytdlweb.core.constants import ErrorCode


class JobError(Exception):
    """Raised when a job encounters a known error condition."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class QueueFullError(JobError):
    """Raised by a non-blocking submit when the queue is at capacity."""

    def __init__(self, capacity: int):
        self.capacity = capacity
        super().__init__(ErrorCode.QUEUE_FULL,
                         f"Queue is full ({capacity} jobs), please try later")
