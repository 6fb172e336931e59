"""
Security utilities for youtube-dl-web.
- Job name / path containment
- Safe subprocess execution (argument arrays only)
"""

import subprocess
import pathlib
import logging

from ytdlweb.core.error_codes import JobError, ErrorCode
from ytdlweb.core.url_parse import is_job_name

logger = logging.getLogger(__name__)


# ── Filename / path safety ────────────────────────────────────────────

def job_path(directory: pathlib.Path, name: str) -> pathlib.Path:
    """
    Build the path of a job file inside directory.
    The name charset (letters, digits, hyphen) rules out separators and '..'.
    """
    if not is_job_name(name):
        raise JobError(ErrorCode.INVALID_URL, f"Invalid job name: {name!r}")
    return pathlib.Path(directory) / name


# ── Subprocess safety ─────────────────────────────────────────────────

def run_subprocess(args: list[str], **kwargs) -> subprocess.CompletedProcess:
    """
    Execute a subprocess using argument arrays only.
    shell=True is explicitly forbidden.
    """
    if not isinstance(args, (list, tuple)):
        raise TypeError("Subprocess args must be a list/tuple, not a string")

    # Force shell=False — remove any caller-supplied value, then set it once
    kwargs.pop('shell', None)

    logger.debug("Running subprocess: %s", ' '.join(str(a) for a in args))
    return subprocess.run(args, shell=False, **kwargs)


def run_subprocess_capture(args: list[str], timeout: float | None = None,
                           **kwargs) -> subprocess.CompletedProcess:
    """
    Run subprocess and capture stdout/stderr as bytes.
    No timeout unless the caller passes one.
    """
    return run_subprocess(
        args,
        capture_output=True,
        timeout=timeout,
        **kwargs,
    )
