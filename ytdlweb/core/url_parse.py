"""
YouTube URL parsing and job name validation.
"""

import re
from urllib.parse import urlparse, parse_qs

from ytdlweb.core.constants import (
    JOB_NAME_PATTERN, WATCH_URL_PREFIX, YOUTUBE_URL_PREFIXES,
)
from ytdlweb.core.error_codes import JobError, ErrorCode

_JOB_NAME_RE = re.compile(JOB_NAME_PATTERN)


def is_job_name(name: str) -> bool:
    """True if name is usable as a job identifier (and as a filename)."""
    return bool(name) and _JOB_NAME_RE.fullmatch(name) is not None


def extract_video_id(url: str) -> str | None:
    """
    Extract the video id from a watch page or short link.
    Returns None if the URL is not one of the accepted forms.
    """
    url = url.strip()
    if not url:
        return None

    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc:
        return None

    name = None
    if url.startswith(YOUTUBE_URL_PREFIXES[0]):
        name = parse_qs(parsed.query).get('v', [None])[0]
    elif url.startswith(YOUTUBE_URL_PREFIXES[1]):
        name = parsed.path.strip('/')

    if name and is_job_name(name):
        return name
    return None


def validate_youtube_url(url: str) -> str:
    """
    Validate a YouTube URL and return the video id.
    Raises JobError if invalid.
    """
    video_id = extract_video_id(url)
    if not video_id:
        raise JobError(ErrorCode.INVALID_URL, f"Not a valid YouTube URL: {url}")
    return video_id


def watch_url(name: str) -> str:
    """Canonical page URL handed to the fetch tool."""
    return WATCH_URL_PREFIX + name
