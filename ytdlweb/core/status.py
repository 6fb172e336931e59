"""
Filesystem status oracle.

Job state is never kept in memory: a file at <results>/<name> means the job
finished, and its leading bytes tell a downloaded video apart from the
captured error output of a failed fetch.
"""

import logging
import struct
from pathlib import Path

from ytdlweb.core.constants import SNIFF_LEN
from ytdlweb.core.error_codes import JobError
from ytdlweb.core.security_utils import job_path

logger = logging.getLogger(__name__)

_WEBM_MAGIC = b"\x1a\x45\xdf\xa3"


def _is_mp4(data: bytes) -> bool:
    """ISO base media file: a leading 'ftyp' box with an mp4* brand."""
    if len(data) < 12:
        return False
    box_size = struct.unpack(">I", data[:4])[0]
    if len(data) < box_size or box_size % 4 != 0:
        return False
    if data[4:8] != b"ftyp":
        return False
    for offset in range(8, box_size, 4):
        if offset == 12:
            continue  # minor version, not a brand
        if data[offset:offset + 3] == b"mp4":
            return True
    return False


def _is_avi(data: bytes) -> bool:
    return len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"AVI "


def _looks_binary(data: bytes) -> bool:
    return any(b <= 0x08 or b == 0x0b or 0x0e <= b <= 0x1a or 0x1c <= b <= 0x1f
               for b in data)


def sniff_content_type(data: bytes) -> str:
    """Classify a byte prefix, video signatures first."""
    data = data[:SNIFF_LEN]
    if _is_mp4(data):
        return "video/mp4"
    if data.startswith(_WEBM_MAGIC):
        return "video/webm"
    if _is_avi(data):
        return "video/avi"
    if not _looks_binary(data):
        return "text/plain; charset=utf-8"
    return "application/octet-stream"


def read_prefix(path: Path) -> bytes | None:
    """Read at most SNIFF_LEN bytes; None if the file cannot be read."""
    try:
        with open(path, 'rb') as f:
            return f.read(SNIFF_LEN)
    except OSError:
        return None


def exists(results_dir: Path, name: str) -> bool:
    """True if an artifact is present, success or failure alike."""
    try:
        return job_path(results_dir, name).is_file()
    except JobError:
        return False


def is_video(results_dir: Path, name: str) -> bool:
    """
    True only if the artifact starts with a known video signature.
    Missing, empty, partial or unreadable files are simply not a success.
    """
    try:
        path = job_path(results_dir, name)
    except JobError:
        return False
    data = read_prefix(path)
    if not data:
        return False
    return sniff_content_type(data).startswith("video/")
