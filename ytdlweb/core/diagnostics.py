"""
Diagnostics: tool version detection and system checks.
"""

import os
import logging
from pathlib import Path

import requests

from ytdlweb.core.security_utils import run_subprocess_capture
from ytdlweb.core.constants import FETCH_TOOL, UPSTREAM_URL

logger = logging.getLogger(__name__)


def get_fetch_tool_version(tool: str = FETCH_TOOL) -> str:
    """Return the fetch tool version string, or error message."""
    try:
        result = run_subprocess_capture([tool, "--version"], timeout=10)
        if result.returncode == 0:
            return result.stdout.decode('utf-8', 'replace').strip()
        return f"Error (rc={result.returncode})"
    except FileNotFoundError:
        return "Not installed"
    except Exception as e:
        return f"Error: {e}"


def same_filesystem(a: Path, b: Path) -> bool:
    """True if both existing paths live on the same device (rename is atomic)."""
    try:
        return os.stat(a).st_dev == os.stat(b).st_dev
    except OSError:
        return False


def check_upstream(url: str = UPSTREAM_URL, timeout: float = 10) -> tuple[bool, str]:
    """
    Check that the video site is reachable with a lightweight request.
    Returns (success: bool, message: str).
    """
    try:
        resp = requests.head(url, timeout=timeout, allow_redirects=True)
        if resp.status_code < 400:
            return True, "Upstream reachable"
        return False, f"Unexpected response: {resp.status_code}"
    except requests.exceptions.ConnectionError:
        return False, "Network error — could not reach upstream"
    except requests.exceptions.Timeout:
        return False, "Network error — request timed out"
    except requests.exceptions.RequestException as e:
        return False, f"Network error: {e}"


def get_diagnostics(config, check_network: bool = True) -> dict:
    """Gather all diagnostic information."""
    results_dir, work_dir = Path(config.results_dir), Path(config.work_dir)
    info = {
        "fetch_tool": config.fetch_tool,
        "fetch_tool_version": get_fetch_tool_version(config.fetch_tool),
        "results_dir": str(results_dir),
        "work_dir": str(work_dir),
        "same_filesystem": same_filesystem(results_dir, work_dir),
    }
    if check_network:
        info["upstream_ok"], info["upstream_message"] = check_upstream()
    return info
