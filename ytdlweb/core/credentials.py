"""
Credential list loading for optional HTTP Basic access gating.
"""

import csv
import hmac
import logging
from pathlib import Path

from ytdlweb.core.constants import AUTH_REALM
from ytdlweb.core.error_codes import JobError, ErrorCode

logger = logging.getLogger(__name__)


def load_users(filepath: str | Path) -> dict[str, str]:
    """
    Parse a CSV file of user,password pairs.
    Every record must have exactly two fields.
    """
    users: dict[str, str] = {}
    try:
        with open(filepath, 'r', encoding='utf-8', newline='') as f:
            for lineno, row in enumerate(csv.reader(f), start=1):
                if len(row) != 2:
                    raise JobError(ErrorCode.CREDENTIALS_INVALID,
                                   f"{filepath}:{lineno}: expected 2 fields, got {len(row)}")
                user, password = row
                if not user or not password:
                    raise JobError(ErrorCode.CREDENTIALS_INVALID,
                                   f"{filepath}:{lineno}: empty user or password")
                users[user] = password
    except OSError as e:
        raise JobError(ErrorCode.CREDENTIALS_INVALID, f"Cannot read {filepath}: {e}")
    except csv.Error as e:
        raise JobError(ErrorCode.CREDENTIALS_INVALID, f"{filepath}: {e}")

    logger.info("Loaded %d user(s) from %s", len(users), filepath)
    return users


class Realm:
    """A named set of users checked with HTTP Basic authentication."""

    def __init__(self, name: str = AUTH_REALM, users: dict[str, str] | None = None):
        self.name = name
        self._users = dict(users or {})

    @classmethod
    def from_file(cls, filepath: str | Path, name: str = AUTH_REALM) -> "Realm":
        return cls(name, load_users(filepath))

    def add_user(self, user: str, password: str):
        if not user or not password:
            raise JobError(ErrorCode.CREDENTIALS_INVALID, "empty user or password")
        self._users[user] = password

    def check(self, user: str, password: str) -> bool:
        expected = self._users.get(user)
        if expected is None:
            return False
        return hmac.compare_digest(expected.encode(), password.encode())

    @property
    def challenge(self) -> str:
        return f'Basic realm="{self.name}"'
