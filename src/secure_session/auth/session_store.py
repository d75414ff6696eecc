"""Persistent login state scoped per session cookie key.

Stores state in ``~/.local/share/secure-session/sessions/<cookie_key>.json``
(XDG) or the platform-equivalent directory. Files are written atomically
with ``0o600`` permissions because they hold bearer tokens and session
cookies.

Each session maps to exactly one file, named after
:meth:`~secure_session.session.Session.cookie_key`, so two sessions that
use different authenticators never overwrite each other's state.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from secure_session.config import _atomic_write, get_data_dir


class SessionRecord(BaseModel):
    """Login state persisted for one session.

    Attributes:
        auth_type: Authenticator type that produced the state.
        user: The logged-in user name.
        state: The authenticator-owned strategy state.
        saved_at: UTC time the record was written.
    """

    auth_type: str = Field(description="Authenticator type that produced this state")
    user: Optional[str] = Field(default=None, description="Logged-in user")
    state: dict[str, Any] = Field(
        default_factory=dict, description="Authenticator-owned strategy state"
    )
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def _sessions_dir() -> Path:
    """Return the sessions directory, creating it if needed."""
    path = get_data_dir() / "sessions"
    path.mkdir(parents=True, exist_ok=True)
    return path


class SessionStore:
    """Read/write the persisted state of a single session.

    Args:
        cookie_key: The session's persistence key; used as the file name.

    Example::

        store = SessionStore(session.cookie_key())
        store.save(SessionRecord(auth_type="PasswordOAuth", user="alice",
                                 state={"token": "abc"}))
        record = store.load()
    """

    def __init__(self, cookie_key: str) -> None:
        self._cookie_key = cookie_key
        self._path = _sessions_dir() / f"{cookie_key}.json"

    @property
    def cookie_key(self) -> str:
        return self._cookie_key

    @property
    def path(self) -> Path:
        """The filesystem path to this session's state file."""
        return self._path

    def save(self, record: SessionRecord) -> None:
        """Persist *record* atomically with ``0o600`` permissions.

        Raises:
            OSError: If the file cannot be written.
        """
        text = json.dumps(record.model_dump(mode="json"), indent=2) + "\n"
        _atomic_write(self._path, text, mode=0o600)

    def load(self) -> Optional[SessionRecord]:
        """Load the stored record.

        Returns:
            The :class:`SessionRecord`, or ``None`` if the file does not
            exist or cannot be parsed.
        """
        if not self._path.is_file():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return SessionRecord.model_validate(data)
        except (json.JSONDecodeError, ValueError, OSError):
            return None

    def clear(self) -> None:
        """Delete the stored state. A no-op when nothing is stored."""
        if self._path.is_file():
            self._path.unlink()
