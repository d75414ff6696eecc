"""Mapping from session persistence keys to live sessions.

Outgoing requests carry the persistence key of the session that
decorated them (the *routing key*). When a response comes back, the
interceptor looks the key up here to find the session that must judge
it. The registry is an ordinary object: construct one at startup and pass
it to every session and to the client that installs the interceptor.
Tests can build as many isolated registries as they need.

Entries are held weakly. The registry never keeps a session alive;
sessions add and remove themselves explicitly.
"""

from __future__ import annotations

import logging
import threading
import weakref
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from secure_session.session import Session

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Thread-safe, weakly-held ``routing key -> Session`` mapping.

    Example::

        registry = SessionRegistry()
        session = Session(auth, navigator, registry=registry)
        assert registry.lookup(session.cookie_key()) is session
    """

    def __init__(self) -> None:
        self._sessions: weakref.WeakValueDictionary[str, Session] = (
            weakref.WeakValueDictionary()
        )
        self._lock = threading.Lock()

    def register(self, key: str, session: Session) -> None:
        """Associate *key* with *session*, replacing any previous session."""
        with self._lock:
            previous = self._sessions.get(key)
            if previous is not None and previous is not session:
                logger.warning("Session key %r re-registered; replacing previous session", key)
            self._sessions[key] = session

    def unregister(self, key: str) -> None:
        """Remove *key*. A no-op when it is not registered."""
        with self._lock:
            self._sessions.pop(key, None)

    def lookup(self, key: Optional[str]) -> Optional[Session]:
        """Return the session registered for *key*, or ``None``."""
        if key is None:
            return None
        with self._lock:
            return self._sessions.get(key)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._sessions.keys())

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
