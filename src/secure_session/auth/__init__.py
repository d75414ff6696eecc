"""Pluggable authenticator framework for secure_session.

An :class:`Authenticator` implements one login protocol: how credentials
are exchanged for session state, how that state is attached to outgoing
requests, and which responses mean the session has been invalidated.

The main entry points are:

- :class:`Authenticator` -- abstract base class for login strategies.
- :class:`AuthManager` -- registry mapping auth type strings to
  authenticator factories.
- :func:`create_default_manager` -- factory returning an :class:`AuthManager`
  pre-loaded with the built-in ``PasswordOAuth`` and ``OpenIDAuth``.
- :class:`SessionStore` -- persistent, per-cookie-key login state on disk.

Typical usage::

    from secure_session.auth import create_default_manager

    manager = create_default_manager()
    authenticator = manager.create(profile.auth)
"""

from secure_session.auth.base import Authenticator, LoginHandler, response_status
from secure_session.auth.manager import AuthManager, create_default_manager
from secure_session.auth.session_store import SessionRecord, SessionStore

__all__ = [
    "Authenticator",
    "AuthManager",
    "LoginHandler",
    "SessionRecord",
    "SessionStore",
    "create_default_manager",
    "response_status",
]
