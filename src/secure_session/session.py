"""Authentication session state machine.

A :class:`Session` tracks whether the user of one authentication domain
is logged in and reacts to login results and API responses::

    LoggedOut --login(accepted)--------> LoggedIn
    LoggedOut --login(denied | error)--> LoggedOut
    LoggedIn  --logout-----------------> LoggedOut   (redirect to login page)
    LoggedIn  --response(auth failure)-> LoggedOut   (save path, redirect to login page)

Protocol details live in the :class:`~secure_session.auth.base.Authenticator`
the session is constructed with. The session only stores the opaque
strategy state an accepted login returns and hands it back to the
authenticator whenever a request needs credentials.

When a response forces a logout, the path the user was on is remembered
and the next successful login returns there instead of to the default
post-login page. Explicit logouts do not remember anything.

All transitions are applied in a single step, so when a forced logout and
a fresh login overlap the last transition to complete wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Union

import httpx

from secure_session.auth.base import Authenticator
from secure_session.auth.session_store import SessionRecord, SessionStore
from secure_session.models import (
    LoginResult,
    LoginStatus,
    RequestConf,
    SessionSettings,
)
from secure_session.navigation import Navigator
from secure_session.registry import SessionRegistry

logger = logging.getLogger(__name__)

LoginCallback = Callable[[LoginResult], Any]


@dataclass
class LoginCallbacks:
    """Optional per-outcome callbacks for :meth:`Session.login`.

    Exactly one of them fires per login attempt; missing ones are skipped.
    """

    accepted: Optional[LoginCallback] = None
    denied: Optional[LoginCallback] = None
    error: Optional[LoginCallback] = None


@dataclass(frozen=True)
class LoggedOut:
    """No user is logged in."""


@dataclass(frozen=True)
class LoggedIn:
    """A user is logged in with authenticator-owned *state*."""

    user: Optional[str]
    state: dict[str, Any] = field(default_factory=dict)


LoginState = Union[LoggedOut, LoggedIn]

LOGGED_OUT = LoggedOut()


def _callback_for(callbacks: Any, name: str) -> Optional[LoginCallback]:
    """Look up callback *name* on a :class:`LoginCallbacks`, mapping, or any object."""
    if callbacks is None:
        return None
    if isinstance(callbacks, Mapping):
        return callbacks.get(name)
    return getattr(callbacks, name, None)


class Session:
    """Login state and request/response handling for one authentication domain.

    Args:
        authenticator: Login strategy shared with other components.
        navigator: Host navigation service used for redirects.
        settings: Session name and navigation paths. Defaults apply when
            omitted.
        registry: Registry to join under :meth:`cookie_key`, so that the
            response interceptor can route responses back here.
        store: Persistence for the login state. Restored on construction,
            written on login, cleared on reset.
        persist: Create a :class:`~secure_session.auth.session_store.SessionStore`
            for :meth:`cookie_key` when no *store* is given.

    Example::

        session = Session(PasswordOAuth(url, cid, secret), HistoryNavigator(),
                          registry=registry)
        session.login({"user": "alice", "pass": "swordfish"},
                      LoginCallbacks(denied=lambda r: print(r.msg)))
    """

    def __init__(
        self,
        authenticator: Authenticator,
        navigator: Navigator,
        settings: Optional[SessionSettings] = None,
        registry: Optional[SessionRegistry] = None,
        store: Optional[SessionStore] = None,
        persist: bool = False,
    ) -> None:
        self._auth = authenticator
        self._navigator = navigator
        self._settings = settings or SessionSettings()
        self._registry = registry
        self._login_state: LoginState = LOGGED_OUT
        self._pre_failure_path: Optional[str] = None

        if store is None and persist:
            store = SessionStore(self.cookie_key())
        self._store = store

        if registry is not None:
            registry.register(self.cookie_key(), self)
        self._restore()

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    @property
    def authenticator(self) -> Authenticator:
        return self._auth

    @property
    def settings(self) -> SessionSettings:
        return self._settings

    @property
    def login_state(self) -> LoginState:
        return self._login_state

    @property
    def pre_failure_path(self) -> Optional[str]:
        """Path saved by the last forced logout, until the next successful login."""
        return self._pre_failure_path

    @property
    def user_name(self) -> Optional[str]:
        if isinstance(self._login_state, LoggedIn):
            return self._login_state.user
        return None

    @property
    def state(self) -> Optional[dict[str, Any]]:
        """A copy of the strategy state, or ``None`` when logged out."""
        if isinstance(self._login_state, LoggedIn):
            return dict(self._login_state.state)
        return None

    def logged_in(self) -> bool:
        return isinstance(self._login_state, LoggedIn)

    def cookie_key(self) -> str:
        """Return the persistence key ``"<session_name>-<auth_type>"``."""
        return f"{self._settings.session_name}-{self._auth.auth_type}"

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    def login(self, credentials: Mapping[str, Any], callbacks: Any = None) -> None:
        """Attempt a login with *credentials*.

        The authenticator may complete immediately or later (after a popup
        reports back); state changes and callbacks happen when it does.

        On ``accepted`` the session becomes logged in, the state is
        persisted, and the user is redirected to the path saved by the last
        forced logout or else to ``post_login_path``. ``denied`` and
        ``error`` change nothing.

        Args:
            credentials: Strategy-specific credentials.
            callbacks: :class:`LoginCallbacks`, a mapping, or any object
                with optional ``accepted``, ``denied``, and ``error``
                callables. Each receives the
                :class:`~secure_session.models.LoginResult`.
        """

        def handler(result: LoginResult) -> None:
            if result.status == LoginStatus.ACCEPTED:
                self._accept(result, credentials)
            else:
                logger.debug(
                    "Login for %s %s: %s", self.cookie_key(), result.status.value, result.msg
                )
            callback = _callback_for(callbacks, result.status.value)
            if callback is not None:
                callback(result)

        self._auth.check_login(credentials, handler)

    def logout(self) -> None:
        """End the session and redirect to ``login_path``.

        When ``logout_url`` is configured and the user is logged in, the
        server is told first; failures to reach it are logged and ignored.
        """
        if self._settings.logout_url and self.logged_in():
            self._notify_logout(self._settings.logout_url)
        self.reset()
        self._navigate(self._settings.login_path)

    def reset(self) -> None:
        """Drop the login state and its persisted copy without navigating."""
        self._login_state = LOGGED_OUT
        if self._store is not None:
            self._store.clear()
        logger.debug("Session %s reset", self.cookie_key())

    def dispose(self) -> None:
        """Leave the registry. The session keeps working but no longer receives responses."""
        if self._registry is not None and self._registry.lookup(self.cookie_key()) is self:
            self._registry.unregister(self.cookie_key())

    # ------------------------------------------------------------------ #
    # Request / response hooks
    # ------------------------------------------------------------------ #

    def manage_request_conf(self, conf: RequestConf) -> None:
        """Stamp *conf* with this session's routing key and, if logged in, credentials."""
        conf.routing_key = self.cookie_key()
        if isinstance(self._login_state, LoggedIn):
            self._auth.add_auth_to_request_conf(conf, self._login_state.state)

    def handle_http_response(self, response: Optional[httpx.Response] = None) -> None:
        """React to a response from a request this session decorated.

        If the authenticator classifies it as an auth failure, the current
        path is saved, the session is reset, and the user is redirected to
        ``login_path``.
        """
        check = self._auth.check_response(response)
        if not check.auth_failure:
            return
        self._pre_failure_path = self._navigator.get_path()
        logger.debug(
            "Auth failure for %s at %s; logging out", self.cookie_key(), self._pre_failure_path
        )
        self.reset()
        self._navigate(self._settings.login_path)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _accept(self, result: LoginResult, credentials: Mapping[str, Any]) -> None:
        state = dict(result.new_state or {})
        if state.get("user") is None and credentials.get("user") is not None:
            state["user"] = credentials["user"]
        user = state.get("user")
        self._login_state = LoggedIn(user=user, state=state)

        if self._store is not None:
            try:
                self._store.save(
                    SessionRecord(auth_type=self._auth.auth_type, user=user, state=state)
                )
            except OSError as exc:
                logger.warning("Could not persist session %s: %s", self.cookie_key(), exc)

        target = self._pre_failure_path or self._settings.post_login_path
        self._pre_failure_path = None
        logger.debug("Login for %s accepted as %r", self.cookie_key(), user)
        self._navigate(target)

    def _restore(self) -> None:
        if self._store is None:
            return
        record = self._store.load()
        if record is None:
            return
        if record.auth_type != self._auth.auth_type:
            logger.debug("Ignoring stored %s state for %s", record.auth_type, self.cookie_key())
            return
        self._login_state = LoggedIn(user=record.user, state=dict(record.state))
        logger.debug("Restored session %s for %r", self.cookie_key(), record.user)

    def _navigate(self, path: str) -> None:
        self._navigator.set_path(path)
        self._navigator.replace()

    def _notify_logout(self, url: str) -> None:
        conf = RequestConf(method="POST", url=url)
        self.manage_request_conf(conf)
        try:
            httpx.post(conf.url, headers=conf.headers, timeout=30.0)
        except httpx.HTTPError as exc:
            logger.warning("Logout notification to %s failed: %s", url, exc)
