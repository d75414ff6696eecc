"""Abstract base class for authenticators.

To implement a new login strategy, subclass :class:`Authenticator`, set
the :attr:`~Authenticator.auth_type` property, and implement
:meth:`~Authenticator.check_login`,
:meth:`~Authenticator.add_auth_to_request_conf`, and
:meth:`~Authenticator.check_response`. Sessions only talk to this
interface, so new strategies need no changes to
:class:`~secure_session.session.Session`.

Authenticators keep no per-session data: whatever a login produces is
returned as ``new_state`` in the :class:`~secure_session.models.LoginResult`
and handed back by the session on every request.

See Also:
    :mod:`secure_session.auth.manager` for registration and construction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Optional

import httpx

from secure_session.models import LoginResult, RequestConf, ResponseCheck

LoginHandler = Callable[[LoginResult], None]
"""Receives the outcome of a login handshake, possibly after several round trips."""


def response_status(response: Optional[httpx.Response]) -> Optional[int]:
    """Return the HTTP status of *response*, or ``None`` when there is none.

    Accepts anything exposing ``status_code`` so that interceptors can pass
    through lightweight stand-ins as well as :class:`httpx.Response`.
    """
    if response is None:
        return None
    return getattr(response, "status_code", None)


class Authenticator(ABC):
    """Base class for login strategies.

    Every concrete strategy must provide:

    1. An :attr:`auth_type` property returning a stable identifier. It is
       part of the session persistence key, so changing it orphans
       previously stored sessions.
    2. :meth:`check_login` to run the handshake.
    3. :meth:`add_auth_to_request_conf` to decorate outgoing requests.
    4. :meth:`check_response` to classify live responses.
    """

    @property
    @abstractmethod
    def auth_type(self) -> str:
        """Return the stable auth type identifier (e.g. ``"PasswordOAuth"``)."""
        ...

    def get_auth_type(self) -> str:
        return self.auth_type

    @abstractmethod
    def check_login(self, credentials: Mapping[str, Any], handler: LoginHandler) -> None:
        """Run the login handshake and report the outcome to *handler*.

        The handler is called exactly once, either before this method
        returns or later, when an asynchronous step (such as a popup
        redirect) completes. Failures are reported as ``denied`` or
        ``error`` results, never raised.

        Args:
            credentials: Strategy-specific credentials (e.g. ``user`` and
                ``pass``).
            handler: Callback receiving the
                :class:`~secure_session.models.LoginResult`.
        """
        ...

    @abstractmethod
    def add_auth_to_request_conf(self, conf: RequestConf, state: dict[str, Any]) -> None:
        """Attach credentials derived from *state* to *conf* in place.

        Args:
            conf: The outgoing request description.
            state: The ``new_state`` of the accepted login.
        """
        ...

    @abstractmethod
    def check_response(self, response: Optional[httpx.Response]) -> ResponseCheck:
        """Decide whether *response* means the session is no longer valid.

        A missing response is never an auth failure.
        """
        ...

    def validate_config(self) -> list[str]:
        """Return human-readable configuration problems (empty when valid)."""
        return []
