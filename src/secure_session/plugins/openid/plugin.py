"""Popup-driven OpenID authenticator.

This module provides :class:`OpenIDAuth`, which implements the
``OpenIDAuth`` auth type. The exchange has two legs:

1. :meth:`~OpenIDAuth.check_login` registers a one-shot callback on the
   :class:`~secure_session.bridge.CallbackBridge` and opens a popup at
   ``<base><begin_path>?openid_identifier=<identifier>``. The server
   walks the user through their OpenID provider.
2. The provider's final redirect page invokes the callback with its query
   string. The authenticator then GETs ``<base><finish_path>?<query>``,
   whose JSON body says whether the login was approved.

An approved login returns the server's session cookie value
(``cookieVal``), which is then sent as ``<cookie_name>=<cookieVal>`` on
every request. Both 401 and 403 responses invalidate the session.
"""

from __future__ import annotations

import logging
import webbrowser
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

import httpx

from secure_session.auth.base import Authenticator, LoginHandler, response_status
from secure_session.bridge import CallbackBridge, PopupOpener, open_popup
from secure_session.models import AuthConfig, LoginResult, RequestConf, ResponseCheck

logger = logging.getLogger(__name__)


class OpenIDAuth(Authenticator):
    """Authenticate through an OpenID popup and send a session cookie.

    Args:
        base_url: Base URL of the application server.
        begin_path: Path that starts the OpenID exchange.
        finish_path: Path that completes it and reports the outcome.
        cookie_name: Cookie field carrying the session value.
        bridge: Bridge the popup's redirect page reports back through.
            A private bridge is created when omitted.
        popup_opener: Callable opening a URL in a popup window.
        callback_name: Name the redirect page invokes on the bridge.
        timeout: Timeout in seconds for the finishing request.

    Example::

        auth = OpenIDAuth("https://example.com", "/openid_begin",
                          "/openid_finish", "sessionid", bridge=bridge)
    """

    AUTH_TYPE = "OpenIDAuth"
    DEFAULT_CALLBACK_NAME = "handleOpenIDResponse"
    DEFAULT_DENIED_MESSAGE = "Access denied"

    def __init__(
        self,
        base_url: str,
        begin_path: str,
        finish_path: str,
        cookie_name: str,
        bridge: Optional[CallbackBridge] = None,
        popup_opener: Optional[PopupOpener] = None,
        callback_name: str = DEFAULT_CALLBACK_NAME,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._begin_path = begin_path
        self._finish_path = finish_path
        self._cookie_name = cookie_name
        self._bridge = bridge if bridge is not None else CallbackBridge()
        self._popup_opener = popup_opener or open_popup
        self._callback_name = callback_name
        self._timeout = timeout

    @classmethod
    def from_config(
        cls,
        auth_config: AuthConfig,
        bridge: Optional[CallbackBridge] = None,
        popup_opener: Optional[PopupOpener] = None,
        **kwargs: Any,
    ) -> OpenIDAuth:
        return cls(
            auth_config.base_url,
            auth_config.begin_path,
            auth_config.finish_path,
            auth_config.cookie_name or "",
            bridge=bridge,
            popup_opener=popup_opener,
            callback_name=auth_config.callback_name,
            **kwargs,
        )

    @property
    def auth_type(self) -> str:
        return self.AUTH_TYPE

    @property
    def bridge(self) -> CallbackBridge:
        return self._bridge

    @property
    def callback_name(self) -> str:
        return self._callback_name

    def begin_url(self, identifier: str, return_to: Optional[str] = None) -> str:
        params = {"openid_identifier": identifier}
        if return_to:
            params["return_to"] = return_to
        query = urlencode(params)
        return f"{self._base_url}{self._begin_path}?{query}"

    def finish_url(self, query_string: str) -> str:
        url = f"{self._base_url}{self._finish_path}"
        return f"{url}?{query_string}" if query_string else url

    def check_login(self, credentials: Mapping[str, Any], handler: LoginHandler) -> None:
        """Open the OpenID popup; *handler* runs once the popup reports back.

        Args:
            credentials: Mapping with an ``openid_identifier`` key and an
                optional ``return_to`` URL the server should finish on.
            handler: Receives the
                :class:`~secure_session.models.LoginResult`.
        """
        identifier = str(credentials.get("openid_identifier", ""))

        def finish(query_string: str) -> None:
            self._finish(query_string, handler)

        self._bridge.register(self._callback_name, finish)
        url = self.begin_url(identifier, credentials.get("return_to"))
        logger.debug("Opening OpenID popup at %s", url)
        try:
            self._popup_opener(url)
        except (webbrowser.Error, OSError) as exc:
            self._bridge.discard(self._callback_name)
            handler(LoginResult.error(f"Could not open login window: {exc}"))

    def add_auth_to_request_conf(self, conf: RequestConf, state: dict[str, Any]) -> None:
        cookie_val = state.get("cookieVal")
        if cookie_val is None:
            return
        pair = f"{self._cookie_name}={cookie_val}"
        existing = conf.headers.get("Cookie")
        conf.headers["Cookie"] = f"{existing}; {pair}" if existing else pair

    def check_response(self, response: Optional[httpx.Response]) -> ResponseCheck:
        return ResponseCheck(auth_failure=response_status(response) in (401, 403))

    def validate_config(self) -> list[str]:
        errors: list[str] = []
        if not self._base_url:
            errors.append("OpenIDAuth requires 'base_url'")
        if not self._cookie_name:
            errors.append("OpenIDAuth requires 'cookie_name'")
        return errors

    def _finish(self, query_string: str, handler: LoginHandler) -> None:
        """Complete the exchange with the query string the popup returned."""
        url = self.finish_url(query_string)
        try:
            response = httpx.get(
                url,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.debug("OpenID finish request to %s failed: %s", url, exc)
            handler(
                LoginResult.error(
                    f"HTTP Status 0: unable to reach authentication service ({exc})"
                )
            )
            return

        result = self._classify(response)
        logger.debug("OpenID finish returned %s -> %s", response.status_code, result.status.value)
        handler(result)

    def _classify(self, response: httpx.Response) -> LoginResult:
        status = response.status_code
        if not response.is_success:
            return LoginResult.error(f"HTTP Status {status}")
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            return LoginResult.error(f"HTTP Status {status}: malformed response")

        if body.get("approved"):
            if body.get("cookieVal") is None:
                return LoginResult.error(
                    f"HTTP Status {status}: approved response missing cookieVal"
                )
            new_state = {key: value for key, value in body.items() if key != "approved"}
            return LoginResult.accepted(new_state)
        message = body.get("message")
        if isinstance(message, str) and message:
            return LoginResult.denied(message)
        return LoginResult.denied(self.DEFAULT_DENIED_MESSAGE)
