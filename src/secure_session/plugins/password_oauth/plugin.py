"""OAuth2 resource-owner password grant authenticator.

This module provides :class:`PasswordOAuth`, which implements the
``PasswordOAuth`` auth type. It POSTs the user's name and password,
together with the configured client id and secret, to
``<base_url>/oauth/v2/token`` (:rfc:`6749` section 4.3) and keeps the
returned access token as session state.

Outcome classification:

- 2xx with ``access_token`` -- ``accepted``.
- 4xx with an ``error`` field (e.g. ``invalid_grant``) -- ``denied``.
- Any other failure with ``error_description`` -- ``error`` carrying it.
- Anything else, including unparseable bodies -- ``error`` naming the
  HTTP status.

Only 401 responses invalidate a live session; 403 means the token is fine
but lacks permission for that resource.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from secure_session.auth.base import Authenticator, LoginHandler, response_status
from secure_session.config import resolve_credential
from secure_session.models import AuthConfig, LoginResult, RequestConf, ResponseCheck

logger = logging.getLogger(__name__)


def _json_body(response: httpx.Response) -> Any:
    """Return the decoded JSON body, or ``None`` when it is not JSON."""
    try:
        return response.json()
    except ValueError:
        return None


class PasswordOAuth(Authenticator):
    """Authenticate with the OAuth2 password grant and send a Bearer token.

    Args:
        base_url: Base URL of the OAuth server (no trailing slash needed).
        client_id: OAuth client identifier.
        client_secret: OAuth client secret.
        timeout: Token request timeout in seconds.

    Example::

        auth = PasswordOAuth("https://example.com", "my_id", "my_secret")
        auth.check_login({"user": "alice", "pass": "swordfish"}, handler)
    """

    AUTH_TYPE = "PasswordOAuth"
    TOKEN_PATH = "/oauth/v2/token"
    DENIED_MESSAGE = "Invalid username or password"

    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: str,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client_id = client_id
        self._client_secret = client_secret
        self._timeout = timeout

    @classmethod
    def from_config(cls, auth_config: AuthConfig, **kwargs: Any) -> PasswordOAuth:
        """Build from a profile's auth section, resolving the client credentials.

        Raises:
            ConfigError: If a credential source cannot be resolved.
        """
        client_id = (
            resolve_credential(auth_config.client_id_source)
            if auth_config.client_id_source
            else ""
        )
        client_secret = (
            resolve_credential(auth_config.client_secret_source)
            if auth_config.client_secret_source
            else ""
        )
        return cls(auth_config.base_url, client_id, client_secret, **kwargs)

    @property
    def auth_type(self) -> str:
        return self.AUTH_TYPE

    @property
    def token_url(self) -> str:
        return f"{self._base_url}{self.TOKEN_PATH}"

    def check_login(self, credentials: Mapping[str, Any], handler: LoginHandler) -> None:
        """Exchange ``user``/``pass`` credentials for an access token.

        Args:
            credentials: Mapping with ``user`` and ``pass`` keys.
            handler: Receives the classified
                :class:`~secure_session.models.LoginResult`.
        """
        user = credentials.get("user", "")
        data: dict[str, str] = {
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "grant_type": "password",
            "username": user,
            "password": credentials.get("pass", ""),
        }
        try:
            response = httpx.post(
                self.token_url,
                data=data,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.debug("Token request to %s failed: %s", self.token_url, exc)
            handler(
                LoginResult.error(
                    f"HTTP Status 0: unable to reach authentication service ({exc})"
                )
            )
            return

        result = self._classify(response, user)
        logger.debug(
            "Token request for %r returned %s -> %s",
            user,
            response.status_code,
            result.status.value,
        )
        handler(result)

    def add_auth_to_request_conf(self, conf: RequestConf, state: dict[str, Any]) -> None:
        conf.headers["Authorization"] = f"Bearer {state['token']}"

    def check_response(self, response: Optional[httpx.Response]) -> ResponseCheck:
        return ResponseCheck(auth_failure=response_status(response) == 401)

    def validate_config(self) -> list[str]:
        errors: list[str] = []
        if not self._base_url:
            errors.append("PasswordOAuth requires 'base_url'")
        if not self._client_id:
            errors.append("PasswordOAuth requires a client id ('client_id_source')")
        return errors

    def _classify(self, response: httpx.Response, user: str) -> LoginResult:
        """Turn a token endpoint response into a login result."""
        status = response.status_code
        body = _json_body(response)

        if response.is_success:
            if isinstance(body, dict) and body.get("access_token"):
                return LoginResult.accepted(
                    {
                        "token": body["access_token"],
                        "refresh_token": body.get("refresh_token"),
                        "expires_in": body.get("expires_in"),
                        "user": user,
                    }
                )
            return LoginResult.error(f"HTTP Status {status}: malformed token response")

        if isinstance(body, dict):
            if 400 <= status < 500 and body.get("error"):
                return LoginResult.denied(self.DENIED_MESSAGE)
            if body.get("error_description"):
                return LoginResult.error(str(body["error_description"]))
        return LoginResult.error(f"HTTP Status {status}")
