"""Synchronous HTTP client that routes responses back to sessions.

This module provides :class:`SecureClient`, the transport under the
resource layer. It wraps :class:`httpx.Client` and layers on:

- **Session decoration** -- when a session is passed, it stamps the
  request with its routing key and credentials before sending.
- **Response interception** -- every response is handed to
  :class:`~secure_session.client.interceptor.SessionInterceptor`, which
  forwards it to the session registered for the request's routing key.
- **Retry with backoff** -- GET requests are retried on 5xx and network
  errors with exponential delay (1 s, 2 s, 4 s, ...).

The client never raises on HTTP error statuses; callers decide what an
error status means. Network failures raise
:class:`~secure_session.exceptions.ConnectionError_`.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Optional

import httpx

from secure_session.client.interceptor import SessionInterceptor
from secure_session.exceptions import ConnectionError_
from secure_session.models import RequestConf, RequestConfig
from secure_session.registry import SessionRegistry

if TYPE_CHECKING:
    from secure_session.session import Session

logger = logging.getLogger(__name__)


class SecureClient:
    """Synchronous HTTP client for session-decorated requests.

    Must be used as a context manager so that the underlying transport is
    opened and closed.

    Args:
        registry: Registry used to route responses back to sessions.
            Without one, responses are not intercepted.
        base_url: Base URL relative request URLs are joined to.
        request_config: Timeout, SSL verification, and retry settings.
        transport: Optional custom httpx transport (e.g.
            :class:`httpx.MockTransport` in tests).

    Example::

        with SecureClient(registry, base_url="https://api.example.com") as client:
            response = client.get("/things", session=session)
    """

    def __init__(
        self,
        registry: Optional[SessionRegistry] = None,
        base_url: str = "",
        request_config: Optional[RequestConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._interceptor = SessionInterceptor(registry) if registry is not None else None
        self._base_url = base_url
        self._config = request_config or RequestConfig()
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> SecureClient:
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def send(self, conf: RequestConf, session: Optional[Session] = None) -> httpx.Response:
        """Send *conf* and route the response to its session.

        Args:
            conf: The request to send. When *session* is given it is
                decorated first; otherwise it is sent as already decorated.
            session: Optional session to decorate the request with.

        Returns:
            The :class:`httpx.Response`, whatever its status.

        Raises:
            ConnectionError_: On network / timeout errors after all retries.
        """
        if session is not None:
            session.manage_request_conf(conf)
        response = self._execute_with_retry(conf)
        if self._interceptor is not None:
            self._interceptor.on_response(conf, response)
        return response

    def request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        data: Optional[dict[str, Any]] = None,
        session: Optional[Session] = None,
    ) -> httpx.Response:
        """Build a :class:`~secure_session.models.RequestConf` and :meth:`send` it."""
        conf = RequestConf(
            method=method.upper(),
            url=url,
            params=dict(params or {}),
            headers={"Accept": "application/json", **(headers or {})},
            json_body=json_body,
            data=data,
        )
        return self.send(conf, session=session)

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("PUT", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("DELETE", url, **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _execute_with_retry(self, conf: RequestConf) -> httpx.Response:
        """Send *conf*, retrying idempotent GETs on 5xx and network errors."""
        assert self._client is not None, "Client not initialised -- use as context manager"

        max_retries = self._config.max_retries if conf.method == "GET" else 0
        kwargs: dict[str, Any] = {
            "method": conf.method,
            "url": conf.url,
            "headers": conf.headers,
            "params": conf.params,
        }
        if conf.data is not None:
            kwargs["data"] = conf.data
        elif conf.json_body is not None:
            kwargs["json"] = conf.json_body

        for attempt in range(max_retries + 1):
            try:
                response = self._client.request(**kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt < max_retries:
                    delay = 2**attempt
                    logger.debug(
                        "Connection error: %s, retrying in %ss (attempt %s/%s)",
                        exc,
                        delay,
                        attempt + 1,
                        max_retries,
                    )
                    time.sleep(delay)
                    continue
                raise ConnectionError_(
                    f"Connection failed after {attempt + 1} attempts: {exc}"
                ) from exc

            if response.status_code >= 500 and attempt < max_retries:
                delay = 2**attempt
                logger.debug(
                    "Server error %s, retrying in %ss (attempt %s/%s)",
                    response.status_code,
                    delay,
                    attempt + 1,
                    max_retries,
                )
                time.sleep(delay)
                continue
            return response

        raise AssertionError("unreachable")  # pragma: no cover
