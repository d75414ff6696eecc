"""One-shot callback bridge for popup-driven login flows.

Some login protocols (OpenID) hand control to a popup window and only
learn the outcome when the popup's final redirect page reports back with
a query string. This module models that hand-off as message passing:

* :class:`CallbackBridge` -- a registry of named, single-use callbacks.
  :meth:`~CallbackBridge.invoke` removes the callback *before* calling it,
  so a stale or duplicated popup message can never trigger a second
  completion.
* :class:`LocalCallbackServer` -- a tiny ``http.server`` listener on
  localhost that serves as the popup's redirect target. A request to
  ``/<name>?<query>`` is forwarded to ``bridge.invoke(name, query)``.
* :func:`open_popup` -- the default popup opener, backed by
  :mod:`webbrowser`.
"""

from __future__ import annotations

import logging
import threading
import webbrowser
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Callable, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

BridgeCallback = Callable[[str], None]
PopupOpener = Callable[[str], Any]


def open_popup(url: str) -> None:
    """Open *url* in a new browser window."""
    webbrowser.open(url, new=1)


class CallbackBridge:
    """Named single-use callbacks, addressable by a correlation id.

    Registering a name that already has a pending callback replaces it;
    the older login attempt can then never complete, which is what a
    user closing one popup and opening another expects.

    Example::

        bridge = CallbackBridge()
        bridge.register("handleOpenIDResponse", finish_login)
        bridge.invoke("handleOpenIDResponse", "abc=123")   # True
        bridge.invoke("handleOpenIDResponse", "abc=123")   # False, already used
    """

    def __init__(self) -> None:
        self._callbacks: dict[str, BridgeCallback] = {}
        self._lock = threading.Lock()

    def register(self, name: str, callback: BridgeCallback) -> None:
        with self._lock:
            if name in self._callbacks:
                logger.debug("Replacing pending callback %r", name)
            self._callbacks[name] = callback

    def discard(self, name: str) -> None:
        """Drop the pending callback for *name*, if any."""
        with self._lock:
            self._callbacks.pop(name, None)

    def pending(self, name: str) -> bool:
        with self._lock:
            return name in self._callbacks

    def invoke(self, name: str, query_string: str) -> bool:
        """Deliver *query_string* to the callback registered as *name*.

        The callback is removed before it runs.

        Returns:
            ``True`` if a callback was pending and has been called,
            ``False`` if the message was ignored.
        """
        with self._lock:
            callback = self._callbacks.pop(name, None)
        if callback is None:
            logger.warning("Ignoring popup message for %r: no login in progress", name)
            return False
        callback(query_string)
        return True


class LocalCallbackServer:
    """Localhost HTTP listener that forwards popup redirects to a bridge.

    Args:
        bridge: The bridge receiving ``/<name>?<query>`` requests.
        host: Interface to bind.
        port: Port to bind; ``0`` picks a free port.

    Example::

        with LocalCallbackServer(bridge) as server:
            session.login({"openid_identifier": "https://me.example.org"})
            server.wait(timeout=120)
    """

    def __init__(self, bridge: CallbackBridge, host: str = "127.0.0.1", port: int = 0) -> None:
        self._bridge = bridge
        self._host = host
        self._port = port
        self._server: Optional[HTTPServer] = None
        self._delivered = False

    def __enter__(self) -> LocalCallbackServer:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def port(self) -> int:
        assert self._server is not None, "Server not started"
        return self._server.server_address[1]

    def url_for(self, name: str) -> str:
        """Return the redirect URL the popup should finish on for *name*."""
        return f"http://{self._host}:{self.port}/{name}"

    def start(self) -> None:
        bridge = self._bridge
        owner = self

        class CallbackHandler(BaseHTTPRequestHandler):
            def do_GET(self) -> None:
                parsed = urlparse(self.path)
                name = parsed.path.strip("/")
                delivered = bridge.invoke(name, parsed.query)
                owner._delivered = owner._delivered or delivered
                if delivered:
                    status = 200
                    body = "Login complete. You can close this window."
                else:
                    status = 404
                    body = "No login is in progress."
                self.send_response(status)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.end_headers()
                self.wfile.write(f"<html><body><h2>{body}</h2></body></html>".encode("utf-8"))

            def log_message(self, format: str, *args: Any) -> None:
                pass

        self._server = HTTPServer((self._host, self._port), CallbackHandler)

    def wait(self, timeout: float = 120.0) -> bool:
        """Handle a single request, waiting at most *timeout* seconds.

        Returns:
            ``True`` if the request was delivered to a pending callback.
        """
        assert self._server is not None, "Server not started"
        self._delivered = False
        self._server.timeout = timeout
        self._server.handle_request()
        return self._delivered

    def close(self) -> None:
        if self._server is not None:
            self._server.server_close()
            self._server = None
