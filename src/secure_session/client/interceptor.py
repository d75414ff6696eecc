"""Response interceptor that routes responses back to their sessions.

Every request decorated by a :class:`~secure_session.session.Session`
carries the session's routing key. :class:`SessionInterceptor` reads the
key from the request that produced a response, finds the session in the
:class:`~secure_session.registry.SessionRegistry`, and lets it judge the
response. Responses without a registered session pass through untouched.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from secure_session.models import RequestConf
from secure_session.registry import SessionRegistry

logger = logging.getLogger(__name__)


class SessionInterceptor:
    """Forwards responses to the session that decorated the request.

    Args:
        registry: The registry sessions joined at construction.
    """

    def __init__(self, registry: SessionRegistry) -> None:
        self._registry = registry

    def on_response(
        self, conf: RequestConf, response: Optional[httpx.Response]
    ) -> Optional[httpx.Response]:
        """Notify the originating session, if any, and return *response* unchanged."""
        session = self._registry.lookup(conf.routing_key)
        if session is None:
            if conf.routing_key is not None:
                logger.debug("No session registered for routing key %r", conf.routing_key)
            return response
        session.handle_http_response(response)
        return response
