"""HTTP client layer for secure_session.

Provides the transport that sessions decorate and the resource layer
built on top of it:

- :class:`SecureClient` -- blocking client over :class:`httpx.Client`
  that routes every response back to its session.
- :class:`SessionInterceptor` -- the routing step itself, usable with any
  transport.
- :class:`SecureResource` -- URL-template resources whose requests are
  decorated by a session.
"""

from secure_session.client.interceptor import SessionInterceptor
from secure_session.client.resource import ResourceAction, ResourceItem, SecureResource
from secure_session.client.sync_client import SecureClient

__all__ = [
    "ResourceAction",
    "ResourceItem",
    "SecureClient",
    "SecureResource",
    "SessionInterceptor",
]
