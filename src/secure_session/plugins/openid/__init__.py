"""Popup-driven OpenID authenticator.

Implements the ``OpenIDAuth`` auth type, which opens the identity
provider in a popup and completes the exchange when the popup's redirect
page reports back through the callback bridge.

See Also:
    :class:`~secure_session.plugins.openid.plugin.OpenIDAuth`
    :mod:`secure_session.bridge`
"""

from secure_session.plugins.openid.plugin import OpenIDAuth

__all__ = ["OpenIDAuth"]
