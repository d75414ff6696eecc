"""OAuth2 password-grant authenticator.

Implements the ``PasswordOAuth`` auth type, which exchanges a user name
and password for a bearer token at ``<base>/oauth/v2/token``.

See Also:
    :class:`~secure_session.plugins.password_oauth.plugin.PasswordOAuth`
"""

from secure_session.plugins.password_oauth.plugin import PasswordOAuth

__all__ = ["PasswordOAuth"]
