"""Auth manager -- registry and factory for authenticators.

The :class:`AuthManager` maps auth-type strings (``"PasswordOAuth"``,
``"OpenIDAuth"``) to factories that build a configured
:class:`~secure_session.auth.base.Authenticator` from an
:class:`~secure_session.models.AuthConfig`.

For most use cases, call :func:`create_default_manager` to get a manager
pre-loaded with every built-in authenticator.
"""

from __future__ import annotations

from typing import Any, Callable

from secure_session.auth.base import Authenticator
from secure_session.exceptions import AuthError
from secure_session.models import AuthConfig

AuthenticatorFactory = Callable[..., Authenticator]


class AuthManager:
    """Registry of authenticator factories keyed by auth type.

    Example::

        manager = AuthManager()
        manager.register("PasswordOAuth", PasswordOAuth.from_config)
        auth = manager.create(profile.auth)
    """

    def __init__(self) -> None:
        self._factories: dict[str, AuthenticatorFactory] = {}

    def register(self, auth_type: str, factory: AuthenticatorFactory) -> None:
        """Register a factory for *auth_type*, replacing any previous one.

        Args:
            auth_type: The identifier matched against ``AuthConfig.type``.
            factory: Callable taking the :class:`AuthConfig` (plus any
                keyword arguments passed to :meth:`create`) and returning
                an :class:`Authenticator`.
        """
        self._factories[auth_type] = factory

    def get_factory(self, auth_type: str) -> AuthenticatorFactory:
        """Retrieve a registered factory.

        Raises:
            AuthError: If no factory is registered for *auth_type*.
        """
        factory = self._factories.get(auth_type)
        if factory is None:
            available = ", ".join(sorted(self._factories)) or "(none)"
            raise AuthError(
                f"No authenticator registered for type '{auth_type}'. "
                f"Available types: {available}"
            )
        return factory

    def create(self, auth_config: AuthConfig, **kwargs: Any) -> Authenticator:
        """Build the authenticator described by *auth_config*.

        Keyword arguments are forwarded to the factory (e.g. the callback
        bridge and popup opener for ``OpenIDAuth``).

        Raises:
            AuthError: If the type is unknown or the resulting
                authenticator reports configuration problems.
        """
        authenticator = self.get_factory(auth_config.type)(auth_config, **kwargs)
        problems = authenticator.validate_config()
        if problems:
            raise AuthError(
                f"Invalid {auth_config.type} configuration: " + "; ".join(problems)
            )
        return authenticator

    def list_types(self) -> list[str]:
        """Return the registered auth types, sorted."""
        return sorted(self._factories)


def create_default_manager() -> AuthManager:
    """Create an :class:`AuthManager` with the built-in authenticators.

    - ``PasswordOAuth`` -- OAuth2 resource-owner password grant.
    - ``OpenIDAuth`` -- popup-driven OpenID exchange with a session cookie.
    """
    from secure_session.plugins.openid import OpenIDAuth
    from secure_session.plugins.password_oauth import PasswordOAuth

    manager = AuthManager()
    manager.register(PasswordOAuth.AUTH_TYPE, PasswordOAuth.from_config)
    manager.register(OpenIDAuth.AUTH_TYPE, OpenIDAuth.from_config)
    return manager
