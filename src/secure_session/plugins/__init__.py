"""Built-in authenticators.

Each authenticator lives in its own sub-package with a ``plugin.py``
module and re-exports its class from the sub-package ``__init__``:

- :mod:`secure_session.plugins.password_oauth` -- ``PasswordOAuth``
- :mod:`secure_session.plugins.openid` -- ``OpenIDAuth``
"""
