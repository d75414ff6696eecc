"""Session commands -- log in, log out, inspect, and send requests.

Each command resolves the active profile (``--profile``, then
``SECURE_SESSION_PROFILE``, then the global default), builds a
:class:`~secure_session.session.Session` for it, and lets the session's
persisted state carry the login between invocations::

    secure-session login --profile myapi
    secure-session request GET /things
    secure-session status
    secure-session logout
"""

from __future__ import annotations

import json
from typing import Any, NoReturn, Optional

import typer

from secure_session.exceptions import SecureSessionError
from secure_session.exit_codes import EXIT_AUTH_FAILURE, EXIT_HTTP_ERROR
from secure_session.models import LoginResult, LoginStatus, Profile
from secure_session.output import debug, error, format_response, info, success, suggest, warning
from secure_session.registry import SessionRegistry
from secure_session.session import LoginCallbacks, Session


def _fail(exc: SecureSessionError) -> NoReturn:
    error(str(exc))
    raise typer.Exit(code=exc.exit_code) from None


def _resolve(ctx: typer.Context, profile_name: Optional[str]) -> Profile:
    from secure_session.config import resolve_profile

    name = profile_name or (ctx.obj.get("profile") if ctx.obj else None)
    try:
        return resolve_profile(name)
    except SecureSessionError as exc:
        _fail(exc)


def build_session(
    profile: Profile,
    registry: Optional[SessionRegistry] = None,
    bridge: Any = None,
) -> Session:
    """Create the persisted :class:`Session` described by *profile*.

    Args:
        profile: The active profile.
        registry: Registry the session joins, for response interception.
        bridge: :class:`~secure_session.bridge.CallbackBridge` handed to
            popup-driven authenticators.

    Raises:
        AuthError: If the profile's auth type is unknown or misconfigured.
        ConfigError: If a client credential source cannot be resolved.
    """
    from secure_session.auth import create_default_manager
    from secure_session.navigation import HistoryNavigator
    from secure_session.plugins.openid import OpenIDAuth

    options: dict[str, Any] = {"timeout": float(profile.request.timeout)}
    if profile.auth.type == OpenIDAuth.AUTH_TYPE:
        options["bridge"] = bridge
    authenticator = create_default_manager().create(profile.auth, **options)

    navigator = HistoryNavigator(profile.session.post_login_path)
    navigator.on_change(lambda path: debug(f"Navigated to {path}"))
    return Session(
        authenticator,
        navigator,
        settings=profile.session,
        registry=registry,
        persist=True,
    )


def _parse_pairs(pairs: Optional[list[str]], sep: str, what: str) -> dict[str, str]:
    from secure_session.exceptions import InvalidUsageError

    parsed: dict[str, str] = {}
    for pair in pairs or []:
        key, found, value = pair.partition(sep)
        if not found or not key.strip():
            raise InvalidUsageError(f"Invalid {what} '{pair}', expected KEY{sep}VALUE")
        parsed[key.strip()] = value.strip()
    return parsed


def _parse_body(body: Optional[str]) -> Any:  # noqa: ANN401
    """Parse *body* as JSON if possible, returning the raw string on failure."""
    if body is None:
        return None
    try:
        return json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return body


def login_command(
    ctx: typer.Context,
    profile_name: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
    ),
    user: Optional[str] = typer.Option(
        None, "--user", "-u", help="User name (PasswordOAuth)."
    ),
    password: Optional[str] = typer.Option(
        None, "--password", help="Password (PasswordOAuth); prompted when omitted."
    ),
    identifier: Optional[str] = typer.Option(
        None, "--identifier", help="OpenID identifier URL (OpenIDAuth)."
    ),
    timeout: float = typer.Option(
        120.0, "--timeout", help="Seconds to wait for the OpenID login window."
    ),
) -> None:
    """Log in to the active profile.

    ``PasswordOAuth`` profiles prompt for a user name and password.
    ``OpenIDAuth`` profiles open the provider in a browser window and
    wait for it to report back to a local callback server.

    Raises:
        typer.Exit: With code 3 if the login is denied, 5 if it fails,
            or the error's exit code for configuration problems.

    Example::

        secure-session login --profile myapi --user alice
        secure-session login --identifier https://me.example.org
    """
    from secure_session.exceptions import LoginError
    from secure_session.plugins.openid import OpenIDAuth

    profile = _resolve(ctx, profile_name)
    results: list[LoginResult] = []
    callbacks = LoginCallbacks(results.append, results.append, results.append)

    try:
        if profile.auth.type == OpenIDAuth.AUTH_TYPE:
            session = _login_openid(profile, identifier, timeout, callbacks, results)
        else:
            session = build_session(profile)
            if session.logged_in():
                info(f"Already logged in as {session.user_name}; logging in again.")
            name = user or typer.prompt("Username")
            secret = password or typer.prompt("Password", hide_input=True)
            session.login({"user": name, "pass": secret}, callbacks)
    except SecureSessionError as exc:
        _fail(exc)

    if not results:
        _fail(LoginError("The login window did not report back."))
    _report(results[-1], session)


def _login_openid(
    profile: Profile,
    identifier: Optional[str],
    timeout: float,
    callbacks: LoginCallbacks,
    results: list[LoginResult],
) -> Session:
    from secure_session.bridge import CallbackBridge, LocalCallbackServer
    from secure_session.exceptions import LoginError

    bridge = CallbackBridge()
    ident = identifier or typer.prompt("OpenID identifier")
    with LocalCallbackServer(bridge, port=profile.auth.callback_port) as server:
        session = build_session(profile, bridge=bridge)
        return_to = server.url_for(profile.auth.callback_name)
        info("Complete the login in your browser window.")
        debug(f"Waiting for the login window on {return_to}")
        session.login({"openid_identifier": ident, "return_to": return_to}, callbacks)
        if not results and not server.wait(timeout=timeout):
            raise LoginError(f"No login response within {timeout:g} seconds.")
    return session


def _report(result: LoginResult, session: Session) -> None:
    from secure_session.exceptions import AuthError, LoginError

    if result.status == LoginStatus.ACCEPTED:
        success(f"Logged in as {session.user_name or 'unknown user'}.")
        suggest("Send a request: secure-session request GET /")
    elif result.status == LoginStatus.DENIED:
        _fail(AuthError(result.msg or "Login denied."))
    else:
        _fail(LoginError(result.msg or "Login failed."))


def logout_command(
    ctx: typer.Context,
    profile_name: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
    ),
) -> None:
    """Log out of the active profile and forget its stored session.

    When the profile has a ``logout_url``, the server is notified first.
    """
    profile = _resolve(ctx, profile_name)
    try:
        session = build_session(profile)
    except SecureSessionError as exc:
        _fail(exc)

    if not session.logged_in():
        info("Not logged in.")
    session.logout()
    success(f'Logged out of "{profile.name}".')


def status_command(
    ctx: typer.Context,
    profile_name: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
    ),
) -> None:
    """Show whether the active profile has a stored login."""
    from secure_session.auth import SessionStore

    profile = _resolve(ctx, profile_name)
    store = SessionStore(profile.cookie_key())
    record = store.load()
    format_response(
        {
            "profile": profile.name,
            "auth_type": profile.auth.type,
            "session_key": profile.cookie_key(),
            "logged_in": record is not None,
            "user": record.user if record is not None else None,
            "saved_at": record.saved_at.isoformat() if record is not None else None,
        }
    )


def request_command(
    ctx: typer.Context,
    method: str = typer.Argument(help="HTTP method, e.g. GET or POST."),
    path: str = typer.Argument(help="Path relative to the profile's base URL, or a full URL."),
    params: Optional[list[str]] = typer.Option(
        None, "--param", "-q", help="Query parameter KEY=VALUE (repeatable)."
    ),
    headers: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Request header 'Name: value' (repeatable)."
    ),
    body: Optional[str] = typer.Option(
        None, "--data", "-d", help="Request body; sent as JSON when it parses as JSON."
    ),
    profile_name: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
    ),
) -> None:
    """Send a request with the active session's credentials.

    The response body goes to stdout and the status line to stderr. A
    response the authenticator classifies as an authentication failure
    logs the session out.

    Raises:
        typer.Exit: With code 3 if the server rejected the session, 4 for
            other HTTP error statuses, 6 for network failures.

    Example::

        secure-session request GET /things -q limit=10
        secure-session request POST /things -d '{"name": "widget"}'
    """
    from secure_session.client import SecureClient
    from secure_session.client.response import format_api_response

    profile = _resolve(ctx, profile_name)
    registry = SessionRegistry()
    try:
        session = build_session(profile, registry=registry)
        query = _parse_pairs(params, "=", "parameter")
        extra_headers = _parse_pairs(headers, ":", "header")
        was_logged_in = session.logged_in()
        if not was_logged_in:
            warning("Not logged in; sending the request without credentials.")

        with SecureClient(
            registry, base_url=profile.base_url, request_config=profile.request
        ) as client:
            response = client.request(
                method,
                path,
                params=query,
                headers=extra_headers,
                json_body=_parse_body(body),
                session=session,
            )
    except SecureSessionError as exc:
        _fail(exc)

    format_api_response(response)
    if was_logged_in and not session.logged_in():
        error("The server rejected the session; you have been logged out.")
        suggest(f"Log in again: secure-session login --profile {profile.name}")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)
    if response.status_code >= 400:
        raise typer.Exit(code=EXIT_HTTP_ERROR)
