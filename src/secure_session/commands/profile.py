"""Profile commands -- manage authentication domains.

Provides the ``secure-session profile`` sub-command group. A profile names
one API, the authenticator guarding it, and the session's navigation
settings; it is stored as JSON in the profiles config directory.

Typical workflow::

    secure-session profile add myapi --base-url https://api.example.com \\
        --type PasswordOAuth --client-id env:MYAPI_ID --client-secret env:MYAPI_SECRET
    secure-session profile list
    secure-session profile show myapi
"""

from __future__ import annotations

from typing import Optional

import typer

from secure_session.exit_codes import EXIT_INVALID_USAGE
from secure_session.output import error, format_response, info, print_table, success, suggest


profile_app = typer.Typer(no_args_is_help=True)


@profile_app.command("add")
def profile_add(
    name: str = typer.Argument(help="Profile name."),
    base_url: str = typer.Option(
        ..., "--base-url", help="Base URL that request paths are joined to."
    ),
    auth_type: str = typer.Option(
        ..., "--type", "-t", help="Authenticator: PasswordOAuth or OpenIDAuth."
    ),
    auth_url: Optional[str] = typer.Option(
        None, "--auth-url", help="Authentication service URL (defaults to --base-url)."
    ),
    client_id: Optional[str] = typer.Option(
        None, "--client-id", help="Client id source: env:VAR, file:/path, prompt, value:..."
    ),
    client_secret: Optional[str] = typer.Option(
        None, "--client-secret", help="Client secret source (same formats as --client-id)."
    ),
    cookie_name: Optional[str] = typer.Option(
        None, "--cookie-name", help="Session cookie name (OpenIDAuth)."
    ),
    session_name: str = typer.Option(
        "angular", "--session-name", help="Prefix of the session persistence key."
    ),
    logout_url: Optional[str] = typer.Option(
        None, "--logout-url", help="URL to POST to on logout."
    ),
    make_default: bool = typer.Option(
        False, "--default", help="Make this the default profile."
    ),
) -> None:
    """Create or overwrite a profile.

    The auth type is checked against the registered authenticators
    before anything is written.

    Raises:
        typer.Exit: With code 2 if the auth type is unknown.

    Example::

        secure-session profile add myapi --base-url https://api.example.com \\
            --type OpenIDAuth --cookie-name sessionid --default
    """
    from secure_session.auth import create_default_manager
    from secure_session.config import (
        load_global_config,
        profile_exists,
        save_global_config,
        save_profile,
    )
    from secure_session.models import AuthConfig, Profile, SessionSettings

    known = create_default_manager().list_types()
    if auth_type not in known:
        error(f"Unknown auth type '{auth_type}'. Choose one of: {', '.join(known)}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    if profile_exists(name):
        info(f'Profile "{name}" already exists and will be overwritten.')

    auth = AuthConfig(
        type=auth_type,
        base_url=auth_url or base_url,
        client_id_source=client_id,
        client_secret_source=client_secret,
        cookie_name=cookie_name,
    )
    profile = Profile(
        name=name,
        base_url=base_url,
        auth=auth,
        session=SessionSettings(session_name=session_name, logout_url=logout_url),
    )
    save_profile(profile)

    if make_default:
        config = load_global_config()
        config.default_profile = name
        save_global_config(config)

    success(f'Profile "{name}" saved ({auth_type}).')
    suggest(f"Log in: secure-session login --profile {name}")


@profile_app.command("list")
def profile_list() -> None:
    """List all profiles with their auth type and login status."""
    from secure_session.auth import SessionStore
    from secure_session.config import list_profiles, load_global_config, load_profile
    from secure_session.exceptions import ConfigError

    profiles = list_profiles()
    if not profiles:
        info("No profiles configured.")
        suggest("Create one: secure-session profile add <name> --base-url <url> --type <type>")
        return

    default = load_global_config().default_profile
    headers = ["Profile", "Auth Type", "Base URL", "Logged In", "Default"]
    rows: list[list[str]] = []
    for name in profiles:
        try:
            profile = load_profile(name)
        except ConfigError:
            rows.append([name, "error", "-", "-", ""])
            continue
        record = SessionStore(profile.cookie_key()).load()
        logged_in = (record.user or "yes") if record is not None else "no"
        rows.append(
            [name, profile.auth.type, profile.base_url, logged_in, "*" if name == default else ""]
        )

    print_table(headers, rows, title="Profiles")


@profile_app.command("show")
def profile_show(
    name: str = typer.Argument(help="Profile name."),
) -> None:
    """Print a profile's full configuration.

    Raises:
        typer.Exit: With code 1 if the profile cannot be loaded.
    """
    from secure_session.config import load_profile
    from secure_session.exceptions import ConfigError

    try:
        profile = load_profile(name)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    format_response(profile.model_dump(mode="json"))


@profile_app.command("remove")
def profile_remove(
    ctx: typer.Context,
    name: str = typer.Argument(help="Profile name."),
) -> None:
    """Delete a profile and its stored session.

    Asks for confirmation unless ``--force`` is active. Clears
    ``default_profile`` when it pointed at the removed profile.

    Raises:
        typer.Exit: With code 1 if the profile does not exist.
    """
    from secure_session.auth import SessionStore
    from secure_session.config import (
        delete_profile,
        load_global_config,
        load_profile,
        save_global_config,
    )
    from secure_session.exceptions import ConfigError

    try:
        profile = load_profile(name)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm(f'Remove profile "{name}"?')
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    SessionStore(profile.cookie_key()).clear()
    delete_profile(name)

    config = load_global_config()
    if config.default_profile == name:
        config.default_profile = None
        save_global_config(config)

    success(f'Profile "{name}" removed.')
