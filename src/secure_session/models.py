"""Canonical models shared across all secure_session modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`AuthConfig`, :class:`SessionSettings`, :class:`RequestConfig`,
    :class:`OutputConfig`, :class:`GlobalConfig`, and :class:`Profile`.

**Runtime models** -- values exchanged between sessions, authenticators,
and the transport:
    :class:`LoginStatus`, :class:`LoginResult`, :class:`ResponseCheck`, and
    :class:`RequestConf`.

All pydantic models use v2 with ``model_config`` where needed.
:class:`RequestConf` is a plain mutable dataclass because authenticators
edit its headers in place.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# --- Auth Config ---


class AuthConfig(BaseModel):
    """Authenticator configuration embedded in a :class:`Profile`.

    The ``type`` field selects the authenticator (``PasswordOAuth`` or
    ``OpenIDAuth``); the remaining fields supply its parameters. Extra
    fields are preserved in ``model_extra`` so that third-party
    authenticators can carry their own settings.

    Example::

        AuthConfig(
            type="PasswordOAuth",
            base_url="https://api.example.com",
            client_id_source="env:CLIENT_ID",
            client_secret_source="env:CLIENT_SECRET",
        )
    """

    model_config = ConfigDict(extra="allow")

    type: str = Field(description="Authenticator type: PasswordOAuth, OpenIDAuth")
    base_url: str = Field(description="Base URL of the authentication service")
    # PasswordOAuth
    client_id_source: Optional[str] = Field(
        default=None,
        description="Credential source for the OAuth client id: env:VAR, file:/path, "
        "prompt, value:literal",
    )
    client_secret_source: Optional[str] = Field(
        default=None, description="Credential source for the OAuth client secret"
    )
    # OpenIDAuth
    begin_path: str = Field(
        default="/openid_begin", description="Path that starts the OpenID exchange"
    )
    finish_path: str = Field(
        default="/openid_finish", description="Path that completes the OpenID exchange"
    )
    cookie_name: Optional[str] = Field(
        default=None, description="Cookie field carrying the OpenID session value"
    )
    callback_name: str = Field(
        default="handleOpenIDResponse",
        description="Name the popup's redirect page invokes with its query string",
    )
    callback_port: int = Field(
        default=0, description="Port for the local callback server (0 = any free port)"
    )


class SessionSettings(BaseModel):
    """Per-session naming and navigation settings.

    ``session_name`` is combined with the authenticator type to form the
    persistence key (``"<session_name>-<auth_type>"``).
    """

    session_name: str = Field(
        default="angular", description="Prefix of the session persistence key"
    )
    login_path: str = Field(default="/login", description="Where to go after logout")
    post_login_path: str = Field(
        default="/", description="Where to go after login when no path was saved"
    )
    logout_url: Optional[str] = Field(
        default=None, description="Optional URL to POST to on explicit logout"
    )


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every API call in a profile."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=0, description="Max retry attempts for GET requests")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/secure-session/config.json``."""

    default_profile: Optional[str] = None
    output: OutputConfig = Field(default_factory=OutputConfig)


class Profile(BaseModel):
    """One authentication domain: an API, its authenticator, and session settings.

    Profiles are stored as JSON under the ``profiles/`` config directory and
    managed with ``secure-session profile``.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    base_url: str = Field(description="Base URL that relative request paths are joined to")
    auth: AuthConfig
    session: SessionSettings = Field(default_factory=SessionSettings)
    request: RequestConfig = Field(default_factory=RequestConfig)

    def cookie_key(self) -> str:
        """Persistence key of the session this profile describes."""
        return f"{self.session.session_name}-{self.auth.type}"


# --- Runtime models ---


class LoginStatus(str, enum.Enum):
    """Outcome class of a single login attempt."""

    ACCEPTED = "accepted"
    DENIED = "denied"
    ERROR = "error"


class LoginResult(BaseModel):
    """Value an authenticator hands to the login handler.

    ``new_state`` is present only on :attr:`LoginStatus.ACCEPTED` and holds
    the authenticator-owned strategy state (token, cookie value, ...).
    ``msg`` is a human-readable explanation for denied and error results.
    """

    status: LoginStatus
    new_state: Optional[dict[str, Any]] = None
    msg: Optional[str] = None

    @model_validator(mode="after")
    def _check_shape(self) -> LoginResult:
        if self.status == LoginStatus.ACCEPTED:
            if self.new_state is None:
                raise ValueError("accepted login results require new_state")
        elif self.new_state is not None:
            raise ValueError(f"{self.status.value} login results cannot carry new_state")
        return self

    @classmethod
    def accepted(cls, new_state: dict[str, Any]) -> LoginResult:
        return cls(status=LoginStatus.ACCEPTED, new_state=new_state)

    @classmethod
    def denied(cls, msg: str) -> LoginResult:
        return cls(status=LoginStatus.DENIED, msg=msg)

    @classmethod
    def error(cls, msg: str) -> LoginResult:
        return cls(status=LoginStatus.ERROR, msg=msg)


class ResponseCheck(BaseModel):
    """An authenticator's verdict on a live API response."""

    auth_failure: bool = False


@dataclass
class RequestConf:
    """Mutable description of an outgoing request.

    The resource layer builds one per request and hands it to
    :meth:`~secure_session.session.Session.manage_request_conf`, which
    stamps ``routing_key`` and lets the authenticator add credential
    headers. :class:`~secure_session.client.sync_client.SecureClient`
    then sends it and routes the response back by ``routing_key``.

    Attributes:
        method: HTTP method (e.g. ``"GET"``).
        url: Absolute URL, or a path relative to the client's base URL.
        params: Query parameters.
        headers: Request headers (edited in place by authenticators).
        json_body: Optional JSON-serialisable body.
        data: Optional form-encoded body.
        routing_key: Persistence key of the session that decorated this
            request, or ``None`` when no session is involved.
    """

    method: str = "GET"
    url: str = ""
    params: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    json_body: Any = None
    data: Optional[dict[str, Any]] = None
    routing_key: Optional[str] = None
