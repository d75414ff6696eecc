"""Shared test fixtures for secure_session.

Provides isolated config environments, output state management, a
scriptable authenticator, navigation and registry fixtures, and a CLI
runner. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional

import httpx
import pytest

from secure_session.auth.base import Authenticator, LoginHandler
from secure_session.models import (
    AuthConfig,
    LoginResult,
    Profile,
    RequestConf,
    RequestConfig,
    ResponseCheck,
)
from secure_session.navigation import HistoryNavigator
from secure_session.output import OutputFormat, OutputManager, reset_output, set_output
from secure_session.registry import SessionRegistry


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Scriptable authenticator
# ---------------------------------------------------------------------------


class ScriptedAuth(Authenticator):
    """Authenticator whose outcomes are set by the test.

    ``check_login`` answers immediately with :attr:`login_result` unless
    :attr:`deferred` is set, in which case the handler is kept in
    :attr:`pending` until :meth:`complete` is called.
    """

    def __init__(self, auth_type: str = "mockAuth") -> None:
        self._auth_type = auth_type
        self.login_result: LoginResult = LoginResult.accepted({"user": "someone"})
        self.auth_failure = False
        self.deferred = False
        self.pending: list[LoginHandler] = []
        self.login_calls: list[dict[str, Any]] = []
        self.checked: list[Optional[httpx.Response]] = []

    @property
    def auth_type(self) -> str:
        return self._auth_type

    def check_login(self, credentials: Mapping[str, Any], handler: LoginHandler) -> None:
        self.login_calls.append(dict(credentials))
        if self.deferred:
            self.pending.append(handler)
        else:
            handler(self.login_result)

    def complete(self, result: LoginResult) -> None:
        self.pending.pop(0)(result)

    def add_auth_to_request_conf(self, conf: RequestConf, state: dict[str, Any]) -> None:
        conf.headers["Authorization"] = "foo"

    def check_response(self, response: Optional[httpx.Response]) -> ResponseCheck:
        self.checked.append(response)
        return ResponseCheck(auth_failure=self.auth_failure)


@pytest.fixture
def scripted_auth() -> ScriptedAuth:
    """An immediately-accepting authenticator of type ``mockAuth``."""
    return ScriptedAuth()


@pytest.fixture
def make_auth():
    """Factory for additional :class:`ScriptedAuth` instances."""
    return ScriptedAuth


@pytest.fixture
def navigator() -> HistoryNavigator:
    """Navigator positioned at ``/some/resource``."""
    return HistoryNavigator("/some/resource")


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


# ---------------------------------------------------------------------------
# Profile fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def password_profile() -> Profile:
    """A PasswordOAuth profile with literal client credentials."""
    return Profile(
        name="test-api",
        base_url="https://api.example.com",
        auth=AuthConfig(
            type="PasswordOAuth",
            base_url="https://auth.example.com",
            client_id_source="value:my_id",
            client_secret_source="value:my_secret",
        ),
        request=RequestConfig(timeout=5, max_retries=0),
    )


@pytest.fixture
def openid_profile() -> Profile:
    """An OpenIDAuth profile using the ``myCookie`` cookie field."""
    return Profile(
        name="openid-api",
        base_url="https://example.com",
        auth=AuthConfig(
            type="OpenIDAuth",
            base_url="https://example.com",
            cookie_name="myCookie",
        ),
    )


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration and session data to a temporary directory.

    Sets HOME, XDG_CONFIG_HOME, and XDG_DATA_HOME to subdirectories of
    tmp_path so that tests never touch real user config, clears
    ``SECURE_SESSION_PROFILE``, and changes the working directory to
    tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("SECURE_SESSION_PROFILE", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager for the test."""
    output = OutputManager(format=OutputFormat.JSON, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
