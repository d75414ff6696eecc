"""secure_session -- authentication sessions layered on an HTTP client.

This package tracks whether a user is logged in to an API, persists that
state between runs, injects credentials into outgoing requests, detects
authentication failures in responses, and drives navigation redirects (to
a login page on failure, back to the application on success).

Typical wiring::

    registry = SessionRegistry()
    auth = PasswordOAuth("https://api.example.com", "my_id", "my_secret")
    session = Session(auth, navigator, registry=registry)
    session.login({"user": "alice", "pass": "swordfish"})

    with SecureClient(registry) as client:
        things = SecureResource(session, client, "https://api.example.com/thing/:thingId")
        things.query()

Modules:
    session: The :class:`~secure_session.session.Session` state machine.
    registry: Routing-key to session mapping used by the response interceptor.
    navigation: Navigator protocol and an in-memory history implementation.
    bridge: One-shot callback bridge for popup-driven login flows.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and profile management.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.3.0"
