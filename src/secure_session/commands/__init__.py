"""Built-in CLI sub-commands for secure-session.

* :mod:`~secure_session.commands.profile` -- create, list, show, and
  remove profiles.
* :mod:`~secure_session.commands.session` -- ``login``, ``logout``,
  ``status``, and ``request`` against the active profile.

The ``profile`` module exports a :class:`typer.Typer` sub-application;
the ``session`` module exports plain callbacks registered directly on the
root app.
"""
