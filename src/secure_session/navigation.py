"""Navigation service used by sessions to redirect the user.

Sessions never decide *how* the host application navigates; they only
read the current path and request history-replacing redirects through
the :class:`Navigator` interface:

- :meth:`Navigator.get_path` -- the path currently shown.
- :meth:`Navigator.set_path` -- navigate to a new path.
- :meth:`Navigator.replace` -- turn the last :meth:`~Navigator.set_path`
  into a replacement of the current history entry instead of a push.

:class:`HistoryNavigator` is an in-memory implementation suitable for
command-line hosts and tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable


class Navigator(ABC):
    """Interface to the host application's location and history."""

    @abstractmethod
    def get_path(self) -> str:
        ...

    @abstractmethod
    def set_path(self, path: str) -> None:
        ...

    @abstractmethod
    def replace(self) -> None:
        ...


class HistoryNavigator(Navigator):
    """In-memory history stack.

    Every :meth:`set_path` pushes a new entry; a following :meth:`replace`
    folds that entry into the one before it, so the user cannot go "back"
    to the page they were redirected away from.

    Args:
        initial_path: The path shown before any navigation.
    """

    def __init__(self, initial_path: str = "/") -> None:
        self._history: list[str] = [initial_path]
        self._last_was_push = False
        self._listeners: list[Callable[[str], None]] = []

    @property
    def history(self) -> list[str]:
        """A copy of the history entries, oldest first."""
        return list(self._history)

    def get_path(self) -> str:
        return self._history[-1]

    def set_path(self, path: str) -> None:
        self._history.append(path)
        self._last_was_push = True
        for listener in self._listeners:
            listener(path)

    def replace(self) -> None:
        if self._last_was_push and len(self._history) > 1:
            del self._history[-2]
        self._last_was_push = False

    def back(self) -> str:
        """Go back one entry (never past the first) and return the new path."""
        if len(self._history) > 1:
            self._history.pop()
        self._last_was_push = False
        return self.get_path()

    def on_change(self, listener: Callable[[str], None]) -> None:
        """Call *listener* with the new path after every :meth:`set_path`."""
        self._listeners.append(listener)
