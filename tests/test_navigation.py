"""Tests for the in-memory history navigator."""

from __future__ import annotations

from secure_session.navigation import HistoryNavigator


class TestHistoryNavigator:
    def test_initial_path(self) -> None:
        nav = HistoryNavigator()
        assert nav.get_path() == "/"
        assert nav.history == ["/"]

    def test_set_path_pushes(self) -> None:
        nav = HistoryNavigator("/a")
        nav.set_path("/b")
        assert nav.get_path() == "/b"
        assert nav.history == ["/a", "/b"]

    def test_replace_folds_last_push(self) -> None:
        nav = HistoryNavigator("/a")
        nav.set_path("/b")
        nav.set_path("/c")
        nav.replace()
        assert nav.history == ["/a", "/c"]

    def test_replace_without_push_is_noop(self) -> None:
        nav = HistoryNavigator("/a")
        nav.replace()
        nav.set_path("/b")
        nav.replace()
        nav.replace()
        assert nav.history == ["/b"]

    def test_back(self) -> None:
        nav = HistoryNavigator("/a")
        nav.set_path("/b")
        assert nav.back() == "/a"
        assert nav.back() == "/a"

    def test_history_is_a_copy(self) -> None:
        nav = HistoryNavigator("/a")
        nav.history.append("/evil")
        assert nav.history == ["/a"]

    def test_listeners_see_new_paths(self) -> None:
        seen: list[str] = []
        nav = HistoryNavigator()
        nav.on_change(seen.append)
        nav.set_path("/x")
        nav.replace()
        nav.set_path("/y")
        assert seen == ["/x", "/y"]
