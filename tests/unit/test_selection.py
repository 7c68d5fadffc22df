"""Unit tests for pioconsole.core.selection."""

from __future__ import annotations

from pioconsole.core.selection import resolve_selection

ENVS = ["env1", "env2", "env3"]


class TestResolveSelection:
    def test_primary_wins_when_available(self):
        assert resolve_selection("env1", None, ENVS, "env2") == "env1"

    def test_primary_ignored_when_unavailable(self):
        assert resolve_selection("gone", "env3", ENVS, "env2") == "env3"

    def test_persisted_before_fallback(self):
        assert resolve_selection(None, "env3", ENVS, "env2") == "env3"

    def test_fallback_when_available(self):
        assert resolve_selection(None, "stale", ENVS, "env2") == "env2"

    def test_first_available_when_nothing_matches(self):
        assert resolve_selection("x", "y", ENVS, "z") == "env1"

    def test_fallback_returned_when_empty(self):
        assert resolve_selection(None, None, [], "env3") == "env3"

    def test_none_when_empty_without_fallback(self):
        assert resolve_selection(None, None, [], None) is None

    def test_empty_strings_are_not_candidates(self):
        assert resolve_selection("", "", ["", "a"], None) == ""
