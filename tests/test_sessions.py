"""Tests for the per-tab webmail session tracker."""

from __future__ import annotations

import pytest

from mailscrub.sessions import SESSION_TTL_SECONDS, SessionTracker


class TestSessionTracker:
    def test_default_ttl(self):
        assert SESSION_TTL_SECONDS == 15.0
        assert SessionTracker().ttl == 15.0

    def test_unmarked_tab(self, tracker):
        assert not tracker.is_marked(1)

    def test_mark_sets_expiry(self, tracker, clock):
        tracker.mark(7)
        assert tracker.is_marked(7)
        assert tracker.get(7).expires_at == clock.now + 15.0

    def test_still_marked_at_exact_expiry(self, tracker, clock):
        tracker.mark(7)
        clock.advance(15.0)
        assert tracker.is_marked(7)

    def test_expired_read_returns_false_and_deletes(self, tracker, clock):
        tracker.mark(7)
        clock.advance(15.01)
        assert 7 in tracker
        assert not tracker.is_marked(7)
        assert 7 not in tracker
        assert len(tracker) == 0

    def test_remark_overwrites(self, tracker, clock):
        tracker.mark(7)
        clock.advance(10)
        tracker.mark(7)
        clock.advance(10)
        assert tracker.is_marked(7)
        assert len(tracker) == 1

    def test_is_marked_does_not_consume(self, tracker):
        tracker.mark(3)
        assert tracker.is_marked(3)
        assert tracker.is_marked(3)

    def test_consume(self, tracker):
        tracker.mark(3)
        tracker.consume(3)
        assert not tracker.is_marked(3)
        tracker.consume(3)

    def test_tabs_are_independent(self, tracker):
        tracker.mark(1)
        assert not tracker.is_marked(2)

    @pytest.mark.parametrize("tab_id", [-1, True, "3", None, 1.5])
    def test_invalid_tab_id_is_ignored(self, tracker, tab_id):
        tracker.mark(tab_id)
        assert len(tracker) == 0

    def test_stale_entries_persist_until_read(self, tracker, clock):
        tracker.mark(1)
        tracker.mark(2)
        clock.advance(60)
        assert len(tracker) == 2
        tracker.is_marked(1)
        assert len(tracker) == 1
