"""
Call session store tests.
"""

from datetime import datetime, timedelta

import pytest

from app.memory import CallSessionStore


class TestCallSessionStore:
    """Session lifecycle: create, greet, end, expire."""

    @pytest.fixture
    def store(self):
        return CallSessionStore(ttl_minutes=5)

    def test_first_access_creates_ungreeted_session(self, store):
        session = store.get_session("CA1")

        assert session.call_sid == "CA1"
        assert session.greeted is False
        assert store.active_session_count() == 1

    def test_mark_greeted(self, store):
        store.mark_greeted("CA1")

        assert store.is_greeted("CA1") is True
        assert store.is_greeted("CA2") is False

    def test_end_session_evicts(self, store):
        store.mark_greeted("CA1")

        assert store.end_session("CA1") is True
        assert store.end_session("CA1") is False
        assert store.is_greeted("CA1") is False

    def test_idle_sessions_expire(self, store):
        store.get_session("CA-old").last_seen = datetime.utcnow() - timedelta(minutes=10)
        store.get_session("CA-new")

        assert store.active_session_count() == 1
        assert "CA-old" not in store.sessions

    def test_access_refreshes_activity(self, store):
        session = store.get_session("CA1")
        session.last_seen = datetime.utcnow() - timedelta(minutes=4)

        store.get_session("CA1")

        assert datetime.utcnow() - session.last_seen < timedelta(minutes=1)

    def test_no_input_count_accumulates_and_resets(self, store):
        assert store.record_no_input("CA1") == 1
        assert store.record_no_input("CA1") == 2

        store.reset_no_input("CA1")

        assert store.get_session("CA1").no_input_count == 0
        assert store.record_no_input("CA1") == 1
