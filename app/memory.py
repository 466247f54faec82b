"""
Call session management for the Loop hospital network assistant

This module handles:
- Per-call session tracking for the telephony channel
- The "greeted" flag that decides whether a reply starts with an introduction
- Eviction on call termination and after an idle timeout
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Optional
from app.config import settings

# Configure logging
logger = logging.getLogger(__name__)


@dataclass
class CallSession:
    """State kept for one phone call."""
    call_sid: str
    greeted: bool = False
    no_input_count: int = 0
    created_at: datetime = field(default_factory=datetime.utcnow)
    last_seen: datetime = field(default_factory=datetime.utcnow)


class CallSessionStore:
    """Thread-safe store of call sessions keyed by call identifier."""

    def __init__(self, ttl_minutes: Optional[int] = None):
        """
        Initialize the session store.

        Args:
            ttl_minutes: Idle time after which a session is evicted
        """
        self.sessions: Dict[str, CallSession] = {}
        self.session_timeout = timedelta(minutes=ttl_minutes or settings.session_ttl_minutes)
        self._lock = threading.Lock()

        logger.info("Call session store initialized")

    def get_session(self, call_sid: str) -> CallSession:
        """
        Get or create the session for a call.

        Args:
            call_sid: Call identifier

        Returns:
            CallSession: The live session, with its activity time refreshed
        """
        with self._lock:
            self._cleanup_expired_sessions()

            session = self.sessions.get(call_sid)
            if session is None:
                session = CallSession(call_sid=call_sid)
                self.sessions[call_sid] = session
                logger.info(f"Created new call session: {call_sid}")

            session.last_seen = datetime.utcnow()
            return session

    def is_greeted(self, call_sid: str) -> bool:
        return self.get_session(call_sid).greeted

    def mark_greeted(self, call_sid: str) -> None:
        session = self.get_session(call_sid)
        with self._lock:
            session.greeted = True

    def record_no_input(self, call_sid: str) -> int:
        """
        Count a turn in which the caller said nothing.

        Args:
            call_sid: Call identifier

        Returns:
            int: Consecutive silent turns so far
        """
        session = self.get_session(call_sid)
        with self._lock:
            session.no_input_count += 1
            return session.no_input_count

    def reset_no_input(self, call_sid: str) -> None:
        session = self.get_session(call_sid)
        with self._lock:
            session.no_input_count = 0

    def end_session(self, call_sid: str) -> bool:
        """
        Evict a session when its call ends.

        Args:
            call_sid: Call identifier

        Returns:
            bool: True if a session was removed
        """
        with self._lock:
            removed = self.sessions.pop(call_sid, None) is not None

        if removed:
            logger.info(f"Ended call session {call_sid}")
        return removed

    def _cleanup_expired_sessions(self) -> None:
        """Evict sessions idle for longer than the timeout. Caller holds the lock."""
        cutoff = datetime.utcnow() - self.session_timeout
        expired = [sid for sid, session in self.sessions.items() if session.last_seen < cutoff]

        for call_sid in expired:
            del self.sessions[call_sid]
            logger.info(f"Cleaned up expired call session: {call_sid}")

    def active_session_count(self) -> int:
        """
        Get the number of live sessions.

        Returns:
            int: Number of active sessions
        """
        with self._lock:
            self._cleanup_expired_sessions()
            return len(self.sessions)


# Global session store instance
call_session_store = CallSessionStore()


def get_call_session_store() -> CallSessionStore:
    """
    Get the global call session store.

    Returns:
        CallSessionStore: The global session store
    """
    return call_session_store
