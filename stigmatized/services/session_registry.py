import asyncio
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from stigmatized.logging_config import get_logger
from stigmatized.services.state_machine import DialogueState

logger = get_logger("session_registry")


@dataclass
class Session:
    user_id: str
    id: str = field(default_factory=lambda: uuid4().hex)
    state: DialogueState = DialogueState.IDLE
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_seen_at: float = field(default_factory=time.monotonic)


class SessionRegistry:
    """In-memory sessions keyed by platform user id.

    One session per user. Sessions idle longer than ``ttl_seconds`` are
    dropped by :meth:`evict_expired`; ``None`` or ``0`` keeps them for the
    lifetime of the process.
    """

    def __init__(self, ttl_seconds: Optional[float] = None):
        self.ttl_seconds = ttl_seconds or None
        self._sessions: dict[str, Session] = {}
        self._user_locks: dict[str, asyncio.Lock] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._sessions

    def get(self, user_id: str) -> Optional[Session]:
        return self._sessions.get(user_id)

    def get_or_create(self, user_id: str) -> Session:
        """Return the user's session, creating an idle one on first contact."""
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                session = Session(user_id=user_id)
                self._sessions[user_id] = session
                logger.info(
                    "Session created",
                    extra={"context": {"user_id": user_id, "session_id": session.id}},
                )
            session.last_seen_at = time.monotonic()
            return session

    def lock_for(self, user_id: str) -> asyncio.Lock:
        """Lock serializing event handling for one user."""
        with self._lock:
            lock = self._user_locks.get(user_id)
            if lock is None:
                lock = asyncio.Lock()
                self._user_locks[user_id] = lock
            return lock

    def evict_expired(self, now: Optional[float] = None) -> int:
        """Drop sessions idle longer than the TTL. Returns the number evicted."""
        if self.ttl_seconds is None:
            return 0
        now = time.monotonic() if now is None else now
        with self._lock:
            expired = [
                user_id
                for user_id, session in self._sessions.items()
                if now - session.last_seen_at > self.ttl_seconds
            ]
            for user_id in expired:
                del self._sessions[user_id]
                lock = self._user_locks.get(user_id)
                if lock is not None and not lock.locked():
                    del self._user_locks[user_id]
        if expired:
            logger.info("Sessions evicted", extra={"context": {"count": len(expired)}})
        return len(expired)
