"""In-memory store of reader sessions with serialized access and TTL cleanup.

WHY: The HTTP API keeps one playback controller per client session. A
controller holds no lock of its own, yet it is touched by request threads
and by its own timer thread, so every call must be serialized per session.
Abandoned sessions must also stop ticking and go away.

HOW: Two components work together:
  ReaderSession      — dataclass bundling a controller, its RLock, its
                       session tracker, and timestamps
  ReaderSessionStore — thread-safe dict-based store with create/get/list/
                       delete and TTL cleanup; each session's scheduler is
                       built around the session's own lock

RULES:
- Store mutations are protected by the store's threading.Lock
- Controller calls are protected by the session's RLock, which is the same
  lock its ThreadingScheduler holds while ticking
- Deleting or expiring a session disposes its controller (no further ticks)
- TTL is measured from the last access, whatever the playback state
- Session IDs are UUID4 hex strings
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from rsvp_reader.config import MAX_SESSIONS, SESSION_TTL_SECONDS, SpeedBounds
from rsvp_reader.playback.controller import PlaybackController
from rsvp_reader.playback.scheduler import Scheduler, ThreadingScheduler
from rsvp_reader.session import ReadingSession, SessionTracker

logger = logging.getLogger(__name__)

SchedulerFactory = Callable[[threading.RLock], Scheduler]


def _threading_scheduler(lock: threading.RLock) -> Scheduler:
    return ThreadingScheduler(lock=lock)


@dataclass
class ReaderSession:
    """One client's reader: controller, lock, and bookkeeping.

    RULES:
    - id: UUID4 hex, immutable after creation
    - lock: hold it for every controller call
    - tracker: statistics since creation, finished on delete
    """

    id: str
    controller: PlaybackController
    tracker: SessionTracker
    created_at: float
    last_access: float
    lock: threading.RLock = field(default_factory=threading.RLock)


class ReaderSessionStore:
    """Thread-safe in-memory store for reader sessions.

    Args:
        ttl_seconds: Idle time after which cleanup_expired() removes a session.
        max_sessions: create_session() raises ValueError beyond this count.
        scheduler_factory: Builds a session's scheduler from its lock. Tests
            pass a factory returning a VirtualScheduler.
    """

    def __init__(
        self,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        max_sessions: int = MAX_SESSIONS,
        scheduler_factory: Optional[SchedulerFactory] = None,
    ) -> None:
        self._sessions: Dict[str, ReaderSession] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self.scheduler_factory = scheduler_factory or _threading_scheduler

    def create_session(
        self,
        text: str,
        bounds: SpeedBounds,
        speed: Optional[int] = None,
    ) -> ReaderSession:
        """Load ``text`` into a new controller and store it.

        Raises:
            ValueError: If the store already holds max_sessions sessions.
        """
        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                raise ValueError(
                    "Maximum number of reader sessions ({}) reached".format(
                        self.max_sessions
                    )
                )

            lock = threading.RLock()
            controller = PlaybackController(
                self.scheduler_factory(lock), bounds=bounds, speed=speed
            )
            with lock:
                controller.load(text)
                tracker = SessionTracker(controller)

            now = time.time()
            session = ReaderSession(
                id=uuid.uuid4().hex,
                controller=controller,
                tracker=tracker,
                created_at=now,
                last_access=now,
                lock=lock,
            )
            self._sessions[session.id] = session

        logger.info(
            "Created reader session %s (%d words)", session.id, controller.total_words
        )
        return session

    def get_session(self, session_id: str) -> Optional[ReaderSession]:
        """Return the session and refresh its last access time, or None."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_access = time.time()
            return session

    def list_sessions(self) -> List[ReaderSession]:
        with self._lock:
            return sorted(self._sessions.values(), key=lambda s: s.created_at)

    def delete_session(self, session_id: str) -> Optional[ReadingSession]:
        """Remove a session, stop its controller, and return its statistics.

        Returns None if the session does not exist.
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)

        if session is None:
            return None

        stats = self._close(session)
        logger.info("Deleted reader session %s", session_id)
        return stats

    def cleanup_expired(self) -> int:
        """Remove sessions idle for longer than the TTL.

        Returns:
            The number of sessions removed.
        """
        now = time.time()
        expired: List[ReaderSession] = []

        with self._lock:
            for session_id, session in list(self._sessions.items()):
                if now - session.last_access > self._ttl_seconds:
                    expired.append(self._sessions.pop(session_id))

        for session in expired:
            self._close(session)
            logger.info(
                "Expired reader session %s (idle %.0fs)",
                session.id, now - session.last_access,
            )

        return len(expired)

    def clear(self) -> None:
        """Dispose and remove every session."""
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            self._close(session)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    @staticmethod
    def _close(session: ReaderSession) -> ReadingSession:
        with session.lock:
            stats = session.tracker.finish()
            session.controller.dispose()
        return stats
