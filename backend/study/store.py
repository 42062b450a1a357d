"""In-memory registry of active study sessions (never persisted)."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field

from backend.config import settings
from backend.study.controller import StudyController

logger = logging.getLogger(__name__)


@dataclass
class ActiveStudySession:
    session_id: str
    user_id: str
    deck_id: int
    deck_name: str
    controller: StudyController
    created_at: float = field(default_factory=time.monotonic)


class StudySessionStore:
    """Holds study sessions by id, evicting (and closing) expired ones on access."""

    def __init__(self, ttl_seconds: int | None = None) -> None:
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.study_session_ttl_seconds
        self._sessions: dict[str, ActiveStudySession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, user_id: str, deck_id: int, deck_name: str, controller: StudyController) -> ActiveStudySession:
        self._evict_expired()
        session = ActiveStudySession(
            session_id=str(uuid.uuid4()),
            user_id=user_id,
            deck_id=deck_id,
            deck_name=deck_name,
            controller=controller,
        )
        self._sessions[session.session_id] = session
        logger.info(
            "Started study session %s for deck %d (%d cards)",
            session.session_id,
            deck_id,
            controller.state.total,
        )
        return session

    def get(self, session_id: str, user_id: str) -> ActiveStudySession | None:
        """Return the session if it exists and belongs to ``user_id``."""
        self._evict_expired()
        session = self._sessions.get(session_id)
        if session is None or session.user_id != user_id:
            return None
        return session

    def end(self, session_id: str, user_id: str) -> ActiveStudySession | None:
        session = self.get(session_id, user_id)
        if session is None:
            return None
        del self._sessions[session_id]
        session.controller.close()
        return session

    def clear(self) -> None:
        for session in self._sessions.values():
            session.controller.close()
        self._sessions.clear()

    def _evict_expired(self) -> None:
        now = time.monotonic()
        expired = [sid for sid, s in self._sessions.items() if now - s.created_at > self.ttl_seconds]
        for sid in expired:
            self._sessions.pop(sid).controller.close()
            logger.debug("Evicted expired study session %s", sid)


study_sessions = StudySessionStore()
