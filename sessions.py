"""
Bearer sessions: an opaque token mapped to the identity of the logged-in user.

Sessions never expire; they end on logout or when the process stops.
"""
import logging
import secrets
import threading
from typing import Dict, Optional

from schemas import CamelModel, User

logger = logging.getLogger("artisan_store.sessions")


class SessionData(CamelModel):
    user_id: str
    email: str
    first_name: str
    last_name: str
    is_admin: bool = False

    @classmethod
    def for_user(cls, user: User) -> "SessionData":
        return cls(
            user_id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            is_admin=user.is_admin,
        )


class SessionManager:
    def __init__(self):
        self._sessions: Dict[str, SessionData] = {}
        self._lock = threading.Lock()

    @staticmethod
    def generate_session_id() -> str:
        return secrets.token_urlsafe(32)

    def create_session(self, session_id: str, data: SessionData) -> None:
        with self._lock:
            self._sessions[session_id] = data

    def get_session(self, session_id: str) -> Optional[SessionData]:
        return self._sessions.get(session_id)

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def start(self, user: User) -> str:
        """Open a new session for ``user`` and return its token."""
        session_id = self.generate_session_id()
        self.create_session(session_id, SessionData.for_user(user))
        logger.info("Session opened for %s", user.email)
        return session_id

    def clear(self):
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)
