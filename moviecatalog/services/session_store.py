"""
In-memory session store with sliding expiration.

Sessions live only in process memory and are lost on restart. One instance
is created per application in the lifespan handler and injected into the
authorization dependencies; the background reaper calls sweep() periodically.
"""
import logging
import os
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from dotenv import load_dotenv

from moviecatalog.models.user import Role

load_dotenv()
logger = logging.getLogger(__name__)

SESSION_TTL_HOURS = float(os.getenv("SESSION_TTL_HOURS", "24"))
TOKEN_BYTES = 32


@dataclass(frozen=True)
class Principal:
    """Identity resolved from a session token"""
    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass
class _SessionEntry:
    principal: Principal
    expires_at: float


class SessionStore:
    """
    Thread-safe token -> principal map.

    Every successful resolve() pushes the expiry to now + ttl, so active
    users are never logged out mid-session.

    Args:
        ttl_seconds: Session lifetime after the last access
        clock: Monotonic time source, replaceable in tests
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else SESSION_TTL_HOURS * 3600
        self._clock = clock
        self._sessions: Dict[str, _SessionEntry] = {}
        self._lock = threading.Lock()

    def create_session(self, user_id: int, role: Role) -> str:
        """Issue a new unguessable token for the principal"""
        principal = Principal(user_id=user_id, role=Role(role))
        with self._lock:
            token = secrets.token_urlsafe(TOKEN_BYTES)
            while token in self._sessions:
                token = secrets.token_urlsafe(TOKEN_BYTES)
            self._sessions[token] = _SessionEntry(principal, self._clock() + self.ttl_seconds)
        logger.debug(f"Session created for user {user_id}")
        return token

    def resolve(self, token: Optional[str]) -> Optional[Principal]:
        """Return the principal for a live token and refresh its expiry"""
        if not token:
            return None
        with self._lock:
            entry = self._sessions.get(token)
            if entry is None:
                return None
            now = self._clock()
            if now > entry.expires_at:
                del self._sessions[token]
                return None
            entry.expires_at = now + self.ttl_seconds
            return entry.principal

    def expires_in(self, token: str) -> Optional[float]:
        """Seconds until the token expires, without refreshing it"""
        with self._lock:
            entry = self._sessions.get(token)
            if entry is None:
                return None
            return entry.expires_at - self._clock()

    def invalidate(self, token: Optional[str]) -> None:
        if not token:
            return
        with self._lock:
            self._sessions.pop(token, None)

    def invalidate_user(self, user_id: int) -> int:
        """Drop every session of a user (role change, deactivation, deletion)"""
        with self._lock:
            tokens = [t for t, entry in self._sessions.items() if entry.principal.user_id == user_id]
            for token in tokens:
                del self._sessions[token]
        if tokens:
            logger.info(f"Invalidated {len(tokens)} session(s) for user {user_id}")
        return len(tokens)

    def sweep(self) -> int:
        """Evict all expired sessions; returns how many were removed"""
        with self._lock:
            now = self._clock()
            expired = [t for t, entry in self._sessions.items() if now > entry.expires_at]
            for token in expired:
                del self._sessions[token]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
