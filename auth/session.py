"""
Session Layer
=============

[AUTH] Hands an authorized identity to the session store.

Cookie transport is outside this package; a session here is a token mapped
to the identity fields the rest of the application reads (id, username,
role, status, group).
"""

import logging
import secrets
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

from core.errors import SessionError

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = 30 * 24 * 3600


@dataclass(frozen=True)
class SessionIdentity:
    id: int
    username: str
    role: int
    status: int
    group: str


@dataclass
class Session:
    token: str
    identity: SessionIdentity
    created_at: float = field(default_factory=time.time)
    expires_at: float = 0.0

    def is_expired(self) -> bool:
        return bool(self.expires_at) and time.time() > self.expires_at


class SessionLayer:
    """Interface the login flow depends on."""

    def establish(self, identity: SessionIdentity) -> str:
        """Persist a session and return its token. Raises SessionError."""
        raise NotImplementedError


class MemorySessionLayer(SessionLayer):
    """Process-local session store."""

    def __init__(self, ttl: float = DEFAULT_SESSION_TTL, max_sessions: int = 100_000):
        self.ttl = ttl
        self.max_sessions = max_sessions
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def establish(self, identity: SessionIdentity) -> str:
        with self._lock:
            self._evict_expired()
            if len(self._sessions) >= self.max_sessions:
                raise SessionError("session store is full")

            token = secrets.token_urlsafe(32)
            now = time.time()
            self._sessions[token] = Session(
                token=token,
                identity=identity,
                created_at=now,
                expires_at=now + self.ttl if self.ttl else 0.0,
            )

        logger.debug(f"[AUTH] Session established for #{identity.id}")
        return token

    def get(self, token: str) -> Optional[SessionIdentity]:
        with self._lock:
            session = self._sessions.get(token)
            if session is None or session.is_expired():
                return None
            return session.identity

    def revoke(self, token: str) -> bool:
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _evict_expired(self) -> None:
        expired = [t for t, s in self._sessions.items() if s.is_expired()]
        for token in expired:
            del self._sessions[token]
