"""
Session token issuance.

After a wallet proves key possession it receives an opaque bearer
token. Tokens carry 256 bits of CSPRNG entropy and are tracked
server-side with an expiry so they can be validated and revoked.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .util import generate_token, now_millis

TOKEN_PREFIX = "session_"
TOKEN_ENTROPY_BYTES = 32

# mints between full sweeps of expired sessions
SWEEP_EVERY = 256


@dataclass(frozen=True)
class Session:
    """An issued session."""
    token: str
    address: str
    issued_at: int
    expires_at: int

    def is_expired(self, now_ms: int) -> bool:
        return now_ms >= self.expires_at


class SessionIssuer(ABC):
    """Abstract interface for minting session credentials."""

    @abstractmethod
    def mint(self, address: str) -> Session:
        """Issue a new session for a verified wallet address."""
        pass

    @abstractmethod
    def validate(self, token: str) -> Optional[Session]:
        """Return the session for a token, or None if unknown or expired."""
        pass

    @abstractmethod
    def revoke(self, token: str) -> bool:
        """Revoke a token. Returns True if it was live."""
        pass


class InMemorySessionIssuer(SessionIssuer):
    """
    In-memory session registry.

    Expired sessions are dropped when looked up and by a full sweep every
    sweep_every mints (0 disables it; cleanup_expired can still be called).

    Not persistent across restarts and not shared between processes.
    """

    def __init__(
        self,
        ttl_ms: int,
        clock: Callable[[], int] = now_millis,
        token_factory: Callable[[], str] = None,
        sweep_every: int = SWEEP_EVERY
    ):
        if ttl_ms <= 0:
            raise ValueError("ttl_ms must be positive")
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._token_factory = token_factory or (lambda: TOKEN_PREFIX + generate_token(TOKEN_ENTROPY_BYTES))
        self._sweep_every = sweep_every
        self._mints = 0
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def _sweep(self, now: int) -> int:
        expired = [k for k, s in self._sessions.items() if s.is_expired(now)]
        for k in expired:
            del self._sessions[k]
        return len(expired)

    def mint(self, address: str) -> Session:
        now = self._clock()
        with self._lock:
            self._mints += 1
            if self._sweep_every and self._mints % self._sweep_every == 0:
                self._sweep(now)
            token = self._token_factory()
            while token in self._sessions:
                token = self._token_factory()
            session = Session(token=token, address=address, issued_at=now, expires_at=now + self._ttl_ms)
            self._sessions[token] = session
        return session

    def validate(self, token: str) -> Optional[Session]:
        if not token:
            return None
        now = self._clock()
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if session.is_expired(now):
                del self._sessions[token]
                return None
            return session

    def revoke(self, token: str) -> bool:
        now = self._clock()
        with self._lock:
            session = self._sessions.pop(token, None)
        return session is not None and not session.is_expired(now)

    def cleanup_expired(self) -> int:
        now = self._clock()
        with self._lock:
            return self._sweep(now)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
