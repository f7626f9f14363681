"""
Challenge generation and storage.

A challenge is a short random code plus its issuance time, held per
wallet address until it is verified, replaced by a newer challenge, or
expires. Implementations must be:
- Atomic per address (no lost update, no double consume)
- Non-blocking across addresses
- Expiry-aware on every read
"""

import json
import secrets
import string
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .util import now_millis

CHALLENGE_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_CODE_LENGTH = 6

# puts into a shard between sweeps of its expired entries
SWEEP_EVERY = 128

Clock = Callable[[], int]


def generate_challenge_code(length: int = DEFAULT_CODE_LENGTH, alphabet: str = CHALLENGE_ALPHABET) -> str:
    """Generate a human-readable challenge code using a CSPRNG."""
    if length <= 0:
        raise ValueError("length must be positive")
    return ''.join(secrets.choice(alphabet) for _ in range(length))


@dataclass(frozen=True)
class Challenge:
    """An outstanding challenge for one wallet address."""
    code: str
    issued_at: int
    expires_at: int

    def is_expired(self, now_ms: int) -> bool:
        return now_ms >= self.expires_at

    def to_dict(self) -> Dict[str, object]:
        return {"code": self.code, "issued_at": self.issued_at, "expires_at": self.expires_at}

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "Challenge":
        return cls(
            code=str(data["code"]),
            issued_at=int(data["issued_at"]),
            expires_at=int(data["expires_at"]),
        )


class ChallengeStore(ABC):
    """
    Abstract interface for per-address challenge storage.

    A new put for an address silently replaces the previous challenge.
    """

    @abstractmethod
    def put(self, address: str, challenge: Challenge) -> None:
        """Store a challenge, overwriting any existing one."""
        pass

    @abstractmethod
    def get(self, address: str) -> Optional[Challenge]:
        """
        Get the live challenge for an address.

        Returns None if there is none or it has expired; expired
        entries are removed.
        """
        pass

    @abstractmethod
    def consume(self, address: str, expected: Optional[Challenge] = None) -> bool:
        """
        Remove the challenge for an address.

        Args:
            address: The wallet address
            expected: If given, remove only if the stored challenge
                still equals this one

        Returns:
            True if an entry was removed, False otherwise
        """
        pass

    @abstractmethod
    def cleanup_expired(self) -> int:
        """Remove expired challenges from store. Returns count removed."""
        pass


class _Shard:
    __slots__ = ("lock", "items", "puts")

    def __init__(self):
        self.lock = threading.Lock()
        self.items: Dict[str, Challenge] = {}
        self.puts = 0

    def sweep(self, now: int) -> int:
        expired = [k for k, c in self.items.items() if c.is_expired(now)]
        for k in expired:
            del self.items[k]
        return len(expired)


class InMemoryChallengeStore(ChallengeStore):
    """
    In-memory challenge store, sharded by address.

    Each shard has its own lock, so operations on one address are
    linearizable while addresses in different shards never contend.

    Expired entries are dropped on read, and each shard is swept every
    sweep_every puts into it (0 disables this).

    Not persistent across restarts and not shared between processes.
    Use RedisChallengeStore for multi-process deployments.
    """

    def __init__(self, clock: Clock = now_millis, shards: int = 16, sweep_every: int = SWEEP_EVERY):
        if shards <= 0:
            raise ValueError("shards must be positive")
        self._clock = clock
        self._sweep_every = sweep_every
        self._shards: List[_Shard] = [_Shard() for _ in range(shards)]

    def _shard(self, address: str) -> _Shard:
        return self._shards[hash(address) % len(self._shards)]

    def put(self, address: str, challenge: Challenge) -> None:
        shard = self._shard(address)
        with shard.lock:
            shard.puts += 1
            if self._sweep_every and shard.puts % self._sweep_every == 0:
                shard.sweep(self._clock())
            shard.items[address] = challenge

    def get(self, address: str) -> Optional[Challenge]:
        shard = self._shard(address)
        now = self._clock()
        with shard.lock:
            challenge = shard.items.get(address)
            if challenge is None:
                return None
            if challenge.is_expired(now):
                del shard.items[address]
                return None
            return challenge

    def consume(self, address: str, expected: Optional[Challenge] = None) -> bool:
        shard = self._shard(address)
        with shard.lock:
            current = shard.items.get(address)
            if current is None:
                return False
            if expected is not None and current != expected:
                return False
            del shard.items[address]
            return True

    def cleanup_expired(self) -> int:
        now = self._clock()
        removed = 0
        for shard in self._shards:
            with shard.lock:
                removed += shard.sweep(now)
        return removed

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.items)
        return total


# KEYS[1] = challenge key, ARGV[1] = expected serialized challenge
_COMPARE_AND_DELETE = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


class RedisChallengeStore(ChallengeStore):
    """
    Redis-backed challenge store for multi-process deployments.

    Features:
    - Shared across workers and restarts
    - Expiry enforced by Redis (PX) and re-checked on read
    - Atomic compare-and-delete via a Lua script

    Requires: a redis-py compatible client
    """

    def __init__(self, redis_client, clock: Clock = now_millis, key_prefix: str = "walletauth:challenge:"):
        self.redis = redis_client
        self.key_prefix = key_prefix
        self._clock = clock

    def _key(self, address: str) -> str:
        return f"{self.key_prefix}{address}"

    @staticmethod
    def _serialize(challenge: Challenge) -> str:
        return json.dumps(challenge.to_dict(), sort_keys=True, separators=(',', ':'))

    def put(self, address: str, challenge: Challenge) -> None:
        ttl_ms = max(1, challenge.expires_at - self._clock())
        self.redis.set(self._key(address), self._serialize(challenge), px=ttl_ms)

    def get(self, address: str) -> Optional[Challenge]:
        raw = self.redis.get(self._key(address))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode('utf-8')
        challenge = Challenge.from_dict(json.loads(raw))
        if challenge.is_expired(self._clock()):
            self.redis.eval(_COMPARE_AND_DELETE, 1, self._key(address), raw)
            return None
        return challenge

    def consume(self, address: str, expected: Optional[Challenge] = None) -> bool:
        key = self._key(address)
        if expected is None:
            return self.redis.delete(key) > 0
        return int(self.redis.eval(_COMPARE_AND_DELETE, 1, key, self._serialize(expected))) > 0

    def cleanup_expired(self) -> int:
        # Redis handles expiration automatically via PX
        return 0
