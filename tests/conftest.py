import pytest
from fastapi.testclient import TestClient
from nacl.signing import SigningKey

from walletauth.auth import AuthService
from walletauth.challenges import InMemoryChallengeStore
from walletauth.main import app, get_auth_service, get_init_limiter, get_verify_limiter
from walletauth.rate_limit import RateLimiter
from walletauth.sessions import InMemorySessionIssuer
from walletauth.util import b58e
from walletauth.whitelist import Whitelist

START_MS = 1700000000000
CHALLENGE_TTL_MS = 300 * 1000
SESSION_TTL_MS = 3600 * 1000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class Wallet:
    def __init__(self):
        self.signing_key = SigningKey.generate()
        self.public_key = bytes(self.signing_key.verify_key)
        self.address = b58e(self.public_key)

    def sign(self, message) -> str:
        if isinstance(message, str):
            message = message.encode("utf-8")
        return b58e(self.signing_key.sign(message).signature)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def wallet():
    return Wallet()


@pytest.fixture
def stranger():
    """A valid wallet that is not on the whitelist."""
    return Wallet()


@pytest.fixture
def service(clock, wallet):
    return AuthService(
        whitelist=Whitelist([wallet.address]),
        store=InMemoryChallengeStore(clock=clock),
        sessions=InMemorySessionIssuer(ttl_ms=SESSION_TTL_MS, clock=clock),
        challenge_ttl_ms=CHALLENGE_TTL_MS,
        clock=clock,
    )


@pytest.fixture
def client(service):
    app.dependency_overrides[get_auth_service] = lambda: service
    app.dependency_overrides[get_init_limiter] = lambda: RateLimiter(1000)
    app.dependency_overrides[get_verify_limiter] = lambda: RateLimiter(1000)
    yield TestClient(app)
    app.dependency_overrides.clear()
