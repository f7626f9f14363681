"""
walletauth: challenge-response authentication for Ed25519 wallets.

A wallet proves it holds the private key for its address by signing a
short-lived server challenge. The private key never leaves the wallet;
the server only checks a detached signature.

Usage:
    from walletauth import (
        AuthService,
        InMemoryChallengeStore,
        InMemorySessionIssuer,
        Whitelist,
    )

    service = AuthService(
        whitelist=Whitelist(["<base58 address>"]),
        store=InMemoryChallengeStore(),
        sessions=InMemorySessionIssuer(ttl_ms=3600 * 1000),
        challenge_ttl_ms=300 * 1000,
    )

    challenge = service.initiate(address)
    # wallet signs challenge.message, returns a base58 signature
    result = service.verify(address, signature)
    result.token
"""

__version__ = "1.0.0"

from .addresses import WalletAddress, validate_wallet_address, is_valid_wallet_address
from .auth import AuthService, ChallengeResponse, VerifyResult
from .canonical import MESSAGE_FORMAT_VERSION, render_message, render_message_bytes
from .challenges import (
    Challenge,
    ChallengeStore,
    InMemoryChallengeStore,
    RedisChallengeStore,
    generate_challenge_code,
)
from .errors import (
    AuthError,
    InvalidInput,
    InvalidFormat,
    NotWhitelisted,
    NoChallengeFound,
    MalformedSignature,
    VerificationFailed,
    RateLimited,
)
from .keys import verify_detached, decode_signature
from .sessions import Session, SessionIssuer, InMemorySessionIssuer
from .whitelist import Whitelist, FileWhitelist


__all__ = [
    "__version__",
    # Addresses
    "WalletAddress",
    "validate_wallet_address",
    "is_valid_wallet_address",
    # Protocol
    "AuthService",
    "ChallengeResponse",
    "VerifyResult",
    "MESSAGE_FORMAT_VERSION",
    "render_message",
    "render_message_bytes",
    # Challenges
    "Challenge",
    "ChallengeStore",
    "InMemoryChallengeStore",
    "RedisChallengeStore",
    "generate_challenge_code",
    # Errors
    "AuthError",
    "InvalidInput",
    "InvalidFormat",
    "NotWhitelisted",
    "NoChallengeFound",
    "MalformedSignature",
    "VerificationFailed",
    "RateLimited",
    # Crypto
    "verify_detached",
    "decode_signature",
    # Sessions
    "Session",
    "SessionIssuer",
    "InMemorySessionIssuer",
    # Whitelist
    "Whitelist",
    "FileWhitelist",
]
