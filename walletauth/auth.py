"""
Wallet authentication service.

Runs the two-phase challenge-response protocol:

    initiate(address)           -> challenge code + message to sign
    verify(address, signature)  -> session token

Per-address lifecycle:

    NoChallenge -> ChallengeIssued -> Verified | Failed | Expired

A new initiate always returns the address to ChallengeIssued, replacing
any outstanding challenge. A failed signature leaves the challenge in
place so the client can retry until it expires. A successful
verification consumes the challenge, so the same signature cannot be
replayed.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from .addresses import WalletAddress, validate_wallet_address
from .canonical import render_message, render_message_bytes
from .challenges import Challenge, ChallengeStore, generate_challenge_code
from .errors import AuthError, InvalidInput, NoChallengeFound, NotWhitelisted, VerificationFailed
from .keys import decode_signature, verify_detached
from .logging_config import AuditLogger, audit_log
from .sessions import SessionIssuer
from .util import now_millis
from .whitelist import Whitelist

INSTRUCTIONS = (
    "Sign the message above with your wallet to prove ownership. "
    "Your private key will never leave your wallet."
)

SUCCESS_MESSAGE = "Wallet ownership verified successfully"


@dataclass(frozen=True)
class ChallengeResponse:
    """Result of a successful initiate."""
    code: str
    message: str
    instructions: str
    issued_at: int
    expires_at: int


@dataclass(frozen=True)
class VerifyResult:
    """Result of a successful verify."""
    address: str
    token: str
    message: str
    expires_at: int


def _require_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidInput(f"{field_name} is required")
    return value


class AuthService:
    """
    Challenge-response authenticator for Ed25519 wallets.

    All collaborators are injected so the store, token issuer, clock
    and code generator can be replaced independently.
    """

    def __init__(
        self,
        whitelist: Whitelist,
        store: ChallengeStore,
        sessions: SessionIssuer,
        challenge_ttl_ms: int,
        clock: Callable[[], int] = now_millis,
        code_generator: Callable[[], str] = generate_challenge_code,
        require_on_curve: bool = False,
        audit: Optional[AuditLogger] = None
    ):
        if challenge_ttl_ms <= 0:
            raise ValueError("challenge_ttl_ms must be positive")
        self.whitelist = whitelist
        self.store = store
        self.sessions = sessions
        self.challenge_ttl_ms = challenge_ttl_ms
        self._clock = clock
        self._code_generator = code_generator
        self._require_on_curve = require_on_curve
        self._audit = audit or audit_log

    def _validate(self, address: str) -> WalletAddress:
        return validate_wallet_address(address, require_on_curve=self._require_on_curve)

    def initiate(self, address: Any) -> ChallengeResponse:
        """
        Issue a challenge for a whitelisted wallet.

        Raises:
            InvalidInput: address missing or not a string
            InvalidFormat: address is not a valid public key
            NotWhitelisted: address is not permitted to authenticate
        """
        try:
            wallet = self._validate(_require_string(address, "walletAddress"))
            if wallet.address not in self.whitelist:
                raise NotWhitelisted()
        except AuthError as e:
            self._audit.challenge_rejected(address[:64] if isinstance(address, str) else None, e.code)
            raise

        issued_at = self._clock()
        challenge = Challenge(
            code=self._code_generator(),
            issued_at=issued_at,
            expires_at=issued_at + self.challenge_ttl_ms,
        )
        self.store.put(wallet.address, challenge)
        self._audit.challenge_issued(wallet.address, challenge.expires_at)

        return ChallengeResponse(
            code=challenge.code,
            message=render_message(challenge.code, challenge.issued_at, wallet.address),
            instructions=INSTRUCTIONS,
            issued_at=challenge.issued_at,
            expires_at=challenge.expires_at,
        )

    def verify(self, address: Any, signature: Any) -> VerifyResult:
        """
        Verify a signed challenge and issue a session token.

        Raises:
            InvalidInput: a field is missing or not a string
            InvalidFormat: address is not a valid public key
            NoChallengeFound: nothing outstanding (never issued, consumed or expired)
            MalformedSignature: signature is not valid base-58
            VerificationFailed: signature does not match the challenge
        """
        log_address = address[:64] if isinstance(address, str) else None
        try:
            _require_string(address, "walletAddress")
            _require_string(signature, "signature")
            wallet = self._validate(address)

            challenge = self.store.get(wallet.address)
            if challenge is None:
                raise NoChallengeFound()

            message = render_message_bytes(challenge.code, challenge.issued_at, wallet.address)
            raw_signature = decode_signature(signature)

            if not verify_detached(message, raw_signature, wallet.public_key):
                raise VerificationFailed()

            # Lost a race with another verify or a fresh initiate
            if not self.store.consume(wallet.address, expected=challenge):
                self._audit.security_event("challenge_consume_lost", address=wallet.address)
                raise NoChallengeFound()
        except AuthError as e:
            self._audit.verification_failed(log_address, e.code)
            raise

        session = self.sessions.mint(wallet.address)
        self._audit.verification_succeeded(wallet.address, session.token)

        return VerifyResult(
            address=wallet.address,
            token=session.token,
            message=SUCCESS_MESSAGE,
            expires_at=session.expires_at,
        )
