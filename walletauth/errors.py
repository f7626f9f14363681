"""
Error taxonomy for walletauth.

Every expected failure of the authentication protocol is an AuthError
subclass carrying a stable code and the HTTP status the API layer maps
it to. Anything else escaping the core is an internal fault.
"""


class AuthError(Exception):
    """Base class for typed authentication failures."""

    code = "AUTH_ERROR"
    status_code = 400
    default_message = "Authentication error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class InvalidInput(AuthError):
    """A required field is missing or has the wrong type."""
    code = "INVALID_INPUT"
    status_code = 400
    default_message = "Invalid input"


class InvalidFormat(AuthError):
    """The wallet address does not decode to a valid public key."""
    code = "INVALID_FORMAT"
    status_code = 400
    default_message = "Invalid wallet address format"


class NotWhitelisted(AuthError):
    code = "NOT_WHITELISTED"
    status_code = 403
    default_message = "Wallet address not whitelisted"


class NoChallengeFound(AuthError):
    """No live challenge: never initiated, already consumed, or expired."""
    code = "NO_CHALLENGE_FOUND"
    status_code = 404
    default_message = "No challenge found. Please call /init-auth first."


class MalformedSignature(AuthError):
    code = "MALFORMED_SIGNATURE"
    status_code = 400
    default_message = "Invalid signature format"


class VerificationFailed(AuthError):
    code = "VERIFICATION_FAILED"
    status_code = 401
    default_message = "Verification failed. Invalid signature."


class RateLimited(AuthError):
    code = "RATE_LIMITED"
    status_code = 429
    default_message = "Too many requests"

    def __init__(self, message: str = None, retry_after: float = None):
        self.retry_after = retry_after
        super().__init__(message)
