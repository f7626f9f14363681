"""
Ed25519 detached signature verification.

Wallets sign the canonical message with their private key and send only
the signature; the server checks it against the public key encoded in
the wallet address.
"""

from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import VerifyKey

from .errors import MalformedSignature
from .util import BASE58_PATTERN, b58d

SIGNATURE_LENGTH = 64

# a 64-byte value is at most 88 base-58 characters
MAX_SIGNATURE_ENCODED_LENGTH = 88


def verify_detached(message: bytes, signature: bytes, public_key: bytes) -> bool:
    """
    Verify an Ed25519 detached signature.

    Args:
        message: The signed data
        signature: 64-byte signature
        public_key: 32-byte public key

    Returns:
        True if signature is valid, False otherwise (including malformed
        keys or signatures of the wrong length)
    """
    if len(signature) != SIGNATURE_LENGTH:
        return False
    try:
        vk = VerifyKey(public_key)
        vk.verify(message, signature)
        return True
    except (BadSignatureError, CryptoError, ValueError, TypeError):
        return False


def decode_signature(value: str) -> bytes:
    """
    Decode a base-58 signature from the wire.

    Anything longer than a 64-byte value can encode to, or containing a
    character outside the alphabet (surrounding whitespace included), is
    a format error. A well-encoded value of the wrong decoded size is a
    verification failure and is left to verify_detached.

    Raises:
        MalformedSignature: If the value is not valid base-58
    """
    if not isinstance(value, str) or len(value) > MAX_SIGNATURE_ENCODED_LENGTH:
        raise MalformedSignature()
    if not BASE58_PATTERN.fullmatch(value):
        raise MalformedSignature()
    return b58d(value)
