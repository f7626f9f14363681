"""
Wallet address validation.

A wallet address is the base-58 encoding of a 32-byte Ed25519 public key.
Validation is purely structural: it proves nothing about who holds the
matching private key.
"""

from dataclasses import dataclass

from nacl import bindings

from .errors import InvalidFormat
from .util import BASE58_PATTERN, b58d

PUBLIC_KEY_LENGTH = 32

# 32 bytes encode to at most 44 base-58 characters
MAX_ADDRESS_LENGTH = 44


@dataclass(frozen=True)
class WalletAddress:
    """A validated wallet identity."""
    address: str
    public_key: bytes

    def __str__(self) -> str:
        return self.address


def validate_wallet_address(value: str, require_on_curve: bool = False) -> WalletAddress:
    """
    Validate a base-58 wallet address.

    Args:
        value: The caller-supplied address string
        require_on_curve: Also require the key bytes to be a valid
            Ed25519 point (rejects program-derived style addresses)

    Returns:
        WalletAddress with the decoded public key

    Raises:
        InvalidFormat: If the string is not a structurally valid key
    """
    if not isinstance(value, str) or not value:
        raise InvalidFormat()

    if len(value) > MAX_ADDRESS_LENGTH or not BASE58_PATTERN.fullmatch(value):
        raise InvalidFormat()

    try:
        raw = b58d(value)
    except ValueError:
        raise InvalidFormat()

    if len(raw) != PUBLIC_KEY_LENGTH:
        raise InvalidFormat()

    if require_on_curve and not bindings.crypto_core_ed25519_is_valid_point(raw):
        raise InvalidFormat("Wallet address is not a valid Ed25519 point")

    return WalletAddress(address=value, public_key=raw)


def is_valid_wallet_address(value: str) -> bool:
    """Check whether a string is a valid wallet address without raising."""
    try:
        validate_wallet_address(value)
        return True
    except InvalidFormat:
        return False
