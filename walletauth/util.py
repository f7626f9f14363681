"""
Utility functions for walletauth.

Provides base-58 encoding, time, random token and masking helpers.
"""

import re
import secrets
import time
from typing import Union

import base58

# Bitcoin alphabet: no 0, O, I or l
BASE58_PATTERN = re.compile(r"[1-9A-HJ-NP-Za-km-z]+")


def now_millis() -> int:
    """Get current Unix time in milliseconds."""
    return int(time.time() * 1000)


def b58e(b: bytes) -> str:
    """Base-58 encode bytes to string (Bitcoin alphabet)."""
    return base58.b58encode(b).decode('ascii')


def b58d(s: Union[str, bytes]) -> bytes:
    """
    Base-58 decode a string to bytes.

    Raises ValueError on characters outside the alphabet.
    """
    if isinstance(s, str):
        # b58decode would otherwise raise UnicodeEncodeError for non-ascii input
        try:
            s = s.encode('ascii')
        except UnicodeEncodeError as e:
            raise ValueError("non-ascii character in base58 string") from e
    return base58.b58decode(s)


def generate_token(nbytes: int = 32) -> str:
    """Generate a URL-safe token with nbytes of CSPRNG entropy."""
    return secrets.token_urlsafe(nbytes)


def mask_sensitive(value: str, visible_chars: int = 4) -> str:
    """
    Mask a sensitive value, showing only the last N characters.
    Useful for logging.
    """
    if len(value) <= visible_chars:
        return '*' * len(value)
    return '*' * (len(value) - visible_chars) + value[-visible_chars:]


def short_address(address: str) -> str:
    """Shorten a wallet address for log lines: first 4 and last 4 characters."""
    if len(address) <= 8:
        return address
    return f"{address[:4]}...{address[-4:]}"
