"""
Request-level security helpers for walletauth.

Client identification for rate limiting, bearer token parsing and
log sanitization.
"""

from typing import Any, Dict, List, Mapping, Optional

# Fields that must never reach a log line in clear text
SENSITIVE_FIELDS = ["signature", "token", "secret", "private_key", "authorization"]


def extract_client_id(
    headers: Mapping[str, str],
    remote_addr: Optional[str] = None,
    trust_proxy: bool = False
) -> str:
    """
    Extract a client identifier for rate limiting.

    Keys on the peer address. The first X-Forwarded-For hop is used
    instead only when trust_proxy is set, which requires a reverse proxy
    that overwrites the header.
    """
    if trust_proxy:
        forwarded = headers.get("x-forwarded-for", "")
        client = forwarded.split(",")[0].strip()
        if client:
            return f"ip:{client}"

    if remote_addr:
        return f"ip:{remote_addr}"

    return "anonymous"


def parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an 'Authorization: Bearer <token>' header."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def sanitize_for_logging(data: Dict[str, Any], sensitive_fields: List[str] = None) -> Dict[str, Any]:
    """
    Sanitize data for logging by masking sensitive fields.

    Args:
        data: The data to sanitize
        sensitive_fields: List of field names to mask

    Returns:
        Sanitized copy of the data
    """
    if sensitive_fields is None:
        sensitive_fields = SENSITIVE_FIELDS

    result = {}
    for key, value in data.items():
        if key.lower() in sensitive_fields:
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = sanitize_for_logging(value, sensitive_fields)
        elif isinstance(value, list):
            result[key] = [
                sanitize_for_logging(item, sensitive_fields) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value

    return result
