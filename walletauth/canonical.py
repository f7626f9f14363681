"""
Canonical challenge message.

The wallet signs exactly these bytes, and the server rebuilds them from
the stored challenge at verification time. Both sides must agree byte
for byte, so the layout is a wire contract:

    Verify wallet ownership: {code}
    Timestamp: {issued_at_ms}
    Address: {address}

Lines are joined with a single LF, there is no trailing newline, and the
timestamp is a plain base-10 integer. Bump MESSAGE_FORMAT_VERSION if the
layout ever changes.
"""

MESSAGE_FORMAT_VERSION = 1

MESSAGE_TEMPLATE = (
    "Verify wallet ownership: {code}\n"
    "Timestamp: {timestamp}\n"
    "Address: {address}"
)


def render_message(code: str, issued_at_ms: int, address: str) -> str:
    """
    Render the canonical challenge message.

    Args:
        code: The challenge code
        issued_at_ms: Challenge issuance time in Unix milliseconds
        address: The base-58 wallet address

    Returns:
        The message text the wallet must sign
    """
    # bool is an int subclass; "True" would silently render
    if isinstance(issued_at_ms, bool) or not isinstance(issued_at_ms, int):
        raise ValueError("issued_at_ms must be an integer")
    return MESSAGE_TEMPLATE.format(code=code, timestamp=str(issued_at_ms), address=address)


def render_message_bytes(code: str, issued_at_ms: int, address: str) -> bytes:
    """Render the canonical challenge message as UTF-8 bytes."""
    return render_message(code, issued_at_ms, address).encode('utf-8')
