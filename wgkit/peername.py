"""Short, human-readable names for peers derived from their public keys."""

from __future__ import annotations

import base64

KEY_SIZE = 32


def peer_name(public_key: bytes) -> str:
    """Abbreviate a 32-byte public key as ``peer(XXXX…YYYY)``.

    The name holds the first four and the last four significant characters
    of the key's standard base64 encoding.
    """
    key = bytes(public_key)
    if len(key) != KEY_SIZE:
        raise ValueError(f"public key must be {KEY_SIZE} bytes, got {len(key)}")
    encoded = base64.b64encode(key).decode("ascii")
    return f"peer({encoded[0:4]}…{encoded[39:43]})"