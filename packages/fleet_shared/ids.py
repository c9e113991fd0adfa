"""ULID generation for correlating batches of work in logs.

The canonical string form is 26 Crockford Base32 characters encoding a 48-bit
millisecond timestamp followed by 80 bits of random entropy, so identifiers
sort by creation time.
"""

from __future__ import annotations

import secrets
import time

_ULID_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"


def generate_ulid_str(*, timestamp_ms: int | None = None) -> str:
    """Generate a new ULID in canonical 26-char string format."""
    ts_ms = int(time.time() * 1000) if timestamp_ms is None else int(timestamp_ms)
    if ts_ms < 0 or ts_ms >= (1 << 48):
        raise ValueError("timestamp_ms out of ULID 48-bit range")

    entropy = int.from_bytes(secrets.token_bytes(10), byteorder="big", signed=False)
    number = (ts_ms << 80) | entropy
    chars: list[str] = []
    for _ in range(26):
        number, remainder = divmod(number, 32)
        chars.append(_ULID_ALPHABET[remainder])
    return "".join(reversed(chars))
