"""32-byte keys and deterministic address derivation.

Keys are rendered as lowercase 0x-prefixed hex. Account addresses (pools,
escrows, sell states) are derived from ordered seeds the same way every
time, so a record can be located from its identity alone.
"""

import hashlib
from typing import Any

KEY_BYTES = 32

# The all-zero key: native payment mint, "no referral", "disabled"
DEFAULT_KEY = "0x" + "00" * KEY_BYTES


def normalize_key(key: str) -> str:
    """Normalize a key to lowercase with 0x prefix.

    Note:
        Does NOT check validity. Use is_valid_key() or validate_key().
    """
    normalized = key.strip().lower()
    if not normalized.startswith("0x"):
        normalized = "0x" + normalized
    return normalized


def is_valid_key(key: str) -> bool:
    """Check if a string is a valid 0x-prefixed 32-byte hex key."""
    if not isinstance(key, str):
        return False
    if not key.startswith("0x"):
        return False
    if len(key) != 2 + 2 * KEY_BYTES:
        return False
    try:
        int(key, 16)
        return True
    except ValueError:
        return False


def validate_key(value: Any) -> str:
    """Validate and normalize a 32-byte hex key.

    Args:
        value: Key as hex string (with or without 0x prefix) or raw bytes

    Returns:
        Lowercase 0x-prefixed key

    Raises:
        ValueError: If value is not 32 bytes of hex
    """
    if isinstance(value, bytes):
        if len(value) != KEY_BYTES:
            raise ValueError(f"Key must be {KEY_BYTES} bytes, got {len(value)}")
        return "0x" + value.hex()

    if not isinstance(value, str):
        raise ValueError(f"Key must be string or bytes, got {type(value).__name__}")

    key = normalize_key(value)
    if not is_valid_key(key):
        raise ValueError(f"Invalid key: '{value}' (must be 0x + 64 hex chars)")
    return key


def derive_address(*seeds: str | bytes) -> str:
    """Derive a deterministic key from ordered seeds.

    Keys passed as seeds are hashed by their raw bytes, other strings by
    UTF-8. Each seed is length-prefixed so different seed splits never
    collide.
    """
    hasher = hashlib.sha256()
    for seed in seeds:
        if isinstance(seed, str) and is_valid_key(seed):
            raw = bytes.fromhex(seed[2:])
        elif isinstance(seed, str):
            raw = seed.encode()
        else:
            raw = seed
        hasher.update(len(raw).to_bytes(2, "little"))
        hasher.update(raw)
    return "0x" + hasher.hexdigest()
