"""
Target arithmetic for proof-of-work challenges.

Difficulty is expressed as "percent harder than the base target":

- difficulty=0   -> base target (no change)
- difficulty=50  -> 1.5x harder
- difficulty=100 -> 2x harder
- difficulty=200 -> 3x harder

A digest is accepted when, read as an unsigned big-endian integer, it is
strictly below the target. All targets are 32 bytes wide.
"""

import re

TARGET_BYTES = 32
MIN_DIFFICULTY = 0
MAX_DIFFICULTY = 200

# One in 1024 digests is accepted at difficulty 0
BASE_TARGET = 1 << (256 - 10)

_HEX_RE = re.compile(r"(?:[0-9a-fA-F]{2})*")


class InvalidDifficultyError(ValueError):
    pass


class InvalidTargetError(ValueError):
    pass


def threshold(difficulty: int) -> str:
    """
    Compute the acceptance threshold for a difficulty level.

    Returns a fixed-width, lowercase hex string without a 0x prefix.
    """
    if isinstance(difficulty, bool) or not isinstance(difficulty, int):
        raise InvalidDifficultyError(f"Difficulty must be an integer, got {difficulty!r}")
    if not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY:
        raise InvalidDifficultyError(f"Invalid difficulty: {difficulty}")

    # Smaller target => lower success probability => harder
    target = BASE_TARGET * 100 // (100 + difficulty)
    return to_hex(target)


def to_hex(value: int) -> str:
    """Render an integer as a left-zero-padded 32-byte hex string."""
    # Keep the least significant bytes if the value ever outgrows the width
    value &= (1 << (TARGET_BYTES * 8)) - 1
    return value.to_bytes(TARGET_BYTES, "big").hex()


def digest_below_threshold(digest: bytes, threshold_hex: str) -> bool:
    """
    Check whether a digest falls strictly below the threshold.

    Raises InvalidTargetError if the threshold is not hex or its decoded
    width differs from the digest width.
    """
    if not isinstance(threshold_hex, str) or not _HEX_RE.fullmatch(threshold_hex):
        raise InvalidTargetError(f"Invalid target hex: {threshold_hex!r}")
    target_bytes = bytes.fromhex(threshold_hex)

    if len(target_bytes) != len(digest):
        raise InvalidTargetError(
            f"Invalid target length: got {len(target_bytes)} bytes, want {len(digest)} bytes"
        )

    # Equal-length big-endian byte strings compare like unsigned integers
    return bytes(digest) < target_bytes
