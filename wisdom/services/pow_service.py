"""
Pluggable proof-of-work algorithms.

The server uses `new_challenge` + `verify`; the client uses `solve`.
Every variant accepts a digest when it falls below the challenge target
(see `wisdom.services.target`).
"""

import random
import secrets
from typing import Protocol

from wisdom.schemas.challenge import Challenge, Solution

CHALLENGE_SEED_BYTES = 16  # 128 bits
SALT_SEPARATOR = "|"
NONCE_RANDOM_BOUND = 1 << 62


class PowError(Exception):
    """Base class for algorithm failures surfaced to callers."""


class InvalidChallengeError(PowError):
    pass


class InvalidParamsError(PowError):
    pass


class SolveExhaustedError(PowError):
    def __init__(self, iterations: int):
        super().__init__(f"Solution not found after {iterations} iterations")
        self.iterations = iterations


class UnknownAlgorithmError(PowError, ValueError):
    pass


class Algorithm(Protocol):
    name: str
    max_iterations: int

    def new_challenge(self, difficulty: int) -> Challenge: ...

    def solve(self, challenge: Challenge, rng: random.Random | None = None) -> Solution: ...

    def verify(self, challenge: Challenge | None, solution: Solution | None) -> bool: ...


def random_hex(n_bytes: int) -> str:
    return secrets.token_hex(n_bytes)


def next_nonce(counter: int, rng: random.Random) -> str:
    """Counter plus randomness, so concurrent solvers never walk the same sequence."""
    return f"{counter}-{rng.randrange(NONCE_RANDOM_BOUND)}"


def nonce_candidates(max_iterations: int, rng: random.Random | None = None):
    """Yield up to `max_iterations` nonce candidates."""
    if rng is None:
        rng = secrets.SystemRandom()
    for counter in range(max_iterations):
        yield next_nonce(counter, rng)


def join_salt(base: str, salt_hex: str) -> str:
    return f"{base}{SALT_SEPARATOR}{salt_hex}"


def split_salt(challenge: str) -> tuple[str, bytes]:
    """
    Split a "base|saltHex" challenge string into its base and decoded salt.

    Raises InvalidChallengeError if the separator or a valid salt is missing.
    """
    base, sep, salt_hex = challenge.partition(SALT_SEPARATOR)
    if not sep or not salt_hex:
        raise InvalidChallengeError("Challenge carries no salt")
    try:
        salt = bytes.fromhex(salt_hex)
    except ValueError as e:
        raise InvalidChallengeError(f"Invalid salt hex: {e}") from e
    return base, salt


def require_target(challenge: Challenge | None) -> Challenge:
    if challenge is None:
        raise InvalidChallengeError("Nil challenge")
    if not challenge.target:
        raise InvalidChallengeError("Empty target")
    return challenge


def payload(base: str, nonce: str) -> bytes:
    try:
        return f"{base}:{nonce}".encode()
    except UnicodeEncodeError as e:
        raise InvalidChallengeError(f"Unencodable nonce or challenge: {e}") from e
