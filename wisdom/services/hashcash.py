import hashlib
import random
from collections.abc import Callable

from blake3 import blake3

from wisdom.schemas.challenge import DEFAULT_VERSION, Challenge, Solution
from wisdom.services.pow_service import (
    CHALLENGE_SEED_BYTES,
    InvalidChallengeError,
    PowError,
    SolveExhaustedError,
    nonce_candidates,
    payload,
    random_hex,
    require_target,
)
from wisdom.services.target import InvalidTargetError, digest_below_threshold, threshold

HASHCASH_SHA256 = "hashcash-sha256"
SHA3_256 = "sha3-256"
BLAKE3_256 = "blake3-256"

DEFAULT_MAX_ITERATIONS = 10_000_000


def _sha256(msg: bytes) -> bytes:
    return hashlib.sha256(msg).digest()


def _sha3_256(msg: bytes) -> bytes:
    return hashlib.sha3_256(msg).digest()


def _blake3_256(msg: bytes) -> bytes:
    return blake3(msg).digest()


DIGESTS: dict[str, Callable[[bytes], bytes]] = {
    HASHCASH_SHA256: _sha256,
    SHA3_256: _sha3_256,
    BLAKE3_256: _blake3_256,
}


class HashcashAlgorithm:
    """Hashcash-style PoW: accept when digest(challenge ":" nonce) < target."""

    def __init__(self, name: str = HASHCASH_SHA256, max_iterations: int = DEFAULT_MAX_ITERATIONS):
        if name not in DIGESTS:
            raise ValueError(f"Unknown hash function: {name}")
        self.name = name
        self.max_iterations = max_iterations
        self._digest = DIGESTS[name]

    def __repr__(self) -> str:
        return f"HashcashAlgorithm(name={self.name!r})"

    def hash256(self, challenge: str, nonce: str) -> bytes:
        return self._digest(payload(challenge, nonce))

    def new_challenge(self, difficulty: int) -> Challenge:
        return Challenge(
            version=DEFAULT_VERSION,
            challenge=random_hex(CHALLENGE_SEED_BYTES),
            target=threshold(difficulty),
        )

    def verify(self, challenge: Challenge | None, solution: Solution | None) -> bool:
        if challenge is None or solution is None or not challenge.target:
            return False

        try:
            digest = self.hash256(challenge.challenge, solution.nonce)
            return digest_below_threshold(digest, challenge.target)
        except (PowError, InvalidTargetError):
            return False

    def solve(self, challenge: Challenge, rng: random.Random | None = None) -> Solution:
        challenge = require_target(challenge)

        for nonce in nonce_candidates(self.max_iterations, rng):
            digest = self.hash256(challenge.challenge, nonce)
            try:
                found = digest_below_threshold(digest, challenge.target)
            except InvalidTargetError as e:
                raise InvalidChallengeError(str(e)) from e
            if found:
                return Solution(nonce=nonce)

        raise SolveExhaustedError(self.max_iterations)
