"""
Memory-hard proof-of-work on top of a key derivation function.

key = kdf(base ":" nonce, salt, params) and the key must fall below the
target. The salt travels inside the challenge string ("base|saltHex") and
the cost parameters travel as a JSON blob in `Challenge.params`, so the
server keeps no state between issuing and verifying.
"""

import random
from collections.abc import Callable
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from wisdom.schemas.challenge import DEFAULT_VERSION, Challenge, Solution
from wisdom.services.pow_service import (
    CHALLENGE_SEED_BYTES,
    InvalidChallengeError,
    InvalidParamsError,
    PowError,
    SolveExhaustedError,
    join_salt,
    nonce_candidates,
    payload,
    random_hex,
    require_target,
    split_salt,
)
from wisdom.services.target import InvalidTargetError, digest_below_threshold, threshold

P = TypeVar("P", bound=BaseModel)


class KdfAlgorithm(Generic[P]):
    """
    One memory-hard PoW variant.

    Args:
        name: Stable identifier
        params_model: Pydantic model describing the cost parameters
        validate: Raises InvalidParamsError for self-inconsistent parameters
        derive: (payload, salt, params) -> key, for validated params
        max_iterations: Solve gives up after this many candidates
        params: Parameters embedded into newly issued challenges
    """

    def __init__(
        self,
        name: str,
        params_model: type[P],
        validate: Callable[[P], None],
        derive: Callable[[bytes, bytes, P], bytes],
        max_iterations: int,
        params: P | None = None,
    ):
        self.name = name
        self.max_iterations = max_iterations
        self.params = params if params is not None else params_model()
        self._params_model = params_model
        self._validate = validate
        self._derive = derive
        # Never issue puzzles that cannot be verified
        validate(self.params)

    def __repr__(self) -> str:
        return f"KdfAlgorithm(name={self.name!r}, params={self.params!r})"

    def encode_params(self, params: P) -> bytes:
        return params.model_dump_json(by_alias=True).encode()

    def decode_params(self, blob: bytes | None) -> P:
        """Decode and validate a parameter blob; a missing or malformed blob is an error."""
        if not blob:
            raise InvalidParamsError(f"{self.name}: missing params")
        try:
            params = self._params_model.model_validate_json(blob)
        except ValidationError as e:
            raise InvalidParamsError(f"{self.name}: invalid params: {e}") from e
        self._validate(params)
        return params

    def new_challenge(self, difficulty: int) -> Challenge:
        seed = random_hex(CHALLENGE_SEED_BYTES)
        salt_hex = random_hex(self.params.salt_bytes)

        return Challenge(
            version=DEFAULT_VERSION,
            challenge=join_salt(seed, salt_hex),
            target=threshold(difficulty),
            params=self.encode_params(self.params),
        )

    def verify(self, challenge: Challenge | None, solution: Solution | None) -> bool:
        if challenge is None or solution is None or not challenge.target:
            return False

        try:
            params = self.decode_params(challenge.params)
            base, salt = split_salt(challenge.challenge)
            key = self._derive(payload(base, solution.nonce), salt, params)
            return digest_below_threshold(key, challenge.target)
        except (PowError, InvalidTargetError):
            return False

    def solve(self, challenge: Challenge, rng: random.Random | None = None) -> Solution:
        challenge = require_target(challenge)

        # Only the solving side may fall back to defaults
        params = self.decode_params(challenge.params) if challenge.params else self.params
        base, salt = split_salt(challenge.challenge)

        for nonce in nonce_candidates(self.max_iterations, rng):
            key = self._derive(payload(base, nonce), salt, params)
            try:
                found = digest_below_threshold(key, challenge.target)
            except InvalidTargetError as e:
                raise InvalidChallengeError(str(e)) from e
            if found:
                return Solution(nonce=nonce)

        raise SolveExhaustedError(self.max_iterations)
