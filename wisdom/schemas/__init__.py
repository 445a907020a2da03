from wisdom.schemas.challenge import (
    DEFAULT_VERSION,
    Argon2idParams,
    Challenge,
    ScryptParams,
    SignedChallenge,
    Solution,
    encode_line,
)

__all__ = [
    "DEFAULT_VERSION",
    "Argon2idParams",
    "Challenge",
    "ScryptParams",
    "SignedChallenge",
    "Solution",
    "encode_line",
]
