from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw

from wisdom.schemas.challenge import Argon2idParams
from wisdom.services.kdf_pow import KdfAlgorithm
from wisdom.services.pow_service import InvalidParamsError

NAME = "argon2id"
DEFAULT_MAX_ITERATIONS = 2_000_000

MIN_MEMORY_KIB = 8 * 1024
MAX_MEMORY_KIB = 1024 * 1024
MAX_THREADS = 255
MAX_KEY_LEN = 64
MIN_SALT_BYTES = 16


def validate_params(p: Argon2idParams) -> None:
    """Reject parameters that would derive a degenerate or unbounded puzzle."""
    if p.time <= 0:
        raise InvalidParamsError(f"Invalid argon2id time cost: {p.time}")
    if not MIN_MEMORY_KIB <= p.memory_kib <= MAX_MEMORY_KIB:
        raise InvalidParamsError(f"Invalid argon2id memory: {p.memory_kib} KiB")
    if not 0 < p.threads <= MAX_THREADS:
        raise InvalidParamsError(f"Invalid argon2id parallelism: {p.threads}")
    if not 0 < p.key_len <= MAX_KEY_LEN:
        raise InvalidParamsError(f"Invalid argon2id key length: {p.key_len}")
    if p.salt_bytes < MIN_SALT_BYTES:
        raise InvalidParamsError(f"Invalid argon2id salt size: {p.salt_bytes}")


def derive(payload: bytes, salt: bytes, p: Argon2idParams) -> bytes:
    try:
        return hash_secret_raw(
            secret=payload,
            salt=salt,
            time_cost=p.time,
            memory_cost=p.memory_kib,
            parallelism=p.threads,
            hash_len=p.key_len,
            type=Type.ID,
        )
    except HashingError as e:
        raise InvalidParamsError(f"argon2id derivation failed: {e}") from e


def new_argon2id(
    max_iterations: int = DEFAULT_MAX_ITERATIONS, params: Argon2idParams | None = None
) -> KdfAlgorithm[Argon2idParams]:
    return KdfAlgorithm(
        name=NAME,
        params_model=Argon2idParams,
        validate=validate_params,
        derive=derive,
        max_iterations=max_iterations,
        params=params,
    )
