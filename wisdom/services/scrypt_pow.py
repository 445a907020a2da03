import hashlib

from wisdom.schemas.challenge import ScryptParams
from wisdom.services.kdf_pow import KdfAlgorithm
from wisdom.services.pow_service import InvalidParamsError

NAME = "scrypt"
DEFAULT_MAX_ITERATIONS = 500_000  # scrypt is the most expensive variant

MAX_N = 1 << 20
MAX_R = 32
MAX_P = 16
MAX_KEY_LEN = 64
MIN_SALT_BYTES = 16


def validate_params(p: ScryptParams) -> None:
    """Reject parameters that would derive a degenerate or unbounded puzzle."""
    # N must be a power of 2 and > 1
    if p.n <= 1 or p.n & (p.n - 1) != 0 or p.n > MAX_N:
        raise InvalidParamsError(f"Invalid scrypt N: {p.n}")
    if not 0 < p.r <= MAX_R or not 0 < p.p <= MAX_P:
        raise InvalidParamsError(f"Invalid scrypt r/p: {p.r}/{p.p}")
    if not 0 < p.key_len <= MAX_KEY_LEN:
        raise InvalidParamsError(f"Invalid scrypt key length: {p.key_len}")
    if p.salt_bytes < MIN_SALT_BYTES:
        raise InvalidParamsError(f"Invalid scrypt salt size: {p.salt_bytes}")


def derive(payload: bytes, salt: bytes, p: ScryptParams) -> bytes:
    # 128 * r * N bytes for V plus the per-lane B blocks, with headroom
    maxmem = 128 * p.r * (p.n + p.p + 2) + (1 << 20)
    try:
        return hashlib.scrypt(
            payload, salt=salt, n=p.n, r=p.r, p=p.p, maxmem=maxmem, dklen=p.key_len
        )
    except (ValueError, MemoryError) as e:
        raise InvalidParamsError(f"scrypt derivation failed: {e}") from e


def new_scrypt(
    max_iterations: int = DEFAULT_MAX_ITERATIONS, params: ScryptParams | None = None
) -> KdfAlgorithm[ScryptParams]:
    return KdfAlgorithm(
        name=NAME,
        params_model=ScryptParams,
        validate=validate_params,
        derive=derive,
        max_iterations=max_iterations,
        params=params,
    )
