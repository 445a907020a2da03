from wisdom.services.argon2_pow import NAME as ARGON2ID
from wisdom.services.argon2_pow import new_argon2id
from wisdom.services.hashcash import BLAKE3_256, HASHCASH_SHA256, SHA3_256, HashcashAlgorithm
from wisdom.services.pow_service import Algorithm, UnknownAlgorithmError
from wisdom.services.scrypt_pow import NAME as SCRYPT
from wisdom.services.scrypt_pow import new_scrypt

ALGORITHMS = (HASHCASH_SHA256, SHA3_256, BLAKE3_256, SCRYPT, ARGON2ID)


def get_algorithm(name: str, max_iterations: int | None = None) -> Algorithm:
    """
    Build the PoW algorithm registered under `name`.

    `max_iterations` overrides the variant's default solve cap.
    """
    kwargs = {"max_iterations": max_iterations} if max_iterations is not None else {}

    if name in (HASHCASH_SHA256, SHA3_256, BLAKE3_256):
        return HashcashAlgorithm(name, **kwargs)
    if name == SCRYPT:
        return new_scrypt(**kwargs)
    if name == ARGON2ID:
        return new_argon2id(**kwargs)
    raise UnknownAlgorithmError(f"Unknown PoW algorithm: {name}")
