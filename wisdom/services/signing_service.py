import hashlib
import hmac

from wisdom.schemas.challenge import Challenge


class ChallengeSigner:
    """
    HMAC-SHA256 over the security-relevant challenge fields and its expiry.

    The signature is the only thing standing between a client and a
    self-issued easy challenge, so every field that affects verification
    is covered.
    """

    def __init__(self, secret: bytes):
        if not secret:
            raise ValueError("HMAC secret must not be empty")
        self._secret = secret

    @staticmethod
    def payload(challenge: Challenge, expires_at: int) -> str:
        """Labeled fields in a fixed order, independent of JSON key ordering."""
        return (
            f"v={challenge.version}"
            f"|challenge={challenge.challenge}"
            f"|target={challenge.target}"
            f"|params={challenge.params_hex}"
            f"|exp={expires_at}"
        )

    def _mac(self, challenge: Challenge, expires_at: int) -> bytes:
        msg = self.payload(challenge, expires_at).encode()
        return hmac.new(self._secret, msg, hashlib.sha256).digest()

    def sign(self, challenge: Challenge, expires_at: int) -> str:
        return self._mac(challenge, expires_at).hex()

    def verify(self, challenge: Challenge | None, expires_at: int, sig_hex: str) -> bool:
        if challenge is None:
            return False
        try:
            given = bytes.fromhex(sig_hex)
        except (TypeError, ValueError):
            return False
        # Constant-time compare over bytes
        return hmac.compare_digest(self._mac(challenge, expires_at), given)
