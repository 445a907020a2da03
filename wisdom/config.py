from pydantic import ConfigDict, field_validator
from pydantic_settings import BaseSettings

from wisdom.services.algorithms import ALGORITHMS


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="WOW_",
    )

    # Listener
    server_host: str = "0.0.0.0"
    server_port: int = 4000
    conn_limit: int = 5000

    # Signing
    hmac_secret: str = "dev-secret-change-me"
    challenge_ttl_seconds: int = 15

    # Proof of Work
    pow_algorithm: str = "hashcash-sha256"
    pow_max_iterations: int | None = None  # None = per-algorithm default

    # Limits
    max_request_line_bytes: int = 32  # "CHALLENGE" or "QUOTE"
    max_payload_bytes: int = 400  # signed challenge + solution JSON
    stream_buffer_bytes: int = 512

    # Deadlines
    command_timeout_seconds: float = 1.0
    payload_timeout_seconds: float = 1.0
    connection_timeout_seconds: float = 5.0

    # Rewards
    quotes_file: str | None = None  # None = packaged quotes.json

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # "console" or "json"

    @field_validator("pow_algorithm")
    @classmethod
    def validate_pow_algorithm(cls, v: str) -> str:
        """Only algorithms known to the registry can be configured."""
        if v not in ALGORITHMS:
            expected = ", ".join(ALGORITHMS)
            raise ValueError(f"Unknown PoW algorithm: {v} (expected one of {expected})")
        return v

    @field_validator(
        "conn_limit",
        "challenge_ttl_seconds",
        "max_request_line_bytes",
        "max_payload_bytes",
        "stream_buffer_bytes",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator(
        "command_timeout_seconds",
        "payload_timeout_seconds",
        "connection_timeout_seconds",
    )
    @classmethod
    def validate_positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("pow_max_iterations")
    @classmethod
    def validate_max_iterations(cls, v: int | None) -> int | None:
        if v is not None and v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v not in ("console", "json"):
            raise ValueError("log_format must be 'console' or 'json'")
        return v


settings = Settings()
