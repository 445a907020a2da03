import re

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    field_serializer,
    field_validator,
)

DEFAULT_VERSION = "1"


class Challenge(BaseModel):
    """Puzzle issued by the server. `params` is an algorithm-owned opaque blob."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: StrictStr
    target: StrictStr
    challenge: StrictStr
    params: bytes | None = None

    @field_validator("params", mode="before")
    @classmethod
    def decode_params_hex(cls, v):
        """Params travel as hex on the wire; raw bytes are accepted from Python callers."""
        if v is None or isinstance(v, bytes):
            return v
        if not isinstance(v, str) or not re.match(r"^(?:[0-9a-fA-F]{2})*$", v):
            raise ValueError("params: Invalid hex encoding")
        return bytes.fromhex(v)

    @field_serializer("params")
    def encode_params_hex(self, v: bytes | None) -> str | None:
        return v.hex() if v is not None else None

    @property
    def params_hex(self) -> str:
        return self.params.hex() if self.params else ""


class Solution(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    nonce: StrictStr


class SignedChallenge(BaseModel):
    """Challenge plus the expiry and MAC that let the server verify it statelessly."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    challenge: Challenge
    expires_at: StrictInt = Field(..., description="Unix seconds")
    sig: StrictStr = Field(..., description="Hex HMAC-SHA256")


class ScryptParams(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    n: StrictInt = 1 << 15  # 32768
    r: StrictInt = 8
    p: StrictInt = 1
    key_len: StrictInt = Field(32, alias="keyLen")
    salt_bytes: StrictInt = Field(16, alias="saltBytes")


class Argon2idParams(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    time: StrictInt = Field(1, alias="t")  # iterations
    memory_kib: StrictInt = Field(8 * 1024, alias="mKiB")
    threads: StrictInt = Field(1, alias="p")
    key_len: StrictInt = Field(32, alias="keyLen")
    salt_bytes: StrictInt = Field(16, alias="saltBytes")


def encode_line(model: BaseModel) -> bytes:
    """Serialize a wire model as one newline-terminated JSON line."""
    return model.model_dump_json(exclude_none=True).encode() + b"\n"
