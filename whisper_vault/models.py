"""Data models: stored records, shareable locators and creation requests."""
import re
from typing import Optional
from urllib.parse import urlsplit, unquote

import orjson
from pydantic import (
    BaseModel,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from .conf import SECRET_PATH
from .crypto import CIPHER_BACKENDS, MIN_KDF_ITERATIONS
from .exceptions import StorageError, ValidationError

SECRET_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def is_valid_id(secret_id: str) -> bool:
    return isinstance(secret_id, str) and bool(SECRET_ID_PATTERN.match(secret_id))


class SecretRecord(BaseModel):
    """An encrypted secret as persisted by a store.

    Timestamps are epoch milliseconds. The KDF work factor and cipher used
    at encryption time travel with the record, so configuration changes
    never strand stored secrets.
    """

    id: str
    ciphertext: str
    created_at: int
    expires_at: int
    password_protected: bool = False
    kdf_iterations: int = Field(default=MIN_KDF_ITERATIONS, ge=MIN_KDF_ITERATIONS)
    cipher_backend: str = "aesgcm"

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        if v not in CIPHER_BACKENDS:
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @model_validator(mode="after")
    def validate_expiry(self) -> "SecretRecord":
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be later than created_at")
        return self

    def __repr__(self) -> str:
        return (
            f"<SecretRecord id={self.id} created_at={self.created_at} "
            f"expires_at={self.expires_at} "
            f"password_protected={self.password_protected}>"
        )

    __str__ = __repr__

    def is_live(self, now: int) -> bool:
        return now < self.expires_at

    def to_bytes(self) -> bytes:
        try:
            return orjson.dumps(self.model_dump())
        except TypeError as err:
            raise StorageError(
                f"Failed to serialize secret {self.id}"
            ) from err

    @classmethod
    def from_bytes(cls, data: bytes) -> "SecretRecord":
        try:
            return cls.model_validate(orjson.loads(data))
        except (orjson.JSONDecodeError, PydanticValidationError) as err:
            raise StorageError("Stored secret record is corrupt") from err


class Locator(BaseModel):
    """Shareable address of a secret: its id plus the embedded key, if any.

    The key belongs in the URL fragment, which browsers never send to a
    server.
    """

    id: str
    key: Optional[str] = Field(default=None, repr=False)

    @property
    def password_protected(self) -> bool:
        return self.key is None

    def url(self, base_url: str) -> str:
        url = f"{base_url.rstrip('/')}{SECRET_PATH}{self.id}/"
        if self.key:
            url = f"{url}#{self.key}"
        return url

    @classmethod
    def from_url(cls, url: str) -> "Locator":
        """Parse ``<base>/secret/<id>/#<key>``.

        The ``<base>/secret/<id>#<key>/`` form is accepted as well.

        Raises:
            ValidationError: If the URL does not address a secret.
        """
        parts = urlsplit(url)
        path = parts.path
        idx = path.find(SECRET_PATH)
        if idx < 0:
            raise ValidationError("Not a secret URL")
        secret_id = unquote(path[idx + len(SECRET_PATH):].strip("/"))
        if not is_valid_id(secret_id):
            raise ValidationError("Invalid secret id in URL")
        key = parts.fragment.strip("/") or None
        return cls(id=secret_id, key=key)


class SecretRequest(BaseModel):
    """A request to create a secret.

    Limits are read from the ``config`` entry of the validation context.
    """

    message: str
    expires_in: int
    use_password: bool = False
    password: Optional[str] = Field(default=None, repr=False)

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str, info: ValidationInfo) -> str:
        if not v:
            raise ValueError("Message is required")
        config = (info.context or {}).get("config")
        if config is not None and len(v) > config.max_message_length:
            raise ValueError(
                f"Message must be at most {config.max_message_length} characters"
            )
        return v

    @field_validator("expires_in")
    @classmethod
    def validate_expiration(cls, v: int, info: ValidationInfo) -> int:
        config = (info.context or {}).get("config")
        if v <= 0:
            raise ValueError("Please select an expiration time")
        if config is not None and v not in config.expiration_options:
            raise ValueError("Please select an expiration time")
        return v

    @model_validator(mode="after")
    def validate_password(self, info: ValidationInfo) -> "SecretRequest":
        if not self.use_password:
            return self
        config = (info.context or {}).get("config")
        min_length = config.min_password_length if config is not None else 1
        if not self.password or len(self.password) < min_length:
            raise ValueError(
                f"Password must be at least {min_length} characters "
                "when protection is enabled"
            )
        return self

    @classmethod
    def build(cls, config, **data) -> "SecretRequest":
        """Validate ``data`` against ``config``.

        Raises:
            ValidationError: Listing field locations and messages only;
                submitted values are never echoed.
        """
        try:
            return cls.model_validate(data, context={"config": config})
        except PydanticValidationError as err:
            messages, problems = [], []
            for error in err.errors():
                msg = error["msg"].removeprefix("Value error, ")
                loc = ".".join(str(part) for part in error["loc"])
                messages.append(msg)
                problems.append(f"{loc}: {msg}" if loc else msg)
            raise ValidationError(
                messages[0], details="; ".join(problems),
            ) from None
