"""
Vault Configuration — Validated settings for the cipher, stores and limits.

Reads overrides from environment variables in the format:
    WHISPER_KDF_ITERATIONS = <integer, at least 100000>
    WHISPER_CIPHER_BACKEND = aesgcm | chacha20
    WHISPER_STORE_BACKEND = memory | file | redis

Security Note:
    Configuration never carries key material; keys only live in locators.
"""
import os
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .conf import (
    EXPIRATION_OPTIONS,
    DEFAULT_EXPIRATION,
    MAX_MESSAGE_LENGTH,
    MIN_PASSWORD_LENGTH,
    LOGGER_NAME,
)
from .crypto import MIN_KDF_ITERATIONS, CIPHER_BACKENDS

logger = logging.getLogger(LOGGER_NAME)

_ENV_PREFIX = "WHISPER_"
_ENV_FIELDS = (
    "kdf_iterations",
    "cipher_backend",
    "max_message_length",
    "min_password_length",
    "default_expiration",
    "base_url",
    "store_backend",
    "store_path",
    "redis_url",
    "redis_prefix",
    "sweep_interval",
)


class WhisperConfig(BaseModel):
    """Validated vault configuration."""

    kdf_iterations: int = Field(default=MIN_KDF_ITERATIONS, ge=MIN_KDF_ITERATIONS)
    cipher_backend: str = Field(default="aesgcm")
    max_message_length: int = Field(default=MAX_MESSAGE_LENGTH, ge=1)
    min_password_length: int = Field(default=MIN_PASSWORD_LENGTH, ge=1)
    expiration_options: dict[int, str] = Field(
        default_factory=lambda: dict(EXPIRATION_OPTIONS)
    )
    default_expiration: int = Field(default=DEFAULT_EXPIRATION)
    base_url: str = Field(default="http://localhost:3000")
    store_backend: str = Field(default="memory")
    store_path: str = Field(default="whisper_secrets.json")
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_prefix: str = Field(default="whisper:secret:")
    sweep_interval: float = Field(default=60.0, ge=1)

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        v = v.lower()
        if v not in CIPHER_BACKENDS:
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @field_validator("store_backend")
    @classmethod
    def validate_store(cls, v: str) -> str:
        v = v.lower()
        if v not in ("memory", "file", "redis"):
            raise ValueError(f"Unsupported store backend: {v}")
        return v

    @field_validator("expiration_options")
    @classmethod
    def validate_options(cls, v: dict[int, str]) -> dict[int, str]:
        if not v:
            raise ValueError("At least one expiration option is required")
        if any(ttl <= 0 for ttl in v):
            raise ValueError("Expiration options must be positive milliseconds")
        return v

    @field_validator("base_url")
    @classmethod
    def strip_base_url(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_default_expiration(self) -> "WhisperConfig":
        """Ensure default_expiration is one of the expiration options."""
        if self.default_expiration not in self.expiration_options:
            raise ValueError(
                f"default_expiration {self.default_expiration} not found in "
                f"expiration_options (available: {sorted(self.expiration_options)})"
            )
        return self

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "WhisperConfig":
        """Create WhisperConfig by loading values from environment.

        Returns:
            Populated WhisperConfig instance.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for name in _ENV_FIELDS:
            raw = environ.get(f"{_ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        config = cls(**values)
        logger.debug(
            "Loaded config: cipher=%s store=%s iterations=%d",
            config.cipher_backend, config.store_backend, config.kdf_iterations,
        )
        return config


def build_store(config: WhisperConfig):
    """Construct the store backend named by ``config.store_backend``."""
    if config.store_backend == "file":
        from .storage.file import FileSecretStore
        return FileSecretStore(config.store_path)
    if config.store_backend == "redis":
        from .storage.redis_store import RedisSecretStore
        return RedisSecretStore.from_url(
            config.redis_url, prefix=config.redis_prefix,
        )
    from .storage.memory import MemorySecretStore
    return MemorySecretStore()
