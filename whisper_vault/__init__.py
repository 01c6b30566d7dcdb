"""Whisper Vault — One-time secrets that self-destruct after the first read.

Security Note (Threat Model):
    Plaintext exists in process memory only between ``create`` and
    ``encrypt`` and inside ``access`` after decryption. Stores receive
    ciphertext only; keys travel in URL fragments that browsers never
    send to a server. Protecting the process memory itself is out of scope.
"""

from .version import __version__
from .conf import EXPIRATION_OPTIONS, MAX_MESSAGE_LENGTH
from .config import WhisperConfig, build_store
from .coordinator import SecretCoordinator
from .crypto import generate_key, encrypt, decrypt
from .exceptions import (
    WhisperError,
    ValidationError,
    EncryptionError,
    DecryptionError,
    StorageError,
    AccessError,
    SecretNotFound,
)
from .models import SecretRecord, Locator, SecretRequest
from .storage import AbstractSecretStore, MemorySecretStore, FileSecretStore
from .sweeper import ExpirySweeper

__all__ = [
    "__version__",
    "EXPIRATION_OPTIONS",
    "MAX_MESSAGE_LENGTH",
    "WhisperConfig",
    "build_store",
    "SecretCoordinator",
    "generate_key",
    "encrypt",
    "decrypt",
    "WhisperError",
    "ValidationError",
    "EncryptionError",
    "DecryptionError",
    "StorageError",
    "AccessError",
    "SecretNotFound",
    "SecretRecord",
    "Locator",
    "SecretRequest",
    "AbstractSecretStore",
    "MemorySecretStore",
    "FileSecretStore",
    "ExpirySweeper",
]
