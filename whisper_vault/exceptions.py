"""Exceptions raised by Whisper Vault.

Messages must never contain plaintext, passwords, keys or ciphertext.
"""
from typing import Optional


GENERIC_ACCESS_MESSAGE = (
    "This secret does not exist, has already been viewed, has expired, "
    "or could not be decrypted."
)


class WhisperError(Exception):
    """Base exception for Whisper Vault errors."""

    user_message = "The operation could not be completed."

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
    ):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(WhisperError):
    """Raised when a request is rejected before any crypto or storage work."""

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return self.message


class EncryptionError(WhisperError):
    """Raised when a payload cannot be encrypted."""

    user_message = "Failed to encrypt message."


class StorageError(WhisperError):
    """Raised when the secret store cannot be read or written."""

    user_message = "The secret store is currently unavailable."


class AccessError(WhisperError):
    """Raised when a secret cannot be revealed to the caller."""

    user_message = GENERIC_ACCESS_MESSAGE


class DecryptionError(AccessError):
    """Raised when authenticated decryption fails.

    Wrong key, wrong password and tampered ciphertext are deliberately
    indistinguishable.
    """

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        super().__init__(
            message or (
                "Failed to decrypt message. It may have been tampered with "
                "or the password is incorrect."
            ),
            details,
        )


class SecretNotFound(AccessError):
    """Raised when a secret is absent, already consumed or expired."""

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        super().__init__(
            message or "Secret not found or expired.",
            details,
        )
