"""
SecretCoordinator — Create and reveal one-time secrets.

Provides the public API of Whisper Vault:
- ``create(message, expires_in, password)`` — encrypt, store, return a Locator
- ``access(secret_id, secret)`` — take the record, then decrypt it
- ``open(url, password)`` — access through a shared locator URL
- ``exists(secret_id)`` — non-consuming check
- ``sweep_expired()`` — drop expired records

Per secret: Unborn -> Stored -> Consumed | Expired. ``access`` removes the
record before decrypting, so a wrong password burns the secret and the
ciphertext is never left behind for offline guessing.

Security Note:
    Never log plaintext, keys, passwords or ciphertext values. Only log
    secret ids, ttls and operation names.
"""
import asyncio
import logging
from typing import Optional

from .conf import LOGGER_NAME
from .config import WhisperConfig
from .crypto import encrypt, decrypt, generate_key
from .exceptions import DecryptionError, SecretNotFound
from .models import Locator, SecretRecord, SecretRequest, is_valid_id
from .storage.abstract import AbstractSecretStore

logger = logging.getLogger(LOGGER_NAME)


class SecretCoordinator:
    """Glue between the cipher engine and a secret store.

    The coordinator is meant to run wherever the key is already held; the
    store only ever receives ciphertext.
    """

    def __init__(
        self,
        store: AbstractSecretStore,
        config: Optional[WhisperConfig] = None,
    ):
        self.store = store
        self.config = config or WhisperConfig()

    def _encrypt(self, plaintext: bytes, secret: str) -> str:
        return encrypt(
            plaintext, secret,
            iterations=self.config.kdf_iterations,
            backend=self.config.cipher_backend,
        )

    @staticmethod
    def _decrypt(record: SecretRecord, secret: str) -> bytes:
        return decrypt(
            record.ciphertext, secret,
            iterations=record.kdf_iterations,
            backend=record.cipher_backend,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def create(
        self,
        message: str,
        expires_in: Optional[int] = None,
        password: Optional[str] = None,
    ) -> Locator:
        """Encrypt and store a one-time secret.

        Args:
            message: Secret text.
            expires_in: TTL in milliseconds, one of the configured options.
            password: When given, the secret is password protected and the
                locator carries no key.

        Returns:
            Locator for the new secret.

        Raises:
            ValidationError: Before any crypto or storage work.
            EncryptionError: If encryption fails.
            StorageError: If the store rejects the record.
        """
        request = SecretRequest.build(
            self.config,
            message=message,
            expires_in=(
                self.config.default_expiration if expires_in is None else expires_in
            ),
            use_password=password is not None,
            password=password,
        )
        key = None if request.use_password else generate_key()
        blob = await asyncio.to_thread(
            self._encrypt, request.message.encode("utf-8"), request.password or key,
        )
        secret_id = await self.store.put(
            blob, request.expires_in,
            password_protected=request.use_password,
            kdf_iterations=self.config.kdf_iterations,
            cipher_backend=self.config.cipher_backend,
        )
        logger.info(
            "Secret created: id=%s ttl=%s password_protected=%s",
            secret_id, request.expires_in, request.use_password,
        )
        return Locator(id=secret_id, key=key)

    async def access(self, secret_id: str, secret: Optional[str]) -> str:
        """Reveal a secret exactly once.

        The record is removed before decryption is attempted.

        Args:
            secret_id: Id from the locator.
            secret: Key from the locator fragment, or the password.

        Returns:
            The decrypted message.

        Raises:
            SecretNotFound: Unknown, already consumed or expired.
            DecryptionError: Wrong key/password or tampered ciphertext.
            StorageError: If the store fails.
        """
        if not is_valid_id(secret_id):
            raise SecretNotFound()
        record = await self.store.take(secret_id)
        if record is None:
            logger.debug("Secret access missed: id=%s", secret_id)
            raise SecretNotFound()
        if not secret:
            logger.warning("Secret consumed without a key: id=%s", secret_id)
            raise DecryptionError()
        try:
            plaintext = await asyncio.to_thread(
                self._decrypt, record, secret,
            )
        except DecryptionError:
            logger.warning("Secret failed to decrypt and was destroyed: id=%s", secret_id)
            raise
        try:
            message = plaintext.decode("utf-8")
        except UnicodeDecodeError as err:
            raise DecryptionError() from err
        logger.debug("Secret revealed and destroyed: id=%s", secret_id)
        return message

    async def open(self, url: str, password: Optional[str] = None) -> str:
        """Reveal the secret addressed by a shared locator URL.

        The key embedded in the fragment wins over ``password``.
        """
        locator = Locator.from_url(url)
        return await self.access(locator.id, locator.key or password)

    async def exists(self, secret_id: str) -> bool:
        """Check whether a secret can still be viewed, without consuming it."""
        if not is_valid_id(secret_id):
            return False
        return await self.store.exists(secret_id)

    async def sweep_expired(self) -> int:
        return await self.store.sweep_expired()

    def share_url(self, locator: Locator) -> str:
        return locator.url(self.config.base_url)
