"""
RedisSecretStore — Secrets kept in Redis with native key expiry.

- ``put`` writes with ``SET NX PX`` so the record and its TTL land together.
- ``take`` uses ``GETDEL``: Redis executes it atomically, so at most one
  caller ever receives a given record.
- ``exists`` is a plain ``GET``.

Security Note:
    Only ciphertext and metadata are written to Redis. Never log values.
"""
import logging
from typing import Any, Callable, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from ..conf import LOGGER_NAME
from ..crypto import MIN_KDF_ITERATIONS
from ..exceptions import StorageError
from ..models import SecretRecord, is_valid_id
from .abstract import AbstractSecretStore

logger = logging.getLogger(LOGGER_NAME)

_MAX_PUT_ATTEMPTS = 5


class RedisSecretStore(AbstractSecretStore):
    """Store backed by an ``redis.asyncio`` client.

    Args:
        client: ``redis.asyncio.Redis`` (or compatible) client.
        prefix: Key prefix for secret records.
        clock: Callable returning epoch milliseconds.
    """

    def __init__(
        self,
        client: Any,
        prefix: str = "whisper:secret:",
        clock: Optional[Callable[[], int]] = None,
    ):
        super().__init__(clock)
        self._redis = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisSecretStore":
        return cls(aioredis.from_url(url), **kwargs)

    def _redis_key(self, secret_id: str) -> str:
        """Build Redis record key."""
        return f"{self._prefix}{secret_id}"

    async def put(
        self,
        ciphertext: str,
        ttl_ms: int,
        password_protected: bool = False,
        kdf_iterations: int = MIN_KDF_ITERATIONS,
        cipher_backend: str = "aesgcm",
    ) -> str:
        for _ in range(_MAX_PUT_ATTEMPTS):
            secret_id = self.new_id()
            record = self._new_record(
                secret_id, ciphertext, ttl_ms, password_protected,
                kdf_iterations=kdf_iterations, cipher_backend=cipher_backend,
            )
            try:
                stored = await self._redis.set(
                    self._redis_key(secret_id), record.to_bytes(),
                    px=ttl_ms, nx=True,
                )
            except RedisError as err:
                logger.error("Redis put failed: %s", type(err).__name__)
                raise StorageError("Failed to store secret") from err
            if stored:
                logger.debug("Redis store put: id=%s ttl=%s", secret_id, ttl_ms)
                return secret_id
        raise StorageError("Could not allocate a unique secret id")

    async def take(self, secret_id: str) -> Optional[SecretRecord]:
        if not is_valid_id(secret_id):
            return None
        try:
            data = await self._redis.getdel(self._redis_key(secret_id))
        except RedisError as err:
            logger.error("Redis take failed: id=%s %s", secret_id, type(err).__name__)
            raise StorageError("Failed to retrieve secret") from err
        if data is None:
            return None
        record = SecretRecord.from_bytes(data)
        if not record.is_live(self.now()):
            logger.warning("Redis store take hit expired secret: id=%s", secret_id)
            return None
        return record

    async def exists(self, secret_id: str) -> bool:
        if not is_valid_id(secret_id):
            return False
        try:
            data = await self._redis.get(self._redis_key(secret_id))
        except RedisError as err:
            raise StorageError("Failed to look up secret") from err
        if data is None:
            return False
        return SecretRecord.from_bytes(data).is_live(self.now())

    async def sweep_expired(self) -> int:
        """Delete records whose stored expiry has passed.

        Redis normally evicts them on its own; this catches clock skew
        between Redis and this process.
        """
        removed = 0
        now = self.now()
        try:
            async for key in self._redis.scan_iter(match=f"{self._prefix}*"):
                data = await self._redis.get(key)
                if data is None:
                    continue
                try:
                    record = SecretRecord.from_bytes(data)
                except StorageError:
                    logger.error("Removing corrupt secret record %s", key)
                    removed += await self._redis.delete(key)
                    continue
                if not record.is_live(now):
                    removed += await self._redis.delete(key)
        except RedisError as err:
            raise StorageError("Failed to sweep expired secrets") from err
        if removed:
            logger.info("Redis store swept %d expired secret(s)", removed)
        return removed

    async def close(self) -> None:
        try:
            await self._redis.aclose()
        except RedisError as err:
            raise StorageError("Failed to close Redis connection") from err
