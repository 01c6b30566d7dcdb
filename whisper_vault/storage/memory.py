"""In-process secret store, used for tests and single-process deployments."""
import asyncio
import logging
from typing import Callable, Optional

from ..conf import LOGGER_NAME
from ..crypto import MIN_KDF_ITERATIONS
from ..models import SecretRecord, is_valid_id
from .abstract import AbstractSecretStore

logger = logging.getLogger(LOGGER_NAME)


class MemorySecretStore(AbstractSecretStore):
    """Secrets held in a dict of serialized records.

    Every mutation runs under one ``asyncio.Lock``, so ``take`` is
    linearizable per id.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        super().__init__(clock)
        self._records: dict[str, bytes] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def _sweep(self, now: int) -> int:
        expired = [
            secret_id for secret_id, data in self._records.items()
            if not SecretRecord.from_bytes(data).is_live(now)
        ]
        for secret_id in expired:
            del self._records[secret_id]
        return len(expired)

    async def put(
        self,
        ciphertext: str,
        ttl_ms: int,
        password_protected: bool = False,
        kdf_iterations: int = MIN_KDF_ITERATIONS,
        cipher_backend: str = "aesgcm",
    ) -> str:
        async with self._lock:
            secret_id = self.new_id()
            while secret_id in self._records:
                secret_id = self.new_id()
            record = self._new_record(
                secret_id, ciphertext, ttl_ms, password_protected,
                kdf_iterations=kdf_iterations, cipher_backend=cipher_backend,
            )
            data = record.to_bytes()
            self._sweep(record.created_at)
            self._records[secret_id] = data
        logger.debug("Memory store put: id=%s ttl=%s", secret_id, ttl_ms)
        return secret_id

    async def take(self, secret_id: str) -> Optional[SecretRecord]:
        if not is_valid_id(secret_id):
            return None
        async with self._lock:
            data = self._records.pop(secret_id, None)
        if data is None:
            return None
        record = SecretRecord.from_bytes(data)
        if not record.is_live(self.now()):
            logger.warning("Memory store take hit expired secret: id=%s", secret_id)
            return None
        return record

    async def exists(self, secret_id: str) -> bool:
        if not is_valid_id(secret_id):
            return False
        data = self._records.get(secret_id)
        if data is None:
            return False
        return SecretRecord.from_bytes(data).is_live(self.now())

    async def sweep_expired(self) -> int:
        async with self._lock:
            removed = self._sweep(self.now())
        if removed:
            logger.info("Memory store swept %d expired secret(s)", removed)
        return removed
