"""
FileSecretStore — Secrets persisted as one JSON document on local disk.

The document maps secret id to record. Every mutation rewrites it through a
temporary file that atomically replaces the previous version, so a failed
write leaves the old document untouched.

Only one process may own a given file.
"""
import os
import asyncio
import logging
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional, Union

import orjson
from pydantic import ValidationError as PydanticValidationError

from ..conf import LOGGER_NAME
from ..crypto import MIN_KDF_ITERATIONS
from ..exceptions import StorageError
from ..models import SecretRecord, is_valid_id
from .abstract import AbstractSecretStore

logger = logging.getLogger(LOGGER_NAME)


class FileSecretStore(AbstractSecretStore):
    """Durable single-process store backed by a JSON file."""

    def __init__(
        self,
        path: Union[str, Path],
        clock: Optional[Callable[[], int]] = None,
    ):
        super().__init__(clock)
        self.path = Path(path)
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Disk helpers (run in a worker thread)
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, SecretRecord]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as err:
            raise StorageError(f"Cannot read secret store {self.path}") from err
        if not raw.strip():
            return {}
        try:
            document: Any = orjson.loads(raw)
            if not isinstance(document, dict):
                raise StorageError(f"Secret store {self.path} is corrupt")
            return {
                secret_id: SecretRecord.model_validate(item)
                for secret_id, item in document.items()
            }
        except (orjson.JSONDecodeError, PydanticValidationError) as err:
            raise StorageError(f"Secret store {self.path} is corrupt") from err

    def _save(self, records: dict[str, SecretRecord]) -> None:
        document = {
            secret_id: record.model_dump()
            for secret_id, record in records.items()
        }
        directory = self.path.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=directory,
            )
            with os.fdopen(fd, "wb") as fp:
                fp.write(orjson.dumps(document))
                fp.flush()
                os.fsync(fp.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except (OSError, TypeError) as err:
            raise StorageError(f"Cannot write secret store {self.path}") from err
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning("Could not remove temporary file %s", tmp_name)

    @staticmethod
    def _live(records: dict[str, SecretRecord], now: int) -> dict[str, SecretRecord]:
        return {k: v for k, v in records.items() if v.is_live(now)}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def put(
        self,
        ciphertext: str,
        ttl_ms: int,
        password_protected: bool = False,
        kdf_iterations: int = MIN_KDF_ITERATIONS,
        cipher_backend: str = "aesgcm",
    ) -> str:
        async with self._lock:
            records = await asyncio.to_thread(self._load)
            secret_id = self.new_id()
            while secret_id in records:
                secret_id = self.new_id()
            record = self._new_record(
                secret_id, ciphertext, ttl_ms, password_protected,
                kdf_iterations=kdf_iterations, cipher_backend=cipher_backend,
            )
            records = self._live(records, record.created_at)
            records[secret_id] = record
            await asyncio.to_thread(self._save, records)
        logger.debug("File store put: id=%s ttl=%s", secret_id, ttl_ms)
        return secret_id

    async def take(self, secret_id: str) -> Optional[SecretRecord]:
        if not is_valid_id(secret_id):
            return None
        async with self._lock:
            records = await asyncio.to_thread(self._load)
            record = records.pop(secret_id, None)
            if record is None:
                return None
            await asyncio.to_thread(self._save, records)
        if not record.is_live(self.now()):
            logger.warning("File store take hit expired secret: id=%s", secret_id)
            return None
        return record

    async def exists(self, secret_id: str) -> bool:
        if not is_valid_id(secret_id):
            return False
        records = await asyncio.to_thread(self._load)
        record = records.get(secret_id)
        return record is not None and record.is_live(self.now())

    async def sweep_expired(self) -> int:
        async with self._lock:
            records = await asyncio.to_thread(self._load)
            live = self._live(records, self.now())
            removed = len(records) - len(live)
            if removed:
                await asyncio.to_thread(self._save, live)
        if removed:
            logger.info("File store swept %d expired secret(s)", removed)
        return removed
