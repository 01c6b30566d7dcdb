"""
Secret Store contract.

A store maps secret ids to encrypted records and offers exactly one way to
read them: ``take()``, which returns and removes the record in a single
indivisible step. ``exists()`` is a read-only check that never consumes.

Security Note:
    Stores only ever see ciphertext and metadata. Never log ciphertext.
"""
import time
import secrets
from abc import ABC, abstractmethod
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from ..crypto import MIN_KDF_ITERATIONS
from ..exceptions import ValidationError
from ..models import SecretRecord

ID_BYTES = 16  # 128-bit ids


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class AbstractSecretStore(ABC):
    """Keyed store of :class:`SecretRecord` with expiry.

    Args:
        clock: Callable returning the current time in epoch milliseconds.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or now_ms

    def now(self) -> int:
        return self._clock()

    @staticmethod
    def new_id() -> str:
        return secrets.token_urlsafe(ID_BYTES)

    def _new_record(
        self,
        secret_id: str,
        ciphertext: str,
        ttl_ms: int,
        password_protected: bool,
        kdf_iterations: int = MIN_KDF_ITERATIONS,
        cipher_backend: str = "aesgcm",
    ) -> SecretRecord:
        if not isinstance(ttl_ms, int) or isinstance(ttl_ms, bool) or ttl_ms <= 0:
            raise ValidationError("ttl_ms must be a positive integer")
        now = self.now()
        try:
            return SecretRecord(
                id=secret_id,
                ciphertext=ciphertext,
                created_at=now,
                expires_at=now + ttl_ms,
                password_protected=password_protected,
                kdf_iterations=kdf_iterations,
                cipher_backend=cipher_backend,
            )
        except PydanticValidationError as err:
            raise ValidationError(
                "Invalid secret record parameters",
                details="; ".join(e["msg"] for e in err.errors()),
            ) from None

    @abstractmethod
    async def put(
        self,
        ciphertext: str,
        ttl_ms: int,
        password_protected: bool = False,
        kdf_iterations: int = MIN_KDF_ITERATIONS,
        cipher_backend: str = "aesgcm",
    ) -> str:
        """Persist a new record expiring ``ttl_ms`` from now; return its id.

        ``kdf_iterations`` and ``cipher_backend`` record how the ciphertext
        was produced.

        Expired records are swept opportunistically.

        Raises:
            ValidationError: If ``ttl_ms`` is not positive.
            StorageError: If the record could not be persisted; nothing
                is left behind in that case.
        """

    @abstractmethod
    async def take(self, secret_id: str) -> Optional[SecretRecord]:
        """Atomically return and remove a live record.

        Returns ``None`` when the id is unknown or expired; an expired
        record found on the way is removed.
        """

    @abstractmethod
    async def exists(self, secret_id: str) -> bool:
        """Return True iff a live record for ``secret_id`` is present."""

    @abstractmethod
    async def sweep_expired(self) -> int:
        """Remove every record with ``expires_at <= now``; return the count."""

    async def close(self) -> None:
        """Release backend resources."""
        return None

    async def __aenter__(self) -> "AbstractSecretStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
