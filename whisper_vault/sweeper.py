"""Background task that removes expired secrets on a fixed interval."""
import asyncio
import logging
from typing import Optional

from .conf import LOGGER_NAME
from .config import WhisperConfig
from .exceptions import StorageError
from .storage.abstract import AbstractSecretStore

logger = logging.getLogger(LOGGER_NAME)


class ExpirySweeper:
    """Run ``store.sweep_expired()`` every ``interval`` seconds.

    Usage:
        async with ExpirySweeper.from_config(store, config):
            ...
    """

    def __init__(self, store: AbstractSecretStore, interval: float = 60.0):
        if interval <= 0:
            raise ValueError("Sweep interval must be positive")
        self.store = store
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(
        cls,
        store: AbstractSecretStore,
        config: WhisperConfig,
    ) -> "ExpirySweeper":
        """Build a sweeper running every ``config.sweep_interval`` seconds."""
        return cls(store, interval=config.sweep_interval)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep_once(self) -> int:
        try:
            return await self.store.sweep_expired()
        except StorageError as err:
            logger.error("Expiry sweep failed: %s", err.message)
            return 0

    async def _run(self) -> None:
        while True:
            try:
                await self.sweep_once()
            except Exception:
                logger.exception("Unexpected error during expiry sweep")
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="whisper-expiry-sweeper")
        logger.info("Expiry sweeper started (interval=%ss)", self.interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Expiry sweeper ended with an error")
        logger.info("Expiry sweeper stopped")

    async def __aenter__(self) -> "ExpirySweeper":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
