"""Shared fixtures for the Whisper Vault test-suite."""
import pytest

from whisper_vault.config import WhisperConfig
from whisper_vault.coordinator import SecretCoordinator
from whisper_vault.storage import MemorySecretStore, FileSecretStore


class FakeClock:
    """Manually driven millisecond clock."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    """A FakeClock pinned to a fixed instant."""
    return FakeClock()


@pytest.fixture
def config():
    """Default configuration with a test base URL."""
    return WhisperConfig(base_url="https://whisper.example/")


@pytest.fixture
def memory_store(clock):
    """An empty in-memory store on the fake clock."""
    return MemorySecretStore(clock=clock)


@pytest.fixture
def file_store(tmp_path, clock):
    """An empty file store under tmp_path on the fake clock."""
    return FileSecretStore(tmp_path / "secrets.json", clock=clock)


@pytest.fixture
def coordinator(memory_store, config):
    """A coordinator over the in-memory store."""
    return SecretCoordinator(memory_store, config)
