"""Secret Store backends."""

from .abstract import AbstractSecretStore, now_ms
from .memory import MemorySecretStore
from .file import FileSecretStore

__all__ = [
    "AbstractSecretStore",
    "MemorySecretStore",
    "FileSecretStore",
    "now_ms",
]
