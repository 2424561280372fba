"""
Session Storage Providers.

Plug-and-play persistence backends for step-based interview sessions.
The backend is chosen by SESSION_STORAGE_BACKEND ("memory" or "mongodb").
"""
from typing import Optional

from oracle.core.config import get_settings
from oracle.providers.session_storage.base import SessionStorageProvider
from oracle.providers.session_storage.memory_provider import MemorySessionStorage
from oracle.providers.session_storage.mongo_provider import MongoSessionStorage

# Default provider instance (lazy loaded)
_default_provider: Optional[SessionStorageProvider] = None


def get_session_storage() -> SessionStorageProvider:
    """
    Get the configured session storage provider.
    """
    global _default_provider
    if _default_provider is None:
        if get_settings().uses_mongodb:
            _default_provider = MongoSessionStorage()
        else:
            _default_provider = MemorySessionStorage()
    return _default_provider


def set_session_storage(provider: Optional[SessionStorageProvider]) -> None:
    """
    Set a custom session storage provider.

    Useful for testing. Passing None re-reads configuration on next access.
    """
    global _default_provider
    _default_provider = provider


__all__ = [
    "SessionStorageProvider",
    "MemorySessionStorage",
    "MongoSessionStorage",
    "get_session_storage",
    "set_session_storage",
]
