"""
Record Store Package

The async RecordStore protocol and its in-memory and JSON-file implementations.
"""

from .base import PersistedRange, RecordStore, RegistrySnapshot, StoreError
from .json_store import JsonRecordStore
from .memory import InMemoryRecordStore

__all__ = [
    "InMemoryRecordStore",
    "JsonRecordStore",
    "PersistedRange",
    "RecordStore",
    "RegistrySnapshot",
    "StoreError",
]
