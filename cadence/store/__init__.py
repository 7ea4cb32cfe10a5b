"""Storage backend package."""

from cadence.store.base import LogStore, StoreError
from cadence.store.lake import LakeLogStore
from cadence.store.memory import InMemoryLogStore

__all__ = [
    "LogStore",
    "StoreError",
    "InMemoryLogStore",
    "LakeLogStore",
]
