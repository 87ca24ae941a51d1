"""
Database layer — dialog session persistence.

Quick start:
  from database import InMemoryDialogStateStore
  store = InMemoryDialogStateStore()
  state = await store.load("conv-1")
"""
from database.store_base import BaseDialogStateStore
from database.store_memory import InMemoryDialogStateStore

__all__ = [
    "BaseDialogStateStore",
    "InMemoryDialogStateStore",
]
