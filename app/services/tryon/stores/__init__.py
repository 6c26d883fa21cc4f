from app.services.tryon.stores.base import BatchStore, Mutator
from app.services.tryon.stores.in_memory import InMemoryBatchStore
from app.services.tryon.stores.sql import SqlBatchStore

__all__ = [
    "BatchStore",
    "Mutator",
    "InMemoryBatchStore",
    "SqlBatchStore",
]
