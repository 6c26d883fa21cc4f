from __future__ import annotations

import asyncio
from typing import Dict, Optional

from app.services.tryon.errors import BatchNotFoundError, ValidationError
from app.services.tryon.stores.base import Mutator
from app.services.tryon.types import BatchRecord


class InMemoryBatchStore:
    """Process-local store; each batch id gets its own lock."""

    def __init__(self) -> None:
        self._records: Dict[str, BatchRecord] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    async def create(
        self, batch_id: str, total_outfits: int, user_image_path: str, user_id: Optional[int]
    ) -> BatchRecord:
        if batch_id in self._records:
            raise ValidationError(f"batch {batch_id} already exists", code="batch_exists")
        record = BatchRecord(
            batch_id=batch_id,
            user_id=user_id,
            user_image_path=user_image_path,
            total_outfits=total_outfits,
        )
        self._records[batch_id] = record
        self._locks[batch_id] = asyncio.Lock()
        return record.model_copy(deep=True)

    async def get(self, batch_id: str) -> BatchRecord:
        record = self._records.get(batch_id)
        if record is None:
            raise BatchNotFoundError(batch_id)
        return record.model_copy(deep=True)

    async def update(self, batch_id: str, mutate: Mutator) -> BatchRecord:
        lock = self._locks.get(batch_id)
        if lock is None:
            raise BatchNotFoundError(batch_id)
        async with lock:
            # Mutate a copy so a failing mutator leaves the stored record untouched.
            working = self._records[batch_id].model_copy(deep=True)
            mutate(working)
            self._records[batch_id] = working
            return working.model_copy(deep=True)

    async def mark_failed(self, batch_id: str) -> None:
        lock = self._locks.get(batch_id)
        if lock is None:
            raise BatchNotFoundError(batch_id)
        async with lock:
            self._records[batch_id].mark_failed()
