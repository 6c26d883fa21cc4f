from __future__ import annotations

from typing import Callable, Optional, Protocol

from app.services.tryon.types import BatchRecord

Mutator = Callable[[BatchRecord], None]


class BatchStore(Protocol):
    async def create(
        self, batch_id: str, total_outfits: int, user_image_path: str, user_id: Optional[int]
    ) -> BatchRecord:
        ...

    async def get(self, batch_id: str) -> BatchRecord:
        ...

    async def update(self, batch_id: str, mutate: Mutator) -> BatchRecord:
        """Apply `mutate` to the current persisted record atomically per batch id."""
        ...

    async def mark_failed(self, batch_id: str) -> None:
        """Flip a processing batch to failed without reading its results."""
        ...
