from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from app.services.tryon.errors import ITEM_ERRORS, BatchClosedError, TryOnError
from app.services.tryon.images import ImageResolver
from app.services.tryon.providers.base import Sleep, SynthesisClient
from app.services.tryon.stores.base import BatchStore
from app.services.tryon.types import BatchRecord, OutfitRef, OutfitResult

logger = logging.getLogger("tryon")


class BatchOrchestrator:
    """Runs one batch to completion, strictly one outfit at a time.

    Per-outfit failures (unreadable images, FitRoom rejections, failed or
    timed-out tasks) are recorded as failed results and the loop moves on.
    Anything else escaping the loop marks the whole batch failed.
    """

    def __init__(
        self,
        store: BatchStore,
        synthesis: SynthesisClient,
        resolver: ImageResolver,
        *,
        sleep: Sleep = asyncio.sleep,
    ):
        self.store = store
        self.synthesis = synthesis
        self.resolver = resolver
        self.sleep = sleep

    async def process_outfit(self, outfit: OutfitRef, user_image_path: str) -> OutfitResult:
        try:
            user_bytes = await asyncio.to_thread(self.resolver.resolve, user_image_path)
            outfit_bytes = await asyncio.to_thread(self.resolver.resolve, outfit.image_url)
            result = await self.synthesis.run(
                user_bytes, outfit_bytes, outfit.cloth_type, outfit_id=outfit.id
            )
        except ITEM_ERRORS as e:
            logger.warning("tryon:item failed outfit_id=%s code=%s reason=%s", outfit.id, e.code, e)
            return OutfitResult.failed(outfit.id, str(e))
        return OutfitResult.completed(outfit.id, result)

    async def run_batch(
        self,
        batch_id: str,
        outfits: Sequence[OutfitRef],
        user_image_path: str,
        *,
        item_delay_s: float = 2.0,
    ) -> Optional[BatchRecord]:
        logger.info(
            "tryon:batch start batch_id=%s outfits=%s synthesis=%s",
            batch_id,
            len(outfits),
            getattr(self.synthesis, "name", "custom"),
        )
        record: Optional[BatchRecord] = None
        try:
            for i, outfit in enumerate(outfits):
                result = await self.process_outfit(outfit, user_image_path)
                record = await self.store.update(batch_id, lambda r, res=result: r.append_result(res))
                logger.info(
                    "tryon:batch progress batch_id=%s completed=%s/%s status=%s",
                    batch_id,
                    record.completed_count,
                    record.total_outfits,
                    result.status,
                )
                if i < len(outfits) - 1:
                    await self.sleep(item_delay_s)
        except BatchClosedError as e:
            logger.warning("tryon:batch closed batch_id=%s reason=%s", batch_id, e)
            return record
        except Exception as e:
            logger.exception("tryon:batch failed batch_id=%s reason=%s", batch_id, e)
            return await self._mark_failed(batch_id)
        logger.info("tryon:batch done batch_id=%s", batch_id)
        return record

    async def _mark_failed(self, batch_id: str) -> Optional[BatchRecord]:
        try:
            await self.store.mark_failed(batch_id)
        except TryOnError as e:
            logger.error("tryon:batch mark-failed error batch_id=%s reason=%s", batch_id, e)
            return None
        try:
            return await self.store.get(batch_id)
        except TryOnError as e:
            # status is written; the record itself may still be unreadable
            logger.warning("tryon:batch unreadable after failure batch_id=%s reason=%s", batch_id, e)
            return None
