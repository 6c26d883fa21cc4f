from __future__ import annotations

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.models import BatchTryOnResult
from app.services.tryon.errors import BatchNotFoundError
from app.services.tryon.stores.base import Mutator
from app.services.tryon.types import BatchRecord, dump_results, load_results


def _to_record(row: BatchTryOnResult) -> BatchRecord:
    return BatchRecord(
        batch_id=row.batch_id,
        user_id=row.user_id,
        user_image_path=row.user_image_path,
        total_outfits=row.total_outfits,
        completed_count=row.completed_count,
        status=row.status,
        results=load_results(row.results),
    )


class SqlBatchStore:
    """Batch records in `batch_try_on_result`; updates hold a row lock for the read-modify-write."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create(
        self, batch_id: str, total_outfits: int, user_image_path: str, user_id: Optional[int]
    ) -> BatchRecord:
        async with self.session_factory() as session:
            row = BatchTryOnResult(
                batch_id=batch_id,
                user_id=user_id,
                user_image_path=user_image_path,
                total_outfits=total_outfits,
                completed_count=0,
                status="processing",
                results="[]",
            )
            session.add(row)
            await session.commit()
            return _to_record(row)

    async def get(self, batch_id: str) -> BatchRecord:
        async with self.session_factory() as session:
            res = await session.execute(
                select(BatchTryOnResult).where(BatchTryOnResult.batch_id == batch_id)
            )
            row = res.scalar_one_or_none()
            if row is None:
                raise BatchNotFoundError(batch_id)
            return _to_record(row)

    async def update(self, batch_id: str, mutate: Mutator) -> BatchRecord:
        async with self.session_factory() as session:
            async with session.begin():
                res = await session.execute(
                    select(BatchTryOnResult)
                    .where(BatchTryOnResult.batch_id == batch_id)
                    .with_for_update()
                )
                row = res.scalar_one_or_none()
                if row is None:
                    raise BatchNotFoundError(batch_id)
                record = _to_record(row)
                mutate(record)
                row.completed_count = record.completed_count
                row.status = record.status
                row.results = dump_results(record.results)
            return record

    async def mark_failed(self, batch_id: str) -> None:
        # status column only; the results blob may be the reason we are failing
        async with self.session_factory() as session:
            async with session.begin():
                res = await session.execute(
                    update(BatchTryOnResult)
                    .where(
                        BatchTryOnResult.batch_id == batch_id,
                        BatchTryOnResult.status == "processing",
                    )
                    .values(status="failed")
                )
                if res.rowcount == 0:
                    exists = await session.execute(
                        select(BatchTryOnResult.id).where(BatchTryOnResult.batch_id == batch_id)
                    )
                    if exists.scalar_one_or_none() is None:
                        raise BatchNotFoundError(batch_id)
