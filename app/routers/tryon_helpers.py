from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from typing import Any, Callable, Iterable, List, Optional, Sequence
from uuid import uuid4

from fastapi import Depends, HTTPException

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db import get_session
from app.schemas.catalog import OutfitOut
from app.schemas.tryon import OutfitResultOut
from app.services.catalog import Catalog, SqlCatalog, to_ref
from app.services.tryon import build_batch_store, get_synthesis_client
from app.services.tryon.errors import DecodeError
from app.services.tryon.images import ImageResolver, decode_inline_image, save_upload
from app.services.tryon.orchestrator import BatchOrchestrator
from app.services.tryon.providers.base import SynthesisClient
from app.services.tryon.stores.base import BatchStore
from app.services.tryon.types import BatchRecord, OutfitRef, OutfitResult
from workers.tasks import run_tryon_batch

logger = logging.getLogger("uvicorn.error")

Dispatcher = Callable[[str, List[OutfitRef], str, float], None]


def celery_dispatcher(batch_id: str, outfits: List[OutfitRef], user_image_path: str, item_delay_s: float) -> None:
    run_tryon_batch.apply_async(
        args=[batch_id, [asdict(o) for o in outfits], user_image_path, item_delay_s],
        queue="tryon",
    )


def get_batch_store() -> BatchStore:
    return build_batch_store()


def get_catalog(session: AsyncSession = Depends(get_session)) -> Catalog:
    return SqlCatalog(session)


def get_batch_dispatcher() -> Dispatcher:
    return celery_dispatcher


def get_synthesis() -> SynthesisClient:
    return get_synthesis_client()


def get_resolver() -> ImageResolver:
    return ImageResolver()


def get_orchestrator(
    store: BatchStore = Depends(get_batch_store),
    synthesis: SynthesisClient = Depends(get_synthesis),
    resolver: ImageResolver = Depends(get_resolver),
) -> BatchOrchestrator:
    return BatchOrchestrator(store, synthesis, resolver)


def validate_user_id(user_id: Optional[int]) -> int:
    if user_id is None:
        return settings.DEFAULT_USER_ID
    if user_id <= 0:
        raise HTTPException(status_code=400, detail="invalid_user_id")
    return int(user_id)


async def store_inline_user_image(payload: str, prefix: str) -> str:
    """Validate a base64 user photo and write it to the upload dir."""
    try:
        raw = decode_inline_image(payload, verify=True)
    except DecodeError as e:
        raise HTTPException(status_code=400, detail="invalid_image") from e
    return await asyncio.to_thread(save_upload, raw, prefix)


async def start_batch(
    *,
    store: BatchStore,
    catalog: Catalog,
    dispatch: Dispatcher,
    outfit_ids: Sequence[int],
    user_image_path: str,
    user_id: int,
    item_delay_s: float,
) -> tuple[str, list]:
    outfits = await catalog.find_outfits_by_ids(outfit_ids, active_only=True)
    if not outfits:
        raise HTTPException(status_code=404, detail="no_valid_outfits")
    return await launch_batch(
        store=store,
        dispatch=dispatch,
        outfits=outfits,
        user_image_path=user_image_path,
        user_id=user_id,
        item_delay_s=item_delay_s,
    )


async def launch_batch(
    *,
    store: BatchStore,
    dispatch: Dispatcher,
    outfits: list,
    user_image_path: str,
    user_id: int,
    item_delay_s: float,
) -> tuple[str, list]:
    batch_id = str(uuid4())
    await store.create(batch_id, len(outfits), user_image_path, user_id)
    try:
        dispatch(batch_id, [to_ref(o) for o in outfits], user_image_path, item_delay_s)
    except Exception as e:
        # no worker will ever pick this batch up; close it so pollers stop
        logger.exception("tryon:dispatch failed batch_id=%s", batch_id)
        await store.mark_failed(batch_id)
        raise HTTPException(status_code=503, detail="dispatch_failed") from e
    return batch_id, outfits


def outfit_out(outfit: Any) -> OutfitOut:
    return OutfitOut.model_validate(outfit, from_attributes=True)


async def enrich_results(catalog: Catalog, results: Iterable[OutfitResult]) -> List[OutfitResultOut]:
    results = list(results)
    ids = list(dict.fromkeys(r.outfit_id for r in results))
    outfits = {o.id: o for o in await catalog.find_outfits_by_ids(ids, active_only=False)} if ids else {}
    out: List[OutfitResultOut] = []
    for r in results:
        outfit = outfits.get(r.outfit_id)
        out.append(
            OutfitResultOut(
                id=r.outfit_id,
                outfit_id=r.outfit_id,
                result_image_url=r.result_image_url,
                status=r.status,
                task_id=r.task_id,
                processed_at=r.processed_at,
                error=r.error,
                outfit=outfit_out(outfit) if outfit is not None else None,
            )
        )
    return out


def failed_count(record: BatchRecord) -> int:
    return sum(1 for r in record.results if r.status == "failed")
