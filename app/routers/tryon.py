import asyncio
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db import get_session
from app.models.models import TryOnResult
from app.routers.tryon_helpers import (
    Dispatcher,
    enrich_results,
    failed_count,
    get_batch_dispatcher,
    get_batch_store,
    get_catalog,
    get_orchestrator,
    launch_batch,
    outfit_out,
    start_batch,
    store_inline_user_image,
    validate_user_id,
)
from app.schemas.tryon import (
    AISuggestionIn,
    BatchProgress,
    BatchResultsOut,
    BatchStartOut,
    BatchStatusOut,
    BatchSummary,
    MultipleBatchStatusOut,
    MultipleTryOnIn,
    ResultsPagination,
    SingleTryOnIn,
    SingleTryOnOut,
    SuggestionStatusOut,
    TryOnStartIn,
)
from app.services.catalog import Catalog, to_ref
from app.services.tryon.errors import BatchNotFoundError, OrchestrationError
from app.services.tryon.images import save_upload
from app.services.tryon.orchestrator import BatchOrchestrator
from app.services.tryon.stores.base import BatchStore
from app.services.tryon.types import BatchRecord

router = APIRouter(prefix="/tryon", tags=["tryon"])
logger = logging.getLogger("uvicorn.error")


async def _load_batch(store: BatchStore, batch_id: str) -> BatchRecord:
    try:
        return await store.get(batch_id)
    except BatchNotFoundError as e:
        raise HTTPException(status_code=404, detail="batch_not_found") from e
    except OrchestrationError as e:
        logger.error("tryon:batch unreadable batch_id=%s reason=%s", batch_id, e)
        raise HTTPException(status_code=500, detail="batch_unreadable") from e


@router.post("/start", response_model=BatchStartOut)
async def start_try_on(
    payload: TryOnStartIn,
    store: BatchStore = Depends(get_batch_store),
    catalog: Catalog = Depends(get_catalog),
    dispatch: Dispatcher = Depends(get_batch_dispatcher),
):
    user_id = validate_user_id(payload.user_id)
    if payload.user_image_base64:
        user_image_path = await store_inline_user_image(payload.user_image_base64, "user")
    elif payload.user_image_path:
        user_image_path = payload.user_image_path
    else:
        raise HTTPException(status_code=400, detail="user_image_required")
    if not payload.selected_outfit_ids:
        raise HTTPException(status_code=400, detail="outfits_required")

    batch_id, outfits = await start_batch(
        store=store,
        catalog=catalog,
        dispatch=dispatch,
        outfit_ids=payload.selected_outfit_ids,
        user_image_path=user_image_path,
        user_id=user_id,
        item_delay_s=settings.TRYON_ITEM_DELAY_S,
    )
    logger.info("tryon:start batch_id=%s outfits=%s user_id=%s", batch_id, len(outfits), user_id)
    return BatchStartOut(batch_id=batch_id, total_outfits=len(outfits), message="Try-on process started")


@router.post("/upload-and-start-base64", response_model=BatchStartOut)
async def upload_and_start_base64(
    payload: TryOnStartIn,
    store: BatchStore = Depends(get_batch_store),
    catalog: Catalog = Depends(get_catalog),
    dispatch: Dispatcher = Depends(get_batch_dispatcher),
):
    user_id = validate_user_id(payload.user_id)
    if not payload.user_image_base64:
        raise HTTPException(status_code=400, detail="user_image_required")
    if not payload.selected_outfit_ids:
        raise HTTPException(status_code=400, detail="outfits_required")
    user_image_path = await store_inline_user_image(payload.user_image_base64, "user")

    batch_id, outfits = await start_batch(
        store=store,
        catalog=catalog,
        dispatch=dispatch,
        outfit_ids=payload.selected_outfit_ids,
        user_image_path=user_image_path,
        user_id=user_id,
        item_delay_s=settings.TRYON_ITEM_DELAY_S,
    )
    return BatchStartOut(
        batch_id=batch_id,
        total_outfits=len(outfits),
        message="Try-on process started (base64 processing)",
        user_image_path=user_image_path,
    )


@router.post("/upload-and-start", response_model=BatchStartOut)
async def upload_and_start(
    user_photo: Optional[UploadFile] = File(None, alias="userPhoto"),
    user_image_base64: Optional[str] = Form(None, alias="userImageBase64"),
    selected_outfit_ids: Optional[str] = Form(None, alias="selectedOutfitIds"),
    user_id: Optional[int] = Form(None, alias="userId"),
    store: BatchStore = Depends(get_batch_store),
    catalog: Catalog = Depends(get_catalog),
    dispatch: Dispatcher = Depends(get_batch_dispatcher),
):
    uid = validate_user_id(user_id)
    if user_photo is not None:
        user_image_path = await asyncio.to_thread(save_upload, await user_photo.read(), "user")
    elif user_image_base64:
        user_image_path = await store_inline_user_image(user_image_base64, "user")
    else:
        raise HTTPException(status_code=400, detail="user_image_required")

    try:
        outfit_ids = json.loads(selected_outfit_ids) if selected_outfit_ids else []
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail="invalid_outfit_ids") from e
    if not isinstance(outfit_ids, list) or not all(isinstance(i, int) for i in outfit_ids):
        raise HTTPException(status_code=400, detail="invalid_outfit_ids")
    if not outfit_ids:
        raise HTTPException(status_code=400, detail="outfits_required")

    batch_id, outfits = await start_batch(
        store=store,
        catalog=catalog,
        dispatch=dispatch,
        outfit_ids=outfit_ids,
        user_image_path=user_image_path,
        user_id=uid,
        item_delay_s=settings.TRYON_ITEM_DELAY_S,
    )
    return BatchStartOut(
        batch_id=batch_id,
        total_outfits=len(outfits),
        message="Try-on process started (individual processing)",
        user_image_path=user_image_path,
    )


@router.post("/multiple", response_model=BatchStartOut)
async def multiple_try_on(
    payload: MultipleTryOnIn,
    store: BatchStore = Depends(get_batch_store),
    catalog: Catalog = Depends(get_catalog),
    dispatch: Dispatcher = Depends(get_batch_dispatcher),
):
    if not payload.captured_image or not payload.outfit_ids:
        raise HTTPException(status_code=400, detail="image_and_outfits_required")
    user_id = validate_user_id(payload.user_id)
    outfits = await catalog.find_outfits_by_ids(payload.outfit_ids, active_only=True)
    if not outfits:
        raise HTTPException(status_code=404, detail="no_valid_outfits")
    user_image_path = await store_inline_user_image(payload.captured_image, "multiple")

    batch_id, outfits = await launch_batch(
        store=store,
        dispatch=dispatch,
        outfits=outfits,
        user_image_path=user_image_path,
        user_id=user_id,
        item_delay_s=settings.TRYON_ITEM_DELAY_S,
    )
    return BatchStartOut(
        batch_id=batch_id,
        total_outfits=len(outfits),
        message="Multiple outfits try-on started",
        selected_outfits=[outfit_out(o) for o in outfits],
    )


@router.post("/ai-suggestion", response_model=BatchStartOut)
async def ai_suggestion(
    payload: AISuggestionIn,
    store: BatchStore = Depends(get_batch_store),
    catalog: Catalog = Depends(get_catalog),
    dispatch: Dispatcher = Depends(get_batch_dispatcher),
):
    if not payload.captured_image or not payload.gender or not payload.category:
        raise HTTPException(status_code=400, detail="image_gender_category_required")
    user_id = validate_user_id(payload.user_id)
    category = await catalog.find_category(payload.gender, payload.category)
    if category is None:
        raise HTTPException(status_code=404, detail="category_not_found")
    outfits = await catalog.random_outfits(category.id, settings.TRYON_SUGGESTION_SIZE)
    if not outfits:
        raise HTTPException(status_code=404, detail="no_outfits_in_category")
    user_image_path = await store_inline_user_image(payload.captured_image, "ai-suggestion")

    batch_id, outfits = await launch_batch(
        store=store,
        dispatch=dispatch,
        outfits=outfits,
        user_image_path=user_image_path,
        user_id=user_id,
        item_delay_s=settings.TRYON_SUGGESTION_DELAY_S,
    )
    return BatchStartOut(batch_id=batch_id, total_outfits=len(outfits), message="AI suggestion processing started")


@router.post("/single", response_model=SingleTryOnOut)
async def single_try_on(
    payload: SingleTryOnIn,
    catalog: Catalog = Depends(get_catalog),
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
    session: AsyncSession = Depends(get_session),
):
    if not payload.captured_image or not payload.outfit_id:
        raise HTTPException(status_code=400, detail="image_and_outfit_required")
    user_id = validate_user_id(payload.user_id)
    outfit = await catalog.get_outfit(payload.outfit_id, active_only=True)
    if outfit is None:
        raise HTTPException(status_code=404, detail="outfit_not_found")
    user_image_path = await store_inline_user_image(payload.captured_image, "user-single")

    result = await orchestrator.process_outfit(to_ref(outfit), user_image_path)
    session.add(
        TryOnResult(
            user_id=user_id,
            outfit_id=outfit.id,
            result_image_url=result.result_image_url or "",
            task_id=result.task_id,
        )
    )
    await session.commit()
    return SingleTryOnOut(
        outfit_id=outfit.id,
        result_image_url=result.result_image_url,
        status=result.status,
        task_id=result.task_id,
        error=result.error,
        outfit=outfit_out(outfit),
    )


@router.get("/results/{batch_id}", response_model=BatchResultsOut)
async def get_try_on_results(
    batch_id: str,
    offset: int = Query(0, ge=0),
    limit: int = Query(5, ge=1, le=100),
    store: BatchStore = Depends(get_batch_store),
    catalog: Catalog = Depends(get_catalog),
):
    record = await _load_batch(store, batch_id)
    window = record.results[offset : offset + limit]
    total = len(record.results)
    return BatchResultsOut(
        results=await enrich_results(catalog, window),
        pagination=ResultsPagination(offset=offset, limit=limit, total=total, has_more=offset + limit < total),
        batch=BatchSummary(
            batch_id=record.batch_id,
            status=record.status,
            total_outfits=record.total_outfits,
            completed_count=record.completed_count,
        ),
    )


@router.get("/status/{batch_id}", response_model=BatchStatusOut)
async def get_batch_status(batch_id: str, store: BatchStore = Depends(get_batch_store)):
    record = await _load_batch(store, batch_id)
    return BatchStatusOut(
        batch_id=record.batch_id,
        status=record.status,
        progress=BatchProgress(
            completed=record.completed_count,
            total=record.total_outfits,
            percentage=record.percentage,
        ),
        available_results=len(record.results),
    )


@router.get("/ai-suggestion-status/{batch_id}", response_model=SuggestionStatusOut)
async def get_ai_suggestion_status(
    batch_id: str,
    store: BatchStore = Depends(get_batch_store),
    catalog: Catalog = Depends(get_catalog),
):
    record = await _load_batch(store, batch_id)
    return SuggestionStatusOut(
        batch_id=record.batch_id,
        results=await enrich_results(catalog, record.results),
        total_processed=record.completed_count,
        total_outfits=record.total_outfits,
        is_complete=record.is_complete,
        has_more=record.completed_count < record.total_outfits,
    )


@router.get("/batch-status/{batch_id}", response_model=MultipleBatchStatusOut)
async def get_multiple_batch_status(
    batch_id: str,
    store: BatchStore = Depends(get_batch_store),
    catalog: Catalog = Depends(get_catalog),
):
    record = await _load_batch(store, batch_id)
    failed = failed_count(record)
    return MultipleBatchStatusOut(
        batch_id=record.batch_id,
        status=record.status,
        total_outfits=record.total_outfits,
        completed_count=len(record.results) - failed,
        failed_count=failed,
        results=await enrich_results(catalog, record.results),
        is_complete=record.is_complete,
    )
