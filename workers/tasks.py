from .celery_app import celery
import asyncio
import logging

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from app.core.config import settings
from app.services.tryon import build_batch_store, build_orchestrator
from app.services.tryon.types import OutfitRef

logger = logging.getLogger("tryon")


@celery.task(name="tasks.run_tryon_batch")
def run_tryon_batch(batch_id: str, outfits: list[dict], user_image_path: str, item_delay_s: float) -> dict:
    """Process every outfit of a batch sequentially and persist progress after each one."""

    async def _run() -> dict:
        engine = create_async_engine(settings.DATABASE_URL, echo=False)
        Session = async_sessionmaker(engine, expire_on_commit=False)
        try:
            store = build_batch_store(Session)
            orchestrator = build_orchestrator(store)
            refs = [OutfitRef(**o) for o in outfits]
            record = await orchestrator.run_batch(batch_id, refs, user_image_path, item_delay_s=item_delay_s)
        except Exception as e:
            logger.exception("tryon:task failed batch_id=%s", batch_id)
            return {"ok": False, "batch_id": batch_id, "error": str(e)}
        finally:
            await engine.dispose()
        if record is None:
            return {"ok": False, "batch_id": batch_id, "error": "batch_not_updated"}
        return {
            "ok": record.status != "failed",
            "batch_id": batch_id,
            "status": record.status,
            "completed": record.completed_count,
        }

    return asyncio.run(_run())
