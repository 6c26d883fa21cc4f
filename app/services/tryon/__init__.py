from __future__ import annotations

import logging

from app.core.config import settings
from app.services.tryon.images import ImageResolver
from app.services.tryon.orchestrator import BatchOrchestrator
from app.services.tryon.providers.base import MockSynthesisClient, SynthesisClient
from app.services.tryon.providers.fitroom import FitRoomClient
from app.services.tryon.stores import BatchStore, InMemoryBatchStore, SqlBatchStore

logger = logging.getLogger("tryon")

_synthesis: SynthesisClient | None = None
_memory_store: InMemoryBatchStore | None = None


def build_synthesis_client() -> SynthesisClient:
    if settings.mock_mode:
        logger.warning("tryon: FITROOM_API_KEY not set, using mock synthesis")
        return MockSynthesisClient(delay_s=settings.TRYON_MOCK_DELAY_S)
    return FitRoomClient(
        settings.FITROOM_API_KEY,
        settings.FITROOM_API_URL,
        poll_interval_s=settings.TRYON_POLL_INTERVAL_S,
        max_attempts=settings.TRYON_POLL_MAX_ATTEMPTS,
        timeout_s=settings.TRYON_HTTP_TIMEOUT_S,
    )


def get_synthesis_client() -> SynthesisClient:
    global _synthesis
    if _synthesis is None:
        _synthesis = build_synthesis_client()
    return _synthesis


def build_batch_store(session_factory=None) -> BatchStore:
    global _memory_store
    if (settings.BATCH_STORE or "sql").lower() == "memory":
        if _memory_store is None:
            _memory_store = InMemoryBatchStore()
        return _memory_store
    if session_factory is None:
        from app.core.db import SessionLocal

        session_factory = SessionLocal
    return SqlBatchStore(session_factory)


def build_orchestrator(store: BatchStore, synthesis: SynthesisClient | None = None) -> BatchOrchestrator:
    return BatchOrchestrator(store, synthesis or get_synthesis_client(), ImageResolver())


__all__ = [
    "BatchOrchestrator",
    "ImageResolver",
    "build_batch_store",
    "build_orchestrator",
    "get_synthesis_client",
]
