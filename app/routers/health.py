from datetime import datetime, timezone

from fastapi import APIRouter

from app.core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {
        "status": "OK",
        "message": f"{settings.APP_NAME} is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "mock_mode": settings.mock_mode,
    }
