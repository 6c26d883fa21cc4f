from __future__ import annotations

import asyncio
import uuid
from typing import Awaitable, Callable, Protocol

from app.services.tryon.types import SynthesisResult

Sleep = Callable[[float], Awaitable[None]]


class SynthesisClient(Protocol):
    name: str

    async def run(
        self, user_image: bytes, outfit_image: bytes, cloth_type: str | None, *, outfit_id: int
    ) -> SynthesisResult:
        ...


class MockSynthesisClient:
    """Stand-in used when no FitRoom key is configured."""

    name = "mock"

    def __init__(self, delay_s: float = 2.0, sleep: Sleep = asyncio.sleep):
        self.delay_s = delay_s
        self.sleep = sleep

    async def run(
        self, user_image: bytes, outfit_image: bytes, cloth_type: str | None, *, outfit_id: int
    ) -> SynthesisResult:
        await self.sleep(self.delay_s)
        return SynthesisResult(
            task_id=str(uuid.uuid4()),
            result_image_url=f"https://picsum.photos/400/600?random={outfit_id}",
        )
