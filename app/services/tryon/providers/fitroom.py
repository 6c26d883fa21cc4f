from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

import requests

from app.services.tryon.errors import RemoteSubmitError, RemoteTaskFailed, RemoteTimeoutError
from app.services.tryon.garments import map_cloth_type
from app.services.tryon.providers.base import Sleep
from app.services.tryon.types import SynthesisResult

logger = logging.getLogger("tryon")

_COMPLETED = {"completed", "COMPLETED"}
_FAILED = {"failed", "FAILED"}


def _json_body(resp: Any) -> dict:
    # gateways can answer 2xx with an html page or a bare list
    try:
        body = resp.json()
    except ValueError as e:
        raise RemoteSubmitError(resp.status_code) from e
    if not isinstance(body, dict):
        raise RemoteSubmitError(resp.status_code)
    return body


class FitRoomClient:
    """FitRoom v2 task API: submit a multipart job, then poll it to a terminal state."""

    name = "fitroom"

    def __init__(
        self,
        api_key: str,
        base_url: str,
        *,
        poll_interval_s: float = 2.0,
        max_attempts: int = 30,
        timeout_s: float = 30.0,
        http: Optional[Any] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.poll_interval_s = poll_interval_s
        self.max_attempts = max_attempts
        self.timeout_s = timeout_s
        self.http = http or requests.Session()
        self.sleep = sleep

    def _headers(self) -> dict:
        return {"X-API-KEY": self.api_key}

    async def submit(self, user_image: bytes, outfit_image: bytes, cloth_type: str | None) -> str:
        files = {
            "model_image": ("user.jpg", user_image, "image/jpeg"),
            "cloth_image": ("outfit.jpg", outfit_image, "image/jpeg"),
        }
        data = {"cloth_type": map_cloth_type(cloth_type)}
        try:
            resp = await asyncio.to_thread(
                self.http.post,
                self.base_url,
                files=files,
                data=data,
                headers=self._headers(),
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            logger.warning("tryon:fitroom submit error reason=%s", e)
            raise RemoteSubmitError(None) from e
        if not 200 <= resp.status_code < 300:
            logger.warning("tryon:fitroom submit rejected status=%s", resp.status_code)
            raise RemoteSubmitError(resp.status_code)
        task_id = _json_body(resp).get("task_id")
        if not task_id:
            raise RemoteSubmitError(resp.status_code)
        logger.info("tryon:fitroom submitted task_id=%s cloth_type=%s", task_id, data["cloth_type"])
        return str(task_id)

    async def poll(self, task_id: str) -> str:
        url = f"{self.base_url}/{task_id}"
        for attempt in range(self.max_attempts):
            try:
                resp = await asyncio.to_thread(
                    self.http.get, url, headers=self._headers(), timeout=self.timeout_s
                )
            except requests.RequestException as e:
                raise RemoteSubmitError(None) from e
            if not 200 <= resp.status_code < 300:
                raise RemoteSubmitError(resp.status_code)
            body = _json_body(resp)
            status = body.get("status")
            if status in _COMPLETED:
                return body.get("download_signed_url")
            if status in _FAILED:
                raise RemoteTaskFailed(body.get("reason") or "Unknown reason")
            if attempt < self.max_attempts - 1:
                await self.sleep(self.poll_interval_s)
        logger.warning("tryon:fitroom poll exhausted task_id=%s attempts=%s", task_id, self.max_attempts)
        raise RemoteTimeoutError(self.max_attempts)

    async def run(
        self, user_image: bytes, outfit_image: bytes, cloth_type: str | None, *, outfit_id: int
    ) -> SynthesisResult:
        start = time.perf_counter()
        task_id = await self.submit(user_image, outfit_image, cloth_type)
        url = await self.poll(task_id)
        logger.info(
            "tryon:fitroom done outfit_id=%s task_id=%s latency_ms=%d",
            outfit_id,
            task_id,
            (time.perf_counter() - start) * 1000,
        )
        return SynthesisResult(task_id=task_id, result_image_url=url)
