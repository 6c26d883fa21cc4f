from __future__ import annotations

import base64
import binascii
import io
import logging
import os
import re
import secrets
import time
from pathlib import Path
from typing import Any, List, Optional

import requests
from PIL import Image, UnidentifiedImageError

from app.core.config import settings
from app.services.tryon.errors import DecodeError, FetchError, ImageNotFoundError

logger = logging.getLogger("tryon")

_DATA_URL_RE = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,")


def is_inline(reference: str) -> bool:
    return reference.startswith("data:image/")


def is_remote(reference: str) -> bool:
    return reference.startswith("http://") or reference.startswith("https://")


def decode_inline_image(payload: str, *, verify: bool = False) -> bytes:
    """Decode a `data:image/...;base64,` payload (or bare base64) into bytes.

    With `verify`, the bytes must also open as an image in Pillow.
    """
    if not payload or not isinstance(payload, str):
        raise DecodeError("Invalid base64 image format")
    if payload.startswith("data:image/") and not _DATA_URL_RE.match(payload):
        raise DecodeError("Invalid base64 image format")
    body = _DATA_URL_RE.sub("", payload, count=1).strip()
    if not body:
        raise DecodeError("Invalid base64 image format")
    try:
        raw = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError("Invalid base64 image format") from e
    if verify:
        try:
            with Image.open(io.BytesIO(raw)) as im:
                im.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise DecodeError("Invalid base64 image format") from e
    return raw


def save_upload(data: bytes, prefix: str, upload_dir: Optional[str] = None) -> str:
    """Write user image bytes under the upload dir and return the file path."""
    root = Path(upload_dir or settings.UPLOAD_DIR)
    root.mkdir(parents=True, exist_ok=True)
    name = f"{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(3)}.jpg"
    path = root / name
    path.write_bytes(data)
    return str(path)


class ImageResolver:
    """Turns an image reference (inline payload, URL or path) into raw bytes."""

    def __init__(
        self,
        *,
        public_dir: Optional[str] = None,
        catalog_dir: Optional[str] = None,
        upload_dir: Optional[str] = None,
        project_dir: Optional[str] = None,
        http: Optional[Any] = None,
        timeout_s: Optional[float] = None,
    ):
        self.public_dir = Path(public_dir or settings.PUBLIC_DIR)
        self.catalog_dir = Path(catalog_dir or settings.CATALOG_DATA_DIR)
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)
        self.project_dir = Path(project_dir or settings.PROJECT_DIR)
        self.http = http or requests
        self.timeout_s = timeout_s or settings.TRYON_HTTP_TIMEOUT_S

    def resolve(self, reference: str) -> bytes:
        if not reference:
            raise ImageNotFoundError("Image reference is empty")
        if is_inline(reference):
            return decode_inline_image(reference)
        if is_remote(reference):
            return self._fetch(reference)
        return self._read_local(reference)

    def candidates(self, reference: str) -> List[Path]:
        stripped = reference.lstrip("/")
        catalog_rel = reference.replace("/images/", "", 1).lstrip("/")
        paths = [
            self.public_dir / stripped,
            self.catalog_dir / catalog_rel,
            self.upload_dir / os.path.basename(reference),
            self.project_dir / stripped,
        ]
        # catalog urls like /images/... look absolute but live under the roots
        if os.path.isabs(reference):
            paths.insert(0, Path(reference))
        return paths

    def _read_local(self, reference: str) -> bytes:
        for path in self.candidates(reference):
            if path.is_file():
                return path.read_bytes()
        raise ImageNotFoundError(f"Image not found: {reference}")

    def _fetch(self, url: str) -> bytes:
        try:
            resp = self.http.get(url, timeout=self.timeout_s)
        except requests.RequestException as e:
            logger.warning("tryon:image fetch failed url=%s reason=%s", url, e)
            raise FetchError(f"Image fetch failed: {url}") from e
        if not 200 <= resp.status_code < 300:
            raise FetchError(f"Image fetch failed: {url} ({resp.status_code})")
        return resp.content
