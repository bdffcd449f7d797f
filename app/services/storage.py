"""Binary asset storage for coupon images.

`AssetStore` is the capability the coupon service depends on; the default
`LocalAssetStore` writes under `settings.MEDIA_ROOT`, which the application
serves at `settings.MEDIA_URL_PREFIX`.
"""

import logging
import uuid
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Protocol, Sequence

import anyio
from PIL import Image, UnidentifiedImageError

from app.core.config import settings
from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


@dataclass(frozen=True)
class StoredAsset:
    url: str
    asset_id: str


class AssetStore(Protocol):
    async def upload(
        self,
        content: bytes,
        *,
        max_bytes: int,
        allowed_types: Sequence[str],
        content_type: str | None = None,
        name_hint: str | None = None,
    ) -> StoredAsset: ...

    async def delete(self, asset_id: str) -> None: ...


def detect_image_mime(content: bytes) -> str | None:
    """Identify the image type from its bytes rather than the client's claim."""
    try:
        with Image.open(BytesIO(content)) as img:
            image_format = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, ValueError):
        return None

    return {
        "JPEG": "image/jpeg",
        "PNG": "image/png",
        "WEBP": "image/webp",
        "GIF": "image/gif",
    }.get((image_format or "").upper())


def validate_image(content: bytes, max_bytes: int, allowed_types: Sequence[str], content_type: str | None) -> str:
    if not content:
        raise ValidationError("Empty file")
    if len(content) > max_bytes:
        raise ValidationError("File too large")
    if content_type and content_type not in allowed_types:
        raise ValidationError("Only image files are allowed (jpeg, jpg, png, gif, webp)")
    sniffed = detect_image_mime(content)
    if sniffed is None or sniffed not in allowed_types:
        raise ValidationError("Only image files are allowed (jpeg, jpg, png, gif, webp)")
    return sniffed


def _safe_stem(name_hint: str | None) -> str:
    stem = "".join(ch for ch in (name_hint or "") if ch.isalnum() or ch in "-_")[:40]
    return stem or "asset"


class LocalAssetStore:
    """Stores assets as files under `root/folder`; the asset id is the relative path."""

    def __init__(self, root: str | Path | None = None, url_prefix: str | None = None, folder: str = "coupons"):
        self.root = Path(root or settings.MEDIA_ROOT).resolve()
        self.url_prefix = (url_prefix or settings.MEDIA_URL_PREFIX).rstrip("/")
        self.folder = folder

    def _path_for(self, asset_id: str) -> Path:
        path = (self.root / asset_id).resolve()
        path.relative_to(self.root)
        return path

    async def upload(
        self,
        content: bytes,
        *,
        max_bytes: int,
        allowed_types: Sequence[str],
        content_type: str | None = None,
        name_hint: str | None = None,
    ) -> StoredAsset:
        mime = validate_image(content, max_bytes, allowed_types, content_type)
        asset_id = f"{self.folder}/{_safe_stem(name_hint)}_{uuid.uuid4().hex}{_EXTENSIONS[mime]}"
        destination = self._path_for(asset_id)

        def _write() -> None:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(content)

        await anyio.to_thread.run_sync(_write)
        logger.info("asset_uploaded", extra={"asset_id": asset_id, "bytes": len(content)})
        return StoredAsset(url=f"{self.url_prefix}/{asset_id}", asset_id=asset_id)

    async def delete(self, asset_id: str) -> None:
        path = self._path_for(asset_id)
        await anyio.to_thread.run_sync(lambda: path.unlink(missing_ok=True))
        logger.info("asset_deleted", extra={"asset_id": asset_id})
