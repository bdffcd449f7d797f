"""Test doubles and small builders shared across the suite."""

import re
from datetime import datetime, timedelta, timezone
from io import BytesIO

from PIL import Image

from app.services.storage import StoredAsset, validate_image


class FakeClock:
    """Settable clock injected wherever services read "now"."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingMailer:
    def __init__(self, succeed: bool = True):
        self.sent: list[tuple[str, str, str]] = []
        self.succeed = succeed

    async def __call__(self, to: str, subject: str, html_body: str) -> bool:
        self.sent.append((to, subject, html_body))
        return self.succeed

    def last_code(self) -> str:
        match = re.search(r"\b(\d{6})\b", self.sent[-1][2])
        assert match, "no code in the last email"
        return match.group(1)


class InMemoryAssetStore:
    def __init__(self):
        self.assets: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_deletes = False
        self._counter = 0

    async def upload(self, content, *, max_bytes, allowed_types, content_type=None, name_hint=None):
        validate_image(content, max_bytes, allowed_types, content_type)
        self._counter += 1
        asset_id = f"coupons/{name_hint or 'asset'}_{self._counter}"
        self.assets[asset_id] = content
        return StoredAsset(url=f"https://assets.test/{asset_id}", asset_id=asset_id)

    async def delete(self, asset_id: str) -> None:
        self.deleted.append(asset_id)
        if self.fail_deletes:
            raise RuntimeError("asset store unavailable")
        self.assets.pop(asset_id, None)


def png_bytes(size: tuple[int, int] = (2, 2)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color=(255, 0, 0)).save(buf, format="PNG")
    return buf.getvalue()


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
