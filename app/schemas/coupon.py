"""Schemas for coupon payloads and responses."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import ConfigDict

from app.schemas.common import CamelModel


@dataclass
class CouponFields:
    """Form fields of a coupon create/update; None means "not supplied"."""

    brand_name: Optional[str] = None
    coupon_id: Optional[str] = None
    bogo: Optional[str] = None
    discount: Optional[str] = None
    audience: Optional[str] = None
    duration: Optional[str] = None


@dataclass
class ImageUpload:
    """Raw image part of a multipart request."""

    content: bytes
    content_type: Optional[str]
    filename: Optional[str] = None


class CouponRead(CamelModel):
    id: int
    coupon_id: str
    brand_name: str
    bogo: Optional[str] = None
    discount: Optional[str] = None
    audience: str
    duration: str
    image_url: Optional[str] = None
    expires_at: datetime
    is_expired: bool
    expired_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CouponStats(CamelModel):
    total: int
    active: int
    expired: int


class CouponDeletedResponse(CamelModel):
    message: str
    coupon: CouponRead
