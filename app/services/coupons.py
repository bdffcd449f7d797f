"""Coupon lifecycle: CRUD, duration-based expiry, sweep and retention cleanup.

A coupon moves `active -> expired -> purged`. Expiry is flagged lazily on
reads and by the periodic sweep; both use the same conditional update so a
row is flagged once and its `expired_at` is never overwritten. Cleanup later
purges rows expired for longer than the retention window, deleting their
image assets first.
"""

import enum
import logging
import re
from datetime import datetime, timedelta
from typing import Callable, NamedTuple

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import AppError, ConflictError, NotFoundError, ServerError, ValidationError
from app.db.base import utcnow
from app.db.models.coupon import Coupon
from app.schemas.coupon import CouponFields, CouponStats, ImageUpload
from app.services.storage import AssetStore, StoredAsset

logger = logging.getLogger(__name__)


class DurationShape(str, enum.Enum):
    HOURS_MINUTES = "hours_minutes"
    HOURS = "hours"
    MINUTES = "minutes"
    # Anything else adds no time, so the coupon is due for expiry immediately
    UNRECOGNIZED = "unrecognized"


class ParsedDuration(NamedTuple):
    shape: DurationShape
    minutes: int


_DURATION_PATTERNS = (
    (DurationShape.HOURS_MINUTES, re.compile(r"^(\d+)\s*hrs?\s+(\d+)\s*mins?$", re.IGNORECASE)),
    (DurationShape.HOURS, re.compile(r"^(\d+)\s*hrs?$", re.IGNORECASE)),
    (DurationShape.MINUTES, re.compile(r"^(\d+)\s*mins?$", re.IGNORECASE)),
)


def parse_duration(text: str | None) -> ParsedDuration:
    """Parse "2hrs 30min", "3hrs" or "45min" style durations into minutes."""

    value = (text or "").strip()
    for shape, pattern in _DURATION_PATTERNS:
        match = pattern.match(value)
        if match is None:
            continue
        if shape is DurationShape.HOURS_MINUTES:
            return ParsedDuration(shape, int(match.group(1)) * 60 + int(match.group(2)))
        if shape is DurationShape.HOURS:
            return ParsedDuration(shape, int(match.group(1)) * 60)
        return ParsedDuration(shape, int(match.group(1)))
    return ParsedDuration(DurationShape.UNRECOGNIZED, 0)


def compute_expires_at(base: datetime, duration: str | None) -> datetime:
    return base + timedelta(minutes=parse_duration(duration).minutes)


REQUIRED_FIELDS = ("brand_name", "coupon_id", "audience", "duration")

_FIELD_LABELS = {
    "brand_name": "brandName",
    "coupon_id": "couponId",
    "bogo": "bogo",
    "discount": "discount",
    "audience": "audience",
    "duration": "duration",
}


def check_field_lengths(fields: CouponFields) -> None:
    """Reject values longer than their column allows."""
    for name, label in _FIELD_LABELS.items():
        value = getattr(fields, name)
        limit = Coupon.__table__.c[name].type.length
        if value is not None and len(value) > limit:
            raise ValidationError(f"{label} must be at most {limit} characters")


class CouponService:
    """Coupon operations over an injected session.

    `asset_store` is optional; without it, requests carrying an image are
    rejected. `clock` supplies "now" for every expiry decision.
    """

    def __init__(
        self,
        session: AsyncSession,
        asset_store: AssetStore | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.asset_store = asset_store
        self.clock = clock

    # -----------------------
    # Asset helpers
    # -----------------------
    async def _upload(self, image: ImageUpload | None, name_hint: str | None) -> StoredAsset | None:
        if image is None:
            return None
        if self.asset_store is None:
            raise ValidationError("Image uploads are not enabled")
        try:
            return await self.asset_store.upload(
                image.content,
                max_bytes=settings.COUPON_IMAGE_MAX_BYTES,
                allowed_types=settings.COUPON_IMAGE_ALLOWED_TYPES,
                content_type=image.content_type,
                name_hint=name_hint,
            )
        except AppError:
            raise
        except Exception as exc:
            logger.error("coupon_image_upload_failed", extra={"error": str(exc)})
            raise ServerError("Failed to upload image")

    async def _discard_asset(self, asset_id: str | None) -> None:
        """Best-effort asset deletion; failures are logged and never raised."""
        if not asset_id or self.asset_store is None:
            return
        try:
            await self.asset_store.delete(asset_id)
        except Exception as exc:
            logger.warning("coupon_image_delete_failed", extra={"asset_id": asset_id, "error": str(exc)})

    # -----------------------
    # Store helpers
    # -----------------------
    async def _find(self, coupon_id: str) -> Coupon | None:
        return await self.session.scalar(
            select(Coupon).where(Coupon.coupon_id == coupon_id).execution_options(populate_existing=True)
        )

    async def _commit(self, event: str, message: str, **context) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error(event, extra={**context, "error": str(exc)})
            raise ServerError(message)

    async def _flag_expired(self, now: datetime, coupon_id: str | None = None) -> int:
        stmt = (
            update(Coupon)
            .where(Coupon.is_expired.is_(False), Coupon.expires_at <= now)
            .values(is_expired=True, expired_at=now)
            .execution_options(synchronize_session=False)
        )
        if coupon_id is not None:
            stmt = stmt.where(Coupon.coupon_id == coupon_id)
        result = await self.session.execute(stmt)
        await self._commit("coupon_expiry_flag_failed", "Failed to update coupon expiry")
        return result.rowcount or 0

    # -----------------------
    # Lifecycle passes
    # -----------------------
    async def sweep(self, now: datetime | None = None) -> int:
        """Flag every coupon whose expiry has passed; returns how many were flagged."""
        flagged = await self._flag_expired(now or self.clock())
        if flagged:
            logger.info("coupons_expired", extra={"count": flagged})
        return flagged

    async def cleanup(self, now: datetime | None = None, retention_days: int | None = None) -> int:
        """Purge coupons expired for longer than the retention window, assets first."""

        now = now or self.clock()
        retention = settings.COUPON_RETENTION_DAYS if retention_days is None else retention_days
        cutoff = now - timedelta(days=retention)
        stale = (
            await self.session.scalars(
                select(Coupon).where(Coupon.is_expired.is_(True), Coupon.expired_at < cutoff)
            )
        ).all()
        for coupon in stale:
            await self._discard_asset(coupon.image_asset_id)
            await self.session.delete(coupon)
        if stale:
            await self._commit("coupon_cleanup_failed", "Failed to purge expired coupons")
            logger.info("coupons_purged", extra={"count": len(stale)})
        return len(stale)

    # -----------------------
    # CRUD
    # -----------------------
    async def create(self, fields: CouponFields, image: ImageUpload | None = None) -> Coupon:
        asset = await self._upload(image, fields.coupon_id)

        if not all(getattr(fields, name) for name in REQUIRED_FIELDS):
            await self._discard_asset(asset.asset_id if asset else None)
            raise ValidationError("Missing required fields")

        try:
            check_field_lengths(fields)
        except ValidationError:
            await self._discard_asset(asset.asset_id if asset else None)
            raise

        if await self._find(fields.coupon_id) is not None:
            await self._discard_asset(asset.asset_id if asset else None)
            raise ConflictError("Coupon ID already exists")

        now = self.clock()
        coupon = Coupon(
            coupon_id=fields.coupon_id,
            brand_name=fields.brand_name,
            bogo=fields.bogo or None,
            discount=fields.discount or None,
            audience=fields.audience,
            duration=fields.duration,
            image_url=asset.url if asset else None,
            image_asset_id=asset.asset_id if asset else None,
            expires_at=compute_expires_at(now, fields.duration),
            is_expired=False,
            created_at=now,
            updated_at=now,
        )
        self.session.add(coupon)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            await self._discard_asset(asset.asset_id if asset else None)
            raise ConflictError("Coupon ID already exists")
        except SQLAlchemyError as exc:
            await self.session.rollback()
            await self._discard_asset(asset.asset_id if asset else None)
            logger.error("coupon_create_failed", extra={"coupon_id": fields.coupon_id, "error": str(exc)})
            raise ServerError("Failed to create coupon")
        await self.session.refresh(coupon)

        logger.info("coupon_created", extra={"coupon_id": coupon.coupon_id, "expires_at": coupon.expires_at})
        return coupon

    async def update(self, coupon_id: str, fields: CouponFields, image: ImageUpload | None = None) -> Coupon:
        """Apply the supplied fields.

        Only fields that are not None are written; an empty string counts as
        supplied. A supplied duration re-arms the coupon from the update time.
        """

        coupon = await self._find(coupon_id)
        if coupon is None:
            raise NotFoundError("Coupon not found")
        check_field_lengths(fields)

        asset = await self._upload(image, coupon_id)
        now = self.clock()

        for name in ("brand_name", "bogo", "discount", "audience"):
            value = getattr(fields, name)
            if value is not None:
                setattr(coupon, name, value)

        if fields.duration is not None:
            coupon.duration = fields.duration
            coupon.expires_at = compute_expires_at(now, fields.duration)
            coupon.is_expired = False
            coupon.expired_at = None

        replaced_asset_id = None
        if asset is not None:
            replaced_asset_id = coupon.image_asset_id
            coupon.image_url = asset.url
            coupon.image_asset_id = asset.asset_id
        coupon.updated_at = now

        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            await self._discard_asset(asset.asset_id if asset else None)
            logger.error("coupon_update_failed", extra={"coupon_id": coupon_id, "error": str(exc)})
            raise ServerError("Failed to update coupon")

        # The old image goes only once the row points at the new one
        await self._discard_asset(replaced_asset_id)
        await self.session.refresh(coupon)
        return coupon

    async def delete(self, coupon_id: str) -> Coupon:
        """Hard-delete immediately, skipping the soft-expired stage."""

        coupon = await self._find(coupon_id)
        if coupon is None:
            raise NotFoundError("Coupon not found")

        await self._discard_asset(coupon.image_asset_id)
        await self.session.delete(coupon)
        await self._commit("coupon_delete_failed", "Failed to delete coupon", coupon_id=coupon_id)
        logger.info("coupon_deleted", extra={"coupon_id": coupon_id})
        return coupon

    async def get_by_id(self, coupon_id: str) -> Coupon:
        await self._flag_expired(self.clock(), coupon_id=coupon_id)
        coupon = await self._find(coupon_id)
        if coupon is None:
            raise NotFoundError("Coupon not found")
        return coupon

    async def list_all(self) -> list[Coupon]:
        await self.sweep()
        result = await self.session.scalars(
            select(Coupon)
            .order_by(Coupon.created_at.desc(), Coupon.id.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.all())

    async def list_active(self) -> list[Coupon]:
        await self.sweep()
        result = await self.session.scalars(
            select(Coupon)
            .where(Coupon.is_expired.is_(False))
            .order_by(Coupon.created_at.desc(), Coupon.id.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.all())

    async def stats(self) -> CouponStats:
        await self.sweep()
        row = (
            await self.session.execute(
                select(
                    func.count(Coupon.id),
                    func.coalesce(func.sum(case((Coupon.is_expired.is_(False), 1), else_=0)), 0),
                    func.coalesce(func.sum(case((Coupon.is_expired.is_(True), 1), else_=0)), 0),
                )
            )
        ).one()
        total, active, expired = row
        return CouponStats(total=int(total), active=int(active), expired=int(expired))
