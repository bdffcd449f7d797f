from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class Coupon(TimestampMixin, Base):
    """Promotional coupon.

    `expires_at` is authoritative; `is_expired`/`expired_at` cache the
    transition and are only ever set by a conditional update (see
    `CouponService.sweep`), or cleared when an update re-arms the coupon.
    """

    __tablename__ = "coupons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    coupon_id: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    brand_name: Mapped[str] = mapped_column(String(100), nullable=False)
    bogo: Mapped[str | None] = mapped_column(String(100))
    discount: Mapped[str | None] = mapped_column(String(50))
    audience: Mapped[str] = mapped_column(String(50), nullable=False)
    duration: Mapped[str] = mapped_column(String(50), nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(512))
    image_asset_id: Mapped[str | None] = mapped_column(String(255))
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)
    is_expired: Mapped[bool] = mapped_column(Boolean, default=False, index=True, nullable=False)
    expired_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
