"""ORM models; importing this package registers every table on `Base.metadata`."""

from app.db.models.coupon import Coupon
from app.db.models.otp import OneTimeCode, OTPPurpose
from app.db.models.profile import Gender, Profile
from app.db.models.user import User

__all__ = ["Coupon", "Gender", "OneTimeCode", "OTPPurpose", "Profile", "User"]
