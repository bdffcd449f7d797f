from app.api.routes.auth import router as auth_router
from app.api.routes.coupons import router as coupon_router
from app.api.routes.profile import router as profile_router

__all__ = ["auth_router", "coupon_router", "profile_router"]
