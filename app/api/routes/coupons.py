"""Coupon endpoints. Create and update accept multipart forms with an optional `image` file."""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status

from app.api import deps
from app.schemas.coupon import CouponDeletedResponse, CouponFields, CouponRead, CouponStats, ImageUpload
from app.services.coupons import CouponService

router = APIRouter(prefix="/api/coupons", tags=["coupons"])


async def _read_image(image: Optional[UploadFile]) -> Optional[ImageUpload]:
    # Browsers send an empty part when no file was chosen
    if image is None or not image.filename:
        return None
    content = await image.read()
    return ImageUpload(content=content, content_type=image.content_type, filename=image.filename)


async def coupon_form(
    request: Request,
    brand_name: Optional[str] = Form(None, alias="brandName"),
    coupon_code: Optional[str] = Form(None, alias="couponId"),
    bogo: Optional[str] = Form(None),
    discount: Optional[str] = Form(None),
    audience: Optional[str] = Form(None),
    duration: Optional[str] = Form(None),
) -> CouponFields:
    """Collect the coupon form fields.

    FastAPI reports an empty form value as missing; the raw form tells the
    two apart so an update can clear a field with "".
    """

    form = await request.form()
    values = {
        "brandName": brand_name,
        "couponId": coupon_code,
        "bogo": bogo,
        "discount": discount,
        "audience": audience,
        "duration": duration,
    }
    for key, value in values.items():
        if value is None and form.get(key) == "":
            values[key] = ""

    return CouponFields(
        brand_name=values["brandName"],
        coupon_id=values["couponId"],
        bogo=values["bogo"],
        discount=values["discount"],
        audience=values["audience"],
        duration=values["duration"],
    )


@router.get("", response_model=List[CouponRead])
async def list_coupons(coupon_service: CouponService = Depends(deps.get_coupon_service)):
    """All coupons, newest first, with expiry flags refreshed."""
    return await coupon_service.list_all()


@router.get("/active", response_model=List[CouponRead])
async def list_active_coupons(coupon_service: CouponService = Depends(deps.get_coupon_service)):
    return await coupon_service.list_active()


@router.get("/stats", response_model=CouponStats)
async def coupon_stats(coupon_service: CouponService = Depends(deps.get_coupon_service)) -> CouponStats:
    return await coupon_service.stats()


@router.get("/{coupon_id}", response_model=CouponRead)
async def get_coupon(coupon_id: str, coupon_service: CouponService = Depends(deps.get_coupon_service)):
    return await coupon_service.get_by_id(coupon_id)


@router.post("", response_model=CouponRead, status_code=status.HTTP_201_CREATED)
async def create_coupon(
    fields: CouponFields = Depends(coupon_form),
    image: Optional[UploadFile] = File(None),
    coupon_service: CouponService = Depends(deps.get_coupon_service),
):
    return await coupon_service.create(fields, await _read_image(image))


@router.put("/{coupon_id}", response_model=CouponRead)
async def update_coupon(
    coupon_id: str,
    fields: CouponFields = Depends(coupon_form),
    image: Optional[UploadFile] = File(None),
    coupon_service: CouponService = Depends(deps.get_coupon_service),
):
    return await coupon_service.update(coupon_id, fields, await _read_image(image))


@router.delete("/{coupon_id}", response_model=CouponDeletedResponse)
async def delete_coupon(
    coupon_id: str,
    coupon_service: CouponService = Depends(deps.get_coupon_service),
) -> CouponDeletedResponse:
    coupon = await coupon_service.delete(coupon_id)
    return CouponDeletedResponse(message="Coupon deleted successfully", coupon=CouponRead.model_validate(coupon))
