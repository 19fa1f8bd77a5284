"""AI endpoints.

All three are stubs that keep the request/response contract of the real
features: they hand back the uploaded (or given) image unchanged and say so in
``meta.note``.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from pydantic import Field

from lookmate.core.config import settings
from lookmate.schemas.common import BodyType, CamelModel, Gender
from lookmate.storage.uploads import store_image_upload

router = APIRouter(prefix="/ai", tags=["ai"])
logger = logging.getLogger("uvicorn.error")


class AvatarMeta(CamelModel):
    height: Optional[float] = None
    body_type: Optional[str] = None
    gender: Optional[str] = None
    model_version: str
    note: str


class AvatarOut(CamelModel):
    avatar_url: str
    meta: AvatarMeta


class RemoveBackgroundMeta(CamelModel):
    original_size: int
    processed_at: str
    note: str


class RemoveBackgroundOut(CamelModel):
    image_url: str
    meta: RemoveBackgroundMeta


class TryOnIn(CamelModel):
    avatar_image_url: str = Field(min_length=1)
    clothing_image_urls: List[str] = Field(min_length=1)
    pose: Optional[str] = None


class TryOnMeta(CamelModel):
    avatar_url: str
    clothing_count: int
    pose: str
    model_version: str
    processed_at: str
    note: str


class TryOnOut(CamelModel):
    try_on_image_url: str
    meta: TryOnMeta


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.post("/avatar", response_model=AvatarOut)
async def generate_avatar(
    request: Request,
    faceImage: UploadFile = File(...),
    height: Optional[float] = Form(None),
    bodyType: Optional[BodyType] = Form(None),
    gender: Optional[Gender] = Form(None),
):
    stored = await store_image_upload(request, faceImage, "avatars")
    logger.info(
        "ai: avatar request file=%s size=%.2fKB height=%s body_type=%s gender=%s",
        stored.filename, stored.size / 1024, height, bodyType, gender,
    )
    return AvatarOut(
        avatar_url=stored.url,
        meta=AvatarMeta(
            height=height,
            body_type=bodyType,
            gender=gender,
            model_version=settings.AI_STUB_MODEL_VERSION,
            note="STUB: Using uploaded face image. Integrate AI model for real avatar generation.",
        ),
    )


@router.post("/remove-background", response_model=RemoveBackgroundOut)
async def remove_background(request: Request, clothImage: UploadFile = File(...)):
    stored = await store_image_upload(request, clothImage, "clothes")
    logger.info("ai: remove-background file=%s type=%s", stored.filename, stored.content_type)
    return RemoveBackgroundOut(
        image_url=stored.url,
        meta=RemoveBackgroundMeta(
            original_size=stored.size,
            processed_at=_now_iso(),
            note="STUB: Using original image. Integrate background removal API/model for actual processing.",
        ),
    )


@router.post("/try-on", response_model=TryOnOut)
async def try_on(body: TryOnIn):
    if any(not url for url in body.clothing_image_urls):
        raise HTTPException(status_code=400, detail="clothing_image_urls_required")
    pose = body.pose or "default"
    logger.info("ai: try-on clothing_count=%d pose=%s", len(body.clothing_image_urls), pose)
    return TryOnOut(
        try_on_image_url=body.avatar_image_url,
        meta=TryOnMeta(
            avatar_url=body.avatar_image_url,
            clothing_count=len(body.clothing_image_urls),
            pose=pose,
            model_version=settings.AI_STUB_MODEL_VERSION,
            processed_at=_now_iso(),
            note="STUB: Returning original avatar. Integrate virtual try-on AI model for actual garment transfer.",
        ),
    )
