"""Standalone image upload for the post editor."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from inkwell.auth import current_admin_user
from inkwell.models.user import User
from inkwell.services.storage import ImageValidationError, save_upload
from inkwell.utils.responses import envelope

router = APIRouter(prefix="/api/upload", tags=["upload"])


@router.post("/image")
async def upload_image(
    image: UploadFile | None = File(None),
    _: User = Depends(current_admin_user),
):
    if image is None or not image.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")
    try:
        stored = await save_upload(image)
    except ImageValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return envelope(
        "Image uploaded successfully",
        {"url": stored.url, "publicId": stored.public_id},
    )
