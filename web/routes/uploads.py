"""Image upload routes for UTM Connect web application."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, File, UploadFile

from utm_connect.repositories import User
from utm_connect.services import UploadService
from web.dependencies import get_current_user, get_upload_service

router = APIRouter(prefix="/api/uploads", tags=["uploads"])


@router.post("/avatar")
async def upload_avatar(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    upload_service: UploadService = Depends(get_upload_service),
) -> Dict[str, Any]:
    """Upload an image and make it the caller's primary photo."""
    data = await file.read()
    return await upload_service.upload_avatar(current_user.id, data, file.content_type)


@router.post("/post/{post_id}")
async def upload_post_image(
    post_id: str,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    upload_service: UploadService = Depends(get_upload_service),
) -> Dict[str, Any]:
    data = await file.read()
    return await upload_service.upload_post_image(
        current_user.id, post_id, data, file.content_type
    )


@router.get("/gallery/{user_id}")
async def get_gallery(
    user_id: str, upload_service: UploadService = Depends(get_upload_service)
) -> Dict[str, Any]:
    return await upload_service.get_gallery(user_id)


@router.delete("/{filename}")
async def delete_image(
    filename: str,
    current_user: User = Depends(get_current_user),
    upload_service: UploadService = Depends(get_upload_service),
) -> Dict[str, Any]:
    return await upload_service.delete_image(current_user.id, filename)
