from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ..core.dependencies import get_db, get_storage
from ..core.responses import ApiResponse
from ..schemas.restaurant import (
    CoverImageResponse,
    ImageDeleteResult,
    LogoResponse,
    RestaurantImageResponse,
)
from ..services.media_service import media_service
from ..services.storage_service import MediaStorage


router = APIRouter(prefix="/restaurants", tags=["Restaurant Media"])


@router.post("/{restaurant_id}/logo", response_model=ApiResponse[LogoResponse])
async def update_restaurant_logo(
    restaurant_id: int,
    logo: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
):
    """
    **Update Logo**

    Multipart upload of a single image (jpg, jpeg, png, gif or webp, up to 5MB).
    The previous logo is removed from the media store.
    """
    url = await media_service.update_logo(restaurant_id, logo, storage, db)
    return {"message": "Logo updated successfully", "data": {"logo": url}}


@router.post("/{restaurant_id}/cover", response_model=ApiResponse[CoverImageResponse])
async def update_restaurant_cover(
    restaurant_id: int,
    cover_image: UploadFile = File(..., alias="coverImage"),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
):
    """
    **Update Cover Image**

    Multipart upload under the `coverImage` field. The new cover is also
    added to the gallery.
    """
    url = await media_service.update_cover_image(restaurant_id, cover_image, storage, db)
    return {"message": "Cover image updated successfully", "data": {"cover_image": url}}


@router.post("/{restaurant_id}/images", response_model=ApiResponse[List[RestaurantImageResponse]])
async def add_gallery_images(
    restaurant_id: int,
    images: List[UploadFile] = File(...),
    caption: str = Form("gallery image"),
    is_featured: bool = Form(False, alias="isFeatured"),
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
):
    """
    **Add Gallery Images**

    Multipart upload of one or more `images` sharing a `caption` and
    `isFeatured` flag. If any upload or the save fails, the images already
    stored are removed again.
    """
    added = await media_service.add_gallery_images(restaurant_id, images, caption, is_featured, storage, db)
    return {"message": "Images added to gallery successfully.", "data": added}


@router.delete("/{restaurant_id}/images/{image_id}", response_model=ApiResponse[ImageDeleteResult])
async def delete_restaurant_image(
    restaurant_id: int,
    image_id: int,
    db: AsyncSession = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
):
    result = await media_service.delete_image(restaurant_id, image_id, storage, db)
    return {"message": "Image deleted successfully", "data": result}
