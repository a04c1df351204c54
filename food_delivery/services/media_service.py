import logging
from typing import Dict, List

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import BadRequestException, NotFoundException
from ..models import Restaurant, RestaurantImage
from .restaurant_service import remove_media, restaurant_service
from .storage_service import MediaStorage


logger = logging.getLogger(__name__)


class MediaService:
    """
    Restaurant logo, cover image and gallery.

    Uploads happen before the database write. When the write fails the
    uploaded assets are removed again on a best-effort basis and the original
    error is re-raised.
    """

    async def _commit_or_discard(self, uploaded: List[Dict[str, str]], storage: MediaStorage, db: AsyncSession) -> None:
        try:
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.error("Saving media failed, discarding %s uploaded assets", len(uploaded))
            await remove_media(storage, [asset["public_id"] for asset in uploaded])
            raise

    async def update_logo(self, restaurant_id: int, file: UploadFile, storage: MediaStorage, db: AsyncSession) -> str:
        restaurant = await restaurant_service.get_restaurant_by_id(restaurant_id, db)
        previous = restaurant.logo_public_id

        logo = await storage.upload(file, f"restaurants/{restaurant_id}/logo")
        restaurant.logo = logo["url"]
        restaurant.logo_public_id = logo["public_id"]
        await self._commit_or_discard([logo], storage, db)

        if previous:
            await remove_media(storage, [previous])
        return restaurant.logo

    async def update_cover_image(self, restaurant_id: int, file: UploadFile, storage: MediaStorage, db: AsyncSession) -> str:
        """
        Replace the cover image. The new cover is also added to the gallery.
        """
        restaurant = await restaurant_service.get_restaurant_by_id(restaurant_id, db)
        previous = restaurant.cover_image_public_id

        cover = await storage.upload(file, f"restaurants/{restaurant_id}/cover")
        restaurant.cover_image = cover["url"]
        restaurant.cover_image_public_id = cover["public_id"]
        restaurant.images.append(
            RestaurantImage(url=cover["url"], caption="Restaurant Cover", public_id=cover["public_id"])
        )
        await self._commit_or_discard([cover], storage, db)

        # the previous cover may still be referenced from the gallery
        if previous and previous not in {image.public_id for image in restaurant.images}:
            await remove_media(storage, [previous])
        return restaurant.cover_image

    async def add_gallery_images(
        self,
        restaurant_id: int,
        files: List[UploadFile],
        caption: str,
        is_featured: bool,
        storage: MediaStorage,
        db: AsyncSession,
    ) -> List[RestaurantImage]:
        if not files:
            raise BadRequestException("Gallery images are required")

        restaurant = await restaurant_service.get_restaurant_by_id(restaurant_id, db)

        uploaded = []
        try:
            for file in files:
                uploaded.append(await storage.upload(file, f"restaurants/{restaurant_id}/gallery"))
        except Exception:
            await remove_media(storage, [asset["public_id"] for asset in uploaded])
            raise

        new_images = [
            RestaurantImage(url=asset["url"], caption=caption, is_featured=is_featured, public_id=asset["public_id"])
            for asset in uploaded
        ]
        restaurant.images.extend(new_images)
        await self._commit_or_discard(uploaded, storage, db)

        logger.info("Added %s gallery images to restaurant %s", len(new_images), restaurant_id)
        return new_images

    async def delete_image(self, restaurant_id: int, image_id: int, storage: MediaStorage, db: AsyncSession) -> Dict[str, int]:
        restaurant: Restaurant = await restaurant_service.get_restaurant_by_id(restaurant_id, db)

        image = next((image for image in restaurant.images if image.id == image_id), None)
        if image is None:
            raise NotFoundException("Image not found in restaurant")

        public_id = image.public_id
        restaurant.images.remove(image)
        if restaurant.cover_image_public_id == public_id:
            restaurant.cover_image = None
            restaurant.cover_image_public_id = None
        await db.commit()

        if public_id:
            await remove_media(storage, [public_id])
        return {"deleted_id": image_id, "remaining_images": len(restaurant.images)}


media_service = MediaService()
