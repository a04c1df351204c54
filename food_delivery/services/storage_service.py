import asyncio
import logging
import uuid
from pathlib import Path
from typing import Dict, Optional

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from ..core.config import Config
from ..exceptions import BadRequestException, MediaUploadFailedException


logger = logging.getLogger(__name__)


class MediaStorage:
    """
    Local-disk object store for restaurant media.

    Assets are addressed by a public id of the form ``<folder>/<uuid><ext>``
    and served from ``base_url``. Every store operation is bounded by
    ``timeout`` seconds.
    """

    allowed_extensions = {".jpg", ".jpeg", ".png", ".gif", ".webp"}

    def __init__(
        self,
        root: Optional[str] = None,
        base_url: Optional[str] = None,
        max_file_size: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.root = Path(root or Config.MEDIA_ROOT)
        self.base_url = (base_url or Config.MEDIA_BASE_URL).rstrip("/")
        self.max_file_size = max_file_size or Config.MEDIA_MAX_FILE_SIZE
        self.timeout = timeout or Config.MEDIA_TIMEOUT_SECONDS
        self.root.mkdir(parents=True, exist_ok=True)

    def _validate_image_file(self, file: UploadFile) -> str:
        """Validate uploaded image file and return its extension"""
        if not file.filename:
            raise BadRequestException("No filename provided")

        file_ext = Path(file.filename).suffix.lower()
        if file_ext not in self.allowed_extensions:
            raise BadRequestException(
                f"Invalid file type. Allowed: {', '.join(sorted(self.allowed_extensions))}"
            )

        if not file.content_type or not file.content_type.startswith("image/"):
            raise BadRequestException("File must be an image")

        return file_ext

    def _path_for(self, public_id: str) -> Path:
        path = (self.root / public_id).resolve()
        if self.root.resolve() not in path.parents:
            raise BadRequestException("Invalid asset id")
        return path

    def url_for(self, public_id: str) -> str:
        return f"{self.base_url}/{public_id}"

    async def _write(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(content)

    async def upload(self, file: UploadFile, folder: str) -> Dict[str, str]:
        """
        Save an uploaded image under the given folder.

        Args:
            file: The uploaded file
            folder: The subfolder, e.g. 'restaurants/12/logo'

        Returns:
            dict: ``url`` to serve the asset from and ``public_id`` to delete it by

        Raises:
            BadRequestException: the file is not an allowed image or is too large
            MediaUploadFailedException: the write failed or timed out
        """
        file_ext = self._validate_image_file(file)

        content = await file.read()
        if len(content) > self.max_file_size:
            raise BadRequestException(
                f"File too large. Maximum size: {self.max_file_size // (1024 * 1024)}MB"
            )
        if not content:
            raise BadRequestException("Uploaded file is empty")

        public_id = f"{folder.strip('/')}/{uuid.uuid4().hex}{file_ext}"
        path = self._path_for(public_id)
        try:
            await asyncio.wait_for(self._write(path, content), timeout=self.timeout)
        except asyncio.TimeoutError:
            await self._discard_partial(path)
            raise MediaUploadFailedException(f"Timed out storing {public_id}")
        except OSError as e:
            await self._discard_partial(path)
            raise MediaUploadFailedException(f"Could not store {public_id}: {e}")

        return {"url": self.url_for(public_id), "public_id": public_id}

    async def _discard_partial(self, path: Path) -> None:
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return
        except OSError as e:
            logger.warning("Could not remove partially written media %s: %s", path, e)

    async def delete(self, public_id: str) -> bool:
        """
        Delete a stored asset

        Returns:
            bool: True if the asset existed and was removed
        """
        path = self._path_for(public_id)
        try:
            exists = await asyncio.wait_for(aiofiles.os.path.exists(path), timeout=self.timeout)
            if not exists:
                return False
            await asyncio.wait_for(aiofiles.os.remove(path), timeout=self.timeout)
            return True
        except (asyncio.TimeoutError, OSError) as e:
            logger.warning("Could not delete media asset %s: %s", public_id, e)
            return False
