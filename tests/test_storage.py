import asyncio
import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from food_delivery.exceptions import MediaUploadFailedException
from food_delivery.services.storage_service import MediaStorage


PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def png_upload(filename: str = "logo.png") -> UploadFile:
    return UploadFile(file=io.BytesIO(PNG), filename=filename, headers=Headers({"content-type": "image/png"}))


@pytest.fixture
def slow_storage(tmp_path):
    return MediaStorage(root=str(tmp_path / "media"), base_url="/media", max_file_size=1024 * 1024, timeout=0.05)


def stored_files(storage):
    return [path for path in storage.root.rglob("*") if path.is_file()]


async def test_upload_and_delete(storage):
    asset = await storage.upload(png_upload(), "restaurants/1/logo")

    assert asset["url"] == f"/media/{asset['public_id']}"
    assert (storage.root / asset["public_id"]).read_bytes() == PNG
    assert await storage.delete(asset["public_id"]) is True
    assert await storage.delete(asset["public_id"]) is False


async def test_timed_out_write_leaves_no_file(slow_storage, monkeypatch):
    async def stalled_write(path, content):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content[:4])
        await asyncio.sleep(1)

    monkeypatch.setattr(slow_storage, "_write", stalled_write)

    with pytest.raises(MediaUploadFailedException, match="Timed out storing"):
        await slow_storage.upload(png_upload(), "restaurants/1/logo")
    assert stored_files(slow_storage) == []


async def test_failed_write_leaves_no_file(slow_storage, monkeypatch):
    async def broken_write(path, content):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content[:4])
        raise OSError("disk full")

    monkeypatch.setattr(slow_storage, "_write", broken_write)

    with pytest.raises(MediaUploadFailedException, match="disk full"):
        await slow_storage.upload(png_upload(), "restaurants/1/gallery")
    assert stored_files(slow_storage) == []
