import hashlib
import logging
from dataclasses import dataclass

from fastapi import HTTPException, Request, UploadFile
from starlette.concurrency import run_in_threadpool

from lookmate.core.config import settings
from lookmate.storage import local, r2
from lookmate.storage.keys import upload_filename, upload_key

logger = logging.getLogger("uvicorn.error")

_CHUNK = 64 * 1024


@dataclass(frozen=True)
class StoredUpload:
    url: str
    filename: str
    original_name: str
    content_type: str
    size: int
    digest: str


async def read_image_upload(file: UploadFile) -> bytes:
    """Read an uploaded image, enforcing the image/* filter and the size cap."""
    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="invalid_file_type")
    limit = settings.UPLOAD_MAX_BYTES
    buf = bytearray()
    while True:
        chunk = await file.read(_CHUNK)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > limit:
            raise HTTPException(status_code=413, detail="file_too_large")
    return bytes(buf)


async def store_image_upload(request: Request, file: UploadFile, folder: str) -> StoredUpload:
    data = await read_image_upload(file)
    content_type = file.content_type or "application/octet-stream"
    original = file.filename or "upload"
    if r2.r2_enabled():
        key = upload_key(folder, original)
        url = await run_in_threadpool(r2.put_object, key, data, content_type)
        name = key
    else:
        name = upload_filename(original)
        await run_in_threadpool(local.save_file, name, data)
        url = str(request.base_url).rstrip("/") + local.public_path(name)
    logger.info("uploads: stored %s bytes=%d folder=%s", name, len(data), folder)
    return StoredUpload(
        url=url,
        filename=name,
        original_name=original,
        content_type=content_type,
        size=len(data),
        digest=hashlib.sha256(data).hexdigest(),
    )
