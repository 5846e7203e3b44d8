"""
routers/images.py - Image Upload Endpoint

- POST /api/image: Upload an image (multipart field "image") and get its URL

Files are validated (size, MIME type, dimensions), stored in UPLOAD_DIR,
served from /uploads, and recorded in the images table so their size can
count towards a group's space-received badge.
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session

import crud
import schemas
from config import INTERNAL_SERVER_MSG_ERROR, UPLOAD_DIR
from database import get_db
from utils.file_handlers import cleanup_file, save_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Images"])


@router.post(
    "/image",
    response_model=schemas.ImageUpload,
    summary="Upload an image",
    description="Upload a JPEG, PNG, GIF or WebP image (max 5MB, 4096x4096)"
)
async def upload_image(
        request: Request,
        image: UploadFile = File(None, description="Image file"),
        db: Session = Depends(get_db),
):
    if image is None or not image.filename:
        raise HTTPException(status_code=400, detail="No image uploaded")

    filename, size_bytes = await save_image(image)
    image_url = f"{str(request.base_url).rstrip('/')}/uploads/{filename}"

    try:
        crud.create_image(db, filename=filename, url=image_url, size_bytes=size_bytes)
    except Exception as exc:
        logger.error(f"Error recording image {filename}: {exc}")
        cleanup_file(UPLOAD_DIR / filename)
        raise HTTPException(status_code=500, detail=INTERNAL_SERVER_MSG_ERROR)

    return schemas.ImageUpload(image_url=image_url)
