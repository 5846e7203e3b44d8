"""
utils/file_handlers.py - Image Upload Handling

Functions for validating and storing uploaded memory images:
- MIME type detection using python-magic
- File size validation
- Image dimension validation
- Saving to the local upload directory
"""

import io
import shutil
import uuid
import logging
from pathlib import Path
from typing import Tuple

import magic  # python-magic for MIME type detection
from fastapi import UploadFile, HTTPException

from config import (
    MAX_FILE_SIZE,
    MAX_IMAGE_DIMENSION,
    ALLOWED_MIME_TYPES,
    UPLOAD_DIR,
)

logger = logging.getLogger(__name__)

EXTENSION_FOR_MIME = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


# ==============================================================================
# FILE VALIDATION HELPERS
# ==============================================================================


def _check_file_size(content: bytes) -> None:
    """
    Check file size constraints.

    Raises:
        HTTPException: If file is too large or empty
    """
    file_size = len(content)
    if file_size > MAX_FILE_SIZE:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {MAX_FILE_SIZE / (1024 * 1024):.1f}MB. "
                   f"Your file is {file_size / (1024 * 1024):.1f}MB."
        )
    if file_size == 0:
        raise HTTPException(status_code=400, detail="Empty file uploaded")


def _detect_mime_type(content: bytes, fallback_type: str) -> str:
    """
    Detect MIME type using python-magic, falling back to the declared
    content type when detection fails.
    """
    try:
        return magic.from_buffer(content, mime=True)
    except Exception as exc:
        logger.error(f"Error detecting MIME type: {exc}")
        return fallback_type


def _check_mime_type(mime_type: str) -> None:
    if mime_type not in ALLOWED_MIME_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type: {mime_type}. "
                   f"Allowed types: {', '.join(ALLOWED_MIME_TYPES)}"
        )


def _check_image_dimensions(content: bytes) -> None:
    """
    Validate image dimensions using Pillow.

    Raises:
        HTTPException: If the image is unreadable or exceeds the size limit
    """
    from PIL import Image

    try:
        image = Image.open(io.BytesIO(content))
        width, height = image.size
    except Exception as exc:
        logger.error(f"Error validating image: {exc}")
        raise HTTPException(status_code=400, detail="Invalid or corrupted image file")

    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        raise HTTPException(
            status_code=400,
            detail=f"Image dimensions too large. "
                   f"Maximum: {MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION}. "
                   f"Your image: {width}x{height}"
        )
    logger.info(f"Image validated: {width}x{height}, {len(content)} bytes")


# ==============================================================================
# PUBLIC FUNCTIONS
# ==============================================================================


async def validate_image_upload(file: UploadFile) -> Tuple[str, int]:
    """
    Validate an uploaded image file.

    Performs:
    - File size check (max 5MB)
    - MIME type check (images only)
    - Image dimension check (max 4096x4096)

    Returns:
        tuple: (mime_type, size in bytes)

    Raises:
        HTTPException: If validation fails
    """
    content = await file.read()
    await file.seek(0)

    _check_file_size(content)
    mime_type = _detect_mime_type(content, file.content_type)
    _check_mime_type(mime_type)
    _check_image_dimensions(content)
    return mime_type, len(content)


async def save_image(file: UploadFile) -> Tuple[str, int]:
    """
    Validate and store an uploaded image in the upload directory.

    Returns:
        tuple: (stored filename, size in bytes)

    Raises:
        HTTPException: If validation or saving fails
    """
    mime_type, size_bytes = await validate_image_upload(file)

    file_extension = Path(file.filename or "").suffix.lower() or EXTENSION_FOR_MIME.get(mime_type, ".jpg")
    filename = f"{uuid.uuid4().hex}{file_extension}"
    file_path = UPLOAD_DIR / filename

    try:
        with file_path.open("wb") as buffer:
            shutil.copyfileobj(file.file, buffer)
        logger.info(f"Saved image: {filename}")
        return filename, size_bytes
    except Exception as exc:
        logger.error(f"Failed to save file: {exc}")
        raise HTTPException(status_code=500, detail="Failed to save uploaded file")


def cleanup_file(file_path: Path) -> None:
    """Delete a stored image, e.g. when its database record could not be written."""
    try:
        if file_path.exists():
            file_path.unlink()
            logger.info(f"Deleted file: {file_path.name}")
    except Exception as exc:
        logger.error(f"Failed to delete {file_path}: {exc}")
