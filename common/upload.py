"""
Storefront - File Upload Utilities
===================================
Centralized image upload, validation, and optimization.
Files land under STATIC_DIR and are served back under STATIC_URL_PREFIX.
"""

import logging
import os
import uuid
from typing import Optional, Tuple

from fastapi import UploadFile, HTTPException
from PIL import Image, UnidentifiedImageError

from config.settings import (
    STATIC_DIR, STATIC_URL_PREFIX, UPLOAD_SUBDIR,
    ALLOWED_IMAGE_EXTENSIONS, MAX_FILE_SIZE, DEFAULT_IMAGE_MAX_SIZE,
)

logger = logging.getLogger("storefront.upload")


def save_upload_file(
    upload_file: UploadFile,
    max_size: Tuple[int, int] = DEFAULT_IMAGE_MAX_SIZE,
    subfolder: str = UPLOAD_SUBDIR,
) -> Optional[str]:
    """
    Save an uploaded image file with validation and optimization.

    Args:
        upload_file: The uploaded file from FastAPI
        max_size: Maximum dimensions (width, height) to resize to
        subfolder: Subfolder within STATIC_DIR

    Returns:
        Path relative to STATIC_DIR (e.g. "uploads/ab12.png"),
        or None if the upload is empty
    """
    if not upload_file or not upload_file.filename:
        return None

    # Validate file size
    upload_file.file.seek(0, 2)
    file_size = upload_file.file.tell()
    upload_file.file.seek(0)
    if file_size > MAX_FILE_SIZE:
        raise HTTPException(413, f"File too large. Maximum size is {MAX_FILE_SIZE // (1024 * 1024)}MB.")

    # Validate extension
    ext = os.path.splitext(upload_file.filename)[1].lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        allowed = ", ".join(sorted(ALLOWED_IMAGE_EXTENSIONS))
        raise HTTPException(400, f"Only image files are allowed ({allowed})")

    target_dir = os.path.join(STATIC_DIR, subfolder) if subfolder else STATIC_DIR
    os.makedirs(target_dir, exist_ok=True)

    unique_name = f"image-{uuid.uuid4().hex}{ext}"
    relative_path = f"{subfolder}/{unique_name}" if subfolder else unique_name
    file_path = os.path.join(target_dir, unique_name)

    try:
        img = Image.open(upload_file.file)
        img.thumbnail(max_size)

        if ext in [".jpg", ".jpeg"]:
            img.convert("RGB").save(file_path, optimize=True, quality=80)
        else:
            img.save(file_path)
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"Image save error for {upload_file.filename}: {e}")
        raise HTTPException(400, "Uploaded file is not a valid image")

    return relative_path


def public_url(relative_path: Optional[str]) -> Optional[str]:
    """Map a stored relative path to the URL it is served under."""
    if not relative_path:
        return None
    return f"{STATIC_URL_PREFIX}/{relative_path.lstrip('/')}"


def delete_file(relative_path: str) -> bool:
    """Safely delete a stored file from disk. Returns True if deleted."""
    if not relative_path:
        return False
    file_path = os.path.join(STATIC_DIR, relative_path)
    try:
        if os.path.exists(file_path):
            os.remove(file_path)
            return True
    except OSError as e:
        logger.warning(f"Could not delete {file_path}: {e}")
    return False
