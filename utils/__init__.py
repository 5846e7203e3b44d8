"""
utils - Utility Functions Package

This package contains helper functions used across the routers:
- file_handlers: Image upload validation and storage
- validators: 404 lookups and password checks
"""

from utils.file_handlers import (
    validate_image_upload,
    save_image,
    cleanup_file,
)
from utils.validators import require_found, require_password

__all__ = [
    "validate_image_upload",
    "save_image",
    "cleanup_file",
    "require_found",
    "require_password",
]
