"""
config.py - Application Configuration

Centralized configuration for the Memories API including:
- Environment settings (loaded from .env when present)
- Database URL
- File upload constraints
- Pagination defaults
- Logging configuration
"""

import os
import logging
from pathlib import Path

from dotenv import load_dotenv, find_dotenv

# ==============================================================================
# LOGGING CONFIGURATION
# ==============================================================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

# ==============================================================================
# ENVIRONMENT SETTINGS
# ==============================================================================

env_file = find_dotenv(usecwd=True)
if env_file:
    load_dotenv(env_file)
    logger.info(f"Loaded environment from: {env_file}")

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
DATABASE_URL = os.getenv("DATABASE_URL", "")
FRONTEND_URL = os.getenv("FRONTEND_URL", "https://yourfrontend.com")

API_TITLE = "Memories API"
API_VERSION = "1.0.0"

# ==============================================================================
# FILE UPLOAD CONFIGURATION
# ==============================================================================

UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", "uploads"))
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

# File upload constraints
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB
MAX_IMAGE_DIMENSION = 4096  # 4096x4096 max

ALLOWED_MIME_TYPES = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp"
]

# ==============================================================================
# PAGINATION DEFAULTS
# ==============================================================================

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10

# ==============================================================================
# ERROR MESSAGES
# ==============================================================================

INTERNAL_SERVER_MSG_ERROR = "Internal server error"
INVALID_REQUEST_MSG = "Invalid request"
WRONG_PASSWORD_MSG = "Wrong password"
