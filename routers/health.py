"""
routers/health.py - Service Status Endpoints

- GET /: API info and the badge catalog size
- GET /health: Status of the memories store and the image store

/health reports one entry per dependency:
    content   group/post/comment tables answer queries (row counts)
    uploads   upload directory exists and accepts writes
    images    every image record still has its file on disk

Overall status is "unhealthy" (503) when content or uploads fail, and
"degraded" (200) when only image files are missing.
"""

import time
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

import crud
from config import API_TITLE, API_VERSION, ENVIRONMENT, UPLOAD_DIR
from database import get_db, get_pool_stats
from services.badges import BADGE_RULES

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System"])


@router.get("/")
def read_root():
    return {
        "message": f"{API_TITLE} is running",
        "version": API_VERSION,
        "environment": ENVIRONMENT,
        "badges": len(BADGE_RULES),
        "docs": "/docs",
        "health": "/health"
    }


def _check_content(db: Session) -> dict:
    try:
        counts = crud.count_content(db)
    except Exception as exc:
        logger.error(f"Content store check failed: {exc}")
        return {"status": "unhealthy", "error": str(exc)}
    return {"status": "healthy", "counts": counts, "pool_stats": get_pool_stats()}


def _check_uploads() -> dict:
    probe = UPLOAD_DIR / ".health_check"
    try:
        probe.touch()
        probe.unlink()
    except OSError as exc:
        logger.error(f"Upload directory {UPLOAD_DIR} is not writable: {exc}")
        return {"status": "unhealthy", "directory": str(UPLOAD_DIR), "error": str(exc)}
    return {"status": "healthy", "directory": str(UPLOAD_DIR)}


def _check_images(db: Session) -> dict:
    try:
        count, total_bytes, filenames = crud.get_image_usage(db)
    except Exception as exc:
        logger.error(f"Image record check failed: {exc}")
        return {"status": "unhealthy", "error": str(exc)}

    missing = [name for name in filenames if not (UPLOAD_DIR / name).is_file()]
    if missing:
        logger.warning(f"{len(missing)} image records have no file in {UPLOAD_DIR}")
    return {
        "status": "degraded" if missing else "healthy",
        "records": count,
        "total_bytes": total_bytes,
        "missing_files": len(missing),
    }


@router.get(
    "/health",
    summary="Health check endpoint",
    description="Check the memories database, the upload directory and stored images"
)
def health_check(db: Session = Depends(get_db)):
    checks = {
        "content": _check_content(db),
        "uploads": _check_uploads(),
        "images": _check_images(db),
    }

    statuses = {check["status"] for check in checks.values()}
    if "unhealthy" in statuses:
        status = "unhealthy"
    elif "degraded" in statuses:
        status = "degraded"
    else:
        status = "healthy"

    return JSONResponse(
        content={"status": status, "timestamp": time.time(), "checks": checks},
        status_code=503 if status == "unhealthy" else 200,
    )
