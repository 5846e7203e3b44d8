"""
main.py - Memories API Application

Wires the FastAPI application together:
- Database table creation
- Request logging and CORS middleware
- Static serving of uploaded images
- Exception handlers
- API routers
"""

import time
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import JSONResponse

import models
from config import (
    API_TITLE,
    API_VERSION,
    ENVIRONMENT,
    FRONTEND_URL,
    UPLOAD_DIR,
    INTERNAL_SERVER_MSG_ERROR,
    INVALID_REQUEST_MSG,
)
from database import engine, check_database_health
from routers import (
    groups_router,
    posts_router,
    comments_router,
    users_router,
    images_router,
    badges_router,
    health_router,
)
from services.query_planner import QueryValidationError

logger = logging.getLogger(__name__)

# ==============================================================================
# APPLICATION SETUP
# ==============================================================================

models.Base.metadata.create_all(bind=engine)
logger.info("Database tables created/verified")

app = FastAPI(
    title=API_TITLE,
    description="Group memory sharing: groups, memories, comments, likes and badges",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

logger.info(f"Application starting in {ENVIRONMENT} mode")
logger.info(f"Upload directory: {UPLOAD_DIR.absolute()}")

# ==============================================================================
# MIDDLEWARE
# ==============================================================================


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log all incoming requests and their processing time.
    """
    start_time = time.time()

    logger.info(
        f"{request.method} {request.url.path} "
        f"from {request.client.host if request.client else 'unknown'}"
    )

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(
        f"{request.method} {request.url.path} "
        f"completed in {process_time:.3f}s "
        f"with status {response.status_code}"
    )

    response.headers["X-Process-Time"] = str(process_time)

    return response


if ENVIRONMENT == "production":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[FRONTEND_URL],
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type"],
    )
    logger.info(f"CORS enabled for production: {FRONTEND_URL}")
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "https://localhost:3000",
            "https://127.0.0.1:3000"
        ],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )
    logger.info("CORS enabled for development")

# Serve uploaded images
app.mount("/uploads", StaticFiles(directory=str(UPLOAD_DIR)), name="uploads")

# ==============================================================================
# ERROR HANDLERS
# ==============================================================================


@app.exception_handler(QueryValidationError)
async def query_validation_error_handler(request: Request, exc: QueryValidationError):
    """Reject bad list parameters (page, pageSize, sortBy)"""
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "kind": exc.kind.value}
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies answer 400 rather than FastAPI's default 422"""
    return JSONResponse(
        status_code=400,
        content={"detail": INVALID_REQUEST_MSG, "errors": jsonable_encoder(exc.errors())}
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle validation errors"""
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc)}
    )


@app.exception_handler(RuntimeError)
async def runtime_error_handler(request: Request, exc: RuntimeError):
    """Handle runtime errors"""
    logger.error(f"Runtime error: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": INTERNAL_SERVER_MSG_ERROR}
    )

# ==============================================================================
# ROUTERS
# ==============================================================================

app.include_router(health_router)
app.include_router(groups_router)
app.include_router(posts_router)
app.include_router(comments_router)
app.include_router(users_router)
app.include_router(images_router)
app.include_router(badges_router)

# ==============================================================================
# STARTUP & SHUTDOWN EVENTS
# ==============================================================================


@app.on_event("startup")
async def startup_event():
    """Initialize resources on application startup"""
    logger.info("Application startup complete")
    logger.info(f"Environment: {ENVIRONMENT}")

    if check_database_health():
        logger.info("Database connection verified")
    else:
        logger.warning("Database health check failed")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup resources on application shutdown"""
    logger.info("Application shutting down")
