"""
Localized Content Back Office - FastAPI Backend
Main application entry point with error rendering and API routing.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings, storage_configured, validate_security_settings
from database import engine, Base
import models  # noqa: F401
from routers import (
    health,
    content,
    songs,
    public,
    footer,
    logo,
    upload,
    inquiries,
)
from services.errors import ContentRepositoryError

logging.basicConfig(
    level=getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    print("🚀 Starting Localized Content Back Office API...")
    validate_security_settings()
    if settings.AUTO_CREATE_DB_SCHEMA:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            print("🗄️ Database schema verified.")
        except Exception as e:
            print(f"⚠️ Database bootstrap skipped: {e}")
    if not storage_configured():
        print("⚠️ Object storage credentials missing; uploads will fail until configured.")
    yield
    # Shutdown
    await engine.dispose()
    print("👋 Shutting down API...")


app = FastAPI(
    title="Localized Content Back Office API",
    description="Manage multilingual site content, songs, media and site configuration",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ContentRepositoryError)
async def content_repository_error_handler(request: Request, exc: ContentRepositoryError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "form")]
    error = {
        "kind": "validation_error",
        "message": str(first.get("msg") or "Invalid request"),
        "details": {"errors": [{"loc": list(map(str, item.get("loc", ()))), "msg": item.get("msg")} for item in errors]},
    }
    if location:
        error["field"] = ".".join(location)
    return JSONResponse(status_code=422, content={"error": error})


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(content.router, prefix="/content", tags=["Content"])
app.include_router(songs.router, prefix="/songs", tags=["Songs"])
app.include_router(public.router, prefix="/public", tags=["Public"])
app.include_router(footer.router, prefix="/footer", tags=["Footer"])
app.include_router(logo.router, prefix="/logo", tags=["Logo"])
app.include_router(upload.router, prefix="/upload", tags=["Upload"])
app.include_router(inquiries.router, prefix="/inquiries", tags=["Inquiries"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Localized Content Back Office API",
        "version": "0.1.0",
        "status": "running"
    }
