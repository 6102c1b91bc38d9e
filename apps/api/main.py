"""
Profile Pages - FastAPI Backend
Main application entry point with health check and API routing.
"""

import asyncio
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager

from config import settings, validate_security_settings
from database import engine, Base
import models  # noqa: F401
from routers import (
    health,
    auth,
    profiles,
    uploads,
    credentials,
)
from schemas import describe_validation_errors
from services.storage import get_storage
from services.uploads import sweep_orphaned_uploads, upload_root


async def run_orphan_sweep() -> int:
    """Remove stale uploads that no profile references."""
    storage = get_storage()
    profiles_snapshot = await storage.get_all_profiles()
    return await asyncio.to_thread(sweep_orphaned_uploads, profiles_snapshot)


async def _periodic_orphan_sweep() -> None:
    interval_minutes = max(int(settings.UPLOAD_ORPHAN_SWEEP_INTERVAL_MINUTES), 0)
    if interval_minutes <= 0:
        return
    while True:
        await asyncio.sleep(interval_minutes * 60)
        try:
            removed = await run_orphan_sweep()
            if removed:
                print(f"🧹 Orphaned upload sweep: removed={removed}")
        except Exception as exc:
            print(f"⚠️ Orphaned upload sweep tick failed: {exc}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    print("🚀 Starting Profile Pages API...")
    validate_security_settings()
    upload_root().mkdir(parents=True, exist_ok=True)
    if settings.STORAGE_BACKEND == "database" and settings.AUTO_CREATE_DB_SCHEMA:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            print("🗄️ Database schema verified.")
        except Exception as e:
            print(f"⚠️ Database bootstrap skipped: {e}")
    print(f"📦 Storage backend: {settings.STORAGE_BACKEND}")
    sweep_task = None
    if int(settings.UPLOAD_ORPHAN_SWEEP_INTERVAL_MINUTES) > 0:
        sweep_task = asyncio.create_task(_periodic_orphan_sweep())
        print(
            "📅 Orphaned upload sweep enabled "
            f"(every {int(settings.UPLOAD_ORPHAN_SWEEP_INTERVAL_MINUTES)} min)."
        )
    yield
    # Shutdown
    if sweep_task is not None:
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            pass
    print("👋 Shutting down API...")


app = FastAPI(
    title="Profile Pages API",
    description="Host customizable public profile pages with uploaded media",
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


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 with field-level detail."""
    errors = exc.errors()
    return JSONResponse(
        status_code=400,
        content={
            "detail": describe_validation_errors(errors),
            "errors": jsonable_encoder(errors),
        },
    )


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(profiles.router, prefix="/api/profiles", tags=["Profiles"])
app.include_router(uploads.router, prefix="/api/upload", tags=["Uploads"])
app.include_router(credentials.router, prefix="/api/credentials", tags=["Credentials"])

# Uploaded assets are served read-only
app.mount(
    settings.UPLOAD_PUBLIC_PREFIX,
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="uploads",
)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Profile Pages API",
        "version": "0.1.0",
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT)
