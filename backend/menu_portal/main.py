# menu_portal/main.py
import asyncio
import os
from contextlib import suppress

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from menu_portal.config import settings
from menu_portal.database.connection import Base, SessionLocal, engine
from menu_portal.exceptions import PortalError
# Import from the package (menu_portal.models) to ensure all classes are registered
from menu_portal.models import Submission
from menu_portal.services.cleanup import CleanupService, cleanup_loop
from menu_portal.utils.limiter import limiter
from menu_portal.utils.logging_setup import init_logging
from menu_portal.utils.timeutils import isoformat_utc, utc_now

from menu_portal.api.routes import admin, docs, download, submission

logger = init_logging(settings)

# Create Tables
os.makedirs(settings.DATA_DIR, exist_ok=True)
Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.APP_NAME)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        # details were logged where the error happened; the caller gets the generic message
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

# Register Routes
app.include_router(submission.router, prefix=f"{settings.API_PREFIX}/submission", tags=["Submission"])
app.include_router(docs.router, prefix=f"{settings.API_PREFIX}/docs", tags=["Documents"])
app.include_router(docs.public_router, tags=["Documents"])
app.include_router(download.router, prefix="/download", tags=["Downloads"])
app.include_router(admin.router, prefix=f"{settings.API_PREFIX}/admin", tags=["Admin"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"], include_in_schema=False)

@app.on_event("startup")
async def startup_event():
    if not settings.ADMIN_TOKEN:
        logger.warning("ADMIN_TOKEN is not configured. Admin routes are disabled until it is set.")
    logger.info("Retention: %s hours, cleanup every %ss", settings.RETENTION_HOURS, settings.CLEANUP_INTERVAL_SECONDS)

    service = CleanupService(settings, SessionLocal)
    app.state.cleanup_task = asyncio.create_task(cleanup_loop(service, settings.CLEANUP_INTERVAL_SECONDS))

@app.on_event("shutdown")
async def shutdown_event():
    task = getattr(app.state, "cleanup_task", None)
    if task:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
    logger.info("Shutdown complete.")

@app.get(f"{settings.API_PREFIX}/health")
def health_check():
    return {"status": "ok", "timestamp": isoformat_utc(utc_now())}
