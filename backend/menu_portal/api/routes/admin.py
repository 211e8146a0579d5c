# menu_portal/api/routes/admin.py
from datetime import datetime, timedelta
from typing import List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from menu_portal.config import Settings, get_settings
from menu_portal.database.connection import SessionLocal, get_db
from menu_portal.models.submission import Submission
from menu_portal.services.cleanup import CleanupService
from menu_portal.services.packaging import docs_download_path, menu_download_urls
from menu_portal.utils.security import require_admin
from menu_portal.utils.timeutils import isoformat_utc

# Every route here needs the shared admin secret; no secret configured means 503
router = APIRouter(dependencies=[Depends(require_admin)])

# =======================
# 1. SCHEMAS
# =======================

class AdminSubmission(BaseModel):
    id: str
    brandName: str
    businessType: str
    flow: str
    status: str
    createdAt: str
    submittedAt: str | None
    expiresAt: str
    zipDownloadUrl: str | None
    excelDownloadUrl: str | None
    docsDownloadUrl: str | None

class CleanupResult(BaseModel):
    success: bool
    deletedCount: int

def _expires_at(created_at: datetime, settings: Settings) -> datetime:
    return created_at + timedelta(hours=settings.RETENTION_HOURS)

# =======================
# 2. ROUTES
# =======================

@router.get("/submissions", response_model=List[AdminSubmission])
def list_submissions(
    limit: int | None = Query(None, ge=1, le=100),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Most recent submissions with their expiry and, once submitted, their download links."""
    rows = (
        db.query(Submission)
        .order_by(Submission.created_at.desc())
        .limit(limit or settings.ADMIN_LIST_LIMIT)
        .all()
    )
    result = []
    for s in rows:
        urls = menu_download_urls(s) if s.is_submitted else {}
        result.append(AdminSubmission(
            id=s.id,
            brandName=s.brand_name,
            businessType=s.business_type,
            flow=s.flow,
            status=s.status,
            createdAt=isoformat_utc(s.created_at),
            submittedAt=isoformat_utc(s.submitted_at),
            expiresAt=isoformat_utc(_expires_at(s.created_at, settings)),
            zipDownloadUrl=urls.get("zipDownloadUrl"),
            excelDownloadUrl=urls.get("excelDownloadUrl"),
            docsDownloadUrl=docs_download_path(s.docs_token) if s.docs_token else None,
        ))
    return result

@router.post("/cleanup", response_model=CleanupResult)
def trigger_cleanup(settings: Settings = Depends(get_settings)):
    """Runs the retention sweep now (the same one the hourly timer runs)."""
    deleted = CleanupService(settings, SessionLocal).run()
    return CleanupResult(success=True, deletedCount=deleted)
