# menu_portal/api/routes/submission.py
from typing import Any, List

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from menu_portal.config import Settings, get_settings, settings as app_settings
from menu_portal.database.connection import get_db
from menu_portal.models.submission import Submission, SubmissionFlow
from menu_portal.services.intake import IntakeService
from menu_portal.services.packaging import PackagingService
from menu_portal.services.submissions import SubmissionService
from menu_portal.utils.limiter import limiter
from menu_portal.utils.security import get_current_submission

router = APIRouter()

# =======================
# 1. SCHEMAS
# =======================

class SubmissionCreate(BaseModel):
    brandName: str | None = None
    businessType: str | None = None
    contactEmail: str | None = None
    contactPhone: str | None = None
    categories: list | None = None

class SubmissionCreated(BaseModel):
    submissionId: str
    accessToken: str

class UploadedImage(BaseModel):
    filename: str
    originalName: str | None = None
    width: int
    height: int
    warning: str | None = None

class MenuSave(BaseModel):
    # validated by the service so a non-list is a 400 rather than a schema error
    items: Any = None

class LocationSave(BaseModel):
    schedule: Any = None
    pickupLocation: str | None = None
    operationalPhone: str | None = None

class SubmitResponse(BaseModel):
    zipDownloadUrl: str
    excelDownloadUrl: str

# =======================
# 2. CREATE
# =======================

@router.post("/create", response_model=SubmissionCreated)
@limiter.limit(app_settings.CREATE_RATE_LIMIT)
def create_submission(
    request: Request,
    body: SubmissionCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Starts a menu/assets submission. The returned pair authorizes every later call."""
    submission = SubmissionService(db, settings).create(
        brand_name=body.brandName,
        business_type=body.businessType,
        flow=SubmissionFlow.MENU,
        contact_email=body.contactEmail,
        contact_phone=body.contactPhone,
        categories=body.categories,
    )
    return SubmissionCreated(submissionId=submission.id, accessToken=submission.access_token)

# =======================
# 3. ASSET UPLOADS
# =======================

@router.post("/upload-logo", response_model=UploadedImage)
def upload_logo(
    logo: UploadFile | None = File(None),
    submission: Submission = Depends(get_current_submission),
    settings: Settings = Depends(get_settings),
):
    return IntakeService(settings).save_logo(submission, logo)

@router.post("/upload-images", response_model=List[UploadedImage])
def upload_images(
    images: List[UploadFile] | None = File(None),
    submission: Submission = Depends(get_current_submission),
    settings: Settings = Depends(get_settings),
):
    return IntakeService(settings).save_product_images(submission, images or [])

@router.get("/images", response_model=List[str])
def list_images(
    submission: Submission = Depends(get_current_submission),
    settings: Settings = Depends(get_settings),
):
    """Stored product image filenames (used to assign images to menu items)."""
    return IntakeService(settings).list_product_images(submission)

# =======================
# 4. DRAFT STATE
# =======================

@router.get("/info")
def get_info(
    submission: Submission = Depends(get_current_submission),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return SubmissionService(db, settings).info(submission)

@router.post("/save-menu")
def save_menu(
    body: MenuSave,
    submission: Submission = Depends(get_current_submission),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Replaces the whole item list. This is the autosave primitive: no field checks here."""
    count = SubmissionService(db, settings).save_menu(submission, body.items)
    return {"success": True, "count": count}

@router.post("/save-location")
def save_location(
    body: LocationSave,
    submission: Submission = Depends(get_current_submission),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    missing = [f for f in ("schedule", "pickupLocation", "operationalPhone") if f not in body.model_fields_set]
    if missing:
        raise HTTPException(status_code=400, detail=f"Missing fields: {', '.join(missing)}")

    SubmissionService(db, settings).save_location(
        submission, body.schedule, body.pickupLocation, body.operationalPhone
    )
    return {"success": True}

# =======================
# 5. FINAL SUBMIT
# =======================

@router.post("/submit", response_model=SubmitResponse)
def submit(
    submission: Submission = Depends(get_current_submission),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Builds the workbook + ZIP and marks the submission submitted.
    Safe to retry: a second call regenerates the package and sends nothing.
    """
    return PackagingService(db, settings).submit_menu(submission)
