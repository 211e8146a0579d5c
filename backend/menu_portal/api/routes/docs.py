# menu_portal/api/routes/docs.py
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, UploadFile
from fastapi.responses import FileResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from menu_portal.catalog import required_documents
from menu_portal.config import Settings, get_settings, settings as app_settings
from menu_portal.database.connection import get_db
from menu_portal.exceptions import ValidationFailed
from menu_portal.models.submission import Submission, SubmissionFlow
from menu_portal.services.intake import IntakeService
from menu_portal.services.notifier import EmailNotifier
from menu_portal.services.packaging import PackagingService, docs_download_path
from menu_portal.services.storage import DOCS_PACKAGE_NAME
from menu_portal.services.submissions import SubmissionService
from menu_portal.utils.limiter import limiter
from menu_portal.utils.security import get_current_submission

router = APIRouter()

# Token-only download link, mounted without the /api prefix
public_router = APIRouter()

# --- Schemas ---

class DocsCreate(BaseModel):
    brandName: str | None = None
    businessType: str | None = None
    contactEmail: str | None = None
    contactPhone: str | None = None
    categories: list | None = None
    categoriesDescription: str | None = None

class DocsCreated(BaseModel):
    submissionId: str
    accessToken: str

class DocumentDelete(BaseModel):
    filename: str | None = None

# --- Routes ---

@router.post("/create", response_model=DocsCreated)
@limiter.limit(app_settings.CREATE_RATE_LIMIT)
def create_docs_submission(
    request: Request,
    body: DocsCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Starts a business-documents submission. Contact details and categories are mandatory here."""
    if not (body.brandName or "").strip():
        raise ValidationFailed("Brand name is required")
    if not body.businessType:
        raise ValidationFailed("Business type is required")
    if not (body.contactEmail or "").strip():
        raise ValidationFailed("Contact email is required")
    if not (body.contactPhone or "").strip():
        raise ValidationFailed("Contact phone is required")
    if not body.categories:
        raise ValidationFailed("Categories are required")

    submission = SubmissionService(db, settings).create(
        brand_name=body.brandName,
        business_type=body.businessType,
        flow=SubmissionFlow.DOCS,
        contact_email=body.contactEmail,
        contact_phone=body.contactPhone,
        categories=body.categories,
        categories_description=body.categoriesDescription,
    )
    return DocsCreated(submissionId=submission.id, accessToken=submission.access_token)

@router.get("/info")
def get_docs_info(
    submission: Submission = Depends(get_current_submission),
    settings: Settings = Depends(get_settings),
):
    return {
        "brandName": submission.brand_name,
        "businessType": submission.business_type,
        "contactEmail": submission.contact_email,
        "contactPhone": submission.contact_phone,
        "categories": submission.categories,
        "categoriesDescription": submission.categories_description or "",
        "requiredDocuments": required_documents(submission.business_type),
        "uploadedDocs": IntakeService(settings).list_documents(submission),
        "submitted": submission.docs_token is not None,
    }

@router.post("/upload")
def upload_documents(
    docType: str | None = Form(None),
    documents: List[UploadFile] | None = File(None),
    submission: Submission = Depends(get_current_submission),
    settings: Settings = Depends(get_settings),
):
    return IntakeService(settings).save_documents(submission, docType, documents or [])

@router.get("/preview/{filename}")
def preview_document(
    filename: str,
    submission: Submission = Depends(get_current_submission),
    settings: Settings = Depends(get_settings),
):
    path = IntakeService(settings).document_path(submission, filename)
    return FileResponse(path)

@router.delete("/delete")
def delete_document(
    body: DocumentDelete,
    submission: Submission = Depends(get_current_submission),
    settings: Settings = Depends(get_settings),
):
    return IntakeService(settings).delete_document(submission, body.filename)

@router.post("/submit")
def submit_documents(
    background_tasks: BackgroundTasks,
    submission: Submission = Depends(get_current_submission),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Packages the documents and issues the docs download token.
    The notification email is queued after the response and can never fail the request.
    """
    package = PackagingService(db, settings).submit_docs(submission)

    notifier = EmailNotifier(settings)
    background_tasks.add_task(
        notifier.send_docs_uploaded,
        brand_name=submission.brand_name,
        business_type=submission.business_type,
        contact_email=submission.contact_email,
        contact_phone=submission.contact_phone,
        categories=submission.categories,
        categories_description=submission.categories_description,
        documents=package.documents,
        docs_path=docs_download_path(package.token),
    )
    return {"success": True, "message": "Documents successfully submitted"}

@public_router.get("/dl/docs/{token}")
def download_docs_package(
    token: str,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Anyone holding the token may download; there is no submission-id pairing here."""
    path = PackagingService(db, settings).docs_package_by_token(token)
    return FileResponse(path, filename=DOCS_PACKAGE_NAME, media_type="application/zip")
