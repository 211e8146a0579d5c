# menu_portal/api/routes/download.py
"""
Capability-URL downloads: /download/<id>/...?accessToken=...

These links are meant to be shared (emails, admin list), so the token lives in
the query string. That also means it can end up in proxy logs and referrers;
the retention window bounds how long a leaked link is useful.
"""
import logging
import os

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from menu_portal.config import Settings, get_settings
from menu_portal.database.connection import get_db
from menu_portal.exceptions import FileNotFound
from menu_portal.models.submission import Submission
from menu_portal.services.notifier import EmailNotifier
from menu_portal.services.packaging import PackagingService, menu_download_urls
from menu_portal.services.storage import IMAGES_DIR, LOGO_DIR, SubmissionStorage
from menu_portal.utils.security import get_download_submission

logger = logging.getLogger(__name__)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

@router.get("/{submission_id}/package.zip")
def download_package(
    background_tasks: BackgroundTasks,
    submission: Submission = Depends(get_download_submission),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    service = PackagingService(db, settings)
    path = service.menu_package_path(submission)

    # The first download notifies the onboarding team, once
    if service.mark_zip_downloaded(submission):
        logger.info("First ZIP download for submission %s, notification queued", submission.id)
        background_tasks.add_task(
            EmailNotifier(settings).send_zip_downloaded,
            brand_name=submission.brand_name,
            item_count=len(submission.menu_items),
            zip_path=menu_download_urls(submission)["zipDownloadUrl"],
        )
    return FileResponse(path, filename=os.path.basename(path), media_type="application/zip")

@router.get("/{submission_id}/menu.xlsx")
def download_workbook(
    submission: Submission = Depends(get_download_submission),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    path = PackagingService(db, settings).workbook_path(submission)
    return FileResponse(path, filename=os.path.basename(path), media_type=XLSX_MEDIA_TYPE)

@router.get("/{submission_id}/image/{filename}")
def serve_image(
    filename: str,
    submission: Submission = Depends(get_download_submission),
    settings: Settings = Depends(get_settings),
):
    path = SubmissionStorage(settings).file_path(submission.id, IMAGES_DIR, filename)
    if not path:
        raise FileNotFound("Image not found")
    return FileResponse(path)

@router.get("/{submission_id}/logo/{filename}")
def serve_logo(
    filename: str,
    submission: Submission = Depends(get_download_submission),
    settings: Settings = Depends(get_settings),
):
    path = SubmissionStorage(settings).file_path(submission.id, LOGO_DIR, filename)
    if not path:
        raise FileNotFound("Logo not found")
    return FileResponse(path)
