# menu_portal/services/packaging.py
"""
Final packaging for both journeys.

Menu journey: validate the menu, rename assigned product images after their
items, render the workbook and write one ZIP with logo, images, workbook and a
metadata snapshot. Documents journey: check every required document kind is
present, zip the documents with an info.txt and issue the download token.

Artifacts are written to hidden temp files and renamed into place, so a failed
run never leaves a half-written ZIP or workbook where a download could find it.
"""
import logging
import os
import tempfile
import zipfile
from contextlib import contextmanager
from dataclasses import dataclass
from urllib.parse import quote

from sqlalchemy.orm import Session

from menu_portal.catalog import required_documents
from menu_portal.config import Settings
from menu_portal.exceptions import FileNotFound, PackagingFailed, PortalError, ValidationFailed
from menu_portal.models.submission import Submission, SubmissionStatus
from menu_portal.services.intake import IntakeService
from menu_portal.services.storage import (
    DOCS_DIR,
    DOCS_PACKAGE_NAME,
    IMAGES_DIR,
    LOGO_DIR,
    MENU_DIR,
    META_FILE,
    PACKAGE_DIR,
    SubmissionStorage,
)
from menu_portal.services.workbook import build_menu_workbook
from menu_portal.utils.filenames import dedupe_name, safe_brand_name, sanitize_filename
from menu_portal.utils.timeutils import utc_now
from menu_portal.utils.tokens import new_docs_token

logger = logging.getLogger(__name__)

# =======================
# 1. PURE HELPERS
# =======================

def field_text(value) -> str:
    """Text of a scalar menu field. Saved drafts are free-form JSON, so numbers count and containers don't."""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return ""
    return str(value).strip()

def display_name(item: dict) -> str:
    """English name first, Arabic as fallback."""
    return field_text(item.get("item_name_en")) or field_text(item.get("item_name_ar"))

def build_image_rename_map(items: list) -> dict:
    """
    Maps each assigned image filename to a human-readable name derived from its item.

    Items without a display name keep the original filename. Duplicate names get
    ' (2)', ' (3)', ... in first-seen order, compared case-insensitively.
    """
    rename_map = {}
    used = set()
    for item in items:
        if not isinstance(item, dict) or not item.get("image"):
            continue
        image = item["image"]
        if image in rename_map:
            continue
        name = sanitize_filename(display_name(item))
        if not name:
            rename_map[image] = image
            used.add(image.lower())
            continue
        ext = os.path.splitext(image)[1]
        rename_map[image] = dedupe_name(name, ext, used)
    return rename_map

def menu_download_urls(submission: Submission) -> dict:
    """Capability URLs: anyone holding them can download until the submission expires."""
    token = quote(submission.access_token, safe="")
    base = f"/download/{submission.id}"
    return {
        "zipDownloadUrl": f"{base}/package.zip?accessToken={token}",
        "excelDownloadUrl": f"{base}/menu.xlsx?accessToken={token}",
    }

def docs_download_path(docs_token: str) -> str:
    return f"/dl/docs/{docs_token}"

@dataclass
class DocsPackage:
    token: str
    documents: list[str]
    path: str

# =======================
# 2. SERVICE
# =======================

class PackagingService:
    def __init__(self, db: Session, settings: Settings, storage: SubmissionStorage | None = None):
        self.db = db
        self.settings = settings
        self.storage = storage or SubmissionStorage(settings)

    # --- menu journey ---

    def readiness_problems(self, submission: Submission) -> list[str]:
        """Every item needs a name, a price and an uploaded image before the final submit."""
        items = submission.menu_items
        if not items:
            return ["Add at least one menu item before submitting"]

        images = set(self.storage.list_files(submission.id, IMAGES_DIR))
        problems = []
        for pos, item in enumerate(items, start=1):
            if not isinstance(item, dict):
                problems.append(f"Item {pos}: invalid item")
                continue
            image = item.get("image")
            if image is not None and not isinstance(image, str):
                problems.append(f"Item {pos}: invalid image")
                continue
            addons = item.get("addons")
            if addons is not None and not (isinstance(addons, list) and all(isinstance(a, dict) for a in addons)):
                problems.append(f"Item {pos}: invalid add-ons")
                continue
            missing = []
            if not display_name(item):
                missing.append("name")
            if not field_text(item.get("price")):
                missing.append("price")
            if not image:
                missing.append("image")
            elif image not in images:
                missing.append("image (file not found)")
            if missing:
                problems.append(f"Item {pos}: missing {', '.join(missing)}")
        return problems

    def submit_menu(self, submission: Submission) -> dict:
        """
        Builds the workbook and ZIP and marks the submission submitted.
        Calling it again regenerates the artifacts; submitted_at keeps the first time.
        """
        problems = self.readiness_problems(submission)
        if problems:
            raise ValidationFailed("Menu is not ready to submit: " + "; ".join(problems))

        items = submission.menu_items
        brand = safe_brand_name(submission.brand_name)
        rename_map = build_image_rename_map(items)

        # The snapshot packed into the ZIP already shows the submitted state;
        # it is only committed once both artifacts are in place
        first_submit = submission.status != SubmissionStatus.SUBMITTED
        if first_submit:
            submission.status = SubmissionStatus.SUBMITTED
            submission.submitted_at = utc_now()

        try:
            self.storage.write_meta(submission)
            workbook_path = self._write_workbook(submission, items, rename_map, brand)
            zip_path = self._write_menu_zip(submission, rename_map, workbook_path, brand)
        except Exception as e:
            self.db.rollback()
            if first_submit:
                self.storage.write_meta(submission)
            if isinstance(e, PortalError):
                raise
            logger.exception("Packaging failed for submission %s", submission.id)
            raise PackagingFailed("Failed to generate files") from e

        if first_submit:
            self.db.commit()

        logger.info(
            "Packaged submission %s (%d items, %s) %s",
            submission.id, len(items), os.path.basename(zip_path),
            "submitted" if first_submit else "regenerated",
        )
        return menu_download_urls(submission)

    def _write_workbook(self, submission: Submission, items: list, rename_map: dict, brand: str) -> str:
        menu_dir = self.storage.ensure_dir(submission.id, MENU_DIR)
        target = os.path.join(menu_dir, f"menu_{brand}.xlsx")
        wb = build_menu_workbook(items, rename_map, submission.location_details)
        with _atomic_target(menu_dir, target, ".xlsx") as tmp_path:
            wb.save(tmp_path)
        return target

    def _write_menu_zip(self, submission: Submission, rename_map: dict, workbook_path: str, brand: str) -> str:
        package_dir = self.storage.ensure_dir(submission.id, PACKAGE_DIR)
        target = os.path.join(package_dir, f"{brand}-{submission.id[:8]}.zip")
        images_folder = f"product_images_{brand}"
        logo_dir = self.storage.path(submission.id, LOGO_DIR)
        images_dir = self.storage.path(submission.id, IMAGES_DIR)

        with _atomic_target(package_dir, target, ".zip") as tmp_path:
            with zipfile.ZipFile(tmp_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
                for f in self.storage.list_files(submission.id, LOGO_DIR):
                    zf.write(os.path.join(logo_dir, f), f"logo/{f}")

                # Assigned images under their item names, then everything else as uploaded
                all_images = self.storage.list_files(submission.id, IMAGES_DIR)
                added = set()
                for original, renamed in rename_map.items():
                    if original in all_images:
                        zf.write(os.path.join(images_dir, original), f"{images_folder}/{renamed}")
                        added.add(original)
                taken = {name.lower() for name in rename_map.values()}
                for f in all_images:
                    if f in added:
                        continue
                    arcname = f if f.lower() not in taken else dedupe_name(*os.path.splitext(f), taken)
                    zf.write(os.path.join(images_dir, f), f"{images_folder}/{arcname}")

                zf.write(workbook_path, f"menu/{os.path.basename(workbook_path)}")
                zf.write(self.storage.path(submission.id, META_FILE), "meta.json")

        # Only one package per submission
        for f in self.storage.list_files(submission.id, PACKAGE_DIR):
            if f.endswith(".zip") and os.path.join(package_dir, f) != target:
                os.remove(os.path.join(package_dir, f))
        return target

    def menu_package_path(self, submission: Submission) -> str:
        zips = [f for f in self.storage.list_files(submission.id, PACKAGE_DIR) if f.endswith(".zip")]
        if not zips:
            raise FileNotFound("Package not found")
        return self.storage.path(submission.id, PACKAGE_DIR, zips[0])

    def workbook_path(self, submission: Submission) -> str:
        books = [f for f in self.storage.list_files(submission.id, MENU_DIR) if f.endswith(".xlsx")]
        if not books:
            raise FileNotFound("Excel file not found")
        return self.storage.path(submission.id, MENU_DIR, books[0])

    def mark_zip_downloaded(self, submission: Submission) -> bool:
        """Stamps the first package download. Returns True only for that first one."""
        if submission.zip_downloaded_at is not None:
            return False
        submission.zip_downloaded_at = utc_now()
        self.db.commit()
        return True

    # --- documents journey ---

    def missing_documents(self, submission: Submission) -> list[str]:
        uploaded = IntakeService(self.settings, self.storage).list_documents(submission)
        return [kind for kind in required_documents(submission.business_type) if not uploaded.get(kind)]

    def submit_docs(self, submission: Submission) -> DocsPackage:
        """
        Zips the documents with an info.txt summary and issues the docs token.
        Nothing is written and no token is issued while a required kind is missing.
        The token is kept on re-submission so links already sent stay valid.
        """
        missing = self.missing_documents(submission)
        if missing:
            raise ValidationFailed(f"Missing required documents: {', '.join(missing)}")

        documents = [
            f for f in self.storage.list_files(submission.id, DOCS_DIR) if f != DOCS_PACKAGE_NAME
        ]
        docs_dir = self.storage.ensure_dir(submission.id, DOCS_DIR)
        target = os.path.join(docs_dir, DOCS_PACKAGE_NAME)
        try:
            with _atomic_target(docs_dir, target, ".zip") as tmp_path:
                with zipfile.ZipFile(tmp_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
                    for f in documents:
                        zf.write(os.path.join(docs_dir, f), f)
                    zf.writestr("info.txt", docs_info_text(submission))
        except Exception as e:
            logger.exception("Docs packaging failed for submission %s", submission.id)
            raise PackagingFailed("Failed to process documents submission") from e

        if not submission.docs_token:
            submission.docs_token = new_docs_token()
        submission.docs_submitted_at = utc_now()
        self.db.commit()
        self.storage.write_meta(submission)

        logger.info("Documents packaged for submission %s (%d files)", submission.id, len(documents))
        return DocsPackage(token=submission.docs_token, documents=documents, path=target)

    def docs_package_by_token(self, token: str) -> str:
        """Resolves a docs download token to the package path. The token is the only credential."""
        if not token:
            raise FileNotFound("Invalid or expired download link.")
        submission = self.db.query(Submission).filter(Submission.docs_token == token).first()
        if not submission:
            raise FileNotFound("Invalid or expired download link.")
        path = self.storage.file_path(submission.id, DOCS_DIR, DOCS_PACKAGE_NAME)
        if not path:
            raise FileNotFound(
                "Document package not found. It may have been deleted by the retention policy."
            )
        return path

def docs_info_text(submission: Submission) -> str:
    lines = [
        f"Brand Name: {submission.brand_name}",
        f"Business Type: {submission.business_type}",
        f"Contact Email: {submission.contact_email or ''}",
        f"Contact Phone: {submission.contact_phone or ''}",
        f"Product Categories: {', '.join(submission.categories)}",
    ]
    if submission.categories_description:
        lines += ["", "Category Description:", submission.categories_description]
    return "\n".join(lines) + "\n"

@contextmanager
def _atomic_target(directory: str, target: str, suffix: str):
    """Yields a temp path in `directory` that replaces `target` only if the block succeeds."""
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".build-", suffix=suffix)
    os.close(fd)
    try:
        yield tmp_path
        os.replace(tmp_path, target)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
