# menu_portal/services/storage.py
import json
import logging
import os
import shutil
import tempfile

from menu_portal.config import Settings
from menu_portal.models.submission import Submission
from menu_portal.utils.timeutils import isoformat_utc

logger = logging.getLogger(__name__)

LOGO_DIR = "logo"
IMAGES_DIR = "product_images"
DOCS_DIR = "docs"
MENU_DIR = "menu"
PACKAGE_DIR = "package"
META_FILE = "meta.json"
DOCS_PACKAGE_NAME = "docs-package.zip"

SUBDIRS = (LOGO_DIR, IMAGES_DIR, DOCS_DIR, MENU_DIR, PACKAGE_DIR)

class SubmissionStorage:
    """
    File-system layout of one submission:

        DATA_DIR/<id>/logo/            single logo file
        DATA_DIR/<id>/product_images/  uploaded product images
        DATA_DIR/<id>/docs/            business documents + docs-package.zip
        DATA_DIR/<id>/menu/            generated workbook
        DATA_DIR/<id>/package/         generated ZIP
        DATA_DIR/<id>/meta.json        snapshot of the submission record
    """

    def __init__(self, settings: Settings):
        self.root = settings.DATA_DIR

    def submission_dir(self, submission_id: str) -> str:
        # ids are generated server-side, but never let one escape the data root
        safe_id = os.path.basename(submission_id)
        return os.path.join(self.root, safe_id)

    def path(self, submission_id: str, *parts: str) -> str:
        return os.path.join(self.submission_dir(submission_id), *parts)

    def create_layout(self, submission_id: str):
        for sub in SUBDIRS:
            os.makedirs(self.path(submission_id, sub), exist_ok=True)

    def ensure_dir(self, submission_id: str, sub: str) -> str:
        directory = self.path(submission_id, sub)
        os.makedirs(directory, exist_ok=True)
        return directory

    def list_files(self, submission_id: str, sub: str) -> list[str]:
        """Sorted visible regular files of a subfolder; missing folder gives []."""
        directory = self.path(submission_id, sub)
        if not os.path.isdir(directory):
            return []
        return sorted(
            f for f in os.listdir(directory)
            if not f.startswith(".") and os.path.isfile(os.path.join(directory, f))
        )

    def file_path(self, submission_id: str, sub: str, filename: str) -> str | None:
        """Path of an existing file in a subfolder, or None. Only the base name is honoured."""
        safe_name = os.path.basename(filename or "")
        if not safe_name or safe_name.startswith("."):
            return None
        candidate = self.path(submission_id, sub, safe_name)
        return candidate if os.path.isfile(candidate) else None

    # --- metadata snapshot ---

    def snapshot(self, submission: Submission) -> dict:
        return {
            "id": submission.id,
            "brandName": submission.brand_name,
            "businessType": submission.business_type,
            "flow": submission.flow,
            "status": submission.status,
            "contactEmail": submission.contact_email,
            "contactPhone": submission.contact_phone,
            "categories": submission.categories,
            "categoriesDescription": submission.categories_description or "",
            "menuItems": submission.menu_items,
            "locationDetails": submission.location_details,
            "createdAt": isoformat_utc(submission.created_at),
            "submittedAt": isoformat_utc(submission.submitted_at),
        }

    def write_meta(self, submission: Submission) -> str:
        """Rewrites meta.json atomically (temp file + rename)."""
        directory = self.submission_dir(submission.id)
        os.makedirs(directory, exist_ok=True)
        target = os.path.join(directory, META_FILE)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".meta-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self.snapshot(submission), f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, target)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        return target

    # --- removal ---

    def remove_tree(self, submission_id: str) -> bool:
        """Deletes the whole submission directory. Returns False if it was already gone."""
        directory = self.submission_dir(submission_id)
        if not os.path.isdir(directory):
            return False
        try:
            shutil.rmtree(directory)
        except FileNotFoundError:
            # A concurrent sweep removed it while we were walking the tree
            return False
        return True
