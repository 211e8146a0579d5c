# menu_portal/services/intake.py
"""
Upload intake: logo, product images and business documents.

Every upload is streamed into a hidden temp file inside its destination folder,
checked, and only then renamed into place, so a rejected or failed upload never
leaves a partial file behind and an accepted one is on disk before we respond.
"""
import logging
import os
import tempfile
from typing import BinaryIO, Protocol

from menu_portal.catalog import (
    ALLOWED_DOCUMENT_MIME_TYPES,
    DOCUMENT_TYPES,
    document_type_of,
    required_documents,
)
from menu_portal.config import Settings
from menu_portal.exceptions import FileNotFound, PayloadTooLarge, UnsupportedMediaType, ValidationFailed
from menu_portal.models.submission import Submission
from menu_portal.services.images import dimension_warning, probe_image
from menu_portal.services.storage import (
    DOCS_DIR,
    DOCS_PACKAGE_NAME,
    IMAGES_DIR,
    LOGO_DIR,
    SubmissionStorage,
)
from menu_portal.utils.filenames import file_extension, safe_brand_name, unique_upload_name

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024

class IncomingFile(Protocol):
    """The parts of fastapi.UploadFile the intake relies on."""
    filename: str | None
    content_type: str | None
    file: BinaryIO

class IntakeService:
    def __init__(self, settings: Settings, storage: SubmissionStorage | None = None):
        self.settings = settings
        self.storage = storage or SubmissionStorage(settings)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _stream_to_temp(self, upload: IncomingFile, directory: str) -> str:
        """Copies the upload into a temp file in `directory`, enforcing MAX_FILE_SIZE."""
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".upload-", suffix=".part")
        written = 0
        try:
            with os.fdopen(fd, "wb") as out:
                while True:
                    chunk = upload.file.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.settings.MAX_FILE_SIZE:
                        limit_mb = self.settings.MAX_FILE_SIZE // (1024 * 1024)
                        raise PayloadTooLarge(
                            f"File too large: {upload.filename}. Maximum size is {limit_mb}MB."
                        )
                    out.write(chunk)
                out.flush()
                os.fsync(out.fileno())
        except BaseException:
            _remove_quietly(tmp_path)
            raise
        return tmp_path

    @staticmethod
    def _require_image_mime(upload: IncomingFile):
        if not (upload.content_type or "").lower().startswith("image/"):
            raise UnsupportedMediaType(f"Only image files are allowed ({upload.filename})")

    # ------------------------------------------------------------------
    # logo
    # ------------------------------------------------------------------

    def save_logo(self, submission: Submission, upload: IncomingFile | None) -> dict:
        """Stores the single logo, replacing any previous one. Small logos only warn."""
        if upload is None or not upload.filename:
            raise ValidationFailed("No file uploaded")
        self._require_image_mime(upload)

        logo_dir = self.storage.ensure_dir(submission.id, LOGO_DIR)
        tmp_path = self._stream_to_temp(upload, logo_dir)
        try:
            probe = probe_image(tmp_path)
            filename = f"logo{file_extension(upload.filename)}"
            for old in self.storage.list_files(submission.id, LOGO_DIR):
                os.remove(os.path.join(logo_dir, old))
            os.replace(tmp_path, os.path.join(logo_dir, filename))
        finally:
            _remove_quietly(tmp_path)

        logger.info("Logo stored for submission %s (%sx%s)", submission.id, probe.width, probe.height)
        return {
            "filename": filename,
            "width": probe.width,
            "height": probe.height,
            "warning": dimension_warning(probe, self.settings.MIN_IMAGE_DIMENSION),
        }

    # ------------------------------------------------------------------
    # product images
    # ------------------------------------------------------------------

    def save_product_images(self, submission: Submission, uploads: list[IncomingFile]) -> list[dict]:
        """
        Stores a batch of product images under generated unique names.
        The batch is all-or-nothing: if any file is rejected, files already
        written by this call are removed again.
        """
        uploads = [u for u in (uploads or []) if u is not None and u.filename]
        if not uploads:
            raise ValidationFailed("No files uploaded")
        if len(uploads) > self.settings.MAX_IMAGES_PER_UPLOAD:
            raise ValidationFailed(
                f"Too many files: at most {self.settings.MAX_IMAGES_PER_UPLOAD} images per upload"
            )
        for upload in uploads:
            self._require_image_mime(upload)

        minimum = self.settings.MIN_IMAGE_DIMENSION
        images_dir = self.storage.ensure_dir(submission.id, IMAGES_DIR)
        stored_paths = []
        results = []
        try:
            for upload in uploads:
                tmp_path = self._stream_to_temp(upload, images_dir)
                try:
                    probe = probe_image(tmp_path)
                    if not probe.readable:
                        raise UnsupportedMediaType(f"{upload.filename} is not a readable image")
                    if self.settings.STRICT_IMAGE_DIMENSIONS and probe.below(minimum):
                        raise ValidationFailed(
                            f"{upload.filename}: image resolution ({probe.width}x{probe.height}) "
                            f"is below the required {minimum}x{minimum}"
                        )

                    filename = unique_upload_name(upload.filename)
                    while os.path.exists(os.path.join(images_dir, filename)):
                        filename = unique_upload_name(upload.filename)
                    final_path = os.path.join(images_dir, filename)
                    os.replace(tmp_path, final_path)
                    stored_paths.append(final_path)
                finally:
                    _remove_quietly(tmp_path)

                results.append({
                    "filename": filename,
                    "originalName": upload.filename,
                    "width": probe.width,
                    "height": probe.height,
                    "warning": dimension_warning(probe, minimum),
                })
        except BaseException:
            for path in stored_paths:
                _remove_quietly(path)
            raise

        logger.info("Stored %d product image(s) for submission %s", len(results), submission.id)
        return results

    def list_product_images(self, submission: Submission) -> list[str]:
        return self.storage.list_files(submission.id, IMAGES_DIR)

    # ------------------------------------------------------------------
    # documents
    # ------------------------------------------------------------------

    def allowed_document_types(self, submission: Submission) -> list[str]:
        return required_documents(submission.business_type) or sorted(DOCUMENT_TYPES)

    def list_documents(self, submission: Submission) -> dict[str, list[str]]:
        """Stored documents grouped by kind. The generated package is not a document."""
        grouped: dict[str, list[str]] = {}
        for f in self.storage.list_files(submission.id, DOCS_DIR):
            if f == DOCS_PACKAGE_NAME:
                continue
            kind = document_type_of(f)
            if kind:
                grouped.setdefault(kind, []).append(f)
        return grouped

    def save_documents(self, submission: Submission, doc_type: str | None, uploads: list[IncomingFile]) -> dict:
        """Stores up to MAX_DOCS_PER_TYPE files of one kind as <Kind>_<Brand>_<N><ext>."""
        uploads = [u for u in (uploads or []) if u is not None and u.filename]
        if not uploads:
            raise ValidationFailed("No files uploaded")
        doc_type = (doc_type or "").strip()
        if not doc_type:
            raise ValidationFailed("docType is required")
        allowed = self.allowed_document_types(submission)
        if doc_type not in allowed:
            raise ValidationFailed(f"Unknown docType '{doc_type}'. Allowed: {', '.join(allowed)}")

        limit = self.settings.MAX_DOCS_PER_TYPE
        existing = self.list_documents(submission).get(doc_type, [])
        if len(existing) + len(uploads) > limit:
            raise ValidationFailed(f"Maximum {limit} files allowed per document type.")
        for upload in uploads:
            if (upload.content_type or "").lower() not in ALLOWED_DOCUMENT_MIME_TYPES:
                raise UnsupportedMediaType("Only PDF, JPG, and PNG files are allowed")

        next_n = max((_sequence_number(f) for f in existing), default=0) + 1
        brand = safe_brand_name(submission.brand_name)
        docs_dir = self.storage.ensure_dir(submission.id, DOCS_DIR)

        stored_paths = []
        filenames = []
        try:
            for upload in uploads:
                tmp_path = self._stream_to_temp(upload, docs_dir)
                try:
                    filename = f"{doc_type}_{brand}_{next_n}{file_extension(upload.filename)}"
                    final_path = os.path.join(docs_dir, filename)
                    os.replace(tmp_path, final_path)
                    stored_paths.append(final_path)
                    filenames.append(filename)
                    next_n += 1
                finally:
                    _remove_quietly(tmp_path)
        except BaseException:
            for path in stored_paths:
                _remove_quietly(path)
            raise

        logger.info("Stored %d %s document(s) for submission %s", len(filenames), doc_type, submission.id)
        return {"success": True, "docType": doc_type, "filenames": filenames}

    def document_path(self, submission: Submission, filename: str) -> str:
        if os.path.basename(filename or "") == DOCS_PACKAGE_NAME:
            raise FileNotFound()
        path = self.storage.file_path(submission.id, DOCS_DIR, filename)
        if not path:
            raise FileNotFound()
        return path

    def delete_document(self, submission: Submission, filename: str | None) -> dict:
        """Removes one stored document. Unknown names are a 404; siblings are untouched."""
        if not filename:
            raise ValidationFailed("filename is required")
        path = self.document_path(submission, filename)
        try:
            os.remove(path)
        except FileNotFoundError:
            # deleted by a parallel request between the lookup and the unlink
            raise FileNotFound()
        logger.info("Deleted document %s for submission %s", os.path.basename(path), submission.id)
        return {"deleted": True, "filename": os.path.basename(path)}

def _sequence_number(filename: str) -> int:
    stem = os.path.splitext(filename)[0]
    try:
        return int(stem.rsplit("_", 1)[-1])
    except ValueError:
        return 0

def _remove_quietly(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
