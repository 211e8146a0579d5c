# menu_portal/services/submissions.py
import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from menu_portal.catalog import BUSINESS_TYPES, DOCS_BUSINESS_TYPES
from menu_portal.config import Settings
from menu_portal.exceptions import ValidationFailed
from menu_portal.models.submission import Submission, SubmissionFlow, SubmissionStatus
from menu_portal.services.storage import IMAGES_DIR, LOGO_DIR, SubmissionStorage
from menu_portal.utils.timeutils import isoformat_utc, utc_now
from menu_portal.utils.tokens import new_access_token, new_submission_id

logger = logging.getLogger(__name__)

_MAX_ID_ATTEMPTS = 3

class SubmissionService:
    """Creates submissions and persists the draft state of the menu journey."""

    def __init__(self, db: Session, settings: Settings, storage: SubmissionStorage | None = None):
        self.db = db
        self.settings = settings
        self.storage = storage or SubmissionStorage(settings)

    # ------------------------------------------------------------------
    # creation
    # ------------------------------------------------------------------

    def create(
        self,
        brand_name: str | None,
        business_type: str | None,
        flow: str = SubmissionFlow.MENU,
        contact_email: str | None = None,
        contact_phone: str | None = None,
        categories: list | None = None,
        categories_description: str | None = None,
    ) -> Submission:
        brand = (brand_name or "").strip()
        if not brand:
            raise ValidationFailed("Brand name is required")
        if not business_type:
            raise ValidationFailed("Business type is required")
        valid_types = DOCS_BUSINESS_TYPES if flow == SubmissionFlow.DOCS else BUSINESS_TYPES
        if business_type not in valid_types:
            raise ValidationFailed(f"Invalid business type. Choose from: {', '.join(valid_types)}")
        if categories is not None:
            if not isinstance(categories, list) or not all(isinstance(c, str) and c.strip() for c in categories):
                raise ValidationFailed("Categories must be a list of non-empty strings")

        for attempt in range(_MAX_ID_ATTEMPTS):
            submission = Submission(
                id=new_submission_id(),
                access_token=new_access_token(),
                status=SubmissionStatus.DRAFT,
                flow=flow,
                brand_name=brand,
                business_type=business_type,
                contact_email=(contact_email or "").strip() or None,
                contact_phone=(contact_phone or "").strip() or None,
                categories_description=(categories_description or "").strip() or None,
                created_at=utc_now(),
            )
            submission.categories = [c.strip() for c in (categories or [])]
            self.db.add(submission)
            try:
                self.db.commit()
                break
            except IntegrityError:
                # uuid4 collision: practically impossible, but ids must stay unique
                self.db.rollback()
                logger.warning("Submission id collision on attempt %d, regenerating", attempt + 1)
        else:
            raise RuntimeError("Could not allocate a unique submission id")

        self.db.refresh(submission)
        self.storage.create_layout(submission.id)
        self.storage.write_meta(submission)
        logger.info("Created %s submission %s for brand '%s'", flow, submission.id, brand)
        return submission

    # ------------------------------------------------------------------
    # draft state (wholesale replace, last write wins)
    # ------------------------------------------------------------------

    def save_menu(self, submission: Submission, items) -> int:
        if not isinstance(items, list):
            raise ValidationFailed("items must be an array")
        submission.menu_items = items
        self.db.commit()
        self.storage.write_meta(submission)
        logger.info("Saved %d menu item(s) for submission %s", len(items), submission.id)
        return len(items)

    def save_location(self, submission: Submission, schedule, pickup_location, operational_phone):
        submission.location_details = {
            "schedule": schedule,
            "pickupLocation": pickup_location,
            "operationalPhone": operational_phone,
        }
        self.db.commit()
        self.storage.write_meta(submission)
        logger.info("Saved location details for submission %s", submission.id)

    # ------------------------------------------------------------------
    # read
    # ------------------------------------------------------------------

    def info(self, submission: Submission) -> dict:
        logo_files = self.storage.list_files(submission.id, LOGO_DIR)
        image_files = self.storage.list_files(submission.id, IMAGES_DIR)
        return {
            "brandName": submission.brand_name,
            "businessType": submission.business_type,
            "createdAt": isoformat_utc(submission.created_at),
            "logoUploaded": len(logo_files) > 0,
            "logoFilename": logo_files[0] if logo_files else None,
            "imageCount": len(image_files),
            "menuItems": submission.menu_items,
            "locationDetails": submission.location_details,
            "status": submission.status,
            "submittedAt": isoformat_utc(submission.submitted_at),
        }
