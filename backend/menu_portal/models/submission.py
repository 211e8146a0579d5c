# menu_portal/models/submission.py
import json
from sqlalchemy import Column, String, DateTime, Text
from menu_portal.database.connection import Base
from menu_portal.utils.timeutils import utc_now

class SubmissionStatus:
    DRAFT = "draft"
    SUBMITTED = "submitted"

class SubmissionFlow:
    MENU = "menu"
    DOCS = "docs"

class Submission(Base):
    """
    One merchant onboarding session. The row is the source of truth;
    meta.json in the submission directory is a snapshot rewritten after each change.
    """
    __tablename__ = "submissions"

    id = Column(String(36), primary_key=True, index=True)
    access_token = Column(String(64), nullable=False)
    docs_token = Column(String(64), nullable=True, unique=True, index=True)
    status = Column(String(16), nullable=False, default=SubmissionStatus.DRAFT)
    flow = Column(String(16), nullable=False, default=SubmissionFlow.MENU)

    brand_name = Column(String(200), nullable=False)
    business_type = Column(String(64), nullable=False)
    contact_email = Column(String(320), nullable=True)
    contact_phone = Column(String(64), nullable=True)
    categories_json = Column(Text, nullable=True)
    categories_description = Column(Text, nullable=True)

    menu_items_json = Column(Text, nullable=True)  # wholesale-replaced on save
    location_json = Column(Text, nullable=True)    # wholesale-replaced on save

    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)
    submitted_at = Column(DateTime, nullable=True)
    docs_submitted_at = Column(DateTime, nullable=True)
    zip_downloaded_at = Column(DateTime, nullable=True)

    # --- JSON blob accessors ---

    @property
    def menu_items(self) -> list:
        return json.loads(self.menu_items_json) if self.menu_items_json else []

    @menu_items.setter
    def menu_items(self, items: list):
        self.menu_items_json = json.dumps(items, ensure_ascii=False)

    @property
    def location_details(self) -> dict | None:
        return json.loads(self.location_json) if self.location_json else None

    @location_details.setter
    def location_details(self, details: dict | None):
        self.location_json = json.dumps(details, ensure_ascii=False) if details is not None else None

    @property
    def categories(self) -> list:
        return json.loads(self.categories_json) if self.categories_json else []

    @categories.setter
    def categories(self, values: list):
        self.categories_json = json.dumps(values or [], ensure_ascii=False)

    @property
    def is_submitted(self) -> bool:
        return self.status == SubmissionStatus.SUBMITTED
