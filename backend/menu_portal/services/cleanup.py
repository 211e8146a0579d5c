# menu_portal/services/cleanup.py
import asyncio
import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session, sessionmaker

from menu_portal.config import Settings
from menu_portal.models.submission import Submission
from menu_portal.services.storage import SubmissionStorage
from menu_portal.utils.timeutils import utc_now

logger = logging.getLogger(__name__)

class CleanupService:
    """
    Deletes submissions (directory tree + row) whose created_at is older than the
    retention window. Overlapping runs are harmless: whatever another run already
    removed is skipped and not counted.
    """

    def __init__(self, settings: Settings, session_factory: sessionmaker, storage: SubmissionStorage | None = None):
        self.settings = settings
        self.session_factory = session_factory
        self.storage = storage or SubmissionStorage(settings)

    def cutoff(self, now: datetime | None = None) -> datetime:
        return (now or utc_now()) - timedelta(hours=self.settings.RETENTION_HOURS)

    def run(self, now: datetime | None = None) -> int:
        cutoff = self.cutoff(now)
        logger.info(
            "Cleanup: deleting submissions older than %sh (created before %s)",
            self.settings.RETENTION_HOURS, cutoff.isoformat(),
        )

        db: Session = self.session_factory()
        deleted = 0
        try:
            expired_ids = [
                row.id for row in db.query(Submission.id).filter(Submission.created_at < cutoff).all()
            ]
            for submission_id in expired_ids:
                try:
                    self.storage.remove_tree(submission_id)
                    removed = db.query(Submission).filter(Submission.id == submission_id).delete(
                        synchronize_session=False
                    )
                    db.commit()
                except Exception as e:
                    db.rollback()
                    logger.error("Cleanup: error deleting %s: %s", submission_id, e)
                    continue
                if removed:
                    deleted += 1
                    logger.info("Cleanup: deleted submission %s", submission_id)
                else:
                    logger.info("Cleanup: submission %s already removed", submission_id)
        finally:
            db.close()

        logger.info("Cleanup: done, deleted %d submission(s)", deleted)
        return deleted

async def cleanup_loop(service: CleanupService, interval_seconds: int):
    """Runs the sweep forever on a fixed interval; failures are logged and the loop keeps going."""
    while True:
        try:
            await asyncio.to_thread(service.run)
        except Exception:
            logger.exception("Cleanup: scheduled run failed")
        await asyncio.sleep(interval_seconds)
