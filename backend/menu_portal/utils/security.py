# menu_portal/utils/security.py
"""
Request authorization.

Every submission is guarded by the (submissionId, accessToken) pair handed out at
creation. Download links put the id in the path and the token in the query string
so they can be shared as plain URLs. The admin surface uses one shared secret.
"""
import logging
from fastapi import Depends, Header, Query, Request
from sqlalchemy.orm import Session

from menu_portal.config import Settings, get_settings
from menu_portal.database.connection import get_db
from menu_portal.exceptions import AccessDenied, AuthenticationRequired, FeatureDisabled
from menu_portal.models.submission import Submission
from menu_portal.utils.tokens import tokens_match

logger = logging.getLogger(__name__)

def authorize_submission(db: Session, submission_id: str | None, access_token: str | None) -> Submission:
    """
    Resolves the submission for a credential pair. Missing halves and wrong halves
    produce different errors, but a wrong id and a wrong token look the same to the caller.
    """
    if not submission_id or not access_token:
        logger.warning("Auth rejected: missing credentials (submission=%s)", submission_id or "-")
        raise AuthenticationRequired("Missing submissionId or accessToken")

    submission = db.query(Submission).filter(Submission.id == submission_id).first()
    if not submission or not tokens_match(submission.access_token, access_token):
        logger.warning("Auth rejected: invalid credentials for submission %s", submission_id)
        raise AccessDenied("Invalid submissionId or accessToken")
    return submission

def get_current_submission(
    x_submission_id: str | None = Header(None),
    x_access_token: str | None = Header(None),
    submissionId: str | None = Query(None),
    accessToken: str | None = Query(None),
    db: Session = Depends(get_db),
) -> Submission:
    """Credentials from X-Submission-Id / X-Access-Token headers, or the query string."""
    return authorize_submission(db, x_submission_id or submissionId, x_access_token or accessToken)

def get_download_submission(
    submission_id: str,
    accessToken: str | None = Query(None),
    x_access_token: str | None = Header(None),
    db: Session = Depends(get_db),
) -> Submission:
    """Capability-URL variant: id from the path, token from the query string."""
    return authorize_submission(db, submission_id, accessToken or x_access_token)

async def require_admin(
    request: Request,
    x_admin_token: str | None = Header(None),
    adminToken: str | None = Query(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Admin secret from X-Admin-Token, ?adminToken= or a JSON body {"adminToken": ...}."""
    if not settings.ADMIN_TOKEN:
        raise FeatureDisabled("Admin routes are disabled: ADMIN_TOKEN is not configured")

    token = x_admin_token or adminToken
    if not token and request.method in ("POST", "PUT", "DELETE"):
        try:
            body = await request.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            token = body.get("adminToken")

    if not tokens_match(settings.ADMIN_TOKEN, token):
        logger.warning("Admin auth rejected for %s %s", request.method, request.url.path)
        raise AccessDenied("Invalid admin token")
