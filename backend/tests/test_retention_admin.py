import os
from datetime import timedelta

from conftest import make_image
from menu_portal.config import settings
from menu_portal.database.connection import SessionLocal
from menu_portal.models.submission import Submission
from menu_portal.services.cleanup import CleanupService

ADMIN = {"X-Admin-Token": "test-admin-token"}

def _created_at(db, submission_id):
    return db.get(Submission, submission_id).created_at

def _exists(submission_id):
    db = SessionLocal()
    try:
        return db.get(Submission, submission_id) is not None
    finally:
        db.close()

# --- retention sweep ---

def test_cleanup_respects_retention_window(db, menu_submission):
    sid = menu_submission["submissionId"]
    created = _created_at(db, sid)
    window = timedelta(hours=settings.RETENTION_HOURS)
    service = CleanupService(settings, SessionLocal)

    assert service.run(now=created + window - timedelta(seconds=1)) == 0
    assert _exists(sid)
    assert os.path.isdir(os.path.join(settings.DATA_DIR, sid))

    assert service.run(now=created + window + timedelta(seconds=1)) == 1
    assert not _exists(sid)
    assert not os.path.exists(os.path.join(settings.DATA_DIR, sid))

    # nothing left to delete
    assert service.run(now=created + window + timedelta(seconds=2)) == 0

def test_cleanup_removes_rows_whose_directory_is_gone(db, menu_submission):
    import shutil

    sid = menu_submission["submissionId"]
    created = _created_at(db, sid)
    shutil.rmtree(os.path.join(settings.DATA_DIR, sid))

    deleted = CleanupService(settings, SessionLocal).run(now=created + timedelta(hours=settings.RETENTION_HOURS, minutes=1))
    assert deleted == 1
    assert not _exists(sid)

def test_expired_credentials_stop_working(client, db, menu_submission):
    created = _created_at(db, menu_submission["submissionId"])
    CleanupService(settings, SessionLocal).run(now=created + timedelta(hours=settings.RETENTION_HOURS + 1))
    assert client.get("/api/submission/info", headers=menu_submission["headers"]).status_code == 403

# --- admin surface ---

def test_admin_requires_token(client):
    assert client.get("/api/admin/submissions").status_code == 403
    assert client.get("/api/admin/submissions", headers={"X-Admin-Token": "nope"}).status_code == 403
    assert client.get("/api/admin/submissions", headers=ADMIN).status_code == 200
    assert client.get("/admin/submissions", params={"adminToken": "test-admin-token"}).status_code == 200

def test_admin_disabled_without_configured_token(client, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_TOKEN", None)
    res = client.get("/api/admin/submissions", headers={"X-Admin-Token": ""})
    assert res.status_code == 503
    assert client.post("/api/admin/cleanup", json={"adminToken": "test-admin-token"}).status_code == 503

def test_admin_list_shows_links_once_submitted(client, menu_submission):
    headers = menu_submission["headers"]
    draft = client.post("/api/submission/create", json={"brandName": "Draft Shop", "businessType": "garden"}).json()

    image = client.post("/api/submission/upload-images", headers=headers,
                        files={"images": ("latte.jpg", make_image(), "image/jpeg")}).json()[0]["filename"]
    client.post("/api/submission/save-menu", headers=headers,
                json={"items": [{"item_name_en": "Latte", "price": "18", "image": image}]})
    urls = client.post("/api/submission/submit", headers=headers).json()

    rows = {r["id"]: r for r in client.get("/api/admin/submissions", headers=ADMIN).json()}
    submitted = rows[menu_submission["submissionId"]]
    assert submitted["status"] == "submitted"
    assert submitted["zipDownloadUrl"] == urls["zipDownloadUrl"]
    assert submitted["excelDownloadUrl"] == urls["excelDownloadUrl"]
    assert submitted["docsDownloadUrl"] is None
    assert submitted["expiresAt"] > submitted["createdAt"]

    pending = rows[draft["submissionId"]]
    assert pending["status"] == "draft"
    assert pending["zipDownloadUrl"] is None

def test_admin_list_limit(client):
    for i in range(3):
        client.post("/api/submission/create", json={"brandName": f"Shop {i}", "businessType": "other"})
    assert len(client.get("/api/admin/submissions", headers=ADMIN).json()) == 3
    assert len(client.get("/api/admin/submissions", headers=ADMIN, params={"limit": 2}).json()) == 2
    assert client.get("/api/admin/submissions", headers=ADMIN, params={"limit": 0}).status_code == 422

def test_admin_cleanup_accepts_token_in_body(client, menu_submission):
    res = client.post("/api/admin/cleanup", json={"adminToken": "test-admin-token"})
    assert res.status_code == 200
    # nothing is older than the retention window yet
    assert res.json() == {"success": True, "deletedCount": 0}
    assert client.get("/api/submission/info", headers=menu_submission["headers"]).status_code == 200

    assert client.post("/api/admin/cleanup", json={"adminToken": "wrong"}).status_code == 403
