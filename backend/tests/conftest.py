# backend/tests/conftest.py
import io
import os
import shutil
import sys
import tempfile

import pytest

# Settings are read once at import time, so point everything at a scratch
# directory before anything from menu_portal is imported.
_DATA_DIR = tempfile.mkdtemp(prefix="menu-portal-tests-")
os.environ["DATA_DIR"] = _DATA_DIR
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RETENTION_HOURS"] = "72"
os.environ.pop("SMTP_HOST", None)
os.environ.pop("NOTIFY_EMAIL_TO", None)

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient
from PIL import Image

from menu_portal.config import settings
from menu_portal.database.connection import SessionLocal
from menu_portal.main import app
from menu_portal.models.submission import Submission

@pytest.fixture(autouse=True)
def clean_state():
    """Every test starts with no submission rows and no submission directories."""
    db = SessionLocal()
    try:
        db.query(Submission).delete()
        db.commit()
    finally:
        db.close()
    for entry in os.listdir(settings.DATA_DIR):
        path = os.path.join(settings.DATA_DIR, entry)
        if os.path.isdir(path):
            shutil.rmtree(path)
    yield

@pytest.fixture
def client():
    return TestClient(app)

@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

def make_image(width=1200, height=1200, fmt="JPEG", color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format=fmt)
    return buf.getvalue()

def auth_headers(created: dict) -> dict:
    return {"X-Submission-Id": created["submissionId"], "X-Access-Token": created["accessToken"]}

@pytest.fixture
def menu_submission(client):
    """A fresh menu-journey submission: the create response plus ready-made auth headers."""
    res = client.post("/api/submission/create", json={"brandName": "Test Cafe", "businessType": "restaurants_cafes"})
    assert res.status_code == 200
    created = res.json()
    return {**created, "headers": auth_headers(created)}

@pytest.fixture
def docs_submission(client):
    res = client.post("/api/docs/create", json={
        "brandName": "Home Sweets",
        "businessType": "home",
        "contactEmail": "owner@example.com",
        "contactPhone": "+97450000000",
        "categories": ["Desserts", "Cakes"],
    })
    assert res.status_code == 200
    created = res.json()
    return {**created, "headers": auth_headers(created)}

def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_DATA_DIR, ignore_errors=True)
