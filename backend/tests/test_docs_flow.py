import io
import os
import zipfile

from menu_portal.config import settings
from menu_portal.models.submission import Submission
from menu_portal.services import notifier as notifier_module
from menu_portal.services.notifier import EmailNotifier

PDF = b"%PDF-1.4\n% test document\n"

def _upload(client, headers, doc_type, count=1, mime="application/pdf", name="scan.pdf"):
    files = [("documents", (name, PDF, mime)) for _ in range(count)]
    return client.post("/api/docs/upload", headers=headers, data={"docType": doc_type}, files=files)

def _docs_dir(sub):
    return os.path.join(settings.DATA_DIR, sub["submissionId"], "docs")

def test_docs_create_requires_contact_details(client):
    base = {
        "brandName": "Home Sweets", "businessType": "home",
        "contactEmail": "owner@example.com", "contactPhone": "+97450000000", "categories": ["Cakes"],
    }
    for field, message in [
        ("contactEmail", "Contact email is required"),
        ("contactPhone", "Contact phone is required"),
        ("categories", "Categories are required"),
    ]:
        res = client.post("/api/docs/create", json={**base, field: None})
        assert res.status_code == 400
        assert res.json()["detail"] == message

    res = client.post("/api/docs/create", json={**base, "businessType": "restaurants_cafes"})
    assert res.status_code == 400

def test_docs_info_lists_requirements(client, docs_submission):
    info = client.get("/api/docs/info", headers=docs_submission["headers"]).json()
    assert info["requiredDocuments"] == ["Home_License", "IBAN_Stamped", "QID"]
    assert info["uploadedDocs"] == {}
    assert info["categories"] == ["Desserts", "Cakes"]
    assert info["submitted"] is False

def test_documents_are_named_by_kind_brand_and_sequence(client, docs_submission):
    res = _upload(client, docs_submission["headers"], "QID", count=2)
    assert res.status_code == 200
    assert res.json()["filenames"] == ["QID_Home_Sweets_1.pdf", "QID_Home_Sweets_2.pdf"]

    res = _upload(client, docs_submission["headers"], "QID", mime="image/png", name="back.PNG")
    assert res.json()["filenames"] == ["QID_Home_Sweets_3.png"]

    uploaded = client.get("/api/docs/info", headers=docs_submission["headers"]).json()["uploadedDocs"]
    assert uploaded == {"QID": ["QID_Home_Sweets_1.pdf", "QID_Home_Sweets_2.pdf", "QID_Home_Sweets_3.png"]}

def test_at_most_three_files_per_kind(client, docs_submission):
    headers = docs_submission["headers"]
    assert _upload(client, headers, "QID", count=4).status_code == 400
    assert _upload(client, headers, "QID", count=2).status_code == 200
    res = _upload(client, headers, "QID", count=2)
    assert res.status_code == 400
    assert res.json()["detail"] == "Maximum 3 files allowed per document type."
    assert len(os.listdir(_docs_dir(docs_submission))) == 2

def test_upload_rejects_bad_type_or_kind(client, docs_submission):
    headers = docs_submission["headers"]
    assert _upload(client, headers, "QID", mime="text/plain", name="id.txt").status_code == 415
    # commercial-only kind on a home business
    assert _upload(client, headers, "Trade_License").status_code == 400
    assert _upload(client, headers, "").status_code == 400
    assert os.listdir(_docs_dir(docs_submission)) == []

def test_preview_and_delete(client, docs_submission):
    headers = docs_submission["headers"]
    _upload(client, headers, "QID", count=2)

    res = client.get("/api/docs/preview/QID_Home_Sweets_1.pdf", headers=headers)
    assert res.status_code == 200
    assert res.content == PDF

    res = client.request("DELETE", "/api/docs/delete", headers=headers, json={"filename": "QID_Home_Sweets_1.pdf"})
    assert res.status_code == 200
    assert res.json() == {"deleted": True, "filename": "QID_Home_Sweets_1.pdf"}
    assert os.listdir(_docs_dir(docs_submission)) == ["QID_Home_Sweets_2.pdf"]

    res = client.request("DELETE", "/api/docs/delete", headers=headers, json={"filename": "QID_Home_Sweets_1.pdf"})
    assert res.status_code == 404
    res = client.request("DELETE", "/api/docs/delete", headers=headers, json={"filename": "../../submissions.db"})
    assert res.status_code == 404

def test_delete_frees_a_slot(client, docs_submission):
    headers = docs_submission["headers"]
    _upload(client, headers, "QID", count=3)
    client.request("DELETE", "/api/docs/delete", headers=headers, json={"filename": "QID_Home_Sweets_2.pdf"})
    res = _upload(client, headers, "QID")
    assert res.status_code == 200
    assert res.json()["filenames"] == ["QID_Home_Sweets_4.pdf"]

def test_submit_names_missing_kinds_and_issues_nothing(client, docs_submission, db):
    headers = docs_submission["headers"]
    _upload(client, headers, "Home_License")
    _upload(client, headers, "IBAN_Stamped")

    res = client.post("/api/docs/submit", headers=headers)
    assert res.status_code == 400
    assert res.json()["detail"] == "Missing required documents: QID"
    assert "docs-package.zip" not in os.listdir(_docs_dir(docs_submission))
    assert db.get(Submission, docs_submission["submissionId"]).docs_token is None

def test_submit_packages_documents_behind_a_token(client, docs_submission, db, monkeypatch):
    sent = []
    monkeypatch.setattr(EmailNotifier, "send", lambda self, subject, body: sent.append((subject, body)) or True)
    headers = docs_submission["headers"]
    for kind in ("Home_License", "IBAN_Stamped", "QID"):
        assert _upload(client, headers, kind).status_code == 200

    res = client.post("/api/docs/submit", headers=headers)
    assert res.status_code == 200
    assert res.json() == {"success": True, "message": "Documents successfully submitted"}

    token = db.get(Submission, docs_submission["submissionId"]).docs_token
    assert token
    assert len(sent) == 1
    assert f"/dl/docs/{token}" in sent[0][1]

    package = client.get(f"/dl/docs/{token}")
    assert package.status_code == 200
    with zipfile.ZipFile(io.BytesIO(package.content)) as zf:
        names = sorted(zf.namelist())
        info = zf.read("info.txt").decode("utf-8")
    assert names == [
        "Home_License_Home_Sweets_1.pdf", "IBAN_Stamped_Home_Sweets_1.pdf",
        "QID_Home_Sweets_1.pdf", "info.txt",
    ]
    assert "Brand Name: Home Sweets" in info
    assert "Product Categories: Desserts, Cakes" in info

    # the package is not one of the uploaded documents
    uploaded = client.get("/api/docs/info", headers=headers).json()
    assert uploaded["submitted"] is True
    assert "docs-package.zip" not in sum(uploaded["uploadedDocs"].values(), [])
    assert client.get("/api/docs/preview/docs-package.zip", headers=headers).status_code == 404

    # resubmitting keeps the link that was already sent
    client.post("/api/docs/submit", headers=headers)
    db.expire_all()
    assert db.get(Submission, docs_submission["submissionId"]).docs_token == token
    assert len(sent) == 2

def test_unknown_docs_token(client):
    assert client.get("/dl/docs/not-a-token").status_code == 404

def test_email_failure_does_not_fail_submit(client, docs_submission, monkeypatch):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("smtp down")

    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
    monkeypatch.setattr(settings, "NOTIFY_EMAIL_TO", "ops@example.com")
    monkeypatch.setattr(notifier_module.smtplib, "SMTP", refuse)

    headers = docs_submission["headers"]
    for kind in ("Home_License", "IBAN_Stamped", "QID"):
        _upload(client, headers, kind)
    assert client.post("/api/docs/submit", headers=headers).status_code == 200
