from conftest import auth_headers

def test_create_returns_id_and_token(client):
    res = client.post("/api/submission/create", json={"brandName": "  Test Cafe ", "businessType": "restaurants_cafes"})
    assert res.status_code == 200
    data = res.json()
    assert data["submissionId"] and data["accessToken"]
    assert data["accessToken"] != data["submissionId"]

    info = client.get("/api/submission/info", headers=auth_headers(data))
    assert info.status_code == 200
    assert info.json()["brandName"] == "Test Cafe"
    assert info.json()["status"] == "draft"

def test_create_rejects_blank_brand_name(client):
    for brand in ["", "   ", None]:
        res = client.post("/api/submission/create", json={"brandName": brand, "businessType": "other"})
        assert res.status_code == 400
        assert res.json()["detail"] == "Brand name is required"

def test_create_rejects_missing_or_unknown_business_type(client):
    res = client.post("/api/submission/create", json={"brandName": "Shop"})
    assert res.status_code == 400
    assert res.json()["detail"] == "Business type is required"

    res = client.post("/api/submission/create", json={"brandName": "Shop", "businessType": "spaceships"})
    assert res.status_code == 400

def test_create_rejects_malformed_categories(client):
    res = client.post("/api/submission/create", json={
        "brandName": "Shop", "businessType": "other", "categories": ["Gifts", 3],
    })
    assert res.status_code == 400

def test_token_only_authorizes_its_own_submission(client, menu_submission):
    other = client.post("/api/submission/create", json={"brandName": "Other", "businessType": "pets"}).json()

    crossed = {"X-Submission-Id": other["submissionId"], "X-Access-Token": menu_submission["accessToken"]}
    res = client.get("/api/submission/info", headers=crossed)
    assert res.status_code == 403

    assert client.get("/api/submission/info", headers=auth_headers(other)).status_code == 200

def test_missing_and_invalid_credentials_are_distinguished(client, menu_submission):
    res = client.get("/api/submission/info", headers={"X-Submission-Id": menu_submission["submissionId"]})
    assert res.status_code == 401

    res = client.get("/api/submission/info", headers={
        "X-Submission-Id": "does-not-exist", "X-Access-Token": menu_submission["accessToken"],
    })
    bad_token = client.get("/api/submission/info", headers={
        "X-Submission-Id": menu_submission["submissionId"], "X-Access-Token": "wrong",
    })
    # same answer whichever half is wrong
    assert res.status_code == bad_token.status_code == 403
    assert res.json() == bad_token.json()

def test_credentials_accepted_from_query_string(client, menu_submission):
    res = client.get("/api/submission/images", params={
        "submissionId": menu_submission["submissionId"],
        "accessToken": menu_submission["accessToken"],
    })
    assert res.status_code == 200
    assert res.json() == []

def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"
