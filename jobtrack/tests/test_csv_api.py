from fastapi.testclient import TestClient

from jobtrack.main import app

client = TestClient(app)

EXPORT = """Name,Site A
Address,1 High Street
Build Phase,Labour Cost,Material Cost
Groundworks,£300.00,£150.00
Plumbing,£200.00,50
Name,Site B
Build Phase,Labour Cost,Material Cost
Electrical,£300.00,£50.00
"""


def _auth_headers(company_id: int, role: str = None) -> dict:
    body = {"user_id": "test", "company_id": company_id}
    if role:
        body["role"] = role
    resp = client.post("/auth/token", json=body)
    assert resp.status_code == 200, f"token request failed: {resp.status_code} {resp.text}"
    return {"X-Company-Id": str(company_id), "Authorization": f"Bearer {resp.json()['access_token']}"}


def test_detect_jobs_returns_review_summary():
    r = client.post("/csv/detect-jobs", headers=_auth_headers(1), json={"content": EXPORT})
    assert r.status_code == 200, r.text
    body = r.json()

    assert body["total_jobs"] == 2
    site_a = body["jobs"][0]
    assert site_a["name"] == "Site A"
    assert site_a["address"] == "1 High Street"
    assert site_a["phases"] == ["Groundworks", "Plumbing"]
    assert site_a["total_labour_cost"] == 50000
    assert site_a["total_material_cost"] == 20000
    assert [p["name"] for p in site_a["phase_breakdown"]] == ["Groundworks", "Plumbing"]


def test_detect_jobs_does_not_persist():
    headers = _auth_headers(1)
    client.post("/csv/detect-jobs", headers=headers, json={"content": EXPORT})

    assert client.get("/jobs", headers=headers).json() == []
    assert client.get("/csv/uploads", headers=headers).json() == []


def test_detect_jobs_rejects_non_text_content():
    r = client.post("/csv/detect-jobs", headers=_auth_headers(1), json={"content": "Name,\u0000"})
    assert r.status_code == 422
    assert "No data detected" in r.text


def test_upload_then_list_and_delete():
    headers = _auth_headers(1)

    r = client.post("/csv/upload", headers=headers, json={"filename": "export.csv", "content": EXPORT})
    assert r.status_code == 200, r.text
    upload = r.json()
    assert upload["status"] == "completed"
    assert upload["jobs_created"] == 2

    jobs = client.get("/jobs", headers=headers).json()
    assert [j["title"] for j in jobs] == ["Site A", "Site B"]
    assert all(j["upload_id"] == upload["upload_id"] for j in jobs)

    listing = client.get("/csv/uploads", headers=headers)
    assert listing.status_code == 200
    rows = listing.json()
    assert [row["id"] for row in rows] == [upload["upload_id"]]
    assert rows[0]["filename"] == "export.csv"
    assert rows[0]["jobs_created"] == 2
    assert "content" not in rows[0]

    d = client.delete(f"/csv/uploads/{upload['upload_id']}", headers=headers)
    assert d.status_code == 200
    assert d.json() == {"success": True, "deleted": True}

    again = client.delete(f"/csv/uploads/{upload['upload_id']}", headers=headers)
    assert again.status_code == 200
    assert again.json() == {"success": True, "deleted": False}

    assert client.get("/csv/uploads", headers=headers).json() == []
    assert len(client.get("/jobs", headers=headers).json()) == 2


def test_uploads_are_company_scoped():
    client.post("/csv/upload", headers=_auth_headers(1), json={"filename": "a.csv", "content": EXPORT})
    assert client.get("/csv/uploads", headers=_auth_headers(2)).json() == []
    assert client.get("/jobs", headers=_auth_headers(2)).json() == []


def test_upload_requires_filename():
    r = client.post("/csv/upload", headers=_auth_headers(1), json={"filename": "", "content": EXPORT})
    assert r.status_code == 422


def test_contractor_role_cannot_upload():
    r = client.post(
        "/csv/upload",
        headers=_auth_headers(1, role="contractor"),
        json={"filename": "a.csv", "content": EXPORT},
    )
    assert r.status_code == 403
    assert "Insufficient role" in r.text


def test_unknown_role_claim_403():
    r = client.get("/csv/uploads", headers=_auth_headers(1, role="janitor"))
    assert r.status_code == 403
    assert "Invalid role claim" in r.text


def test_missing_authorization_header_401():
    r = client.post("/csv/detect-jobs", headers={"X-Company-Id": "1"}, json={"content": EXPORT})
    assert r.status_code == 401


def test_wrong_scheme_401():
    token = _auth_headers(1)["Authorization"].split(" ", 1)[1]
    r = client.get("/csv/uploads", headers={"Authorization": f"Basic {token}", "X-Company-Id": "1"})
    assert r.status_code == 401


def test_garbled_bearer_token_401():
    r = client.get("/csv/uploads", headers={"Authorization": "Bearer not-a-real-token", "X-Company-Id": "1"})
    assert r.status_code == 401


def test_missing_company_header_403():
    headers = _auth_headers(1)
    del headers["X-Company-Id"]
    r = client.get("/csv/uploads", headers=headers)
    assert r.status_code == 403
    assert "X-Company-Id" in r.text


def test_company_mismatch_403():
    headers = _auth_headers(1)
    headers["X-Company-Id"] = "2"
    r = client.get("/csv/uploads", headers=headers)
    assert r.status_code == 403
    assert "Company mismatch" in r.text
