from fastapi.testclient import TestClient

from jobtrack.main import app

client = TestClient(app)

# Groundworks needs 2 days (16h), Plumbing 1 day (8h)
EXPORT = """Name,Site A
Build Phase,Labour Cost,Material Cost,Labour Hours
Groundworks,£300.00,£150.00,16
Plumbing,£200.00,£50.00,8
"""


def _auth_headers(company_id: int) -> dict:
    resp = client.post("/auth/token", json={"user_id": "test", "company_id": company_id})
    assert resp.status_code == 200, f"token request failed: {resp.status_code} {resp.text}"
    return {"X-Company-Id": str(company_id), "Authorization": f"Bearer {resp.json()['access_token']}"}


def _seed_job(company_id: int = 1) -> int:
    headers = _auth_headers(company_id)
    r = client.post("/csv/upload", headers=headers, json={"filename": "site-a.csv", "content": EXPORT})
    assert r.status_code == 200, r.text
    return client.get("/jobs", headers=headers).json()[0]["id"]


def test_time_validation_statuses():
    job_id = _seed_job()
    headers = _auth_headers(1)

    ok = client.get(
        "/job-assignments/time-validation",
        headers=headers,
        params={"job_id": job_id, "start_date": "2026-03-02", "end_date": "2026-03-04"},
    )
    assert ok.status_code == 200, ok.text
    assert ok.json()["required_days"] == 3
    assert ok.json()["available_days"] == 3
    assert ok.json()["status"] == "ok"

    tight = client.get(
        "/job-assignments/time-validation",
        headers=headers,
        params={"job_id": job_id, "start_date": "2026-03-02", "end_date": "2026-03-03"},
    )
    assert tight.json()["status"] == "error"

    selected = client.get(
        "/job-assignments/time-validation",
        headers=headers,
        params={
            "job_id": job_id,
            "start_date": "2026-03-02",
            "end_date": "2026-03-02",
            "selected_phases": ["Plumbing"],
        },
    )
    assert selected.json()["required_days"] == 1
    assert selected.json()["status"] == "ok"

    crew = client.get(
        "/job-assignments/time-validation",
        headers=headers,
        params={"job_id": job_id, "start_date": "2026-03-02", "end_date": "2026-03-03", "contractor_count": 2},
    )
    assert crew.json()["available_days"] == 4
    assert crew.json()["contractor_count"] == 2
    assert crew.json()["status"] == "ok"


def test_time_validation_unknown_job_404():
    r = client.get(
        "/job-assignments/time-validation",
        headers=_auth_headers(1),
        params={"job_id": 999999, "start_date": "2026-03-02", "end_date": "2026-03-04"},
    )
    assert r.status_code == 404


def test_time_validation_other_company_job_404():
    job_id = _seed_job(company_id=1)
    r = client.get(
        "/job-assignments/time-validation",
        headers=_auth_headers(2),
        params={"job_id": job_id, "start_date": "2026-03-02", "end_date": "2026-03-04"},
    )
    assert r.status_code == 404


def test_suggested_end_date():
    job_id = _seed_job()
    headers = _auth_headers(1)

    r = client.get(
        "/job-assignments/suggested-end-date",
        headers=headers,
        params={"job_id": job_id, "start_date": "2026-03-02"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["suggested_end_date"] == "2026-03-04"
    assert r.json()["available"] is True

    none = client.get(
        "/job-assignments/suggested-end-date",
        headers=headers,
        params={"job_id": job_id, "start_date": "2026-03-02", "selected_phases": ["Roofing"]},
    )
    assert none.json()["suggested_end_date"] is None
    assert none.json()["available"] is False


def test_assignment_costs():
    job_id = _seed_job()
    headers = _auth_headers(1)

    r = client.get("/job-assignments/costs", headers=headers, params={"job_id": job_id})
    assert r.status_code == 200, r.text
    assert r.json() == {"labour_cost": 50000, "material_cost": 20000, "total_cost": 70000}

    plumbing = client.get(
        "/job-assignments/costs",
        headers=headers,
        params={"job_id": job_id, "selected_phases": ["Plumbing"]},
    )
    assert plumbing.json() == {"labour_cost": 20000, "material_cost": 5000, "total_cost": 25000}


def test_create_and_list_assignments():
    job_id = _seed_job()
    headers = _auth_headers(1)

    r = client.post(
        "/job-assignments",
        headers=headers,
        json={
            "job_id": job_id,
            "contractor_ids": [11, 12, 11],
            "selected_phases": ["Groundworks"],
            "start_date": "2026-03-02",
            "end_date": "2026-03-02",
            "special_instructions": "Gate code 1234",
        },
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["assignments_created"] == 2
    assert body["validation"]["contractor_count"] == 2
    assert body["validation"]["status"] == "ok"

    listing = client.get("/job-assignments", headers=headers, params={"job_id": job_id})
    assert listing.status_code == 200
    rows = listing.json()
    assert [row["contractor_id"] for row in rows] == [11, 12]
    assert all(row["team_assignment"] is True for row in rows)
    assert rows[0]["selected_phases"] == ["Groundworks"]
    assert rows[0]["special_instructions"] == "Gate code 1234"


def test_existing_assignments_count_toward_capacity():
    job_id = _seed_job()
    headers = _auth_headers(1)
    payload = {
        "job_id": job_id,
        "contractor_ids": [11],
        "start_date": "2026-03-02",
        "end_date": "2026-03-03",
    }

    first = client.post("/job-assignments", headers=headers, json=payload)
    assert first.json()["validation"]["status"] == "error"

    second = client.post("/job-assignments", headers=headers, json={**payload, "contractor_ids": [12]})
    assert second.json()["validation"]["contractor_count"] == 2
    assert second.json()["validation"]["status"] == "ok"


def test_enforced_schedule_rejects_insufficient_window():
    job_id = _seed_job()
    headers = _auth_headers(1)

    r = client.post(
        "/job-assignments",
        headers=headers,
        json={
            "job_id": job_id,
            "contractor_ids": [11],
            "start_date": "2026-03-02",
            "end_date": "2026-03-02",
            "enforce_schedule": True,
        },
    )
    assert r.status_code == 409
    detail = r.json()["detail"]
    assert detail["required_days"] == 3
    assert detail["available_days"] == 1
    assert "Insufficient time" in detail["message"]

    assert client.get("/job-assignments", headers=headers, params={"job_id": job_id}).json() == []


def test_create_assignment_validation_errors():
    job_id = _seed_job()
    headers = _auth_headers(1)
    base = {"job_id": job_id, "contractor_ids": [11], "start_date": "2026-03-05", "end_date": "2026-03-06"}

    backwards = client.post("/job-assignments", headers=headers, json={**base, "end_date": "2026-03-01"})
    assert backwards.status_code == 422

    no_contractors = client.post("/job-assignments", headers=headers, json={**base, "contractor_ids": []})
    assert no_contractors.status_code == 422

    unknown_job = client.post("/job-assignments", headers=headers, json={**base, "job_id": 999999})
    assert unknown_job.status_code == 404
