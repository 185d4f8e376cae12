import pytest

from jobtrack.database import SessionLocal
from jobtrack.models.csv_upload import CsvUpload
from jobtrack.services import job_store, upload_registrar
from jobtrack.services.csv_detector import CsvNoDataError, PhaseSummary
from jobtrack.services.upload_registrar import required_labour_days

EXPORT = """Name,Site A
Address,1 High Street
Post Code,AB1 2CD
Project Type,Extension
Build Phase,Labour Cost,Material Cost,Labour Hours
Groundworks,£300.00,£150.00,12
Plumbing,£200.00,50,4
Name,Site B
Build Phase,Labour Cost,Material Cost
Electrical,£300.00,£50.00
"""


def test_required_labour_days_combines_days_and_hour_blocks():
    assert required_labour_days(PhaseSummary("P", 0, 0, 0.0, 0.0)) == 0
    assert required_labour_days(PhaseSummary("P", 0, 0, 12.0, 0.0)) == 2
    assert required_labour_days(PhaseSummary("P", 0, 0, 4.0, 2.5)) == 4


def test_upload_persists_jobs_phases_and_ledger_row():
    result = upload_registrar.upload(1, "export.csv", EXPORT)

    assert result.status == "completed"
    assert result.jobs_created == 2
    assert result.error_message is None

    db = SessionLocal()
    try:
        jobs = job_store.list_jobs(db, 1)
        assert [j.title for j in jobs] == ["Site A", "Site B"]
        site_a = jobs[0]
        assert site_a.address == "1 High Street"
        assert site_a.post_code == "AB1 2CD"
        assert site_a.project_type == "Extension"
        assert site_a.status == "pending"
        assert site_a.upload_id == result.upload_id

        phases = job_store.get_phases_by_job(db, 1, site_a.id)
        assert [(p.phase_name, p.phase_order) for p in phases] == [("Groundworks", 0), ("Plumbing", 1)]
        assert [p.required_labour_days for p in phases] == [2, 1]
        assert phases[0].labour_cost_cents == 30000
        assert phases[0].material_cost_cents == 15000
        assert all(p.status == "not_started" for p in phases)

        row = db.query(CsvUpload).filter(CsvUpload.id == result.upload_id).one()
        assert row.status == "completed"
        assert row.jobs_created == 2
        assert row.filename == "export.csv"
        assert row.content == EXPORT
        assert row.content_hash == upload_registrar.content_hash(EXPORT)
    finally:
        db.close()


def test_upload_with_no_jobs_completes_with_zero():
    result = upload_registrar.upload(1, "empty.csv", "")
    assert result.status == "completed"
    assert result.jobs_created == 0


def test_fallback_block_named_after_file():
    content = "Build Phase,Labour Cost\nGroundworks,100\n"
    result = upload_registrar.upload(1, "Plot 7.csv", content)
    assert result.jobs_created == 1

    db = SessionLocal()
    try:
        assert [j.title for j in job_store.list_jobs(db, 1)] == ["Plot 7"]
    finally:
        db.close()


def test_non_text_content_writes_nothing():
    with pytest.raises(CsvNoDataError):
        upload_registrar.upload(1, "bad.csv", "Name,A\x00B\n")

    assert upload_registrar.recent_uploads(1) == []


def test_partial_failure_keeps_created_jobs_and_marks_failed(monkeypatch):
    real_create_phase = job_store.create_phase

    def flaky_create_phase(db, job_id, **kwargs):
        if kwargs["phase_name"] == "Electrical":
            raise RuntimeError("disk full")
        return real_create_phase(db, job_id, **kwargs)

    monkeypatch.setattr(job_store, "create_phase", flaky_create_phase)

    result = upload_registrar.upload(1, "export.csv", EXPORT)

    assert result.status == "failed"
    assert result.jobs_created == 1
    assert result.error_message == "disk full"

    db = SessionLocal()
    try:
        assert [j.title for j in job_store.list_jobs(db, 1)] == ["Site A"]
        row = db.query(CsvUpload).filter(CsvUpload.id == result.upload_id).one()
        assert row.status == "failed"
        assert row.jobs_created == 1
        assert row.error_message == "disk full"
    finally:
        db.close()


def test_recent_uploads_newest_first_limited_and_scoped():
    ids = [upload_registrar.upload(1, f"u{i}.csv", f"Name,Site {i}\n").upload_id for i in range(3)]
    upload_registrar.upload(2, "other.csv", "Name,Elsewhere\n")

    recent = upload_registrar.recent_uploads(1)
    assert [u.id for u in recent] == list(reversed(ids))

    assert [u.id for u in upload_registrar.recent_uploads(1, limit=2)] == [ids[2], ids[1]]


def test_recent_uploads_limit_from_env(monkeypatch):
    for i in range(3):
        upload_registrar.upload(1, f"u{i}.csv", "")
    monkeypatch.setenv("RECENT_UPLOADS_LIMIT", "2")
    assert len(upload_registrar.recent_uploads(1)) == 2


def test_delete_upload_is_idempotent_and_keeps_jobs():
    result = upload_registrar.upload(1, "export.csv", EXPORT)

    assert upload_registrar.delete_upload(2, result.upload_id) is False
    assert upload_registrar.delete_upload(1, result.upload_id) is True
    assert upload_registrar.delete_upload(1, result.upload_id) is False
    assert upload_registrar.recent_uploads(1) == []

    db = SessionLocal()
    try:
        jobs = job_store.list_jobs(db, 1)
        assert len(jobs) == 2
        assert jobs[0].upload_id == result.upload_id
    finally:
        db.close()


def test_detect_jobs_reuses_result_for_same_content():
    first = upload_registrar.detect_jobs(EXPORT, "export.csv")
    second = upload_registrar.detect_jobs(EXPORT, "export.csv")
    assert first is second
    assert first.total_jobs == 2
