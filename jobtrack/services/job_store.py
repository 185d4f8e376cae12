from __future__ import annotations

from datetime import date
from typing import Any, List, Optional, Sequence

from sqlalchemy.orm import Session

from jobtrack.models.csv_upload import CsvUpload
from jobtrack.models.job import Job
from jobtrack.models.job_assignment import JobAssignment
from jobtrack.models.phase import Phase

# Persistence contract for the ingestion/validation core. Callers own the
# transaction: these functions flush but never commit.


def create_job(
    db: Session,
    *,
    company_id: int,
    title: str,
    address: Optional[str] = None,
    post_code: Optional[str] = None,
    project_type: Optional[str] = None,
    upload_id: Optional[int] = None,
    status: str = "pending",
) -> Job:
    row = Job(
        company_id=int(company_id),
        upload_id=upload_id,
        title=title,
        address=address or None,
        post_code=post_code or None,
        project_type=project_type or None,
        status=status,
    )
    db.add(row)
    db.flush()
    return row


def create_phase(
    db: Session,
    job_id: int,
    *,
    company_id: int,
    phase_name: str,
    phase_order: int = 0,
    required_labour_days: int = 0,
    labour_cost_cents: int = 0,
    material_cost_cents: int = 0,
) -> Phase:
    row = Phase(
        company_id=int(company_id),
        job_id=int(job_id),
        phase_name=phase_name,
        phase_order=int(phase_order),
        required_labour_days=int(required_labour_days),
        labour_cost_cents=int(labour_cost_cents),
        material_cost_cents=int(material_cost_cents),
        status="not_started",
    )
    db.add(row)
    db.flush()
    return row


def get_job(db: Session, company_id: int, job_id: int) -> Optional[Job]:
    return (
        db.query(Job)
        .filter(
            Job.id == int(job_id),
            Job.company_id == int(company_id),
        )
        .first()
    )


def list_jobs(db: Session, company_id: int) -> List[Job]:
    return (
        db.query(Job)
        .filter(Job.company_id == int(company_id))
        .order_by(Job.id.asc())
        .all()
    )


def get_phases_by_job(db: Session, company_id: int, job_id: int) -> List[Phase]:
    return (
        db.query(Phase)
        .filter(
            Phase.job_id == int(job_id),
            Phase.company_id == int(company_id),
        )
        .order_by(Phase.phase_order.asc(), Phase.id.asc())
        .all()
    )


def create_upload_record(
    db: Session,
    *,
    company_id: int,
    filename: str,
    content: str,
    content_hash: str,
    status: str = "pending",
) -> CsvUpload:
    row = CsvUpload(
        company_id=int(company_id),
        filename=filename,
        content=content,
        content_hash=content_hash,
        status=status,
        jobs_created=0,
    )
    db.add(row)
    db.flush()
    return row


def update_upload_record(db: Session, upload_id: int, **fields: Any) -> Optional[CsvUpload]:
    row = db.query(CsvUpload).filter(CsvUpload.id == int(upload_id)).first()
    if row is None:
        return None
    for key, value in fields.items():
        setattr(row, key, value)
    db.flush()
    return row


def delete_upload_record(db: Session, company_id: int, upload_id: int) -> bool:
    deleted = (
        db.query(CsvUpload)
        .filter(
            CsvUpload.id == int(upload_id),
            CsvUpload.company_id == int(company_id),
        )
        .delete(synchronize_session=False)
    )
    return deleted > 0


def list_uploads(db: Session, company_id: int, limit: int = 10) -> List[CsvUpload]:
    return (
        db.query(CsvUpload)
        .filter(CsvUpload.company_id == int(company_id))
        .order_by(CsvUpload.created_at.desc(), CsvUpload.id.desc())
        .limit(int(limit))
        .all()
    )


def create_assignment(
    db: Session,
    *,
    company_id: int,
    job_id: int,
    contractor_id: int,
    selected_phases: Sequence[str],
    start_date: date,
    end_date: date,
    special_instructions: Optional[str] = None,
    team_assignment: bool = False,
) -> JobAssignment:
    row = JobAssignment(
        company_id=int(company_id),
        job_id=int(job_id),
        contractor_id=int(contractor_id),
        selected_phases=list(selected_phases),
        start_date=start_date,
        end_date=end_date,
        special_instructions=special_instructions,
        team_assignment=bool(team_assignment),
    )
    db.add(row)
    db.flush()
    return row


def list_assignments_by_job(db: Session, company_id: int, job_id: int) -> List[JobAssignment]:
    return (
        db.query(JobAssignment)
        .filter(
            JobAssignment.company_id == int(company_id),
            JobAssignment.job_id == int(job_id),
        )
        .order_by(JobAssignment.id.asc())
        .all()
    )
