from typing import List

from fastapi import APIRouter, Depends, HTTPException

from jobtrack.database import SessionLocal
from jobtrack.deps.auth import AuthContext, require_auth
from jobtrack.schemas.job import JobResponse, PhaseResponse
from jobtrack.services import job_store

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.get("", response_model=List[JobResponse])
def list_jobs(auth: AuthContext = Depends(require_auth)):
    db = SessionLocal()
    try:
        return job_store.list_jobs(db, auth.company_id)
    finally:
        db.close()


@router.get("/{job_id}", response_model=JobResponse)
def get_job(job_id: int, auth: AuthContext = Depends(require_auth)):
    db = SessionLocal()
    try:
        row = job_store.get_job(db, auth.company_id, job_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Job not found")
        return row
    finally:
        db.close()


@router.get("/{job_id}/phases", response_model=List[PhaseResponse])
def get_job_phases(job_id: int, auth: AuthContext = Depends(require_auth)):
    db = SessionLocal()
    try:
        if job_store.get_job(db, auth.company_id, job_id) is None:
            raise HTTPException(status_code=404, detail="Job not found")
        return job_store.get_phases_by_job(db, auth.company_id, job_id)
    finally:
        db.close()
