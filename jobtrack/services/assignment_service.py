from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from jobtrack.database import SessionLocal
from jobtrack.services import job_store
from jobtrack.services.time_validator import (
    STATUS_ERROR,
    JobNotFoundError,
    TimeValidationResult,
    count_concurrent_contractors,
    validate_schedule,
)

logger = logging.getLogger(__name__)


class ScheduleRejectedError(ValueError):
    def __init__(self, validation: TimeValidationResult):
        super().__init__(validation.message)
        self.validation = validation


@dataclass(frozen=True)
class AssignmentBatch:
    assignment_ids: Tuple[int, ...]
    validation: TimeValidationResult


def create_assignments(
    company_id: int,
    job_id: int,
    contractor_ids: Sequence[int],
    selected_phases: Sequence[str],
    start_date: date,
    end_date: date,
    special_instructions: Optional[str] = None,
    *,
    enforce_schedule: bool = False,
    db: Optional[Session] = None,
) -> AssignmentBatch:
    """
    One assignment row per contractor. The schedule verdict is computed with
    every contractor already working intersecting phases of the job counted in;
    it only blocks creation when enforce_schedule is set.
    """
    contractors: List[int] = list(dict.fromkeys(int(c) for c in contractor_ids))
    if not contractors:
        raise ValueError("At least one contractor is required")
    if end_date < start_date:
        raise ValueError("end_date must be on or after start_date")

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        if job_store.get_job(db, company_id, job_id) is None:
            raise JobNotFoundError("Job not found")

        phases = job_store.get_phases_by_job(db, company_id, job_id)
        existing = job_store.list_assignments_by_job(db, company_id, job_id)
        contractor_count = count_concurrent_contractors(
            [a.selected_phases for a in existing],
            selected_phases,
            new_contractors=len(contractors),
        )
        validation = validate_schedule(phases, selected_phases, start_date, end_date, contractor_count)

        if enforce_schedule and validation.status == STATUS_ERROR:
            raise ScheduleRejectedError(validation)

        rows = [
            job_store.create_assignment(
                db,
                company_id=company_id,
                job_id=job_id,
                contractor_id=contractor_id,
                selected_phases=list(selected_phases),
                start_date=start_date,
                end_date=end_date,
                special_instructions=special_instructions,
                team_assignment=len(contractors) > 1,
            )
            for contractor_id in contractors
        ]

        if owns_db:
            db.commit()
        else:
            db.flush()

        logger.info(
            "Job assignments created",
            extra={
                "job_id": int(job_id),
                "assignments_created": len(rows),
                "schedule_status": validation.status,
            },
        )
        return AssignmentBatch(
            assignment_ids=tuple(int(r.id) for r in rows),
            validation=validation,
        )
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def list_assignments(company_id: int, job_id: int, *, db: Optional[Session] = None):
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        return job_store.list_assignments_by_job(db, company_id, job_id)
    finally:
        if owns_db:
            db.close()
