from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from jobtrack.database import SessionLocal
from jobtrack.models.phase import Phase
from jobtrack.services import job_store

STATUS_OK = "ok"
STATUS_WARNING = "warning"
STATUS_ERROR = "error"


class JobNotFoundError(ValueError):
    pass


@dataclass(frozen=True)
class TimeValidationResult:
    required_days: int
    available_days: int
    status: str
    message: str
    contractor_count: int = 1


def _plural(n: int, unit: str = "day") -> str:
    return f"{n} {unit}" if n == 1 else f"{n} {unit}s"


def _selected(phases: Sequence[Phase], selected_phases: Iterable[str]) -> List[Phase]:
    wanted = {str(p) for p in selected_phases or ()}
    if not wanted:
        return list(phases)
    # names not on the job simply match nothing
    return [p for p in phases if p.phase_name in wanted]


def required_days_for(phases: Sequence[Phase], selected_phases: Iterable[str]) -> int:
    return sum(int(p.required_labour_days or 0) for p in _selected(phases, selected_phases))


def inclusive_range_days(start_date: date, end_date: date) -> int:
    if end_date < start_date:
        return 0
    return (end_date - start_date).days + 1


def validate_schedule(
    phases: Sequence[Phase],
    selected_phases: Iterable[str],
    start_date: date,
    end_date: date,
    contractor_count: int = 1,
) -> TimeValidationResult:
    """
    Classify a proposed window against the labour-days the selected phases need.

      available >= required          -> ok
      available >= 0.75 * required   -> warning (tight)
      otherwise                      -> error (insufficient)

    Never raises for a bad window; end before start simply has no days.
    """
    contractors = max(int(contractor_count or 0), 1)
    required = required_days_for(phases, selected_phases)
    available = inclusive_range_days(start_date, end_date) * contractors

    crew = f" with {contractors} contractors" if contractors > 1 else ""

    if required == 0:
        status = STATUS_OK
        message = "No labour time data available for the selected phases"
    elif available >= required:
        status = STATUS_OK
        message = (
            f"Schedule covers requirements: {_plural(required)} needed, "
            f"{_plural(available)} allocated{crew} ({_plural(available - required)} surplus)"
        )
    elif available * 4 >= required * 3:
        status = STATUS_WARNING
        message = (
            f"Tight schedule: {_plural(required)} needed, "
            f"{_plural(available)} allocated{crew} (short by {_plural(required - available)})"
        )
    else:
        status = STATUS_ERROR
        message = (
            f"Insufficient time: {_plural(required)} needed, only "
            f"{_plural(available)} allocated{crew} (short by {_plural(required - available)})"
        )

    return TimeValidationResult(
        required_days=required,
        available_days=available,
        status=status,
        message=message,
        contractor_count=contractors,
    )


def suggest_end_date_for(
    phases: Sequence[Phase],
    selected_phases: Iterable[str],
    start_date: date,
) -> Optional[date]:
    required = required_days_for(phases, selected_phases)
    if required == 0:
        return None
    return start_date + timedelta(days=required - 1)


def count_concurrent_contractors(
    existing_selections: Iterable[Sequence[str]],
    selected_phases: Sequence[str],
    new_contractors: int = 1,
) -> int:
    """
    Contractors working the proposed phases at once: existing assignments
    whose phase sets intersect the proposed one, plus the ones being added.
    An empty selection means every phase and intersects everything.
    """
    proposed = set(selected_phases or ())
    overlapping = 0
    for existing in existing_selections:
        current = set(existing or ())
        if not proposed or not current or proposed & current:
            overlapping += 1
    return overlapping + max(int(new_contractors), 0)


def _load_phases(db: Session, company_id: int, job_id: int) -> List[Phase]:
    if job_store.get_job(db, company_id, job_id) is None:
        raise JobNotFoundError("Job not found")
    return job_store.get_phases_by_job(db, company_id, job_id)


def get_time_validation(
    company_id: int,
    job_id: int,
    selected_phases: Sequence[str],
    start_date: date,
    end_date: date,
    contractor_count: int = 1,
    *,
    db: Optional[Session] = None,
) -> TimeValidationResult:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        phases = _load_phases(db, company_id, job_id)
        return validate_schedule(phases, selected_phases, start_date, end_date, contractor_count)
    finally:
        if owns_db:
            db.close()


def suggest_end_date(
    company_id: int,
    job_id: int,
    selected_phases: Sequence[str],
    start_date: date,
    *,
    db: Optional[Session] = None,
) -> Optional[date]:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        phases = _load_phases(db, company_id, job_id)
        return suggest_end_date_for(phases, selected_phases, start_date)
    finally:
        if owns_db:
            db.close()


def get_assignment_costs(
    company_id: int,
    job_id: int,
    selected_phases: Sequence[str],
    *,
    db: Optional[Session] = None,
) -> Dict[str, int]:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        phases = _selected(_load_phases(db, company_id, job_id), selected_phases)
        labour = sum(int(p.labour_cost_cents or 0) for p in phases)
        material = sum(int(p.material_cost_cents or 0) for p in phases)
        return {
            "labour_cost": labour,
            "material_cost": material,
            "total_cost": labour + material,
        }
    finally:
        if owns_db:
            db.close()
