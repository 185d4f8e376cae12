from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from jobtrack.core.authorization import Role, require_role
from jobtrack.deps.auth import AuthContext
from jobtrack.schemas.job_assignment import (
    AssignmentCostsResponse,
    AssignmentCreate,
    AssignmentCreateResponse,
    AssignmentResponse,
    SuggestedEndDateResponse,
    TimeValidationResponse,
)
from jobtrack.services import assignment_service, time_validator
from jobtrack.services.assignment_service import ScheduleRejectedError
from jobtrack.services.time_validator import JobNotFoundError

router = APIRouter(prefix="/job-assignments", tags=["Job Assignments"])


@router.get("/time-validation", response_model=TimeValidationResponse)
def get_time_validation(
    job_id: int,
    start_date: date,
    end_date: date,
    selected_phases: List[str] = Query([]),
    contractor_count: int = Query(1, ge=0),
    auth: AuthContext = Depends(require_role(Role.MANAGER)),
):
    try:
        return time_validator.get_time_validation(
            company_id=auth.company_id,
            job_id=job_id,
            selected_phases=selected_phases,
            start_date=start_date,
            end_date=end_date,
            contractor_count=contractor_count,
        )
    except JobNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.get("/suggested-end-date", response_model=SuggestedEndDateResponse)
def get_suggested_end_date(
    job_id: int,
    start_date: date,
    selected_phases: List[str] = Query([]),
    auth: AuthContext = Depends(require_role(Role.MANAGER)),
):
    try:
        suggested = time_validator.suggest_end_date(
            company_id=auth.company_id,
            job_id=job_id,
            selected_phases=selected_phases,
            start_date=start_date,
        )
    except JobNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return {
        "job_id": job_id,
        "start_date": start_date,
        "suggested_end_date": suggested,
        "available": suggested is not None,
    }


@router.get("/costs", response_model=AssignmentCostsResponse)
def get_assignment_costs(
    job_id: int,
    selected_phases: List[str] = Query([]),
    auth: AuthContext = Depends(require_role(Role.MANAGER)),
):
    try:
        return time_validator.get_assignment_costs(
            company_id=auth.company_id,
            job_id=job_id,
            selected_phases=selected_phases,
        )
    except JobNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("", response_model=AssignmentCreateResponse)
def create_assignments(
    payload: AssignmentCreate,
    auth: AuthContext = Depends(require_role(Role.MANAGER)),
):
    try:
        batch = assignment_service.create_assignments(
            company_id=auth.company_id,
            job_id=payload.job_id,
            contractor_ids=payload.contractor_ids,
            selected_phases=payload.selected_phases,
            start_date=payload.start_date,
            end_date=payload.end_date,
            special_instructions=payload.special_instructions,
            enforce_schedule=payload.enforce_schedule,
        )
    except JobNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ScheduleRejectedError as exc:
        raise HTTPException(
            status_code=409,
            detail={
                "message": str(exc),
                "required_days": exc.validation.required_days,
                "available_days": exc.validation.available_days,
            },
        ) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {
        "assignment_ids": list(batch.assignment_ids),
        "assignments_created": len(batch.assignment_ids),
        "validation": TimeValidationResponse.model_validate(batch.validation),
    }


@router.get("", response_model=List[AssignmentResponse])
def list_assignments(
    job_id: int,
    auth: AuthContext = Depends(require_role(Role.MANAGER)),
):
    return assignment_service.list_assignments(auth.company_id, job_id)
